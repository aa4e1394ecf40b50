"""Per-section registry of normalized content used to reject duplicate lines."""

from __future__ import annotations

import re
from typing import Iterable

from notestream.schemas import DocumentNode, NoteSection
from notestream.sections import normalize_section_title
from notestream.similarity import normalize_text

_BULLET_MARKER_RE = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+")


def strip_bullet_marker(line: str) -> str:
    """Remove a leading ``-``, ``*``, ``+``, ``•`` or ``1.`` list marker."""
    return _BULLET_MARKER_RE.sub("", line).strip()


def content_key(line: str) -> str:
    """Normalized form two lines must share to count as duplicates.

    Lines that normalize to nothing (rules, lone punctuation) fall back to
    their trimmed text so they are not all treated as the same line.
    """
    stripped = strip_bullet_marker(line)
    return normalize_text(stripped) or stripped


class DedupRegistry:
    """Normalized content seen so far, grouped by section id.

    A section id is whatever the caller uses to address a section: a parent
    node key on the tree path, a normalized title on the markdown paths.
    Merge functions take a registry and hand back a modified copy; the
    caller keeps whichever one reflects the document it commits.
    """

    def __init__(self) -> None:
        self._entries: dict[str, set[str]] = {}
        self._titles: dict[str, str] = {}

    @classmethod
    def from_sections(cls, sections: Iterable[NoteSection]) -> DedupRegistry:
        registry = cls()
        for section in sections:
            section_id = registry.add_section(section.title)
            for line in section.lines:
                registry.add(section_id, line)
        return registry

    @classmethod
    def from_tree(cls, root: DocumentNode) -> DedupRegistry:
        registry = cls()
        stack = [root]
        while stack:
            node = stack.pop()
            for child in node.children:
                if not child.kind.is_heading:
                    registry.add(node.key, child.content)
                stack.append(child)
        return registry

    @staticmethod
    def section_id(title: str) -> str:
        return normalize_section_title(title)

    def add_section(self, title: str) -> str:
        """Register a section by title and return its id."""
        section_id = self.section_id(title)
        self._entries.setdefault(section_id, set())
        self._titles.setdefault(section_id, title.strip().lstrip("#").strip())
        return section_id

    def has_section(self, title: str) -> bool:
        return self.section_id(title) in self._entries

    def section_titles(self) -> list[str]:
        """Titles in the order they were first registered."""
        return [title for title in self._titles.values() if title]

    def contains(self, section_id: str, line: str) -> bool:
        return content_key(line) in self._entries.get(section_id, ())

    def add(self, section_id: str, line: str) -> bool:
        """Record ``line`` under ``section_id``; False if it was already there."""
        key = content_key(line)
        if not key:
            return False
        seen = self._entries.setdefault(section_id, set())
        if key in seen:
            return False
        seen.add(key)
        return True

    def replace(self, section_id: str, lines: Iterable[str]) -> None:
        """Make ``lines`` the only content recorded under ``section_id``."""
        self._entries[section_id] = {key for key in map(content_key, lines) if key}

    def forget(self, section_id: str) -> None:
        self._entries.pop(section_id, None)
        self._titles.pop(section_id, None)

    def copy(self) -> DedupRegistry:
        clone = DedupRegistry()
        clone._entries = {section_id: set(keys) for section_id, keys in self._entries.items()}
        clone._titles = dict(self._titles)
        return clone

    def clear(self) -> None:
        self._entries.clear()
        self._titles.clear()

    def size(self, section_id: str | None = None) -> int:
        """Number of recorded lines, overall or for one section."""
        if section_id is not None:
            return len(self._entries.get(section_id, ()))
        return sum(len(keys) for keys in self._entries.values())

    def __len__(self) -> int:
        return self.size()
