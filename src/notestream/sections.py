"""Flat section view of a notes document: parsing, rendering and tree conversion."""

from __future__ import annotations

import re
from typing import Iterable

from notestream.document import DocumentState, build_index, create_node, create_root, render_markdown
from notestream.schemas import DocumentNode, NodeKind, NoteSection

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*$")
_BULLET_RE = re.compile(r"^[-*+•]\s+(.*)$")


def normalize_section_title(title: str) -> str:
    """Normalize section titles for comparison."""
    title = title.strip().lstrip("#").strip().lower()
    return re.sub(r"\s+", " ", title)


def parse_sections(markdown: str) -> list[NoteSection]:
    """Split markdown into sections.

    A heading line starts a section; every other non-blank line is a content
    line of the current section. Lines before the first heading form an
    untitled level-0 section, which is only emitted when it has content.
    """
    lines = markdown.splitlines()
    sections: list[NoteSection] = []
    current = NoteSection(id="section-0", title="", level=0, start_line=0)

    for index, line in enumerate(lines):
        match = _HEADING_RE.match(line.strip())
        if match and match.group(2):
            current.end_line = index
            if current.level > 0 or current.lines:
                sections.append(current)
            current = NoteSection(
                id=f"section-{len(sections) + 1}",
                title=match.group(2),
                level=len(match.group(1)),
                start_line=index,
            )
        elif line.strip():
            current.lines.append(line.rstrip())

    current.end_line = len(lines)
    if current.level > 0 or current.lines:
        sections.append(current)
    return sections


def render_section(section: NoteSection) -> str:
    if section.level == 0:
        return "\n".join(section.lines)
    heading = f"{'#' * section.level} {section.title}"
    return "\n".join([heading, *section.lines])


def render_sections(sections: Iterable[NoteSection]) -> str:
    """Join sections back into markdown, one blank line between sections."""
    blocks = [render_section(section) for section in sections]
    return "\n\n".join(block for block in blocks if block).strip()


def find_section(sections: Iterable[NoteSection], title: str) -> NoteSection | None:
    """Return the first section whose title matches case-insensitively."""
    wanted = normalize_section_title(title)
    for section in sections:
        if normalize_section_title(section.title) == wanted:
            return section
    return None


def tree_to_sections(root: DocumentNode) -> list[NoteSection]:
    """Flatten a document tree into its section view."""
    return parse_sections(render_markdown(root))


def sections_to_tree(sections: Iterable[NoteSection]) -> DocumentState:
    """Build a document tree from sections.

    Levels 1-2 become headings and deeper levels subheadings. Bullets nest
    under the previous bullet when indented by two more spaces; other lines
    become text nodes.
    """
    root = create_root()
    for section in sections:
        container = root
        if section.level > 0:
            kind = NodeKind.HEADING if section.level <= 2 else NodeKind.SUBHEADING
            container = create_node(kind, section.title, section.level)
            root.children.append(container)
        _append_lines(container, section.lines)
    return build_index(root)


def parse_markdown(markdown: str) -> DocumentState:
    """Parse rendered markdown back into a document tree."""
    return sections_to_tree(parse_sections(markdown))


def _append_lines(container: DocumentNode, lines: list[str]) -> None:
    stack: list[tuple[int, DocumentNode]] = []
    for line in lines:
        stripped = line.lstrip(" ")
        indent = (len(line) - len(stripped)) // 2
        while stack and stack[-1][0] >= indent:
            stack.pop()
        parent = stack[-1][1] if stack else container

        match = _BULLET_RE.match(stripped)
        if match:
            node = create_node(NodeKind.BULLET, match.group(1))
            stack.append((indent, node))
        else:
            node = create_node(NodeKind.TEXT, stripped)
        parent.children.append(node)
