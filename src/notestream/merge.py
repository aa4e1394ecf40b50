"""Section-level smart diff of rendered notes, plus the admission guards."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Iterable

from notestream.config import NOTESTREAM_CONFIDENCE_THRESHOLD, NOTESTREAM_HALLUCINATION_RATIO, NOTESTREAM_SIMILARITY_THRESHOLD
from notestream.dedup import DedupRegistry, strip_bullet_marker
from notestream.exceptions import HallucinationError, LowConfidenceError
from notestream.schemas import ChangeType, NoteSection, TextChange
from notestream.sections import normalize_section_title, parse_sections, render_sections
from notestream.similarity import best_match

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w[\w'-]*")
_HEADING_MARKER_RE = re.compile(r"^#+\s*")


@dataclass
class MergeResult:
    """Merged notes and the bookkeeping needed to commit them."""

    markdown: str
    sections: list[NoteSection]
    registry: DedupRegistry
    added_lines: int = 0
    added_sections: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added_lines or self.added_sections)


def merge_markdown(
    old: str,
    new: str,
    registry: DedupRegistry | None = None,
    *,
    fuzzy_titles: bool = False,
) -> MergeResult:
    """Merge freshly generated notes ``new`` into the current notes ``old``.

    Nothing in ``old`` is dropped or reordered. Lines of ``new`` land under
    the old section with the same title, after its existing lines, unless an
    equivalent line is already there. Sections only ``new`` has are appended
    in their ``new`` order.
    """
    old_sections = parse_sections(old)
    merged, registry, added_lines, added_sections = merge_sections(
        old_sections, parse_sections(new), registry, fuzzy_titles=fuzzy_titles
    )
    return MergeResult(
        markdown=render_sections(merged),
        sections=merged,
        registry=registry,
        added_lines=added_lines,
        added_sections=added_sections,
    )


def merge_sections(
    old_sections: Iterable[NoteSection],
    new_sections: Iterable[NoteSection],
    registry: DedupRegistry | None = None,
    *,
    fuzzy_titles: bool = False,
    similarity_threshold: float = NOTESTREAM_SIMILARITY_THRESHOLD,
) -> tuple[list[NoteSection], DedupRegistry, int, list[str]]:
    """Merge section lists; see :func:`merge_markdown`.

    Args:
        old_sections: Current sections, kept in order.
        new_sections: Candidate sections.
        registry: Registry for the old sections. It is copied, never modified.
        fuzzy_titles: Also pair titles that are worded differently when their
            similarity is above ``similarity_threshold``.
        similarity_threshold: Cut-off used when ``fuzzy_titles`` is set.

    Returns:
        Tuple of (merged sections, updated registry, number of lines added,
        titles of sections added).
    """
    old_list = [section.model_copy(deep=True) for section in old_sections]
    pending = [section for section in new_sections]
    registry = registry.copy() if registry is not None else DedupRegistry()

    for section in old_list:
        section_id = registry.add_section(section.title)
        for line in section.lines:
            registry.add(section_id, line)

    merged: list[NoteSection] = []
    added_lines = 0
    for section in old_list:
        match = _take_match(section, pending, fuzzy_titles, similarity_threshold)
        if match is not None:
            added_lines += _append_new_lines(section, match.lines, registry)
        merged.append(section)

    added_sections: list[str] = []
    for candidate in pending:
        existing = _same_title(candidate, merged)
        if existing is not None:
            added_lines += _append_new_lines(existing, candidate.lines, registry)
            continue
        section = NoteSection(
            id=f"section-{len(merged) + 1}",
            title=candidate.title,
            level=candidate.level,
        )
        registry.add_section(section.title)
        added_lines += _append_new_lines(section, candidate.lines, registry)
        merged.append(section)
        added_sections.append(section.title)

    return merged, registry, added_lines, added_sections


def _take_match(
    section: NoteSection,
    pending: list[NoteSection],
    fuzzy: bool,
    threshold: float,
) -> NoteSection | None:
    match = _same_title(section, pending)
    if match is None and fuzzy and section.title:
        titled = [candidate for candidate in pending if candidate.title]
        match = best_match(section.title, titled, key=lambda candidate: candidate.title, threshold=threshold)
    if match is not None:
        pending.remove(match)
    return match


def _same_title(section: NoteSection, candidates: Iterable[NoteSection]) -> NoteSection | None:
    wanted = normalize_section_title(section.title)
    for candidate in candidates:
        if normalize_section_title(candidate.title) == wanted:
            return candidate
    return None


def _append_new_lines(section: NoteSection, lines: Iterable[str], registry: DedupRegistry) -> int:
    section_id = registry.section_id(section.title)
    added = 0
    for line in lines:
        if registry.add(section_id, line):
            section.lines.append(line)
            added += 1
        else:
            logger.debug("Dropping duplicate line %r in %r", line, section.title)
    return added


def diff_to_changes(
    old_sections: Iterable[NoteSection], merged_sections: Iterable[NoteSection]
) -> list[TextChange]:
    """Changes that replay a merge on the stream animator.

    Sections new in ``merged_sections`` produce a heading followed by their
    lines; sections that already existed produce only the lines appended
    after their old content. Heading levels and the exact line text,
    indentation included, are carried so the replay matches the merge.
    """
    remaining = list(old_sections)
    changes: list[TextChange] = []
    for section in merged_sections:
        previous = _same_title(section, remaining)
        if previous is not None:
            remaining.remove(previous)
            new_lines = section.lines[len(previous.lines):]
        else:
            new_lines = section.lines
            if section.title:
                changes.append(
                    TextChange(type=ChangeType.ADD_HEADING, heading=section.title, level=section.level)
                )
        for line in new_lines:
            changes.append(
                TextChange(
                    type=ChangeType.ADD_BULLET,
                    bullet=strip_bullet_marker(line),
                    line=line,
                    section_heading=section.title or None,
                )
            )
    return changes


def dedupe_changes(
    changes: Iterable[TextChange], registry: DedupRegistry
) -> tuple[list[TextChange], DedupRegistry]:
    """Drop headings and bullets the registry already holds.

    Returns the surviving changes and an updated copy of ``registry``.
    Line edits and deletions pass through untouched.
    """
    registry = registry.copy()
    kept: list[TextChange] = []
    for change in changes:
        if change.type == ChangeType.ADD_HEADING:
            heading = _HEADING_MARKER_RE.sub("", change.heading or "").strip()
            if not heading or registry.has_section(heading):
                logger.info("Dropping repeated heading %r", heading)
                continue
            registry.add_section(heading)
        elif change.type == ChangeType.ADD_BULLET:
            section = _HEADING_MARKER_RE.sub("", change.section_heading or "").strip()
            section_id = registry.add_section(section)
            if not change.bullet or not registry.add(section_id, change.bullet):
                logger.info("Dropping repeated bullet %r", change.bullet)
                continue
        kept.append(change)
    return kept, registry


def word_count(text: str) -> int:
    return len(_WORD_RE.findall(text))


def hallucination_ratio(generated: str, source: str) -> float:
    """Generated words per source word; infinite when only the source is empty."""
    generated_words = word_count(generated)
    source_words = word_count(source)
    if source_words == 0:
        return math.inf if generated_words else 0.0
    return generated_words / source_words


def check_hallucination(
    generated: str, source: str, max_ratio: float = NOTESTREAM_HALLUCINATION_RATIO
) -> float:
    """Raise HallucinationError when ``generated`` is too long for ``source``."""
    ratio = hallucination_ratio(generated, source)
    if ratio > max_ratio:
        raise HallucinationError(
            f"Generated {word_count(generated)} words from {word_count(source)} "
            f"(ratio {ratio:.1f} > {max_ratio})"
        )
    return ratio


def check_confidence(
    confidence: float | None, threshold: float = NOTESTREAM_CONFIDENCE_THRESHOLD
) -> None:
    """Raise LowConfidenceError for scores below ``threshold``; None passes."""
    if confidence is not None and confidence < threshold:
        raise LowConfidenceError(f"Confidence {confidence:.2f} below {threshold}")
