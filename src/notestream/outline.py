"""Turn classifier analyses and mind-map answers into structural edits."""

from __future__ import annotations

from notestream.config import NOTESTREAM_SIMILARITY_THRESHOLD
from notestream.dedup import strip_bullet_marker
from notestream.document import ROOT_KEY, DocumentState, create_node, iter_nodes, nodes_from_mind_map
from notestream.schemas import (
    AnalysisType,
    DocumentNode,
    EditAction,
    MindMapResponse,
    NodeEdit,
    NodeKind,
    TranscriptAnalysis,
)
from notestream.sections import normalize_section_title
from notestream.similarity import best_match


def edits_from_analysis(
    state: DocumentState,
    analysis: TranscriptAnalysis,
    *,
    similarity_threshold: float = NOTESTREAM_SIMILARITY_THRESHOLD,
) -> list[NodeEdit]:
    """Build the edits that record ``analysis`` in the document.

    Outline analyses add one level-2 heading per topic not already present.
    Detail analyses add their key points as bullets under the matching
    heading, creating that heading first when no existing one matches
    closely enough. Bullets reference the heading by key, so the edits must
    be applied in order as one batch.
    """
    if analysis.type == AnalysisType.OUTLINE:
        return _outline_edits(state, analysis.topics)
    if analysis.type == AnalysisType.DETAIL:
        return _detail_edits(state, analysis, similarity_threshold)
    return []


def edits_from_mind_map(response: MindMapResponse) -> list[NodeEdit]:
    """One ``add`` under the root per top-level mind-map node."""
    return [
        NodeEdit(action=EditAction.ADD, parent_key=ROOT_KEY, node=node)
        for node in nodes_from_mind_map(response.nodes)
    ]


def existing_headings(state: DocumentState) -> list[DocumentNode]:
    return [
        node
        for node in iter_nodes(state.root)
        if node is not state.root and node.kind.is_heading and node.content.strip()
    ]


def _outline_edits(state: DocumentState, topics: list[str]) -> list[NodeEdit]:
    seen = {normalize_section_title(node.content) for node in existing_headings(state)}
    edits: list[NodeEdit] = []
    for topic in topics:
        title = topic.strip()
        normalized = normalize_section_title(title)
        if not title or normalized in seen:
            continue
        seen.add(normalized)
        edits.append(
            NodeEdit(
                action=EditAction.ADD,
                parent_key=ROOT_KEY,
                node=create_node(NodeKind.HEADING, title, 2),
            )
        )
    return edits


def _detail_edits(
    state: DocumentState, analysis: TranscriptAnalysis, threshold: float
) -> list[NodeEdit]:
    topic = (analysis.related_topic or "").strip()
    points = [strip_bullet_marker(point) for point in analysis.key_points]
    points = [point for point in points if point]
    if not topic or not points:
        return []

    headings = existing_headings(state)
    wanted = normalize_section_title(topic)
    target = next((node for node in headings if normalize_section_title(node.content) == wanted), None)
    if target is None:
        target = best_match(topic, headings, key=lambda node: node.content, threshold=threshold)

    edits: list[NodeEdit] = []
    if target is None:
        heading = create_node(NodeKind.HEADING, topic, 2)
        edits.append(NodeEdit(action=EditAction.ADD, parent_key=ROOT_KEY, node=heading))
        parent_key = heading.key
    else:
        parent_key = target.key

    for point in points:
        edits.append(
            NodeEdit(
                action=EditAction.ADD,
                parent_key=parent_key,
                node=create_node(NodeKind.BULLET, point),
            )
        )
    return edits
