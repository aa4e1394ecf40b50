"""Shared schemas for notestream."""

from notestream.schemas.analysis import (
    AnalysisType,
    MindMapItem,
    MindMapItemType,
    MindMapResponse,
    TranscriptAnalysis,
)
from notestream.schemas.document import DocumentNode, NodeKind, NodeStyle, generate_key
from notestream.schemas.edits import EditAction, EditResponse, NodeEdit
from notestream.schemas.sections import NoteSection
from notestream.schemas.stream import ChangeStreamResponse, ChangeType, StreamState, TextChange

__all__ = [
    "AnalysisType",
    "ChangeStreamResponse",
    "ChangeType",
    "DocumentNode",
    "EditAction",
    "EditResponse",
    "MindMapItem",
    "MindMapItemType",
    "MindMapResponse",
    "NodeEdit",
    "NodeKind",
    "NodeStyle",
    "NoteSection",
    "StreamState",
    "TextChange",
    "TranscriptAnalysis",
    "generate_key",
]
