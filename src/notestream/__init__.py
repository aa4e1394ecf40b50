"""notestream: incremental, de-duplicated outline notes from a live transcript."""

from notestream.animator import AnimationTiming, TextStreamAnimator
from notestream.client import GenerationClient
from notestream.dedup import DedupRegistry
from notestream.document import DocumentState, build_index, create_node, empty_document, render_markdown
from notestream.edits import EditErrorKind, EditResult, SkippedEdit, apply_edit, apply_edits
from notestream.exceptions import (
    AuthenticationError,
    ConfigurationError,
    GenerationError,
    HallucinationError,
    LowConfidenceError,
    MalformedResponseError,
    NotestreamError,
    RateLimitError,
    ResponseError,
)
from notestream.merge import MergeResult, merge_markdown, merge_sections
from notestream.schemas import DocumentNode, NodeEdit, NodeKind, NoteSection, StreamState, TextChange
from notestream.session import NoteSession, ProcessResult, ProcessStatus, SessionMode, SessionOptions
from notestream.similarity import similarity

__all__ = [
    "AnimationTiming",
    "AuthenticationError",
    "ConfigurationError",
    "DedupRegistry",
    "DocumentNode",
    "DocumentState",
    "EditErrorKind",
    "EditResult",
    "GenerationClient",
    "GenerationError",
    "HallucinationError",
    "LowConfidenceError",
    "MalformedResponseError",
    "MergeResult",
    "NodeEdit",
    "NodeKind",
    "NoteSection",
    "NoteSession",
    "NotestreamError",
    "ProcessResult",
    "ProcessStatus",
    "RateLimitError",
    "ResponseError",
    "SessionMode",
    "SessionOptions",
    "SkippedEdit",
    "StreamState",
    "TextChange",
    "TextStreamAnimator",
    "apply_edit",
    "apply_edits",
    "build_index",
    "create_node",
    "empty_document",
    "merge_markdown",
    "merge_sections",
    "render_markdown",
    "similarity",
]
