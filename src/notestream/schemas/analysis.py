"""Classifier answers for the outline/detail and mind-map paths."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AnalysisType(str, Enum):
    """What a transcript chunk was classified as."""

    OUTLINE = "outline"
    DETAIL = "detail"
    TRANSITION = "transition"


class TranscriptAnalysis(BaseModel):
    """Classification of one transcript chunk.

    Attributes:
        type: ``outline`` announces topics, ``detail`` explains one topic,
            ``transition`` carries nothing to note.
        topics: New topic names (outline only).
        related_topic: Topic the key points belong to (detail only).
        key_points: Bullet-ready statements (detail only).
        confidence: Classifier's own 0..1 confidence.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: AnalysisType
    topics: list[str] = Field(default_factory=list)
    related_topic: str | None = Field(default=None, alias="relatedTopic")
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")
    confidence: float = Field(..., ge=0.0, le=1.0)


class MindMapItemType(str, Enum):
    """Node types in a mind-map answer."""

    TOPIC = "topic"
    SUBTOPIC = "subtopic"
    BULLET = "bullet"


class MindMapItem(BaseModel):
    """One node of a mind-map answer."""

    type: MindMapItemType
    content: str
    children: list["MindMapItem"] = Field(default_factory=list)


class MindMapResponse(BaseModel):
    """Generator answer for the mind-map path."""

    nodes: list[MindMapItem] = Field(default_factory=list)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
