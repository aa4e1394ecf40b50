"""Change-stream and animator state models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(str, Enum):
    """Line-level changes the stream animator can replay."""

    ADD_HEADING = "add_heading"
    ADD_BULLET = "add_bullet"
    EDIT_LINE = "edit_line"
    DELETE_LINE = "delete_line"


class TextChange(BaseModel):
    """A change addressed either by section heading or by line index.

    ``level`` sets the heading depth (2 when unset). ``line`` is a
    ready-formatted markdown line typed instead of ``- {bullet}``, for
    text lines and indented sub-bullets.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: ChangeType
    heading: str | None = None
    level: int | None = Field(default=None, ge=1, le=6)
    bullet: str | None = None
    line: str | None = None
    line_index: int | None = Field(default=None, alias="lineIndex")
    new_text: str | None = Field(default=None, alias="newText")
    section_heading: str | None = Field(default=None, alias="sectionHeading")


class ChangeStreamResponse(BaseModel):
    """Generator answer for the change-stream path."""

    changes: list[TextChange] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)


class StreamState(BaseModel):
    """Snapshot emitted by the animator after every micro-step."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    content: str = ""
    cursor_line: int = Field(default=-1, alias="cursorLine")
    is_animating: bool = Field(default=False, alias="isAnimating")
