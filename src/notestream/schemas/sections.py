"""Flat section models used by the markdown diff path."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NoteSection(BaseModel):
    """A heading and the content lines beneath it.

    ``level`` 0 marks the untitled preamble before the first heading.
    ``start_line``/``end_line`` are the half-open line range the section
    occupied in the document it was parsed from.
    """

    id: str
    title: str
    level: int = Field(default=2, ge=0, le=6)
    lines: list[str] = Field(default_factory=list)
    start_line: int = 0
    end_line: int = 0
