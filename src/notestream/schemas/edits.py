"""Structural edit models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from notestream.schemas.document import DocumentNode


class EditAction(str, Enum):
    """Structural edit verbs understood by the edit engine."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class NodeEdit(BaseModel):
    """One structural edit against the document tree.

    ``add`` needs ``node`` and ``parent_key``; ``edit`` needs ``key`` and
    ``new_content``; ``delete`` needs ``key``.
    """

    model_config = ConfigDict(populate_by_name=True)

    action: EditAction
    key: str | None = None
    parent_key: str | None = Field(default=None, alias="parentKey")
    node: DocumentNode | None = None
    new_content: str | None = Field(default=None, alias="newContent")


class EditResponse(BaseModel):
    """Generator answer for the structural path."""

    edits: list[NodeEdit] = Field(default_factory=list)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
