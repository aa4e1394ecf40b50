"""Document tree models."""

from __future__ import annotations

import secrets
import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def generate_key() -> str:
    """Return a fresh node key: millisecond timestamp plus a random suffix."""
    return f"node_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


class NodeKind(str, Enum):
    """Kinds of node that can appear in an outline document."""

    HEADING = "heading"
    SUBHEADING = "subheading"
    BULLET = "bullet"
    SUBBULLET = "subbullet"
    TEXT = "text"

    @property
    def is_heading(self) -> bool:
        return self in (NodeKind.HEADING, NodeKind.SUBHEADING)


class NodeStyle(BaseModel):
    """Inline styling applied to a node's content when rendered."""

    bold: bool = False
    italic: bool = False
    code: bool = False


class DocumentNode(BaseModel):
    """A node of the outline tree.

    Children are ordered; their order is the display order. The generator
    refers to ``kind`` as ``type`` and to ``style`` as ``metadata``.
    """

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(default_factory=generate_key)
    kind: NodeKind = Field(..., alias="type")
    content: str = ""
    level: int = 1
    children: list["DocumentNode"] = Field(default_factory=list)
    style: NodeStyle | None = Field(default=None, alias="metadata")
