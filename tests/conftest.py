"""Test setup for notestream."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from notestream.client import GenerationClient  # noqa: E402
from notestream.document import ROOT_KEY, DocumentState, build_index, create_root  # noqa: E402
from notestream.schemas import DocumentNode, NodeKind  # noqa: E402


@pytest.fixture
def sample_document() -> DocumentState:
    """A small tree with fixed keys: one section with two bullets, one nested."""
    root = create_root()
    root.children = [
        DocumentNode(
            key="h1",
            kind=NodeKind.HEADING,
            content="Topic A",
            level=2,
            children=[
                DocumentNode(
                    key="b1",
                    kind=NodeKind.BULLET,
                    content="point one",
                    children=[DocumentNode(key="s1", kind=NodeKind.BULLET, content="detail")],
                ),
                DocumentNode(key="b2", kind=NodeKind.BULLET, content="point two"),
            ],
        )
    ]
    state = build_index(root)
    assert ROOT_KEY in state
    return state


@pytest.fixture
def make_client() -> Callable[..., MagicMock]:
    """Build a GenerationClient stand-in whose ``complete`` returns or raises in order."""

    def factory(*responses: object, configured: bool = True) -> MagicMock:
        client = MagicMock(spec=GenerationClient)
        client.configured = configured
        client.complete = AsyncMock(side_effect=list(responses))
        return client

    return factory
