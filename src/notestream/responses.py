"""Parse and clean generator answers."""

from __future__ import annotations

import logging
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from notestream.exceptions import MalformedResponseError
from notestream.schemas import ChangeStreamResponse, EditResponse, MindMapResponse, TranscriptAnalysis

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MIN_NOTES_ALNUM_CHARS = 10

_FENCE_RE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```lang ... ``` fence, if any."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    return match.group(1).strip() if match else text


def parse_model(text: str, model: type[ModelT]) -> ModelT:
    """Validate a JSON answer against ``model``.

    Raises:
        MalformedResponseError: If the text is not JSON or does not fit.
    """
    payload = strip_code_fences(text)
    if not payload:
        raise MalformedResponseError("Empty response")
    try:
        return model.model_validate_json(payload)
    except (ValidationError, ValueError) as exc:
        logger.warning("Discarding malformed %s: %s", model.__name__, exc)
        raise MalformedResponseError(f"Invalid {model.__name__}: {exc}") from exc


def parse_edit_response(text: str) -> EditResponse:
    return parse_model(text, EditResponse)


def parse_analysis(text: str) -> TranscriptAnalysis:
    return parse_model(text, TranscriptAnalysis)


def parse_change_stream(text: str) -> ChangeStreamResponse:
    return parse_model(text, ChangeStreamResponse)


def parse_mind_map(text: str) -> MindMapResponse:
    return parse_model(text, MindMapResponse)


def clean_generated_notes(text: str) -> str | None:
    """Return usable markdown notes, or None if the answer is near-empty."""
    notes = strip_code_fences(text)
    if len(_NON_ALNUM_RE.sub("", notes)) <= MIN_NOTES_ALNUM_CHARS:
        return None
    return notes
