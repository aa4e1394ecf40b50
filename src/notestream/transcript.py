"""Transcript bookkeeping: what is new, and when it may be sent."""

from __future__ import annotations

import re
import time
from typing import Callable

MIN_TRANSCRIPT_CHARS = 20

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")


def count_sentences(text: str) -> int:
    return len(_SENTENCE_RE.findall(text))


class TranscriptCursor:
    """Remembers how much of a growing transcript has been consumed."""

    def __init__(self) -> None:
        self.processed = ""

    def advance(self, full_transcript: str) -> str:
        """Return the part of ``full_transcript`` not seen before and consume it.

        If the transcript no longer extends what was seen (the recognizer
        revised earlier words), the suffix beyond the previously consumed
        length is used.
        """
        new = full_transcript[len(self.processed):]
        self.processed = full_transcript
        return new

    def peek(self, full_transcript: str) -> str:
        return full_transcript[len(self.processed):]

    def reset(self) -> None:
        self.processed = ""


class ChunkCoalescer:
    """Rate limiter that merges chunks arriving too quickly.

    Chunks are concatenated into a pending buffer. The buffer is released as
    one chunk only when no call is in flight, ``min_interval_s`` has passed
    since the previous call started and the configured size minimums are
    met. Nothing is ever dropped.
    """

    def __init__(
        self,
        min_interval_s: float,
        *,
        min_chars: int = 0,
        min_sentences: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval_s = min_interval_s
        self.min_chars = min_chars
        self.min_sentences = min_sentences
        self._clock = clock
        self._pending = ""
        self._last_started: float | None = None
        self.in_flight = False

    @property
    def pending(self) -> str:
        return self._pending

    @property
    def has_pending(self) -> bool:
        return bool(self._pending.strip())

    def submit(self, chunk: str) -> None:
        if chunk:
            self._pending = _join(self._pending, chunk)

    def requeue(self, chunk: str) -> None:
        """Put a failed chunk back in front of anything that arrived since."""
        if chunk:
            self._pending = _join(chunk, self._pending)

    def due_in(self) -> float:
        """Seconds until the interval allows another call (0 when allowed)."""
        if self._last_started is None:
            return 0.0
        elapsed = self._clock() - self._last_started
        return max(self.min_interval_s - elapsed, 0.0)

    def is_ready(self) -> bool:
        if self.in_flight or not self.has_pending or self.due_in() > 0:
            return False
        if len(self._pending.strip()) < self.min_chars:
            return False
        if self._last_started is not None and count_sentences(self._pending) < self.min_sentences:
            return False
        return True

    def take_ready(self, *, force: bool = False) -> str | None:
        """Release the pending buffer if it may be sent now.

        ``force`` skips the interval and size checks but still refuses while
        a call is in flight.
        """
        if self.in_flight or not self.has_pending:
            return None
        if not force and not self.is_ready():
            return None
        chunk, self._pending = self._pending, ""
        self._last_started = self._clock()
        self.in_flight = True
        return chunk

    def complete(self) -> None:
        self.in_flight = False

    def reset(self) -> None:
        self._pending = ""
        self._last_started = None
        self.in_flight = False


def _join(first: str, second: str) -> str:
    if not first:
        return second
    if not second:
        return first
    if first[-1].isspace() or second[0].isspace():
        return first + second
    return f"{first} {second}"
