"""Replays line-level changes as character-by-character typing."""

from __future__ import annotations

import asyncio
import logging
import re
from collections import deque
from dataclasses import dataclass, fields, replace
from typing import Awaitable, Callable, Iterable, Iterator

from notestream.config import NOTESTREAM_ANIMATION_DELAY_SCALE
from notestream.schemas import ChangeType, StreamState, TextChange

logger = logging.getLogger(__name__)

_HEADING_MARKER_RE = re.compile(r"^#+\s*")

UpdateCallback = Callable[[StreamState], None]


@dataclass(frozen=True)
class AnimationTiming:
    """Delays between micro-steps, in seconds."""

    settle: float = 0.1
    heading_char: float = 0.03
    bullet_char: float = 0.02
    erase_char: float = 0.015
    heading_pause: float = 0.2
    bullet_pause: float = 0.15
    edit_pause: float = 0.2
    delete_pause: float = 0.1
    between_changes: float = 0.05

    @classmethod
    def instant(cls) -> AnimationTiming:
        return cls(**{f.name: 0.0 for f in fields(cls)})

    def scaled(self, factor: float) -> AnimationTiming:
        factor = max(factor, 0.0)
        return replace(self, **{f.name: getattr(self, f.name) * factor for f in fields(self)})


class TextStreamAnimator:
    """Drain a FIFO of changes into a text buffer one micro-step at a time.

    Every micro-step replaces the buffer and emits a fresh :class:`StreamState`
    to ``on_update``. Pacing is separate from the state machine: ``advance``
    performs exactly one step and returns the delay to wait before the next,
    so tests can step synchronously while ``queue_changes`` drives the same
    steps from an asyncio task.
    """

    def __init__(
        self,
        on_update: UpdateCallback | None = None,
        *,
        timing: AnimationTiming | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._on_update = on_update
        self._timing = timing or AnimationTiming().scaled(NOTESTREAM_ANIMATION_DELAY_SCALE)
        self._sleep = sleep
        self._content = ""
        self._queue: deque[TextChange] = deque()
        self._animating = False
        self._steps: Iterator[float] | None = None
        self._task: asyncio.Task[None] | None = None
        self._state = StreamState()

    @property
    def content(self) -> str:
        return self._content

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_animating(self) -> bool:
        return self._animating

    @property
    def pending(self) -> int:
        return len(self._queue)

    def enqueue(self, changes: Iterable[TextChange]) -> None:
        """Add changes to the queue without starting the drain loop."""
        self._queue.extend(changes)

    def queue_changes(self, changes: Iterable[TextChange]) -> None:
        """Queue changes and start draining them if idle.

        Must be called with a running event loop.
        """
        self.enqueue(changes)
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def wait_idle(self) -> StreamState:
        """Wait until the current drain loop has finished."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})
        return self._state

    def advance(self) -> float | None:
        """Perform one micro-step.

        Returns:
            Seconds to wait before the next step, or None once the queue is
            drained and the animator is idle.
        """
        if self._steps is None:
            if not self._queue:
                return None
            self._steps = self._drain()
        try:
            return next(self._steps)
        except StopIteration:
            self._steps = None
            return None

    def run_until_idle(self) -> StreamState:
        """Step synchronously, ignoring delays, until the queue is drained."""
        while self.advance() is not None:
            pass
        return self._state

    def clear(self) -> None:
        """Drop queued changes, empty the buffer and go idle."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._steps = None
        self._queue.clear()
        self._content = ""
        self._animating = False
        self._notify(-1)

    async def _run(self) -> None:
        while True:
            delay = self.advance()
            if delay is None:
                return
            await self._sleep(delay)

    def _drain(self) -> Iterator[float]:
        self._animating = True
        while self._queue:
            change = self._queue.popleft()
            yield from self._animate(change)
            yield self._timing.between_changes
        self._animating = False
        self._notify(-1)

    def _animate(self, change: TextChange) -> Iterator[float]:
        timing = self._timing
        if change.type == ChangeType.ADD_HEADING:
            if not change.heading:
                logger.debug("Ignoring add_heading without a heading")
                return
            heading = _HEADING_MARKER_RE.sub("", change.heading).strip()
            marker = "#" * (change.level or 2)
            yield from self._insert_line(
                f"{marker} {heading}", change.section_heading, timing.heading_char, timing.heading_pause
            )
        elif change.type == ChangeType.ADD_BULLET:
            if not change.bullet and not change.line:
                logger.debug("Ignoring add_bullet without a bullet")
                return
            text = change.line or f"- {change.bullet}"
            yield from self._insert_line(
                text, change.section_heading, timing.bullet_char, timing.bullet_pause
            )
        elif change.type == ChangeType.EDIT_LINE:
            yield from self._edit_line(change.line_index, change.new_text)
        else:
            yield from self._delete_line(change.line_index)

    def _insert_line(
        self, text: str, section_heading: str | None, char_delay: float, pause: float
    ) -> Iterator[float]:
        lines = [line for line in self._content.split("\n") if line.strip()]
        index = _insertion_index(lines, section_heading)

        lines.insert(index, "")
        self._set(lines, index)
        yield self._timing.settle

        for end in range(len(text) + 1):
            lines[index] = text[:end]
            self._set(lines, index)
            yield char_delay
        yield pause

    def _edit_line(self, index: int | None, new_text: str | None) -> Iterator[float]:
        lines = self._content.split("\n")
        if index is None or new_text is None or not 0 <= index < len(lines):
            logger.debug("Ignoring edit of line %s outside %d lines", index, len(lines))
            return

        yield from self._erase(lines, index)
        yield self._timing.settle

        for end in range(len(new_text) + 1):
            lines[index] = new_text[:end]
            self._set(lines, index)
            yield self._timing.bullet_char
        yield self._timing.edit_pause

    def _delete_line(self, index: int | None) -> Iterator[float]:
        lines = self._content.split("\n")
        if index is None or not 0 <= index < len(lines):
            logger.debug("Ignoring delete of line %s outside %d lines", index, len(lines))
            return

        yield from self._erase(lines, index)
        del lines[index]
        self._set(lines, -1)
        yield self._timing.delete_pause

    def _erase(self, lines: list[str], index: int) -> Iterator[float]:
        old = lines[index]
        self._notify(index)
        yield self._timing.settle
        for end in range(len(old), -1, -1):
            lines[index] = old[:end]
            self._set(lines, index)
            yield self._timing.erase_char

    def _set(self, lines: list[str], cursor_line: int) -> None:
        self._content = "\n".join(lines)
        self._notify(cursor_line)

    def _notify(self, cursor_line: int) -> None:
        self._state = StreamState(
            content=self._content,
            cursor_line=cursor_line,
            is_animating=self._animating,
        )
        if self._on_update is not None:
            self._on_update(self._state)


def _insertion_index(lines: list[str], section_heading: str | None) -> int:
    """Line after ``section_heading`` and the lines under it, else the end."""
    if not section_heading:
        return len(lines)
    wanted = _HEADING_MARKER_RE.sub("", section_heading).strip()
    for position, line in enumerate(lines):
        if _HEADING_MARKER_RE.match(line) and _HEADING_MARKER_RE.sub("", line).strip() == wanted:
            index = position + 1
            while index < len(lines) and not _HEADING_MARKER_RE.match(lines[index]):
                index += 1
            return index
    return len(lines)
