"""Live note-taking session: transcript in, notes out."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from notestream.animator import AnimationTiming, TextStreamAnimator, UpdateCallback
from notestream.client import GenerationClient
from notestream.config import (
    NOTESTREAM_CONFIDENCE_THRESHOLD,
    NOTESTREAM_HALLUCINATION_RATIO,
    NOTESTREAM_MIN_PROCESS_INTERVAL_S,
    NOTESTREAM_SIMILARITY_THRESHOLD,
)
from notestream.dedup import DedupRegistry
from notestream.document import DocumentState, empty_document, render_markdown
from notestream.edits import EditResult, apply_edits
from notestream.exceptions import (
    AuthenticationError,
    GenerationError,
    LowConfidenceError,
    MalformedResponseError,
    RateLimitError,
    ResponseError,
)
from notestream.merge import check_confidence, check_hallucination, diff_to_changes, dedupe_changes, merge_markdown
from notestream.outline import edits_from_analysis, edits_from_mind_map, existing_headings
from notestream.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    CORRECTION_SYSTEM_PROMPT,
    DOCUMENT_SYSTEM_PROMPT,
    MIND_MAP_SYSTEM_PROMPT,
    NOTES_SYSTEM_PROMPT,
    STREAM_SYSTEM_PROMPT,
    analysis_prompt,
    correction_prompt,
    document_prompt,
    mind_map_prompt,
    notes_prompt,
    stream_prompt,
)
from notestream.responses import (
    clean_generated_notes,
    parse_analysis,
    parse_change_stream,
    parse_edit_response,
    parse_mind_map,
)
from notestream.schemas import StreamState
from notestream.sections import parse_markdown, parse_sections
from notestream.transcript import MIN_TRANSCRIPT_CHARS, ChunkCoalescer, TranscriptCursor

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "AI API not configured. Please add your API key."
NO_NOTES_MESSAGE = "No notes to correct yet. Please start recording first."
CORRECTION_FAILED_MESSAGE = "Unable to process correction. Please try again."

STREAM_MIN_CHUNK_CHARS = 15
TREE_MIN_SENTENCES = 2


class SessionMode(str, Enum):
    """How generator answers are turned into notes."""

    DOCUMENT = "document"
    OUTLINE = "outline"
    STREAM = "stream"
    NOTES = "notes"
    MINDMAP = "mindmap"


class ProcessStatus(str, Enum):
    APPLIED = "applied"
    QUEUED = "queued"
    SKIPPED = "skipped"
    REJECTED = "rejected"
    STALE = "stale"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessResult:
    status: ProcessStatus
    detail: str = ""
    changed: bool = False


@dataclass
class SessionOptions:
    """Per-session settings; defaults come from the environment."""

    mode: SessionMode = SessionMode.DOCUMENT
    min_interval_s: float = NOTESTREAM_MIN_PROCESS_INTERVAL_S
    min_transcript_chars: int = MIN_TRANSCRIPT_CHARS
    min_chunk_chars: int = 0
    min_sentences: int = 0
    confidence_threshold: float = NOTESTREAM_CONFIDENCE_THRESHOLD
    similarity_threshold: float = NOTESTREAM_SIMILARITY_THRESHOLD
    hallucination_ratio: float = NOTESTREAM_HALLUCINATION_RATIO
    animate: bool = False
    requeue_on_rate_limit: bool = True
    auto_flush: bool = True

    @classmethod
    def for_mode(cls, mode: SessionMode | str, **overrides: object) -> SessionOptions:
        mode = SessionMode(mode)
        defaults: dict[str, object] = {"mode": mode}
        if mode == SessionMode.STREAM:
            defaults["min_chunk_chars"] = STREAM_MIN_CHUNK_CHARS
        elif mode in (SessionMode.DOCUMENT, SessionMode.MINDMAP):
            defaults["min_sentences"] = TREE_MIN_SENTENCES
        defaults.update(overrides)
        return cls(**defaults)  # type: ignore[arg-type]


class _Stale(Exception):
    pass


class NoteSession:
    """Turns a growing transcript into notes, one generator call at a time.

    The current document and dedup registry are replaced, never patched, by
    each successful update; any failure leaves them as they were. Responses
    that arrive after :meth:`reset` are discarded.
    """

    def __init__(
        self,
        client: GenerationClient | None = None,
        *,
        options: SessionOptions | None = None,
        on_update: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_stream: UpdateCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
        animation_timing: AnimationTiming | None = None,
    ) -> None:
        self.client = client or GenerationClient()
        self.options = options or SessionOptions()
        self._on_update = on_update
        self._on_error = on_error
        self._animator = TextStreamAnimator(on_stream, timing=animation_timing)
        self._cursor = TranscriptCursor()
        self._coalescer = ChunkCoalescer(
            self.options.min_interval_s,
            min_chars=self.options.min_chunk_chars,
            min_sentences=self.options.min_sentences,
            clock=clock,
        )
        self._document = empty_document()
        self._registry = DedupRegistry()
        self._transcript = ""
        self._generation = 0
        self._disabled = False
        self._config_reported = False
        self._flush_task: asyncio.Task[ProcessResult] | None = None

    @property
    def mode(self) -> SessionMode:
        return self.options.mode

    @property
    def document(self) -> DocumentState:
        return self._document

    @property
    def registry(self) -> DedupRegistry:
        return self._registry

    @property
    def animator(self) -> TextStreamAnimator:
        return self._animator

    @property
    def stream_state(self) -> StreamState:
        return self._animator.state

    @property
    def markdown(self) -> str:
        if self.mode == SessionMode.STREAM:
            return self._animator.content
        return render_markdown(self._document.root)

    @property
    def is_processing(self) -> bool:
        return self._coalescer.in_flight

    @property
    def pending(self) -> str:
        return self._coalescer.pending

    async def process_transcript(
        self, transcript: str, *, full_transcript: str | None = None
    ) -> ProcessResult:
        """Feed the transcript so far and send whatever may be sent now.

        Args:
            transcript: The whole transcript so far, or a recent window of it
                when ``full_transcript`` is also given.
            full_transcript: The whole transcript, when ``transcript`` is only
                a window.
        """
        if not self._ensure_configured():
            return ProcessResult(ProcessStatus.SKIPPED, "not configured")

        full = full_transcript if full_transcript is not None else transcript
        if len(full.strip()) < self.options.min_transcript_chars:
            return ProcessResult(ProcessStatus.SKIPPED, "transcript too short")

        self._transcript = full
        self._coalescer.submit(self._cursor.advance(full))
        return await self.flush()

    async def flush(self, *, wait: bool = False) -> ProcessResult:
        """Send the pending chunk if the rate limiter allows it.

        With ``wait`` the call sleeps out the remaining interval and sends the
        pending text regardless of the size minimums. Text still pending
        afterwards is sent by a background flush once the interval elapses,
        unless ``auto_flush`` is off.
        """
        result = await self._flush(wait)
        self._schedule_flush()
        return result

    async def _flush(self, wait: bool) -> ProcessResult:
        if not self._ensure_configured():
            return ProcessResult(ProcessStatus.SKIPPED, "not configured")
        if wait:
            delay = self._coalescer.due_in()
            if delay > 0:
                await asyncio.sleep(delay)

        chunk = self._coalescer.take_ready(force=wait)
        if chunk is None:
            if self._coalescer.has_pending:
                return ProcessResult(ProcessStatus.QUEUED)
            return ProcessResult(ProcessStatus.SKIPPED, "nothing new")

        generation = self._generation
        try:
            return await self._process_chunk(chunk, generation)
        except _Stale:
            logger.info("Discarding response that arrived after a reset")
            return ProcessResult(ProcessStatus.STALE)
        except RateLimitError as exc:
            self._report(exc.user_message)
            if self.options.requeue_on_rate_limit and generation == self._generation:
                self._coalescer.requeue(chunk)
                return ProcessResult(ProcessStatus.QUEUED, exc.user_message)
            return ProcessResult(ProcessStatus.FAILED, exc.user_message)
        except AuthenticationError as exc:
            self._disabled = True
            self._report(exc.user_message)
            return ProcessResult(ProcessStatus.FAILED, exc.user_message)
        except GenerationError as exc:
            self._report(exc.user_message)
            return ProcessResult(ProcessStatus.FAILED, exc.user_message)
        except LowConfidenceError as exc:
            logger.info("Dropping low-confidence update: %s", exc)
            return ProcessResult(ProcessStatus.REJECTED, str(exc))
        except ResponseError as exc:
            logger.warning("Dropping unusable update: %s", exc)
            return ProcessResult(ProcessStatus.REJECTED, str(exc))
        finally:
            if generation == self._generation:
                self._coalescer.complete()

    async def apply_correction(self, message: str) -> ProcessResult:
        """Ask the generator to apply a user correction to the current notes."""
        if not self._ensure_configured():
            return ProcessResult(ProcessStatus.SKIPPED, "not configured")
        notes = self.markdown
        if not notes.strip():
            self._report(NO_NOTES_MESSAGE)
            return ProcessResult(ProcessStatus.SKIPPED, NO_NOTES_MESSAGE)

        generation = self._generation
        try:
            text = await self.client.complete(
                system=CORRECTION_SYSTEM_PROMPT, user=correction_prompt(notes, message)
            )
        except AuthenticationError as exc:
            self._disabled = True
            self._report(exc.user_message)
            return ProcessResult(ProcessStatus.FAILED, exc.user_message)
        except GenerationError as exc:
            self._report(exc.user_message)
            return ProcessResult(ProcessStatus.FAILED, exc.user_message)
        except MalformedResponseError as exc:
            logger.warning("Dropping unusable correction: %s", exc)
            self._report(CORRECTION_FAILED_MESSAGE)
            return ProcessResult(ProcessStatus.REJECTED, str(exc))

        if generation != self._generation:
            logger.info("Discarding correction that arrived after a reset")
            return ProcessResult(ProcessStatus.STALE)
        corrected = clean_generated_notes(text)
        if corrected is None:
            self._report(CORRECTION_FAILED_MESSAGE)
            return ProcessResult(ProcessStatus.REJECTED, CORRECTION_FAILED_MESSAGE)

        self._replace_notes(corrected)
        return ProcessResult(ProcessStatus.APPLIED, changed=True)

    def reset(self) -> None:
        """Forget all notes and transcript state; late responses are ignored."""
        self._generation += 1
        if self._flush_task is not None and not self._flush_task.done():
            self._flush_task.cancel()
        self._flush_task = None
        self._document = empty_document()
        self._registry = DedupRegistry()
        self._transcript = ""
        self._cursor.reset()
        self._coalescer.reset()
        self._animator.clear()
        self._notify()

    async def wait_for_animation(self) -> StreamState:
        return await self._animator.wait_idle()

    async def _process_chunk(self, chunk: str, generation: int) -> ProcessResult:
        mode = self.mode
        if mode == SessionMode.DOCUMENT:
            return await self._process_document(generation)
        if mode == SessionMode.OUTLINE:
            return await self._process_outline(chunk, generation)
        if mode == SessionMode.STREAM:
            return await self._process_stream(chunk, generation)
        if mode == SessionMode.MINDMAP:
            return await self._process_mind_map(generation)
        return await self._process_notes(generation)

    async def _process_document(self, generation: int) -> ProcessResult:
        text = await self.client.complete(
            system=DOCUMENT_SYSTEM_PROMPT,
            user=document_prompt(self._document, self._transcript),
            json_mode=True,
        )
        self._check_current(generation)
        response = parse_edit_response(text)
        check_confidence(response.confidence, self.options.confidence_threshold)
        return self._commit_edits(apply_edits(self._document, response.edits, self._registry))

    async def _process_outline(self, chunk: str, generation: int) -> ProcessResult:
        topics = [node.content for node in existing_headings(self._document)]
        text = await self.client.complete(
            system=ANALYSIS_SYSTEM_PROMPT,
            user=analysis_prompt(chunk, topics),
            json_mode=True,
        )
        self._check_current(generation)
        analysis = parse_analysis(text)
        check_confidence(analysis.confidence, self.options.confidence_threshold)
        edits = edits_from_analysis(
            self._document, analysis, similarity_threshold=self.options.similarity_threshold
        )
        return self._commit_edits(apply_edits(self._document, edits, self._registry))

    async def _process_mind_map(self, generation: int) -> ProcessResult:
        text = await self.client.complete(
            system=MIND_MAP_SYSTEM_PROMPT,
            user=mind_map_prompt(self._transcript, self.markdown),
            json_mode=True,
        )
        self._check_current(generation)
        response = parse_mind_map(text)
        check_confidence(response.confidence, self.options.confidence_threshold)
        edits = edits_from_mind_map(response)
        return self._commit_edits(apply_edits(self._document, edits, self._registry))

    async def _process_stream(self, chunk: str, generation: int) -> ProcessResult:
        text = await self.client.complete(
            system=STREAM_SYSTEM_PROMPT,
            user=stream_prompt(chunk, self._registry.section_titles()),
            json_mode=True,
        )
        self._check_current(generation)
        response = parse_change_stream(text)
        check_confidence(response.confidence, self.options.confidence_threshold)
        changes, registry = dedupe_changes(response.changes, self._registry)
        self._registry = registry
        if not changes:
            return ProcessResult(ProcessStatus.APPLIED)
        logger.debug("Queueing %d animation changes", len(changes))
        self._animator.queue_changes(changes)
        return ProcessResult(ProcessStatus.APPLIED, changed=True)

    async def _process_notes(self, generation: int) -> ProcessResult:
        source = self._transcript
        text = await self.client.complete(system=NOTES_SYSTEM_PROMPT, user=notes_prompt(source))
        self._check_current(generation)
        notes = clean_generated_notes(text)
        if notes is None:
            raise MalformedResponseError("Generated notes are empty")
        check_hallucination(notes, source, self.options.hallucination_ratio)

        old = self.markdown
        merged = merge_markdown(old, notes, self._registry)
        if not merged.changed:
            return ProcessResult(ProcessStatus.APPLIED)

        self._document = parse_markdown(merged.markdown)
        self._registry = merged.registry
        if self.options.animate:
            self._animator.queue_changes(diff_to_changes(parse_sections(old), merged.sections))
        self._notify()
        return ProcessResult(ProcessStatus.APPLIED, changed=True)

    def _commit_edits(self, result: EditResult) -> ProcessResult:
        if not result.changed:
            return ProcessResult(ProcessStatus.APPLIED, f"{len(result.skipped)} edits skipped")
        self._document = result.state
        self._registry = result.registry
        self._notify()
        return ProcessResult(ProcessStatus.APPLIED, changed=True)

    def _replace_notes(self, markdown: str) -> None:
        sections = parse_sections(markdown)
        self._document = parse_markdown(markdown)
        if self.mode in (SessionMode.NOTES, SessionMode.STREAM):
            self._registry = DedupRegistry.from_sections(sections)
        else:
            self._registry = DedupRegistry.from_tree(self._document.root)
        if self.mode == SessionMode.STREAM:
            self._animator.clear()
            self._animator.queue_changes(diff_to_changes([], sections))
        self._notify()

    def _schedule_flush(self) -> None:
        if not self.options.auto_flush or self._disabled:
            return
        if self._coalescer.in_flight or not self._coalescer.has_pending:
            return
        task = self._flush_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            return
        self._flush_task = asyncio.get_running_loop().create_task(self._deferred_flush())

    async def _deferred_flush(self) -> ProcessResult:
        await asyncio.sleep(self._coalescer.due_in())
        return await self.flush(wait=True)

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise _Stale()

    def _ensure_configured(self) -> bool:
        if self._disabled:
            return False
        if self.client.configured:
            return True
        self._disabled = True
        if not self._config_reported:
            self._config_reported = True
            self._report(NOT_CONFIGURED_MESSAGE)
        return False

    def _report(self, message: str) -> None:
        logger.warning("%s", message)
        if self._on_error is not None:
            self._on_error(message)

    def _notify(self) -> None:
        if self._on_update is not None and self.mode != SessionMode.STREAM:
            self._on_update(self.markdown)
