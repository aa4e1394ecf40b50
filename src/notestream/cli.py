"""Command-line tools for merging, animating and live note-taking."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from notestream.animator import AnimationTiming, TextStreamAnimator
from notestream.config import NOTESTREAM_ANIMATION_DELAY_SCALE
from notestream.exceptions import NotestreamError
from notestream.merge import merge_markdown
from notestream.schemas import StreamState, TextChange
from notestream.session import NoteSession, ProcessStatus, SessionMode, SessionOptions

logger = logging.getLogger(__name__)

_CHANGES_ADAPTER = TypeAdapter(list[TextChange])


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except (OSError, NotestreamError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notestream", description="Incremental structured notes from transcripts.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    merge = subparsers.add_parser("merge", help="Merge new notes into existing notes section by section")
    merge.add_argument("old", help="Markdown file with the current notes")
    merge.add_argument("new", help="Markdown file with the candidate notes")
    merge.add_argument("-o", "--output", help="Write the merged notes here instead of stdout")
    merge.set_defaults(handler=run_merge)

    animate = subparsers.add_parser("animate", help="Replay a JSON list of text changes")
    animate.add_argument("changes", help='JSON file: a list of changes or {"changes": [...]}')
    animate.add_argument("--frames", action="store_true", help="Print every intermediate buffer")
    animate.add_argument(
        "--delay-scale",
        type=float,
        default=0.0,
        help=f"Multiplier for typing delays (0 replays instantly, {NOTESTREAM_ANIMATION_DELAY_SCALE} is real time)",
    )
    animate.set_defaults(handler=run_animate)

    live = subparsers.add_parser("live", help="Feed a transcript file to a live session")
    live.add_argument("transcript", help="Plain-text transcript file")
    live.add_argument(
        "--mode",
        choices=[mode.value for mode in SessionMode],
        default=SessionMode.DOCUMENT.value,
        help="How generator answers become notes",
    )
    live.add_argument("--chunk-words", type=int, default=40, help="Words fed per transcript update")
    live.set_defaults(handler=run_live)

    return parser


def run_merge(args: argparse.Namespace) -> int:
    old = Path(args.old).read_text(encoding="utf-8")
    new = Path(args.new).read_text(encoding="utf-8")
    result = merge_markdown(old, new)
    logger.info("Added %d lines and %d sections", result.added_lines, len(result.added_sections))

    if args.output:
        Path(args.output).write_text(result.markdown + "\n", encoding="utf-8")
    else:
        print(result.markdown)
    return 0


def load_changes(path: str) -> list[TextChange]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("changes", [])
    try:
        return _CHANGES_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise NotestreamError(f"Invalid changes in {path}: {exc}") from exc


def run_animate(args: argparse.Namespace) -> int:
    changes = load_changes(args.changes)

    def show(state: StreamState) -> None:
        if args.frames:
            print(f"--- line {state.cursor_line}")
            print(state.content)

    timing = AnimationTiming().scaled(args.delay_scale)
    animator = TextStreamAnimator(show if args.frames else None, timing=timing)

    async def replay() -> StreamState:
        animator.queue_changes(changes)
        return await animator.wait_idle()

    state = asyncio.run(replay())
    if not args.frames:
        print(state.content)
    return 0


def run_live(args: argparse.Namespace) -> int:
    words = Path(args.transcript).read_text(encoding="utf-8").split()
    options = SessionOptions.for_mode(args.mode, min_interval_s=0.0, auto_flush=False)
    errors: list[str] = []
    session = NoteSession(options=options, on_error=errors.append, animation_timing=AnimationTiming.instant())

    async def feed() -> None:
        step = max(args.chunk_words, 1)
        for end in range(step, len(words) + step, step):
            result = await session.process_transcript(" ".join(words[:end]))
            logger.info("Chunk ending at word %d: %s %s", end, result.status.value, result.detail)
            if result.status == ProcessStatus.SKIPPED and result.detail == "not configured":
                return
        await session.flush(wait=True)
        await session.wait_for_animation()

    asyncio.run(feed())
    for message in errors:
        print(f"error: {message}", file=sys.stderr)
    print(session.markdown)
    return 1 if errors and not session.markdown else 0
