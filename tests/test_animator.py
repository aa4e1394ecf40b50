"""Tests for the stream animator."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from notestream.animator import AnimationTiming, TextStreamAnimator
from notestream.schemas import ChangeType, StreamState, TextChange


def heading(text: str, section: str | None = None) -> TextChange:
    return TextChange(type=ChangeType.ADD_HEADING, heading=text, section_heading=section)


def bullet(text: str, section: str | None = None) -> TextChange:
    return TextChange(type=ChangeType.ADD_BULLET, bullet=text, section_heading=section)


def make_animator(states: list[StreamState] | None = None) -> TextStreamAnimator:
    return TextStreamAnimator(
        states.append if states is not None else None, timing=AnimationTiming.instant()
    )


class TestAnimationTiming:
    """Tests for AnimationTiming class."""

    def test_instant_is_all_zero(self) -> None:
        """Instant timing never waits."""
        timing = AnimationTiming.instant()
        assert timing.heading_char == 0.0
        assert timing.between_changes == 0.0

    def test_scaled(self) -> None:
        """Scaling multiplies every delay."""
        timing = AnimationTiming().scaled(2.0)
        assert timing.heading_char == pytest.approx(0.06)
        assert timing.settle == pytest.approx(0.2)


class TestSynchronousStepping:
    """Tests driving the animator with advance()."""

    def test_intro_scenario(self) -> None:
        """A heading then a bullet under it converge to the expected buffer."""
        states: list[StreamState] = []
        animator = make_animator(states)
        animator.enqueue([heading("Intro"), bullet("First point", "Intro")])

        final = animator.run_until_idle()

        assert final.content == "## Intro\n- First point"
        assert final.cursor_line == -1
        assert not final.is_animating
        assert states[-1] == final
        assert any(state.is_animating for state in states)

    def test_types_one_character_per_step(self) -> None:
        """Buffers grow a character at a time."""
        states: list[StreamState] = []
        animator = make_animator(states)
        animator.enqueue([heading("Hi")])
        animator.run_until_idle()

        contents = [state.content for state in states]
        assert contents[:5] == ["", "", "#", "##", "## "]
        assert "## H" in contents
        assert all(state.cursor_line == 0 for state in states[:-1])

    def test_advance_returns_delays_then_none(self) -> None:
        """Each step reports the pause before the next one."""
        animator = TextStreamAnimator(timing=AnimationTiming())
        animator.enqueue([bullet("x")])
        delays = []
        while (delay := animator.advance()) is not None:
            delays.append(delay)
        assert delays[0] == pytest.approx(0.1)
        assert 0.02 in delays
        assert 0.15 in delays
        assert animator.advance() is None

    def test_idle_animator_does_nothing(self) -> None:
        """Advancing with nothing queued stays idle."""
        animator = make_animator()
        assert animator.advance() is None
        assert animator.state == StreamState()

    def test_bullet_goes_after_existing_bullets(self) -> None:
        """New bullets follow the bullets already under the section."""
        animator = make_animator()
        animator.enqueue(
            [
                heading("A"),
                bullet("a1", "A"),
                heading("B"),
                bullet("b1", "B"),
                bullet("a2", "## A"),
            ]
        )
        assert animator.run_until_idle().content == "## A\n- a1\n- a2\n## B\n- b1"

    def test_formatted_lines_and_levels(self) -> None:
        """Preformatted lines are typed as given, after text already in the section."""
        animator = make_animator()
        animator.enqueue(
            [
                TextChange(type=ChangeType.ADD_HEADING, heading="Overview", level=1),
                TextChange(type=ChangeType.ADD_BULLET, bullet="Graph search.", line="Graph search.", section_heading="Overview"),
                TextChange(type=ChangeType.ADD_HEADING, heading="Costs", level=3),
                bullet("BFS", "Overview"),
                TextChange(type=ChangeType.ADD_BULLET, bullet="a queue", line="  - a queue", section_heading="Overview"),
            ]
        )
        assert animator.run_until_idle().content == "# Overview\nGraph search.\n- BFS\n  - a queue\n### Costs"

    def test_unknown_section_appends(self) -> None:
        """Bullets for a missing section go to the end."""
        animator = make_animator()
        animator.enqueue([heading("A"), bullet("x", "Missing")])
        assert animator.run_until_idle().content == "## A\n- x"

    def test_heading_after_section(self) -> None:
        """A heading with a section lands after that section's bullets."""
        animator = make_animator()
        animator.enqueue([heading("A"), bullet("a1", "A"), heading("C"), heading("B", "A")])
        assert animator.run_until_idle().content == "## A\n- a1\n## B\n## C"

    def test_edit_line(self) -> None:
        """Edits erase the line and type the replacement."""
        states: list[StreamState] = []
        animator = make_animator(states)
        animator.enqueue([heading("A"), bullet("old", "A")])
        animator.run_until_idle()
        states.clear()

        animator.enqueue([TextChange(type=ChangeType.EDIT_LINE, line_index=1, new_text="- new")])
        final = animator.run_until_idle()

        assert final.content == "## A\n- new"
        assert "## A\n" in [state.content for state in states]
        assert final.cursor_line == -1

    def test_delete_line(self) -> None:
        """Deletes erase the line and then remove it."""
        animator = make_animator()
        animator.enqueue([heading("A"), bullet("one", "A"), bullet("two", "A")])
        animator.run_until_idle()
        animator.enqueue([TextChange(type=ChangeType.DELETE_LINE, line_index=1)])
        assert animator.run_until_idle().content == "## A\n- two"

    def test_out_of_range_edits_are_ignored(self) -> None:
        """Line indexes outside the buffer do nothing."""
        animator = make_animator()
        animator.enqueue([heading("A")])
        animator.run_until_idle()
        animator.enqueue(
            [
                TextChange(type=ChangeType.EDIT_LINE, line_index=5, new_text="x"),
                TextChange(type=ChangeType.DELETE_LINE, line_index=-1),
                TextChange(type=ChangeType.DELETE_LINE),
            ]
        )
        final = animator.run_until_idle()
        assert final.content == "## A"
        assert not final.is_animating

    def test_changes_without_text_are_ignored(self) -> None:
        """Adds missing their text change nothing."""
        animator = make_animator()
        animator.enqueue([TextChange(type=ChangeType.ADD_HEADING), TextChange(type=ChangeType.ADD_BULLET)])
        assert animator.run_until_idle().content == ""

    def test_clear_resets_everything(self) -> None:
        """Clearing empties the buffer, drops the queue and emits once."""
        states: list[StreamState] = []
        animator = make_animator(states)
        animator.enqueue([heading("A"), bullet("one", "A")])
        for _ in range(5):
            animator.advance()
        states.clear()

        animator.clear()

        assert states == [StreamState()]
        assert animator.content == ""
        assert animator.pending == 0
        assert not animator.is_animating
        assert animator.advance() is None


class TestAsyncDrain:
    """Tests for queue_changes and the asyncio drain loop."""

    @pytest.mark.asyncio
    async def test_queue_changes_drains_in_background(self) -> None:
        """Queued changes are replayed by a task and end idle."""
        animator = make_animator()
        animator.queue_changes([heading("Intro"), bullet("First point", "Intro")])
        final = await animator.wait_idle()
        assert final.content == "## Intro\n- First point"
        assert final.cursor_line == -1
        assert not final.is_animating

    @pytest.mark.asyncio
    async def test_changes_queued_while_animating_are_appended(self) -> None:
        """A second batch joins the running drain in FIFO order."""
        animator = make_animator()
        animator.queue_changes([heading("A")])
        animator.queue_changes([heading("B")])
        final = await animator.wait_idle()
        assert final.content == "## A\n## B"

    @pytest.mark.asyncio
    async def test_sleeps_between_steps(self) -> None:
        """The injected sleep receives each step's delay."""
        sleep = AsyncMock()
        animator = TextStreamAnimator(timing=AnimationTiming(), sleep=sleep)
        animator.queue_changes([heading("A")])
        await animator.wait_idle()
        delays = [call.args[0] for call in sleep.await_args_list]
        assert delays[0] == pytest.approx(0.1)
        assert delays.count(0.03) == len("## A") + 1

    @pytest.mark.asyncio
    async def test_clear_stops_running_drain(self) -> None:
        """Clearing cancels the drain and the buffer stays empty."""
        animator = TextStreamAnimator(timing=AnimationTiming())
        animator.queue_changes([heading("A long heading")])
        animator.clear()
        final = await animator.wait_idle()
        assert final.content == ""
        assert not final.is_animating
