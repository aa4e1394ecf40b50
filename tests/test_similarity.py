"""Tests for similarity scoring."""

from __future__ import annotations

import pytest

from notestream.similarity import best_match, normalize_text, similarity


class TestNormalizeText:
    """Tests for normalize_text function."""

    def test_lowercases_and_strips_punctuation(self) -> None:
        """Punctuation is dropped and case folded."""
        assert normalize_text("Hello, World!") == "hello world"

    def test_collapses_whitespace(self) -> None:
        """Runs of whitespace become single spaces."""
        assert normalize_text("  neural \t  networks\n") == "neural networks"

    def test_drops_underscores(self) -> None:
        """Underscores count as punctuation."""
        assert normalize_text("snake_case") == "snakecase"


class TestSimilarity:
    """Tests for similarity function."""

    def test_identical_text_scores_one(self) -> None:
        """A nonempty string matches itself exactly."""
        assert similarity("Machine Learning", "Machine Learning") == 1.0

    def test_exact_after_normalization(self) -> None:
        """Case and punctuation differences still count as exact."""
        assert similarity("Machine learning!", "machine LEARNING") == 1.0

    def test_containment_scores_point_eight(self) -> None:
        """One string inside the other scores 0.8."""
        assert similarity("Learning", "Machine Learning") == 0.8

    def test_jaccard_overlap(self) -> None:
        """Otherwise the word-set Jaccard index is returned."""
        # {deep, learning, basics} vs {deep, learning, models}: 2 / 4
        assert similarity("deep learning basics", "deep learning models") == pytest.approx(0.5)

    def test_disjoint_scores_zero(self) -> None:
        """No shared words scores 0."""
        assert similarity("graphs", "sorting algorithms") == 0.0

    def test_empty_strings_score_zero(self) -> None:
        """Empty input never divides by zero."""
        assert similarity("", "") == 0.0
        assert similarity("", "topic") == 0.0
        assert similarity("!!!", "topic") == 0.0

    @pytest.mark.parametrize(
        ("text_a", "text_b"),
        [
            ("deep learning basics", "deep learning models"),
            ("Learning", "Machine Learning"),
            ("", "topic"),
            ("Sorting", "sorting algorithms overview"),
        ],
    )
    def test_is_symmetric(self, text_a: str, text_b: str) -> None:
        """Argument order does not matter."""
        assert similarity(text_a, text_b) == similarity(text_b, text_a)


class TestBestMatch:
    """Tests for best_match function."""

    def test_returns_highest_scoring_candidate(self) -> None:
        """The best candidate above the threshold wins."""
        candidates = ["Sorting Algorithms", "Neural Networks", "Networks"]
        assert best_match("neural networks", candidates) == "Neural Networks"

    def test_threshold_is_strict(self) -> None:
        """A score equal to the threshold does not qualify."""
        assert best_match("deep learning basics", ["deep learning models"], threshold=0.5) is None

    def test_returns_none_when_nothing_close(self) -> None:
        """Unrelated candidates give no match."""
        assert best_match("Graph Theory", ["Sorting", "Hashing"]) is None

    def test_uses_key_function(self) -> None:
        """Candidates can be arbitrary objects scored through ``key``."""
        candidates = [{"title": "Intro"}, {"title": "Gradient Descent"}]
        match = best_match("gradient descent", candidates, key=lambda item: item["title"])
        assert match == {"title": "Gradient Descent"}
