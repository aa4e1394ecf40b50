"""Tests for the dedup registry."""

from __future__ import annotations

from notestream.dedup import DedupRegistry, content_key, strip_bullet_marker
from notestream.document import DocumentState
from notestream.sections import parse_sections


class TestContentKey:
    """Tests for line normalization."""

    def test_strips_bullet_markers(self) -> None:
        """List markers of any kind are removed."""
        assert strip_bullet_marker("- point") == "point"
        assert strip_bullet_marker("  * point") == "point"
        assert strip_bullet_marker("• point") == "point"
        assert strip_bullet_marker("2. point") == "point"

    def test_equivalent_lines_share_a_key(self) -> None:
        """Marker, case, punctuation and spacing differences are ignored."""
        assert content_key("- Gradient  descent!") == content_key("* gradient descent")

    def test_punctuation_only_lines_keep_their_text(self) -> None:
        """Lines that normalize to nothing are not all equal."""
        assert content_key("---") != content_key("***")


class TestDedupRegistry:
    """Tests for DedupRegistry class."""

    def test_add_rejects_duplicates(self) -> None:
        """The same normalized line is only accepted once per section."""
        registry = DedupRegistry()
        assert registry.add("a", "- Point one")
        assert not registry.add("a", "point one.")
        assert registry.add("b", "point one")
        assert registry.size("a") == 1
        assert len(registry) == 2

    def test_blank_lines_are_rejected(self) -> None:
        """Nothing to record means nothing is added."""
        registry = DedupRegistry()
        assert not registry.add("a", "   ")
        assert len(registry) == 0

    def test_replace_resets_section(self) -> None:
        """Replacing a section keeps only the given lines."""
        registry = DedupRegistry()
        registry.add("a", "old")
        registry.replace("a", ["- New", "  ", "new"])
        assert registry.size("a") == 1
        assert registry.contains("a", "new")
        assert not registry.contains("a", "old")

    def test_forget_drops_section(self) -> None:
        """A forgotten section holds nothing."""
        registry = DedupRegistry()
        registry.add_section("Intro")
        registry.add("intro", "point")
        registry.forget("intro")
        assert not registry.has_section("Intro")
        assert registry.section_titles() == []
        assert len(registry) == 0

    def test_copy_is_independent(self) -> None:
        """Changes to a copy never leak back."""
        registry = DedupRegistry()
        registry.add("a", "one")
        clone = registry.copy()
        clone.add("a", "two")
        assert registry.size("a") == 1
        assert clone.size("a") == 2

    def test_from_sections(self) -> None:
        """Sections register by normalized title, in order."""
        registry = DedupRegistry.from_sections(parse_sections("## Topic A\n- one\n## Topic B\n- two"))
        assert registry.has_section("topic a")
        assert registry.contains(registry.section_id("Topic A"), "One")
        assert registry.section_titles() == ["Topic A", "Topic B"]

    def test_from_tree_keys_by_parent(self, sample_document: DocumentState) -> None:
        """Tree registries group content under the parent node key."""
        registry = DedupRegistry.from_tree(sample_document.root)
        assert registry.contains("h1", "point one")
        assert registry.contains("b1", "detail")
        assert not registry.contains("root", "Topic A")

    def test_clear(self) -> None:
        """Clearing forgets everything."""
        registry = DedupRegistry()
        registry.add_section("A")
        registry.add("a", "one")
        registry.clear()
        assert len(registry) == 0
        assert registry.section_titles() == []
