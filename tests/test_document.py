"""Tests for the document tree model."""

from __future__ import annotations

from notestream.document import (
    ROOT_KEY,
    DocumentState,
    all_keys,
    build_index,
    count_nodes,
    create_node,
    empty_document,
    find_node,
    find_parent,
    format_content,
    nodes_from_mind_map,
    render_markdown,
)
from notestream.schemas import DocumentNode, MindMapItem, NodeKind, NodeStyle, generate_key


class TestCreateNode:
    """Tests for node creation."""

    def test_keys_are_unique(self) -> None:
        """Every created node gets a different key."""
        keys = {create_node(NodeKind.BULLET, "x").key for _ in range(500)}
        assert len(keys) == 500

    def test_key_format(self) -> None:
        """Keys carry a node_ prefix and a timestamp."""
        prefix, timestamp, suffix = generate_key().split("_")
        assert prefix == "node"
        assert timestamp.isdigit()
        assert len(suffix) == 9

    def test_accepts_kind_string(self) -> None:
        """Kinds may be given by their wire name."""
        node = create_node("subheading", "Details", 3)
        assert node.kind == NodeKind.SUBHEADING
        assert node.level == 3

    def test_empty_document_root(self) -> None:
        """An empty document is a bare root indexed under its key."""
        state = empty_document()
        assert state.root.key == ROOT_KEY
        assert state.is_empty
        assert list(state.key_map) == [ROOT_KEY]


class TestIndex:
    """Tests for build_index and tree lookups."""

    def test_index_matches_reachable_nodes(self, sample_document: DocumentState) -> None:
        """Every reachable node is indexed, and nothing else."""
        assert set(sample_document.key_map) == {ROOT_KEY, "h1", "b1", "s1", "b2"}
        assert set(all_keys(sample_document.root)) == set(sample_document.key_map)

    def test_rebuild_after_mutation(self, sample_document: DocumentState) -> None:
        """A rebuilt index drops removed nodes."""
        heading = sample_document.get("h1")
        assert heading is not None
        heading.children = heading.children[1:]
        rebuilt = build_index(sample_document.root)
        assert "b1" not in rebuilt
        assert "s1" not in rebuilt
        assert "b2" in rebuilt

    def test_find_node_and_parent(self, sample_document: DocumentState) -> None:
        """Lookups walk the tree."""
        root = sample_document.root
        assert find_node(root, "s1").content == "detail"
        assert find_parent(root, "s1").key == "b1"
        assert find_parent(root, "h1").key == ROOT_KEY
        assert find_node(root, "missing") is None
        assert find_parent(root, ROOT_KEY) is None

    def test_count_nodes(self, sample_document: DocumentState) -> None:
        """Counts exclude the root and can filter by kind."""
        assert count_nodes(sample_document.root) == 4
        assert count_nodes(sample_document.root, NodeKind.BULLET) == 3
        assert count_nodes(sample_document.root, NodeKind.HEADING) == 1


class TestRenderMarkdown:
    """Tests for render_markdown function."""

    def test_renders_headings_and_nested_bullets(self, sample_document: DocumentState) -> None:
        """Bullets under bullets are indented two spaces."""
        assert render_markdown(sample_document.root) == (
            "## Topic A\n\n- point one\n  - detail\n- point two"
        )

    def test_empty_tree_renders_empty(self) -> None:
        """Nothing to render gives an empty string."""
        assert render_markdown(empty_document().root) == ""

    def test_heading_levels_are_clamped(self) -> None:
        """Levels outside 1..6 are clamped."""
        root = empty_document().root
        root.children = [
            create_node(NodeKind.HEADING, "Zero", 0),
            create_node(NodeKind.SUBHEADING, "Deep", 9),
        ]
        assert render_markdown(root) == "# Zero\n\n###### Deep"

    def test_subbullet_and_text(self) -> None:
        """Sub-bullets sit one step deeper; text is bare."""
        root = empty_document().root
        root.children = [
            create_node(NodeKind.TEXT, "Plain paragraph"),
            create_node(NodeKind.SUBBULLET, "nested"),
        ]
        assert render_markdown(root) == "Plain paragraph\n  - nested"

    def test_style_markers_in_order(self) -> None:
        """Bold wraps first, then italic, then code."""
        node = DocumentNode(
            kind=NodeKind.BULLET,
            content="term",
            style=NodeStyle(bold=True, italic=True, code=True),
        )
        assert format_content(node) == "`***term***`"

    def test_accepts_wire_aliases(self) -> None:
        """Nodes parsed from generator JSON use ``type`` and ``metadata``."""
        node = DocumentNode.model_validate(
            {"type": "bullet", "content": "fast", "metadata": {"bold": True}}
        )
        assert node.kind == NodeKind.BULLET
        assert format_content(node) == "**fast**"


class TestNodesFromMindMap:
    """Tests for nodes_from_mind_map function."""

    def test_maps_item_types(self) -> None:
        """Topics, subtopics and nested bullets map to node kinds."""
        items = [
            MindMapItem.model_validate(
                {
                    "type": "topic",
                    "content": "Sorting",
                    "children": [
                        {"type": "bullet", "content": "Orders data", "children": [
                            {"type": "bullet", "content": "Stable or not"},
                        ]},
                        {"type": "subtopic", "content": "Quicksort"},
                        {"type": "bullet", "content": "   "},
                    ],
                }
            )
        ]
        [topic] = nodes_from_mind_map(items)
        assert topic.kind == NodeKind.HEADING
        assert topic.level == 2
        assert [child.kind for child in topic.children] == [NodeKind.BULLET, NodeKind.SUBHEADING]
        assert topic.children[0].children[0].kind == NodeKind.SUBBULLET
        assert topic.children[1].level == 3
