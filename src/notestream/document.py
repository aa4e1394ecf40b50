"""In-memory outline document: node creation, indexing and markdown rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from notestream.schemas import DocumentNode, MindMapItem, MindMapItemType, NodeKind, NodeStyle, generate_key

ROOT_KEY = "root"

_MAX_HEADING_LEVEL = 6


@dataclass
class DocumentState:
    """A document root plus the key index derived from it.

    The index is rebuilt with :func:`build_index` after every structural
    change; it is never patched in place.
    """

    root: DocumentNode
    key_map: dict[str, DocumentNode] = field(default_factory=dict)

    def get(self, key: str) -> DocumentNode | None:
        return self.key_map.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.key_map

    @property
    def is_empty(self) -> bool:
        return not self.root.children


def create_node(
    kind: NodeKind | str,
    content: str,
    level: int = 1,
    children: list[DocumentNode] | None = None,
    *,
    style: NodeStyle | None = None,
) -> DocumentNode:
    """Create a node with a fresh key."""
    return DocumentNode(
        key=generate_key(),
        kind=NodeKind(kind),
        content=content,
        level=level,
        children=list(children or []),
        style=style,
    )


def create_root() -> DocumentNode:
    """Create the empty root every document starts from."""
    return DocumentNode(key=ROOT_KEY, kind=NodeKind.HEADING, content="", level=0)


def empty_document() -> DocumentState:
    return build_index(create_root())


def build_index(root: DocumentNode) -> DocumentState:
    """Walk the tree and map every key to its node."""
    key_map: dict[str, DocumentNode] = {}
    for node in iter_nodes(root):
        key_map[node.key] = node
    return DocumentState(root=root, key_map=key_map)


def iter_nodes(root: DocumentNode) -> Iterator[DocumentNode]:
    """Yield ``root`` and all descendants depth-first, in display order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_node(root: DocumentNode, key: str) -> DocumentNode | None:
    for node in iter_nodes(root):
        if node.key == key:
            return node
    return None


def find_parent(root: DocumentNode, key: str) -> DocumentNode | None:
    """Return the node whose children include ``key``."""
    for node in iter_nodes(root):
        if any(child.key == key for child in node.children):
            return node
    return None


def all_keys(root: DocumentNode) -> list[str]:
    return [node.key for node in iter_nodes(root)]


def count_nodes(root: DocumentNode, kind: NodeKind | None = None) -> int:
    """Count descendants of ``root`` (the root itself excluded)."""
    return sum(
        1
        for node in iter_nodes(root)
        if node is not root and (kind is None or node.kind == kind)
    )


def format_content(node: DocumentNode) -> str:
    """Apply the node's style markers: bold, then italic, then code."""
    content = node.content
    if node.style is None:
        return content
    if node.style.bold:
        content = f"**{content}**"
    if node.style.italic:
        content = f"*{content}*"
    if node.style.code:
        content = f"`{content}`"
    return content


def render_markdown(root: DocumentNode) -> str:
    """Render the children of ``root`` as markdown.

    Headings become ATX headings followed by a blank line; bullets become
    ``-`` items indented two spaces per enclosing bullet; sub-bullets sit one
    step deeper than their indentation; text is emitted bare.
    """
    lines: list[str] = []
    for child in root.children:
        _render_node(child, 0, lines)
    return "".join(lines).rstrip()


def _render_node(node: DocumentNode, indent: int, out: list[str]) -> None:
    indentation = "  " * indent
    content = format_content(node)

    if node.kind.is_heading:
        level = min(max(node.level, 1), _MAX_HEADING_LEVEL)
        out.append(f"{'#' * level} {content}\n\n")
    elif node.kind == NodeKind.BULLET:
        out.append(f"{indentation}- {content}\n")
    elif node.kind == NodeKind.SUBBULLET:
        out.append(f"{indentation}  - {content}\n")
    else:
        out.append(f"{indentation}{content}\n")

    child_indent = indent + 1 if node.kind == NodeKind.BULLET else indent
    for child in node.children:
        _render_node(child, child_indent, out)


def nodes_from_mind_map(items: list[MindMapItem], *, parent_kind: NodeKind | None = None) -> list[DocumentNode]:
    """Convert mind-map answer nodes into document nodes.

    Topics become level-2 headings, subtopics level-3 subheadings and bullets
    bullets; a bullet nested under a bullet becomes a sub-bullet.
    """
    nodes: list[DocumentNode] = []
    for item in items:
        content = item.content.strip()
        if not content:
            continue
        if item.type == MindMapItemType.TOPIC:
            node = create_node(NodeKind.HEADING, content, 2)
        elif item.type == MindMapItemType.SUBTOPIC:
            node = create_node(NodeKind.SUBHEADING, content, 3)
        elif parent_kind in (NodeKind.BULLET, NodeKind.SUBBULLET):
            node = create_node(NodeKind.SUBBULLET, content, 2)
        else:
            node = create_node(NodeKind.BULLET, content, 1)
        node.children = nodes_from_mind_map(item.children, parent_kind=node.kind)
        nodes.append(node)
    return nodes
