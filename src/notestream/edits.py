"""Apply structural edits to a copy of a document tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from notestream.dedup import DedupRegistry, content_key
from notestream.document import ROOT_KEY, DocumentState, build_index, find_parent, iter_nodes
from notestream.schemas import DocumentNode, EditAction, NodeEdit, generate_key
from notestream.similarity import normalize_text

logger = logging.getLogger(__name__)


class EditErrorKind(str, Enum):
    """Why an edit was not applied."""

    TARGET_NOT_FOUND = "target_not_found"
    PARENT_NOT_FOUND = "parent_not_found"
    INVALID = "invalid"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class SkippedEdit:
    edit: NodeEdit
    reason: EditErrorKind
    detail: str = ""


@dataclass
class EditResult:
    """Outcome of applying a batch of edits.

    Attributes:
        state: The new tree and its freshly built index.
        registry: Dedup registry reflecting ``state``.
        applied: Number of edits that changed the tree.
        skipped: Edits that were ignored, with the reason for each.
    """

    state: DocumentState
    registry: DedupRegistry
    applied: int = 0
    skipped: list[SkippedEdit] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.applied > 0

    @property
    def ok(self) -> bool:
        return not self.skipped


class _Skip(Exception):
    def __init__(self, reason: EditErrorKind, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def apply_edit(
    state: DocumentState, edit: NodeEdit, registry: DedupRegistry | None = None
) -> EditResult:
    return apply_edits(state, [edit], registry)


def apply_edits(
    state: DocumentState,
    edits: Iterable[NodeEdit],
    registry: DedupRegistry | None = None,
) -> EditResult:
    """Apply ``edits`` in order to a deep copy of ``state``.

    The caller's tree and registry are never modified. Edits that reference
    unknown keys, are incomplete, or would add duplicate content are skipped
    and reported in the result. A later edit may refer to a node added by an
    earlier one in the same batch.

    Args:
        state: Current document.
        edits: Edits to apply, in order.
        registry: Dedup registry for ``state``. Built from the tree if None.

    Returns:
        EditResult with the new document and registry.
    """
    root = state.root.model_copy(deep=True)
    working = build_index(root)
    registry = registry.copy() if registry is not None else DedupRegistry.from_tree(root)
    aliases: dict[str, str] = {}
    result = EditResult(state=working, registry=registry)

    for edit in edits:
        try:
            if edit.action == EditAction.ADD:
                _apply_add(working, edit, registry, aliases)
            elif edit.action == EditAction.EDIT:
                _apply_content_edit(working, edit, registry, aliases)
            else:
                _apply_delete(working, edit, registry, aliases)
        except _Skip as skip:
            logger.info("Skipping %s edit (%s): %s", edit.action.value, skip.reason.value, skip.detail)
            result.skipped.append(SkippedEdit(edit=edit, reason=skip.reason, detail=skip.detail))
            continue
        result.applied += 1
        working = build_index(root)

    result.state = working
    return result


def _resolve(key: str, aliases: dict[str, str]) -> str:
    return aliases.get(key, key)


def _apply_add(
    state: DocumentState,
    edit: NodeEdit,
    registry: DedupRegistry,
    aliases: dict[str, str],
) -> None:
    if edit.node is None or not edit.parent_key:
        raise _Skip(EditErrorKind.INVALID, "add needs a node and a parent key")
    parent = state.get(_resolve(edit.parent_key, aliases))
    if parent is None:
        raise _Skip(EditErrorKind.PARENT_NOT_FOUND, f"no node with key {edit.parent_key!r}")

    node = edit.node.model_copy(deep=True)
    aliases.update(_ensure_unique_keys(node, state.key_map))

    if node.kind.is_heading:
        existing = _find_heading(parent, node.content)
        if existing is not None:
            aliases[edit.node.key] = existing.key
            grafted = sum(_graft(existing, child, registry) for child in node.children)
            if not grafted:
                raise _Skip(EditErrorKind.DUPLICATE, f"section {node.content!r} already exists")
            return
    elif not registry.add(parent.key, node.content):
        raise _Skip(EditErrorKind.DUPLICATE, f"{node.content!r} already noted")

    parent.children.append(node)
    _register_subtree(node, registry)


def _apply_content_edit(
    state: DocumentState,
    edit: NodeEdit,
    registry: DedupRegistry,
    aliases: dict[str, str],
) -> None:
    if not edit.key or not edit.new_content:
        raise _Skip(EditErrorKind.INVALID, "edit needs a key and new content")
    key = _resolve(edit.key, aliases)
    if key == ROOT_KEY:
        raise _Skip(EditErrorKind.INVALID, "the root cannot be edited")
    node = state.get(key)
    if node is None:
        raise _Skip(EditErrorKind.TARGET_NOT_FOUND, f"no node with key {edit.key!r}")

    parent = find_parent(state.root, key)
    if parent is not None and not node.kind.is_heading:
        wanted = content_key(edit.new_content)
        for sibling in parent.children:
            if sibling is not node and not sibling.kind.is_heading and content_key(sibling.content) == wanted:
                raise _Skip(EditErrorKind.DUPLICATE, f"{edit.new_content!r} already noted")
    node.content = edit.new_content
    if parent is not None:
        _sync_section(parent, registry)


def _apply_delete(
    state: DocumentState,
    edit: NodeEdit,
    registry: DedupRegistry,
    aliases: dict[str, str],
) -> None:
    if not edit.key:
        raise _Skip(EditErrorKind.INVALID, "delete needs a key")
    key = _resolve(edit.key, aliases)
    if key == ROOT_KEY:
        raise _Skip(EditErrorKind.INVALID, "the root cannot be deleted")
    node = state.get(key)
    parent = find_parent(state.root, key) if node is not None else None
    if node is None or parent is None:
        raise _Skip(EditErrorKind.TARGET_NOT_FOUND, f"no node with key {edit.key!r}")

    parent.children = [child for child in parent.children if child.key != key]
    for removed in iter_nodes(node):
        registry.forget(removed.key)
    _sync_section(parent, registry)


def _sync_section(parent: DocumentNode, registry: DedupRegistry) -> None:
    """Record exactly the non-heading children of ``parent``."""
    registry.replace(parent.key, [child.content for child in parent.children if not child.kind.is_heading])


def _ensure_unique_keys(node: DocumentNode, taken: dict[str, DocumentNode]) -> dict[str, str]:
    """Re-key colliding nodes in place and return the old-to-new key map."""
    renamed: dict[str, str] = {}
    seen: set[str] = set()
    for descendant in iter_nodes(node):
        if descendant.key in taken or descendant.key in seen:
            old_key = descendant.key
            descendant.key = generate_key()
            renamed[old_key] = descendant.key
        seen.add(descendant.key)
    return renamed


def _find_heading(parent: DocumentNode, content: str) -> DocumentNode | None:
    wanted = normalize_text(content)
    if not wanted:
        return None
    for child in parent.children:
        if child.kind.is_heading and normalize_text(child.content) == wanted:
            return child
    return None


def _graft(target: DocumentNode, node: DocumentNode, registry: DedupRegistry) -> int:
    """Move ``node`` under ``target`` unless it duplicates what is there."""
    if node.kind.is_heading:
        existing = _find_heading(target, node.content)
        if existing is not None:
            return sum(_graft(existing, child, registry) for child in node.children)
    elif not registry.add(target.key, node.content):
        logger.debug("Dropping duplicate %r under %s", node.content, target.key)
        return 0
    target.children.append(node)
    _register_subtree(node, registry)
    return 1


def _register_subtree(node: DocumentNode, registry: DedupRegistry) -> None:
    for descendant in iter_nodes(node):
        for child in descendant.children:
            if not child.kind.is_heading:
                registry.add(descendant.key, child.content)
