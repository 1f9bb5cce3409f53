# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Conversions between a Diff and an ordered patch.

generate_patch() turns the unordered Diff of a flat collection into a list
of operations that can be replayed, one after the other, against the old
collection. The patch is emitted in four phases:

1. deletes, highest old index first, so pending indices stay valid;
2. updates, at the post-delete position of each updated element;
3. moves, one Move per moved element, by ascending target;
4. inserts, lowest new index first, at their final index.

diff_from_patch() goes the other way: it replays a patch on a model of
the old collection that tracks where each element came from, and reads
the diff off the final state. tree_diff_from_patch() does the same for
patches over index paths, replayed against the previous tree.

Both directions are pure functions: feeding the output of one to the
other gives back an equal value.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Any, Iterable, Sequence

from .diff import Diff
from .exceptions import ConsistencyError, InvalidIndexError
from .node import TreeNode
from .operations import Delete, Insert, Move, Operation, Update
from .tree import TreeArray, normalize_path

logger = logging.getLogger(__name__)


# ==================== Diff -> patch ====================

def _check_positions(positions: Iterable[Any], kind: str, limit: int, space: str) -> None:
    for position in positions:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise ConsistencyError(f"Invalid {kind} position {position!r}")
        if position >= limit:
            raise ConsistencyError(
                f"{kind.capitalize()} position {position} out of range "
                f"for the {space} collection ({limit} elements)"
            )


def _validate(diff: Diff, new_size: int) -> int:
    """Check ``diff`` against a target of ``new_size`` elements.

    Returns:
        The size of the old collection implied by the diff.

    Raises:
        ConsistencyError: If the diff contradicts itself or the target.
    """
    sources = [source for source, _ in diff.moves]
    targets = [target for _, target in diff.moves]
    if len(set(sources)) != len(sources):
        raise ConsistencyError("An element is moved more than once")
    if len(set(targets)) != len(targets):
        raise ConsistencyError("Two moves share the same target")
    if diff.deletes & set(sources):
        raise ConsistencyError(
            f"Positions both deleted and moved: {sorted(diff.deletes & set(sources))}"
        )
    if diff.deletes & diff.updates:
        raise ConsistencyError(
            f"Positions both deleted and updated: {sorted(diff.deletes & diff.updates)}"
        )
    if diff.inserts & set(targets):
        raise ConsistencyError(
            f"Move targets overlap inserts: {sorted(diff.inserts & set(targets))}"
        )

    _check_positions(diff.inserts, 'insert', new_size, 'new')
    _check_positions(targets, 'move target', new_size, 'new')

    old_size = new_size - len(diff.inserts) + len(diff.deletes)
    _check_positions(diff.deletes, 'delete', old_size, 'old')
    _check_positions(diff.updates, 'update', old_size, 'old')
    _check_positions(sources, 'move source', old_size, 'old')
    return old_size


def generate_patch(diff: Diff, target: Sequence[Any]) -> list[Operation]:
    """Return the operations that turn the old collection into ``target``.

    Args:
        diff: The changes, deletes/updates/move sources in old indices,
            inserts/move targets in new indices.
        target: The new collection, already materialized. Inserted and
            updated elements are read from it.

    Returns:
        A patch whose every position is valid against the collection as
        left by the operations before it.

    Raises:
        ConsistencyError: If the diff is malformed. Nothing is emitted.
    """
    new_size = len(target)
    old_size = _validate(diff, new_size)
    move_targets = dict(diff.moves)
    moved_into = set(move_targets.values())

    patch: list[Operation] = [Delete(index) for index in sorted(diff.deletes, reverse=True)]

    survivors = [index for index in range(old_size) if index not in diff.deletes]
    position = {old: current for current, old in enumerate(survivors)}

    # Elements that are not moved keep their relative order and fill the
    # new indices left free by inserts and move targets.
    free_slots = (
        index for index in range(new_size)
        if index not in diff.inserts and index not in moved_into
    )
    final = {
        old: move_targets[old] if old in move_targets else next(free_slots)
        for old in survivors
    }

    for old in sorted(diff.updates):
        patch.append(Update(position[old], target[final[old]]))

    inserts = sorted(diff.inserts)
    working = list(survivors)
    anchored = {old for old in survivors if old not in move_targets}
    for source, destination in sorted(diff.moves, key=lambda move: move[1]):
        # Rank among the elements that will be present once inserts are
        # left out; anchored elements before it are already in place.
        rank = destination - bisect_left(inserts, destination)
        current = working.index(source)
        del working[current]
        index = 0
        if rank:
            seen = 0
            for offset, old in enumerate(working):
                if old in anchored:
                    seen += 1
                    if seen == rank:
                        index = offset + 1
                        break
        working.insert(index, source)
        anchored.add(source)
        patch.append(Move(current, index))

    for index in inserts:
        patch.append(Insert(target[index], index))

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Generated patch of %d operations from %r (%d -> %d elements)",
            len(patch), diff, old_size, new_size,
        )
    return patch


# ==================== patch -> Diff ====================

class _Slot:
    """An element of a replayed collection, remembering where it came from."""

    __slots__ = ('origin', 'updated', 'moved', 'children')

    def __init__(self, origin: Any = None) -> None:
        self.origin = origin
        self.updated = False
        self.moved = False
        self.children: list[_Slot] = []


def _check_operation_positions(operation: Operation) -> list[int]:
    if isinstance(operation, Move):
        positions = [operation.source, operation.target]
    elif isinstance(operation, (Insert, Delete, Update)):
        positions = [operation.at]
    else:
        raise TypeError(f"Not an operation: {operation!r}")
    for position in positions:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise ConsistencyError(f"Invalid position {position!r} in {operation!r}")
    return positions


def diff_from_patch(patch: Iterable[Operation]) -> Diff:
    """Return the Diff described by a flat ``patch``.

    The size of the old collection is not known, so the patch is replayed
    on a model padded to be large enough for every position it uses.
    Elements beyond the positions the patch touches only shift and do not
    appear in the diff.

    An element inserted and later deleted leaves no trace; an inserted
    element that is then updated or moved is reported as an insert at its
    final index. Updated and moved old elements are reported at their old
    index (updates) or as (old index, final index) pairs (moves).

    Raises:
        ConsistencyError: If a position is not a non-negative int.
    """
    patch = list(patch)
    highest = max(
        (position for operation in patch for position in _check_operation_positions(operation)),
        default=0,
    )
    slots = [_Slot(index) for index in range(highest + len(patch) + 2)]
    deletes = set()

    for operation in patch:
        if isinstance(operation, Insert):
            slots.insert(operation.at, _Slot())
        elif isinstance(operation, Delete):
            slot = slots.pop(operation.at)
            if slot.origin is not None:
                deletes.add(slot.origin)
        elif isinstance(operation, Update):
            slots[operation.at].updated = True
        else:
            slot = slots.pop(operation.source)
            slot.moved = True
            slots.insert(operation.target, slot)

    inserts, updates, moves = set(), set(), set()
    for index, slot in enumerate(slots):
        if slot.origin is None:
            inserts.add(index)
            continue
        if slot.updated:
            updates.add(slot.origin)
        if slot.moved:
            moves.add((slot.origin, index))
    return Diff(inserts=inserts, deletes=deletes, updates=updates, moves=moves)


def _model_tree(tree: TreeArray) -> tuple[_Slot, list[_Slot]]:
    """Return the root slot of a model of ``tree`` and every old slot."""
    root = _Slot(())
    old_slots = []
    pending = [(root, tree.node_at(()))]
    while pending:
        slot, node = pending.pop()
        for index, child in enumerate(node.children):
            child_slot = _Slot(slot.origin + (index,))
            slot.children.append(child_slot)
            old_slots.append(child_slot)
            pending.append((child_slot, child))
    return root, old_slots


def _new_slot(element: Any) -> _Slot:
    slot = _Slot()
    if isinstance(element, TreeNode):
        slot.children = [_new_slot(child) for child in element.children]
    return slot


def _slot_at(root: _Slot, path: tuple[int, ...], inserting: bool) -> tuple[_Slot, int]:
    """Return (parent slot, index) for ``path``, checked like TreeArray does."""
    if not path:
        raise InvalidIndexError("The root path () does not address a child")
    parent = root
    for depth, index in enumerate(path[:-1]):
        if index >= len(parent.children):
            raise InvalidIndexError(f"Index {index} out of range at depth {depth + 1} of path {path}")
        parent = parent.children[index]
    limit = len(parent.children) if inserting else len(parent.children) - 1
    if path[-1] > limit:
        raise InvalidIndexError(f"Index {path[-1]} out of range for path {path}")
    return parent, path[-1]


def tree_diff_from_patch(patch: Iterable[Operation], source: TreeArray) -> Diff:
    """Return the path Diff of ``patch`` applied to the tree ``source``.

    Positions are index paths. Nodes removed together with a removed
    ancestor are not reported, and an inserted subtree is reported by the
    path of its top node only.

    Raises:
        InvalidIndexError: If the patch does not replay on ``source``.
    """
    root, old_slots = _model_tree(source)

    for operation in patch:
        if isinstance(operation, Insert):
            parent, index = _slot_at(root, normalize_path(operation.at), inserting=True)
            parent.children.insert(index, _new_slot(operation.element))
        elif isinstance(operation, Delete):
            parent, index = _slot_at(root, normalize_path(operation.at), inserting=False)
            parent.children.pop(index)
        elif isinstance(operation, Update):
            parent, index = _slot_at(root, normalize_path(operation.at), inserting=False)
            parent.children[index].updated = True
        elif isinstance(operation, Move):
            source_path = normalize_path(operation.source)
            target_path = normalize_path(operation.target)
            if len(target_path) > len(source_path) and target_path[:len(source_path)] == source_path:
                raise InvalidIndexError(f"Cannot move {source_path} inside itself ({target_path})")
            parent, index = _slot_at(root, source_path, inserting=False)
            slot = parent.children.pop(index)
            try:
                new_parent, new_index = _slot_at(root, target_path, inserting=True)
            except InvalidIndexError:
                parent.children.insert(index, slot)
                raise
            slot.moved = True
            new_parent.children.insert(new_index, slot)
        else:
            raise TypeError(f"Not an operation: {operation!r}")

    inserts, updates, moves = set(), set(), set()
    reachable = set()
    pending: list[tuple[_Slot, tuple[int, ...], bool]] = [(root, (), False)]
    while pending:
        slot, path, inside_insert = pending.pop()
        for index, child in enumerate(slot.children):
            child_path = path + (index,)
            if child.origin is None:
                if not inside_insert:
                    inserts.add(child_path)
                pending.append((child, child_path, True))
                continue
            reachable.add(id(child))
            if child.updated:
                updates.add(child.origin)
            if child.moved:
                moves.add((child.origin, child_path))
            pending.append((child, child_path, False))

    by_origin = {slot.origin: slot for slot in old_slots}
    deletes = set()
    for slot in old_slots:
        if id(slot) in reachable:
            continue
        parent_origin = slot.origin[:-1]
        if not parent_origin or id(by_origin[parent_origin]) in reachable:
            deletes.add(slot.origin)
    return Diff(inserts=inserts, deletes=deletes, updates=updates, moves=moves)
