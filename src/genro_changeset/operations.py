# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Primitive edit operations and their replay.

Four operations describe every edit of an ordered collection:

- ``Insert(element, at)``: insert ``element`` so that it ends up at ``at``
- ``Delete(at)``: remove the element at ``at``
- ``Update(at, element)``: replace the element at ``at``
- ``Move(source, target)``: remove the element at ``source`` and reinsert
  it at ``target``, ``target`` being resolved after the removal

Positions are ints for flat sequences and index paths (tuples) for a
TreeArray. A patch is a list of operations whose positions are each valid
against the collection as left by the previous operation.

Example:
    >>> items = ['a', 'b', 'c']
    >>> apply_patch(items, [Delete(0), Move(1, 0), Insert('d', 2)])
    ['c', 'b', 'd']
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, MutableSequence, TypeVar

from .exceptions import InvalidIndexError
from .tree import TreeArray

C = TypeVar('C', MutableSequence, TreeArray)


class Operation:
    """Base of the four operation variants. The set is closed."""

    __slots__ = ()


@dataclass(frozen=True)
class Insert(Operation):
    """Insert ``element`` at ``at``."""

    element: Any
    at: Any


@dataclass(frozen=True)
class Delete(Operation):
    """Delete the element at ``at``."""

    at: Any


@dataclass(frozen=True)
class Update(Operation):
    """Replace the element at ``at`` with ``element``."""

    at: Any
    element: Any


@dataclass(frozen=True)
class Move(Operation):
    """Move the element at ``source`` to ``target`` (resolved after removal)."""

    source: Any
    target: Any


def _check_index(index: Any, size: int) -> int:
    """Return ``index`` if it is an int in ``range(size)``."""
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < size:
        raise InvalidIndexError(f"Index {index!r} out of range for {size} elements")
    return index


def _apply_to_sequence(collection: MutableSequence, operation: Operation) -> None:
    size = len(collection)
    if isinstance(operation, Insert):
        collection.insert(_check_index(operation.at, size + 1), operation.element)
    elif isinstance(operation, Delete):
        del collection[_check_index(operation.at, size)]
    elif isinstance(operation, Update):
        collection[_check_index(operation.at, size)] = operation.element
    elif isinstance(operation, Move):
        source = _check_index(operation.source, size)
        target = _check_index(operation.target, size)
        collection.insert(target, collection.pop(source))
    else:
        raise TypeError(f"Not an operation: {operation!r}")


def _apply_to_tree(tree: TreeArray, operation: Operation) -> None:
    if isinstance(operation, Insert):
        tree.insert(operation.element, operation.at)
    elif isinstance(operation, Delete):
        tree.remove(operation.at)
    elif isinstance(operation, Update):
        tree[operation.at] = operation.element
    elif isinstance(operation, Move):
        tree.move(operation.source, operation.target)
    else:
        raise TypeError(f"Not an operation: {operation!r}")


def apply_operation(collection: C, operation: Operation) -> C:
    """Apply one operation to ``collection`` in place and return it.

    Raises:
        InvalidIndexError: If a position is out of range. The collection is
            left untouched.
    """
    if isinstance(collection, TreeArray):
        _apply_to_tree(collection, operation)
    else:
        _apply_to_sequence(collection, operation)
    return collection


def apply_patch(collection: C, patch: Iterable[Operation]) -> C:
    """Apply the operations of ``patch`` in order, in place, and return ``collection``.

    If an operation fails, the operations before it stay applied; use
    replay() to keep the original untouched.
    """
    for operation in patch:
        apply_operation(collection, operation)
    return collection


def replay(collection: Any, patch: Iterable[Operation]) -> Any:
    """Return a copy of ``collection`` with ``patch`` applied.

    Sequences come back as lists, trees as a copy of the same class.
    """
    if isinstance(collection, TreeArray):
        return apply_patch(collection.copy(), patch)
    return apply_patch(list(collection), patch)
