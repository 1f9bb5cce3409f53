# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeChangesetContainer - an Array2D that describes its own mutations."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Sequence

from ..changeset import TreeChangeset
from ..element import Item, Section
from ..exceptions import ConsistencyError
from ..operations import Delete, Insert, Move, Operation, Update, replay
from ..tree import Array2D, item_node, normalize_path, section_node
from .subscription import SubscriberCallback, SubscriptionMixin

logger = logging.getLogger(__name__)


class TreeChangesetContainer(SubscriptionMixin):
    """Sections of items whose mutations emit TreeChangesets.

    Each mutation runs the matching Array2D method on a working copy, so
    paths and variants are checked there, and records the path operations
    describing the edit. The patch of every changeset replays on the
    previous snapshot; its diff uses old paths for deletes, updates and move
    sources, new paths for inserts and move targets.

    Example:
        >>> container = TreeChangesetContainer(Array2D([('Fruits', ['apple'])]))
        >>> container.append_item('pear', 0)
        >>> container.changeset.patch
        (Insert(element=TreeNode(Item(value='pear')), at=(0, 1)),)
        >>> container.changeset.diff
        Diff(inserts=[(0, 1)])
    """

    __slots__ = (
        '_array', '_changeset', '_subscribers', '_verify',
        '_batch', '_batch_source',
    )

    def __init__(
        self,
        array: Array2D | Iterable[tuple[Any, Iterable[Any]]] | None = None,
        *,
        verify: bool = False,
    ) -> None:
        """Initialize a TreeChangesetContainer.

        Args:
            array: Initial content, an Array2D (copied) or a listing of
                (section, items) pairs.
            verify: If True, every patch is replayed against the previous
                snapshot before commit; a mismatch raises ConsistencyError.
        """
        self._array = array.copy() if isinstance(array, Array2D) else Array2D(array)
        self._changeset: TreeChangeset | None = None
        self._subscribers: dict[str, SubscriberCallback] = {}
        self._verify = verify
        self._batch: list[Operation] | None = None
        self._batch_source: Array2D | None = None

    def __repr__(self) -> str:
        return f"TreeChangesetContainer({self._array.sections_with_items()!r})"

    def __len__(self) -> int:
        """Return the number of sections."""
        return len(self._array)

    @property
    def array(self) -> Array2D:
        """Snapshot copy of the current array."""
        return self._array.copy()

    @property
    def changeset(self) -> TreeChangeset | None:
        return self._changeset

    def section_at(self, index: int) -> Any:
        return self._array.section_at(index)

    def item_at(self, path: Sequence[int]) -> Any:
        return self._array.item_at(path)

    def sections_with_items(self) -> list[tuple[Any, list[Any]]]:
        return self._array.sections_with_items()

    # ==================== Commit ====================

    def _commit(self, array: Array2D, operations: list[Operation]) -> None:
        if self._verify and replay(self._array, operations) != array:
            raise ConsistencyError(
                f"Patch {operations!r} does not reproduce the new array"
            )
        source, self._array = self._array, array
        if self._batch is not None:
            self._batch.extend(operations)
            return
        self._emit(TreeChangeset.from_patch(array, operations, source))

    def _emit(self, changeset: TreeChangeset) -> None:
        self._changeset = changeset
        logger.debug(
            "Emitting tree changeset: %d operations, %r", len(changeset.patch), changeset.diff
        )
        self._notify(changeset)

    def descriptive_update(self, update: Callable[[Array2D], Iterable[Operation]]) -> None:
        """Run ``update`` on a working copy of the array and commit it.

        Args:
            update: Receives an Array2D copy, mutates it and returns the
                path operations it performed, in order.
        """
        working = self._array.copy()
        operations = list(update(working))
        self._commit(working, operations)

    @contextmanager
    def batch(self) -> Iterator[TreeChangesetContainer]:
        """Group the mutations of the block into a single tree changeset.

        If the block raises, the array is restored and nothing is emitted.
        """
        if self._batch is not None:
            yield self
            return
        self._batch_source = self._array
        self._batch = []
        try:
            yield self
        except BaseException:
            self._array = self._batch_source
            raise
        else:
            self._emit(TreeChangeset.from_patch(self._array, self._batch, self._batch_source))
        finally:
            self._batch = None
            self._batch_source = None

    # ==================== Sections ====================

    def append_section(self, section: Any, items: Iterable[Any] = ()) -> None:
        """Append a section with its items."""
        self.insert_section(section, len(self._array), items)

    def insert_section(self, section: Any, index: int, items: Iterable[Any] = ()) -> None:
        """Insert a section with its items at ``index``."""
        node = section_node(section, items)
        working = self._array.copy()
        working.insert(node, (index,))
        self._commit(working, [Insert(node, (index,))])

    def set_section(self, index: int, section: Any) -> None:
        """Replace the section payload at ``index``."""
        working = self._array.copy()
        working.set_section(index, section)
        self._commit(working, [Update((index,), Section(section))])

    def move_section(self, source: int, target: int) -> None:
        """Move a section with its items (``target`` resolved after removal)."""
        working = self._array.copy()
        working.move_section(source, target)
        self._commit(working, [Move((source,), (target,))])

    def remove_section(self, index: int) -> Any:
        """Remove the section at ``index`` with its items; return its payload."""
        working = self._array.copy()
        section = working.remove_section(index)
        self._commit(working, [Delete((index,))])
        return section

    def remove_all_items_and_sections(self) -> None:
        """Remove every section, last first."""
        working = self._array.copy()
        working.remove_all_items_and_sections()
        self._commit(working, [Delete((index,)) for index in reversed(range(len(self._array)))])

    # ==================== Items ====================

    def append_item(self, item: Any, section_index: int) -> None:
        """Append ``item`` to the section at ``section_index``."""
        path = (section_index, self._array.children_count((section_index,)))
        self.insert_item(item, path)

    def insert_item(self, item: Any, path: Sequence[int]) -> None:
        """Insert ``item`` at ``path``."""
        path = normalize_path(path)
        working = self._array.copy()
        working.insert_item(item, path)
        self._commit(working, [Insert(item_node(item), path)])

    def insert_items(self, items: Iterable[Any], path: Sequence[int]) -> None:
        """Insert ``items`` as consecutive items starting at ``path``."""
        items = list(items)
        path = normalize_path(path)
        working = self._array.copy()
        working.insert_items(items, path)
        section_index, index = path
        self._commit(working, [
            Insert(item_node(item), (section_index, index + offset))
            for offset, item in enumerate(items)
        ])

    def set_item(self, path: Sequence[int], item: Any) -> None:
        """Replace the item at ``path``."""
        path = normalize_path(path)
        working = self._array.copy()
        working.set_item(path, item)
        self._commit(working, [Update(path, Item(item))])

    def move_item(self, source: Sequence[int], target: Sequence[int]) -> None:
        """Move the item at ``source`` to ``target`` (resolved after removal)."""
        source, target = normalize_path(source), normalize_path(target)
        working = self._array.copy()
        working.move_item(source, target)
        self._commit(working, [Move(source, target)])

    def remove_item(self, path: Sequence[int]) -> Any:
        """Remove the item at ``path`` and return its payload."""
        path = normalize_path(path)
        working = self._array.copy()
        item = working.remove_item(path)
        self._commit(working, [Delete(path)])
        return item

    def remove_all_items(self) -> None:
        """Remove every item, keeping the sections; last path first."""
        operations: list[Operation] = [
            Delete((section_index, index))
            for section_index in reversed(range(len(self._array)))
            for index in reversed(range(self._array.children_count((section_index,))))
        ]
        working = self._array.copy()
        working.remove_all_items()
        self._commit(working, operations)
