# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ChangesetContainer - a flat collection that describes its own mutations.

Every mutation builds the operations that describe it, applies them to a
working copy, commits the copy and emits a Changeset to subscribers. No
mutation ever diffs two snapshots: the edit knows what it did.

Example:
    >>> container = ChangesetContainer(['a', 'b', 'c'])
    >>> container.subscribe('log', lambda changeset: print(changeset.patch))
    >>> container.remove_at(1)
    (Delete(at=1),)
    'b'
    >>> with container.batch():
    ...     container.append('d')
    ...     container[0] = 'A'
    (Insert(element='d', at=2), Update(at=0, element='A'))
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator

from ..changeset import Changeset
from ..diff import Diff
from ..exceptions import ConsistencyError, InvalidIndexError
from ..operations import Delete, Insert, Move, Operation, Update, replay
from ..patch import generate_patch
from .subscription import SubscriberCallback, SubscriptionMixin

logger = logging.getLogger(__name__)


class ChangesetContainer(SubscriptionMixin):
    """An observable list whose mutations emit Changesets.

    Mutations are all-or-nothing: a bad index raises InvalidIndexError
    before anything changes and nothing is emitted.

    Attributes:
        changeset: The last emitted Changeset, or None.
    """

    __slots__ = ('_collection', '_changeset', '_subscribers', '_verify', '_batch')

    def __init__(self, collection: Iterable[Any] = (), *, verify: bool = False) -> None:
        """Initialize a ChangesetContainer.

        Args:
            collection: Initial elements.
            verify: If True, every patch is replayed against the previous
                snapshot before it is committed, and a mismatch raises
                ConsistencyError.
        """
        self._collection: list[Any] = list(collection)
        self._changeset: Changeset | None = None
        self._subscribers: dict[str, SubscriberCallback] = {}
        self._verify = verify
        self._batch: list[Operation] | None = None

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return f"ChangesetContainer({self._collection!r})"

    def __len__(self) -> int:
        return len(self._collection)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._collection))

    def __getitem__(self, index: int) -> Any:
        return self._collection[index]

    def __setitem__(self, index: int, element: Any) -> None:
        """Replace the element at ``index`` (an Update)."""
        self._edit([Update(index, element)])

    @property
    def collection(self) -> tuple:
        """Snapshot of the current elements."""
        return tuple(self._collection)

    @property
    def changeset(self) -> Changeset | None:
        return self._changeset

    # ==================== Commit ====================

    def _edit(self, operations: list[Operation]) -> None:
        """Apply ``operations`` to a copy of the collection and commit it."""
        self._commit(replay(self._collection, operations), operations)

    def _commit(
        self,
        collection: list[Any],
        operations: list[Operation],
        diff: Diff | None = None,
    ) -> None:
        if self._verify and replay(self._collection, operations) != collection:
            raise ConsistencyError(
                f"Patch {operations!r} does not reproduce the new collection"
            )
        self._collection = collection
        if self._batch is not None:
            self._batch.extend(operations)
            return
        if diff is None:
            changeset = Changeset.from_patch(collection, operations)
        else:
            changeset = Changeset(tuple(collection), diff, tuple(operations))
        self._emit(changeset)

    def _emit(self, changeset: Changeset) -> None:
        self._changeset = changeset
        logger.debug(
            "Emitting changeset: %d operations, %r", len(changeset.patch), changeset.diff
        )
        self._notify(changeset)

    def descriptive_update(self, update: Callable[[list[Any]], Iterable[Operation]]) -> None:
        """Run ``update`` on a working copy and commit it.

        Args:
            update: Receives a list copy of the collection, mutates it and
                returns the operations it performed, in order. If it raises,
                the collection is left unchanged and nothing is emitted.
        """
        working = list(self._collection)
        operations = list(update(working))
        self._commit(working, operations)

    @contextmanager
    def batch(self) -> Iterator[ChangesetContainer]:
        """Group the mutations of the block into a single changeset.

        The patch of the emitted changeset is the concatenation of the
        operations of every mutation in the block. If the block raises, the
        collection is restored and nothing is emitted. Nested batches join
        the outermost one.
        """
        if self._batch is not None:
            yield self
            return
        start = self._collection
        self._batch = []
        try:
            yield self
        except BaseException:
            self._collection = start
            raise
        else:
            self._emit(Changeset.from_patch(self._collection, self._batch))
        finally:
            self._batch = None

    # ==================== Mutations ====================

    def append(self, element: Any) -> None:
        """Append ``element`` at the end."""
        self._edit([Insert(element, len(self._collection))])

    def extend(self, elements: Iterable[Any]) -> None:
        """Append every element of ``elements`` at the end."""
        self.insert_contents(elements, len(self._collection))

    def insert(self, element: Any, index: int) -> None:
        """Insert ``element`` at ``index`` (``0 <= index <= len``)."""
        self._edit([Insert(element, index)])

    def insert_contents(self, elements: Iterable[Any], index: int) -> None:
        """Insert ``elements`` as consecutive elements starting at ``index``."""
        self._edit([
            Insert(element, index + offset) for offset, element in enumerate(elements)
        ])

    def remove_at(self, index: int) -> Any:
        """Remove and return the element at ``index``."""
        previous = self._collection
        self._edit([Delete(index)])
        return previous[index]

    def remove_last(self) -> Any:
        """Remove and return the last element."""
        if not self._collection:
            raise InvalidIndexError("remove_last() on an empty collection")
        return self.remove_at(len(self._collection) - 1)

    def remove_all(self) -> None:
        """Remove every element, emitting one Delete per element, last first."""
        self._edit([Delete(index) for index in reversed(range(len(self._collection)))])

    def move(self, source: int, target: int) -> None:
        """Move the element at ``source`` to ``target`` (resolved after removal)."""
        self._edit([Move(source, target)])

    def replace(self, collection: Iterable[Any], diff: Diff) -> None:
        """Replace the collection with ``collection``, described by ``diff``.

        The patch is generated from the diff. The diff must describe the
        change from the current collection to ``collection``; with
        ``verify=True`` a wrong diff raises ConsistencyError and nothing
        changes.
        """
        collection = list(collection)
        operations = generate_patch(diff, collection)
        if len(self._collection) != len(collection) - len(diff.inserts) + len(diff.deletes):
            raise ConsistencyError(
                f"{diff!r} does not apply to a collection of {len(self._collection)} elements"
            )
        self._commit(collection, operations, diff)
