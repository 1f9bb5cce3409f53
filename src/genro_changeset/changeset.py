# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Changeset - a collection snapshot with the diff and patch that produced it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, TypeVar

from .diff import Diff
from .operations import Operation, apply_patch
from .patch import generate_patch, diff_from_patch, tree_diff_from_patch
from .tree import TreeArray

C = TypeVar('C')


@dataclass(frozen=True)
class Changeset:
    """A flat collection snapshot, its Diff and the equivalent patch.

    Applying ``patch`` in order to the previous snapshot gives
    ``collection``; ``diff`` and ``patch`` describe the same changes.

    Example:
        >>> changeset = Changeset.from_patch(['a', 'b'], [Insert('b', 1)])
        >>> changeset.diff
        Diff(inserts=[1])
    """

    collection: tuple
    diff: Diff
    patch: tuple[Operation, ...]

    @classmethod
    def from_patch(cls, collection: Iterable[Any], patch: Iterable[Operation]) -> Changeset:
        """Build a changeset from explicit operations; the diff is derived."""
        patch = tuple(patch)
        return cls(tuple(collection), diff_from_patch(patch), patch)

    @classmethod
    def from_diff(cls, collection: Iterable[Any], diff: Diff) -> Changeset:
        """Build a changeset from a diff; the patch is generated against ``collection``."""
        collection = tuple(collection)
        return cls(collection, diff, tuple(generate_patch(diff, collection)))

    def apply_to(self, target: C) -> C:
        """Apply the patch in place to ``target``, a copy of the previous state."""
        return apply_patch(target, self.patch)


@dataclass(frozen=True, eq=False)
class TreeChangeset:
    """A tree snapshot, its path Diff and the patch that produced it.

    Path diffs are derived from the patch against the previous tree, so a
    TreeChangeset is only built from explicit operations.
    """

    collection: TreeArray
    diff: Diff
    patch: tuple[Operation, ...]

    @classmethod
    def from_patch(
        cls,
        collection: TreeArray,
        patch: Iterable[Operation],
        source: TreeArray,
    ) -> TreeChangeset:
        """Build a changeset for ``patch``, which turned ``source`` into ``collection``."""
        patch = tuple(patch)
        return cls(collection.copy(), tree_diff_from_patch(patch, source), patch)

    def apply_to(self, target: C) -> C:
        """Apply the patch in place to ``target``, a copy of the previous tree."""
        return apply_patch(target, self.patch)
