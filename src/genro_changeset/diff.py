# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Diff - an unordered description of the changes between two states.

A Diff holds four sets of positions and says nothing about ordering. Its
positions use two index spaces:

- ``deletes``, ``updates`` and the source of each move refer to the
  collection *before* the change;
- ``inserts`` and the target of each move refer to the collection *after*
  the change.

Example:
    Turning ``['a', 'b', 'c']`` into ``['c', 'x', 'a']``::

        >>> diff = Diff(inserts={1}, deletes={1}, moves={(2, 0), (0, 2)})
        >>> diff.generate_patch(['c', 'x', 'a'])
        [Delete(at=1), Move(source=1, target=0), Move(source=1, target=1), Insert(element='x', at=1)]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .operations import Operation


@dataclass(frozen=True)
class Diff:
    """Inserted, deleted, updated and moved positions.

    The sets are frozen on construction, so any iterable can be passed.
    Moves are (source, target) pairs.
    """

    inserts: frozenset = field(default_factory=frozenset)
    deletes: frozenset = field(default_factory=frozenset)
    updates: frozenset = field(default_factory=frozenset)
    moves: frozenset = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'inserts', frozenset(self.inserts))
        object.__setattr__(self, 'deletes', frozenset(self.deletes))
        object.__setattr__(self, 'updates', frozenset(self.updates))
        object.__setattr__(
            self, 'moves', frozenset(tuple(move) for move in self.moves)
        )

    def __repr__(self) -> str:
        parts = [
            f"{name}={sorted(getattr(self, name))!r}"
            for name in ('inserts', 'deletes', 'updates', 'moves')
            if getattr(self, name)
        ]
        return f"Diff({', '.join(parts)})"

    def __bool__(self) -> bool:
        return not self.is_empty

    @property
    def is_empty(self) -> bool:
        """True if the diff describes no change."""
        return not (self.inserts or self.deletes or self.updates or self.moves)

    @property
    def count(self) -> int:
        """Number of elementary changes."""
        return len(self.inserts) + len(self.deletes) + len(self.updates) + len(self.moves)

    @classmethod
    def from_patch(cls, patch: Iterable[Operation]) -> Diff:
        """Derive the diff of a flat patch. See patch.diff_from_patch()."""
        from .patch import diff_from_patch
        return diff_from_patch(patch)

    def generate_patch(self, target: Sequence[Any]) -> list[Operation]:
        """Return the ordered operations that produce ``target``.

        See patch.generate_patch().
        """
        from .patch import generate_patch
        return generate_patch(self, target)
