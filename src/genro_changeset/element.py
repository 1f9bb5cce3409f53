# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Element - a section or an item of a two-level array.

Element is a closed sum type with two variants. Sections are the values of
depth-1 nodes, items the values of depth-2 nodes::

    >>> header = Section('Fruits')
    >>> apple = Item('apple')
    >>> header.section
    'Fruits'
    >>> apple.match(lambda s: f'section {s}', lambda i: f'item {i}')
    'item apple'

Asking a variant for the other variant's payload raises ElementKindError
instead of returning None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .exceptions import ElementKindError


class Element:
    """Base of the Section and Item variants. Not instantiated directly."""

    __slots__ = ()

    value: Any

    @property
    def is_section(self) -> bool:
        return isinstance(self, Section)

    @property
    def is_item(self) -> bool:
        return isinstance(self, Item)

    @property
    def section(self) -> Any:
        """Payload of a Section.

        Raises:
            ElementKindError: If the element is an Item.
        """
        if isinstance(self, Section):
            return self.value
        raise ElementKindError(f"{self!r} is not a section")

    @property
    def item(self) -> Any:
        """Payload of an Item.

        Raises:
            ElementKindError: If the element is a Section.
        """
        if isinstance(self, Item):
            return self.value
        raise ElementKindError(f"{self!r} is not an item")

    def match(
        self,
        on_section: Callable[[Any], Any],
        on_item: Callable[[Any], Any],
    ) -> Any:
        """Call the handler for this variant with the payload and return its result."""
        if isinstance(self, Section):
            return on_section(self.value)
        if isinstance(self, Item):
            return on_item(self.value)
        raise ElementKindError(f"Unknown element variant: {type(self).__name__}")


@dataclass(frozen=True)
class Section(Element):
    """A section payload (depth 1)."""

    value: Any


@dataclass(frozen=True)
class Item(Element):
    """An item payload (depth 2)."""

    value: Any
