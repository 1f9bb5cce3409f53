# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Array2D - a two-level TreeArray of sections and items."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from ..element import Item, Section
from ..exceptions import InvalidIndexError
from ..node import TreeNode
from .core import Path, TreeArray, normalize_path


def section_node(section: Any, items: Iterable[Any] = ()) -> TreeNode:
    """Build the TreeNode of a section holding ``items``."""
    return TreeNode(Section(section), [item_node(item) for item in items])


def item_node(item: Any) -> TreeNode:
    """Build the TreeNode of an item."""
    return TreeNode(Item(item))


def _item_path(path: Sequence[int]) -> Path:
    path = normalize_path(path)
    if len(path) != 2:
        raise InvalidIndexError(f"Item paths have two indices, got {path}")
    return path


class Array2D(TreeArray):
    """Sections of items, stored as a TreeArray of Section and Item elements.

    Depth-1 nodes hold Section values and depth-2 nodes hold Item values.
    The methods below take and return the raw payloads; the Section/Item
    wrapping is handled here. Reading a section where an item is stored
    (or the reverse) raises InvalidIndexError.

    Example:
        >>> array = Array2D([('Fruits', ['apple', 'pear']), ('Veggies', [])])
        >>> array.item_at((0, 1))
        'pear'
        >>> array.move_item((0, 0), (1, 0))
        >>> array.sections_with_items()
        [('Fruits', ['pear']), ('Veggies', ['apple'])]
    """

    __slots__ = ()

    def __init__(
        self, source: Iterable[tuple[Any, Iterable[Any]]] | None = None
    ) -> None:
        """Initialize an Array2D.

        Args:
            source: Optional listing of (section, items) pairs.
        """
        super().__init__()
        if source is not None:
            for section, items in source:
                self.append_section(section, items)

    # ==================== Access ====================

    def section_at(self, index: int) -> Any:
        """Return the payload of the section at ``index``."""
        element = self[(index,)]
        if not isinstance(element, Section):
            raise InvalidIndexError(f"Node at ({index},) is not a section")
        return element.value

    def set_section(self, index: int, section: Any) -> None:
        """Replace the section payload at ``index``, keeping its items."""
        self.section_at(index)
        self[(index,)] = Section(section)

    def item_at(self, path: Sequence[int]) -> Any:
        """Return the payload of the item at ``path`` (section, item)."""
        path = _item_path(path)
        element = self[path]
        if not isinstance(element, Item):
            raise InvalidIndexError(f"Node at {path} is not an item")
        return element.value

    def set_item(self, path: Sequence[int], item: Any) -> None:
        """Replace the item at ``path``."""
        path = _item_path(path)
        self.item_at(path)
        self[path] = Item(item)

    @property
    def section_count(self) -> int:
        return len(self)

    @property
    def item_count(self) -> int:
        return sum(self.children_count((index,)) for index in range(len(self)))

    def sections(self) -> list[Any]:
        """Return the section payloads, in order."""
        return [element.section for element in self]

    def items(self, section_index: int) -> list[Any]:
        """Return the item payloads of the section at ``section_index``."""
        return [child.value.item for child in self.node_at((section_index,))]

    def sections_with_items(self) -> list[tuple[Any, list[Any]]]:
        """Return the whole array as a listing of (section, items) pairs."""
        return [
            (node.value.section, [child.value.item for child in node])
            for node in self.nodes()
        ]

    # ==================== Sections ====================

    def append_section(self, section: Any, items: Iterable[Any] = ()) -> None:
        """Append a section, optionally with its items, at the end."""
        self.append(section_node(section, items))

    def insert_section(self, section: Any, index: int, items: Iterable[Any] = ()) -> None:
        """Insert a section at ``index``."""
        self.insert(section_node(section, items), (index,))

    def move_section(self, source: int, target: int) -> None:
        """Move the section at ``source`` to ``target`` (resolved after removal)."""
        self.move((source,), (target,))

    def remove_section(self, index: int) -> Any:
        """Remove the section at ``index`` with its items; return its payload."""
        section = self.section_at(index)
        self.remove((index,))
        return section

    # ==================== Items ====================

    def append_item(self, item: Any, section_index: int) -> None:
        """Append ``item`` to the section at ``section_index``."""
        self.insert(item_node(item), (section_index, self.children_count((section_index,))))

    def insert_item(self, item: Any, path: Sequence[int]) -> None:
        """Insert ``item`` at ``path``."""
        self.insert(item_node(item), _item_path(path))

    def insert_items(self, items: Iterable[Any], path: Sequence[int]) -> None:
        """Insert ``items`` as consecutive items starting at ``path``."""
        self.insert_contents([item_node(item) for item in items], _item_path(path))

    def move_item(self, source: Sequence[int], target: Sequence[int]) -> None:
        """Move the item at ``source`` to ``target`` (resolved after removal)."""
        self.move(_item_path(source), _item_path(target))

    def remove_item(self, path: Sequence[int]) -> Any:
        """Remove the item at ``path`` and return its payload."""
        item = self.item_at(path)
        self.remove(_item_path(path))
        return item

    def remove_all_items(self) -> None:
        """Remove every item; sections stay, empty."""
        for index in range(len(self)):
            self.clear_children((index,))

    def remove_all_items_and_sections(self) -> None:
        """Remove every section and item."""
        self.remove_all()
