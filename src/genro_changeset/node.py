# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeNode - detached node of a TreeArray."""

from __future__ import annotations

from typing import Any, Iterable, Iterator


class TreeNode:
    """A value with an ordered list of owned child nodes.

    TreeNode is the detached form of a subtree: it is what gets inserted
    into a TreeArray and what comes out of it when a subtree is read or
    removed. Inside the array, nodes live in an arena and are never shared,
    so a TreeNode handed to the array is copied, not aliased.

    Example:
        >>> node = TreeNode('fruits', [TreeNode('apple'), TreeNode('pear')])
        >>> node.value
        'fruits'
        >>> [child.value for child in node.children]
        ['apple', 'pear']
    """

    __slots__ = ('value', 'children')

    def __init__(
        self,
        value: Any = None,
        children: Iterable[TreeNode] = (),
    ) -> None:
        """Initialize a TreeNode.

        Args:
            value: The node's payload.
            children: Child nodes, in order.
        """
        self.value = value
        self.children: list[TreeNode] = list(children)

    def __repr__(self) -> str:
        if not self.children:
            return f"TreeNode({self.value!r})"
        return f"TreeNode({self.value!r}, {self.children!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeNode):
            return NotImplemented
        return self.value == other.value and self.children == other.children

    def __len__(self) -> int:
        """Return the number of direct children."""
        return len(self.children)

    def __iter__(self) -> Iterator[TreeNode]:
        """Iterate over direct children in order."""
        return iter(self.children)

    @property
    def is_leaf(self) -> bool:
        """True if the node has no children."""
        return not self.children

    @property
    def count(self) -> int:
        """Number of nodes in this subtree, the node itself included."""
        return 1 + sum(child.count for child in self.children)

    def copy(self) -> TreeNode:
        """Return a deep copy of the subtree (values are shared)."""
        return TreeNode(self.value, [child.copy() for child in self.children])

    def walk(
        self, _prefix: tuple[int, ...] = ()
    ) -> Iterator[tuple[tuple[int, ...], Any]]:
        """Yield (relative path, value) for every descendant, depth-first.

        The node itself is not yielded; paths are relative to it.
        """
        for index, child in enumerate(self.children):
            path = _prefix + (index,)
            yield path, child.value
            yield from child.walk(path)
