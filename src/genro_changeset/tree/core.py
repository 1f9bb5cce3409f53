# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeArray - a rooted tree addressed by index paths.

This module provides the TreeArray class, the container behind two-level
arrays. Nodes are kept in an arena: values and child lists are stored in
parallel lists and referenced by integer ids, so moving a subtree between
parents relinks ids and never copies or aliases nodes.

Path Syntax:
    A path is a tuple of non-negative integers read root to leaf:
    - ``()``: the root (carries no value, never settable)
    - ``(2,)``: third child of the root
    - ``(2, 0)``: first child of the third child of the root

    Lists are accepted and normalised to tuples. Negative indices are
    rejected: there is no wraparound.

Example:
    >>> tree = TreeArray([TreeNode('a', [TreeNode('a0')]), TreeNode('b')])
    >>> tree[(0, 0)]
    'a0'
    >>> tree.move((0, 0), (1, 0))
    >>> list(tree.walk())
    [((0,), 'a'), ((1,), 'b'), ((1, 0), 'a0')]
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence

from ..exceptions import InvalidIndexError
from ..node import TreeNode

Path = tuple[int, ...]

_ROOT = 0


def normalize_path(path: Sequence[int]) -> Path:
    """Return ``path`` as a tuple, checking every index.

    Raises:
        InvalidIndexError: If path is not a sequence of non-negative ints.
    """
    if isinstance(path, (str, bytes)) or not isinstance(path, Sequence):
        raise InvalidIndexError(f"Path must be a sequence of indices, not {path!r}")
    for index in path:
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise InvalidIndexError(f"Invalid index {index!r} in path {tuple(path)}")
    return tuple(path)


class TreeArray:
    """A tree of values addressed by index paths.

    TreeArray provides:
    - tree[path] / tree[path] = value: read and replace node values
    - insert(node, path) / remove(path) / move(source, target): structure edits
    - walk(), count, height: traversal

    Insertion is contiguous: a node can be inserted at any index from 0 to
    the current number of siblings, never beyond. Every edit validates its
    paths before touching the tree.
    """

    __slots__ = ('_values', '_children', '_free')

    def __init__(self, nodes: Iterable[TreeNode] = ()) -> None:
        """Initialize a TreeArray.

        Args:
            nodes: Optional children of the root, as TreeNode subtrees.
                The subtrees are copied into the array.
        """
        self._values: list[Any] = [None]
        self._children: list[list[int]] = [[]]
        self._free: list[int] = []
        for node in nodes:
            self._children[_ROOT].append(self._alloc(node))

    # ==================== Arena ====================

    def _alloc(self, node: TreeNode) -> int:
        """Store ``node`` and its subtree in the arena and return its id."""
        if self._free:
            node_id = self._free.pop()
            self._values[node_id] = node.value
        else:
            node_id = len(self._values)
            self._values.append(node.value)
            self._children.append([])
        self._children[node_id] = [self._alloc(child) for child in node.children]
        return node_id

    def _release(self, node_id: int) -> None:
        """Free the slots of ``node_id`` and its whole subtree."""
        for child_id in self._children[node_id]:
            self._release(child_id)
        self._values[node_id] = None
        self._children[node_id] = []
        self._free.append(node_id)

    def _materialize(self, node_id: int) -> TreeNode:
        """Build a detached TreeNode copy of the subtree at ``node_id``."""
        return TreeNode(
            self._values[node_id],
            [self._materialize(child_id) for child_id in self._children[node_id]],
        )

    # ==================== Path Utilities ====================

    def _resolve(self, path: Path) -> int:
        """Return the arena id of the node at ``path``.

        Raises:
            InvalidIndexError: If any index of the path is out of range.
        """
        node_id = _ROOT
        for depth, index in enumerate(path):
            children = self._children[node_id]
            if index >= len(children):
                raise InvalidIndexError(
                    f"Index {index} out of range at depth {depth + 1} of path {path} "
                    f"({len(children)} children)"
                )
            node_id = children[index]
        return node_id

    def _resolve_slot(self, path: Sequence[int], inserting: bool) -> tuple[list[int], int]:
        """Return (sibling id list, index) addressed by a non-root path.

        Args:
            path: Path of the node (or of the insertion point).
            inserting: If True, the index may equal the number of siblings.

        Raises:
            InvalidIndexError: If the parent does not exist or the index is
                outside the allowed range.
        """
        path = normalize_path(path)
        if not path:
            raise InvalidIndexError("The root path () does not address a child")
        siblings = self._children[self._resolve(path[:-1])]
        index = path[-1]
        limit = len(siblings) if inserting else len(siblings) - 1
        if index > limit:
            raise InvalidIndexError(
                f"Index {index} out of range for path {path} "
                f"({len(siblings)} siblings)"
            )
        return siblings, index

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.nodes()!r})"

    def __len__(self) -> int:
        """Return the number of children of the root."""
        return len(self._children[_ROOT])

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the values of the root's children."""
        for node_id in self._children[_ROOT]:
            yield self._values[node_id]

    def __contains__(self, path: object) -> bool:
        """True if ``path`` addresses an existing node (the root included)."""
        try:
            self._resolve(normalize_path(path))  # type: ignore[arg-type]
        except InvalidIndexError:
            return False
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeArray):
            return NotImplemented
        return self.nodes() == other.nodes()

    def __getitem__(self, path: Sequence[int]) -> Any:
        """Get the value of the node at ``path``.

        Raises:
            InvalidIndexError: If the path does not resolve, or is the root.
        """
        siblings, index = self._resolve_slot(path, inserting=False)
        return self._values[siblings[index]]

    def __setitem__(self, path: Sequence[int], value: Any) -> None:
        """Replace the value of the node at ``path``, keeping its children."""
        siblings, index = self._resolve_slot(path, inserting=False)
        self._values[siblings[index]] = value

    # ==================== Reading ====================

    def node_at(self, path: Sequence[int]) -> TreeNode:
        """Return a detached copy of the subtree at ``path``.

        The root path returns a value-less node holding every top-level node.
        """
        return self._materialize(self._resolve(normalize_path(path)))

    def children_count(self, path: Sequence[int] = ()) -> int:
        """Return the number of children of the node at ``path``."""
        return len(self._children[self._resolve(normalize_path(path))])

    def nodes(self) -> list[TreeNode]:
        """Return detached copies of the root's children."""
        return [self._materialize(node_id) for node_id in self._children[_ROOT]]

    def copy(self) -> TreeArray:
        """Return an independent copy of the array (values are shared)."""
        clone = type(self).__new__(type(self))
        clone._values = list(self._values)
        clone._children = [list(children) for children in self._children]
        clone._free = list(self._free)
        return clone

    # ==================== Editing ====================

    def insert(self, node: TreeNode | Any, path: Sequence[int]) -> None:
        """Insert ``node`` so that it ends up at ``path``.

        Args:
            node: A TreeNode subtree, or a bare value for a childless node.
            path: Target path. Its parent must exist and its last index must
                not exceed the parent's current number of children.

        Raises:
            InvalidIndexError: If the target slot is not valid.
        """
        if not isinstance(node, TreeNode):
            node = TreeNode(node)
        siblings, index = self._resolve_slot(path, inserting=True)
        siblings.insert(index, self._alloc(node))

    def insert_contents(self, nodes: Iterable[TreeNode | Any], path: Sequence[int]) -> None:
        """Insert several nodes as consecutive siblings starting at ``path``."""
        nodes = [node if isinstance(node, TreeNode) else TreeNode(node) for node in nodes]
        siblings, index = self._resolve_slot(path, inserting=True)
        siblings[index:index] = [self._alloc(node) for node in nodes]

    def append(self, node: TreeNode | Any) -> None:
        """Append ``node`` as the last child of the root."""
        self.insert(node, (len(self),))

    def remove_node(self, path: Sequence[int]) -> TreeNode:
        """Detach the subtree at ``path`` and return it as a TreeNode."""
        siblings, index = self._resolve_slot(path, inserting=False)
        node_id = siblings.pop(index)
        node = self._materialize(node_id)
        self._release(node_id)
        return node

    def remove(self, path: Sequence[int]) -> Any:
        """Detach the subtree at ``path`` and return the value of its root."""
        return self.remove_node(path).value

    def move(self, source: Sequence[int], target: Sequence[int]) -> None:
        """Move the subtree at ``source`` so that it ends up at ``target``.

        ``target`` is resolved after the subtree has been detached: moving
        the first of three siblings to index 2 makes it the last one.

        Raises:
            InvalidIndexError: If ``source`` does not resolve, if ``target``
                is not a valid insertion slot once the subtree is detached,
                or if ``target`` lies inside the moved subtree. The tree is
                left untouched.
        """
        source = normalize_path(source)
        target = normalize_path(target)
        if len(target) > len(source) and target[:len(source)] == source:
            raise InvalidIndexError(f"Cannot move {source} inside itself ({target})")
        source_siblings, source_index = self._resolve_slot(source, inserting=False)
        node_id = source_siblings.pop(source_index)
        try:
            target_siblings, target_index = self._resolve_slot(target, inserting=True)
        except InvalidIndexError:
            source_siblings.insert(source_index, node_id)
            raise
        target_siblings.insert(target_index, node_id)

    def clear_children(self, path: Sequence[int] = ()) -> None:
        """Remove every child of the node at ``path``; the node itself stays."""
        node_id = self._resolve(normalize_path(path))
        for child_id in self._children[node_id]:
            self._release(child_id)
        self._children[node_id] = []

    def remove_all(self) -> None:
        """Remove every node, leaving an empty root."""
        self.clear_children(())

    # ==================== Traversal ====================

    def walk(self) -> Iterator[tuple[Path, Any]]:
        """Yield (path, value) for every node, depth-first pre-order.

        Example:
            >>> for path, value in tree.walk():
            ...     print(path, value)
        """
        def _walk(node_id: int, prefix: Path) -> Iterator[tuple[Path, Any]]:
            for index, child_id in enumerate(self._children[node_id]):
                path = prefix + (index,)
                yield path, self._values[child_id]
                yield from _walk(child_id, path)

        return _walk(_ROOT, ())

    @property
    def count(self) -> int:
        """Total number of nodes, the root excluded."""
        return sum(1 for _ in self.walk())

    @property
    def height(self) -> int:
        """Depth of the deepest node (0 for an empty array)."""
        return max((len(path) for path, _ in self.walk()), default=0)
