# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-Changeset - Two-level collections that describe their own changes.

A lightweight, zero-dependency library for the Genro ecosystem (Genro Kyō):
path-addressed trees of sections and items, and changesets (snapshot, diff
and replayable patch) emitted after every mutation.
"""

__version__ = "0.1.0"

from .changeset import Changeset, TreeChangeset
from .container import ChangesetContainer, TreeChangesetContainer
from .diff import Diff
from .element import Element, Item, Section
from .exceptions import (
    ChangesetError,
    ConsistencyError,
    ElementKindError,
    InvalidIndexError,
)
from .node import TreeNode
from .operations import (
    Delete,
    Insert,
    Move,
    Operation,
    Update,
    apply_operation,
    apply_patch,
    replay,
)
from .patch import diff_from_patch, generate_patch, tree_diff_from_patch
from .tree import Array2D, TreeArray

__all__ = [
    # Tree
    "TreeNode",
    "TreeArray",
    "Array2D",
    "Element",
    "Section",
    "Item",
    # Operations
    "Operation",
    "Insert",
    "Delete",
    "Update",
    "Move",
    "apply_operation",
    "apply_patch",
    "replay",
    # Diff and patch
    "Diff",
    "generate_patch",
    "diff_from_patch",
    "tree_diff_from_patch",
    # Changesets
    "Changeset",
    "TreeChangeset",
    "ChangesetContainer",
    "TreeChangesetContainer",
    # Exceptions
    "ChangesetError",
    "InvalidIndexError",
    "ConsistencyError",
    "ElementKindError",
]
