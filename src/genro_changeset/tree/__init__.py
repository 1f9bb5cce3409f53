# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tree package - path-addressed hierarchical containers.

The package is organized into:
- core: TreeArray, an arena-backed tree addressed by index paths
- array2d: Array2D, the two-level specialisation of sections and items

Example:
    >>> from genro_changeset import Array2D
    >>> array = Array2D([('Fruits', ['apple'])])
    >>> array.append_item('pear', 0)
    >>> array.items(0)
    ['apple', 'pear']
"""

from .array2d import Array2D, item_node, section_node
from .core import Path, TreeArray, normalize_path

__all__ = [
    "Array2D",
    "Path",
    "TreeArray",
    "item_node",
    "normalize_path",
    "section_node",
]
