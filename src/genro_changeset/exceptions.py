# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Changeset exceptions."""

from __future__ import annotations


class ChangesetError(Exception):
    """Base exception for genro-changeset errors."""

    pass


class InvalidIndexError(ChangesetError, IndexError):
    """Raised when a position or path does not resolve within current bounds.

    Also raised for paths that violate the contiguous-insertion rule or the
    depth convention of a two-level array (sections at depth 1, items at
    depth 2). Always raised before the collection is modified.
    """

    pass


class ConsistencyError(ChangesetError, ValueError):
    """Raised when a diff or a patch contradicts itself.

    Overlapping position claims, out-of-bounds references or a patch that
    does not reproduce the expected collection.
    """

    pass


class ElementKindError(ChangesetError, TypeError):
    """Raised when a section payload is requested from an item, or vice versa."""

    pass
