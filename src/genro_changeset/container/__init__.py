# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Container package - mutation facades that emit changesets.

The package is organized into:
- core: ChangesetContainer, a flat observable collection
- tree: TreeChangesetContainer, an observable two-level array
- subscription: Subscriber registry shared by both containers
"""

from .core import ChangesetContainer
from .subscription import SubscriberCallback, SubscriptionMixin
from .tree import TreeChangesetContainer

__all__ = [
    "ChangesetContainer",
    "SubscriberCallback",
    "SubscriptionMixin",
    "TreeChangesetContainer",
]
