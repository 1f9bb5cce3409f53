# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Subscriber registry shared by the changeset containers."""

from __future__ import annotations

from typing import Any, Callable

SubscriberCallback = Callable[[Any], Any]


class SubscriptionMixin:
    """Keeps subscriber callbacks by id and hands them every changeset.

    Classes using the mixin create ``self._subscribers`` (a dict) in their
    ``__init__``. Callbacks are called in registration order; an exception
    raised by a callback propagates to the caller of the mutation, after the
    new state has been committed.

    Example:
        >>> container.subscribe('view', lambda changeset: print(changeset.patch))
        >>> container.append('a')
        (Insert(element='a', at=0),)
    """

    __slots__ = ()

    _subscribers: dict[str, SubscriberCallback]

    def subscribe(self, subscriber_id: str, callback: SubscriberCallback) -> None:
        """Register ``callback`` under ``subscriber_id``, replacing any previous one.

        Args:
            subscriber_id: Key used to unsubscribe later.
            callback: Called with each emitted changeset.
        """
        self._subscribers.pop(subscriber_id, None)
        self._subscribers[subscriber_id] = callback

    def unsubscribe(self, subscriber_id: str) -> None:
        """Remove the callback registered under ``subscriber_id``, if any."""
        self._subscribers.pop(subscriber_id, None)

    def _notify(self, changeset: Any) -> None:
        for callback in list(self._subscribers.values()):
            callback(changeset)
