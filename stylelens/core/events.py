"""Subscribers — a tiny publish/subscribe registry."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Subscribers:
    """
    Holds change listeners and calls them in registration order.

    subscribe() returns a disposer; calling it twice is harmless.
    Callers notify only after their own state is fully updated, so a listener
    may safely call back into the publisher.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def notify(self) -> None:
        # Snapshot the list: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Subscriber %r raised during notification", listener)

    def __len__(self) -> int:
        return len(self._listeners)
