"""HistoryLog — bounded undo/redo command log."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import replace
from typing import Callable

from stylelens.config import DEFAULT_HISTORY_CAPACITY
from stylelens.core.events import Subscribers
from stylelens.core.types import (
    STRUCTURAL_ENTRY_TYPES,
    ApplyOutcome,
    Direction,
    HistoryEntry,
    HistoryEntryType,
    HistoryStep,
)
from stylelens.history.elements import ElementResolver, HandleRegistry
from stylelens.rules.repository import StyleRuleRepository

logger = logging.getLogger(__name__)


class HistoryLog:
    """
    Ordered, bounded log of reversible edits with a cursor.

    ``cursor`` is the index of the last applied entry (-1 when nothing is
    applied). Appending always discards the redo branch beyond the cursor.
    Entries are dispatched by type: class-style changes go back through the
    StyleRuleRepository, element changes resolve a weak handle and mutate
    the element directly, structural changes are logged only.
    """

    def __init__(
        self,
        repository: StyleRuleRepository,
        resolver: ElementResolver | None = None,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._repo = repository
        self._resolver: ElementResolver = resolver if resolver is not None else HandleRegistry()
        self._capacity = capacity
        self._entries: list[HistoryEntry] = []
        self._cursor = -1
        self._subscribers = Subscribers()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def capacity(self) -> int:
        return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        if value < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = value
        if self._trim():
            self._subscribers.notify()

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._cursor >= 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    @property
    def undo_description(self) -> str | None:
        if not self.can_undo:
            return None
        return self._entries[self._cursor].description

    @property
    def redo_description(self) -> str | None:
        if not self.can_redo:
            return None
        return self._entries[self._cursor + 1].description

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Record an already-applied edit. Returns the stored entry with its id and timestamp."""
        del self._entries[self._cursor + 1:]
        stored = replace(entry, id=_generate_id(), timestamp=time.time())
        self._entries.append(stored)
        self._trim()
        self._cursor = len(self._entries) - 1
        self._subscribers.notify()
        return stored

    def undo(self) -> HistoryStep | None:
        if not self.can_undo:
            return None
        entry = self._entries[self._cursor]
        outcome = self._apply(entry, Direction.UNDO)
        self._cursor -= 1
        self._subscribers.notify()
        return HistoryStep(entry=entry, direction=Direction.UNDO, outcome=outcome)

    def redo(self) -> HistoryStep | None:
        if not self.can_redo:
            return None
        self._cursor += 1
        entry = self._entries[self._cursor]
        outcome = self._apply(entry, Direction.REDO)
        self._subscribers.notify()
        return HistoryStep(entry=entry, direction=Direction.REDO, outcome=outcome)

    def clear(self) -> None:
        self._entries = []
        self._cursor = -1
        self._subscribers.notify()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a change listener. Returns a disposer that unsubscribes it."""
        return self._subscribers.subscribe(listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _trim(self) -> bool:
        overflow = len(self._entries) - self._capacity
        if overflow <= 0:
            return False
        del self._entries[:overflow]
        self._cursor = max(self._cursor - overflow, -1)
        return True

    def _apply(self, entry: HistoryEntry, direction: Direction) -> ApplyOutcome:
        value = entry.old_value if direction is Direction.UNDO else entry.new_value

        if entry.type is HistoryEntryType.CLASS_STYLE:
            if not (entry.target and entry.property):
                return ApplyOutcome.APPLIED
            if self._repo.set_property(entry.target, entry.property, value or ""):
                return ApplyOutcome.APPLIED
            return ApplyOutcome.REJECTED

        if entry.type in STRUCTURAL_ENTRY_TYPES:
            # One-way; parent_path, index and html stay on the entry for the host
            logger.info("DOM %s not reversed: %s", direction.value, entry.description)
            return ApplyOutcome.NOT_REVERSIBLE

        element = self._resolver.resolve(entry.element) if entry.element else None
        if element is None:
            logger.info(
                "Element for %r is no longer available; %s skipped",
                entry.description, direction.value,
            )
            return ApplyOutcome.STALE_REFERENCE

        if entry.type is HistoryEntryType.INLINE_STYLE:
            if entry.property:
                if value:
                    element.set_style(entry.property, value)
                else:
                    element.remove_style(entry.property)
        elif entry.type is HistoryEntryType.ADD_CLASS:
            if entry.class_name:
                if direction is Direction.UNDO:
                    element.remove_class(entry.class_name)
                else:
                    element.add_class(entry.class_name)
        elif entry.type is HistoryEntryType.REMOVE_CLASS:
            if entry.class_name:
                if direction is Direction.UNDO:
                    element.add_class(entry.class_name)
                else:
                    element.remove_class(entry.class_name)
        elif entry.type is HistoryEntryType.ATTRIBUTE:
            if entry.property:
                if value:
                    element.set_attribute(entry.property, value)
                else:
                    element.remove_attribute(entry.property)
        return ApplyOutcome.APPLIED


def _generate_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"
