"""StyleSession — the per-editing-session context that wires the subsystems together."""

from __future__ import annotations

from typing import Callable, Iterable

from stylelens.config import StyleLensConfig
from stylelens.core.types import (
    HistoryEntry,
    HistoryEntryType,
    HistoryStep,
    PersistResult,
    SnapshotDiff,
    StyleSnapshot,
)
from stylelens.history.elements import ElementNode, HandleRegistry
from stylelens.history.entries import (
    create_attribute_entry,
    create_class_entry,
    create_dom_entry,
    create_style_entry,
)
from stylelens.history.log import HistoryLog
from stylelens.rules.persistence import (
    ExportFormat,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    StylePersistence,
)
from stylelens.rules.repository import StyleRuleRepository
from stylelens.rules.rule_list import RuleList
from stylelens.snapshots.capture import create_snapshot, derive_selector
from stylelens.snapshots.compare import compare_snapshots
from stylelens.snapshots.store import SnapshotStore


class StyleSession:
    """
    One editing session: a single rule repository, history log, handle
    registry, snapshot store and persistence manager.

    Edit actions apply the change and record the matching history entry in
    one call, so undo()/redo() can replay it later.

    Usage:
        session = StyleSession()
        session.set_class_style(".card", "color", "red")
        session.undo()
    """

    def __init__(
        self,
        config: StyleLensConfig | None = None,
        *,
        rule_list: RuleList | None = None,
        store: KeyValueStore | None = None,
    ) -> None:
        self.config = config or StyleLensConfig()
        if store is None:
            store = MemoryKeyValueStore(quota_bytes=self.config.storage_quota_bytes)

        self.registry = HandleRegistry()
        self.repository = StyleRuleRepository(rule_list)
        self.history = HistoryLog(
            self.repository,
            resolver=self.registry,
            capacity=self.config.history_capacity,
        )
        self.snapshots = SnapshotStore(store)
        self.persistence = StylePersistence(self.repository, store)

    @classmethod
    def open(cls, config: StyleLensConfig | None = None) -> StyleSession:
        """Session whose saved styles and snapshots live in ``config.storage_dir``."""
        config = config or StyleLensConfig.from_env()
        store = FileKeyValueStore(config.storage_dir, quota_bytes=config.storage_quota_bytes)
        return cls(config, store=store)

    # ------------------------------------------------------------------
    # Class-wide edits
    # ------------------------------------------------------------------

    def set_class_style(self, selector: str, prop: str, value: str) -> bool:
        old_value = self.repository.get_properties(selector).get(prop, "")
        if not self.repository.set_property(selector, prop, value):
            return False
        if old_value != value:
            self.history.append(
                create_style_entry(HistoryEntryType.CLASS_STYLE, selector, prop, old_value, value)
            )
        return True

    def set_class_styles(self, selector: str, properties: dict[str, str]) -> bool:
        """Apply several properties at once; each changed property gets its own history entry."""
        before = self.repository.get_properties(selector)
        if not self.repository.set_properties(selector, properties):
            return False
        for prop, value in properties.items():
            old_value = before.get(prop, "")
            if old_value != value:
                self.history.append(
                    create_style_entry(HistoryEntryType.CLASS_STYLE, selector, prop, old_value, value)
                )
        return True

    # ------------------------------------------------------------------
    # Single-element edits
    # ------------------------------------------------------------------

    def set_inline_style(self, element: ElementNode, prop: str, value: str) -> None:
        old_value = element.inline_style.get(prop, "")
        if value:
            element.set_style(prop, value)
        else:
            element.remove_style(prop)
        if old_value != value:
            self.history.append(create_style_entry(
                HistoryEntryType.INLINE_STYLE,
                self._label(element),
                prop,
                old_value,
                value,
                element=self.registry.register(element),
            ))

    def add_class(self, element: ElementNode, class_name: str) -> bool:
        if element.has_class(class_name):
            return False
        element.add_class(class_name)
        self.history.append(create_class_entry(
            HistoryEntryType.ADD_CLASS,
            self.registry.register(element),
            class_name,
            target=self._label(element),
        ))
        return True

    def remove_class(self, element: ElementNode, class_name: str) -> bool:
        if not element.has_class(class_name):
            return False
        # Label before the change so the entry names the element as it was
        target = self._label(element)
        element.remove_class(class_name)
        self.history.append(create_class_entry(
            HistoryEntryType.REMOVE_CLASS,
            self.registry.register(element),
            class_name,
            target=target,
        ))
        return True

    def set_attribute(self, element: ElementNode, name: str, value: str | None) -> None:
        """Set an attribute, or remove it when ``value`` is None or empty."""
        target = self._label(element)
        old_value = element.get_attribute(name)
        if value:
            element.set_attribute(name, value)
        else:
            element.remove_attribute(name)
        if (old_value or None) != (value or None):
            self.history.append(create_attribute_entry(
                self.registry.register(element), name, old_value, value, target=target,
            ))

    def record_dom_change(
        self,
        entry_type: HistoryEntryType,
        element: ElementNode,
        description: str,
        *,
        parent_path: str | None = None,
        index: int | None = None,
    ) -> HistoryEntry:
        """Log a structural change made by the host; it is not replayed on undo."""
        return self.history.append(create_dom_entry(
            entry_type,
            self.registry.register(element),
            description,
            html=element.outer_html(),
            parent_path=parent_path,
            index=index,
            target=self._label(element),
        ))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> HistoryStep | None:
        return self.history.undo()

    def redo(self) -> HistoryStep | None:
        return self.history.redo()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.history.subscribe(listener)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def take_snapshot(
        self,
        name: str,
        targets: Iterable[ElementNode],
        description: str = "",
    ) -> StyleSnapshot:
        """Capture ``targets`` together with the current managed CSS and keep it in the store."""
        snapshot = create_snapshot(
            name,
            targets,
            global_css=self.repository.export(),
            limit=self.config.snapshot_limit,
            reserved_prefix=self.config.reserved_class_prefix,
            description=description,
        )
        self.snapshots.add(snapshot)
        return snapshot

    def compare(self, before: StyleSnapshot, after: StyleSnapshot) -> SnapshotDiff:
        return compare_snapshots(before, after)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, name: str | None = None) -> PersistResult:
        return self.persistence.save(name)

    def load(self, session_id: str | None = None) -> bool:
        """
        Replace the current styles with saved ones. History is cleared whenever
        the styles were replaced, including a reset after a corrupt stored blob.
        """
        before = self.repository.all_styles()
        loaded = self.persistence.load(session_id)
        if loaded or self.repository.all_styles() != before:
            self.history.clear()
        return loaded

    def export(self, fmt: ExportFormat | str = ExportFormat.CSS) -> str:
        return self.persistence.export(fmt)

    def reset(self) -> None:
        """Drop all managed styles and history (e.g., start editing a new page)."""
        self.history.clear()
        self.repository.clear()
        self.registry.reset()

    def _label(self, element: ElementNode) -> str:
        if element.path:
            return element.path
        return derive_selector(
            element.tag, element.element_id, element.class_attr, self.config.reserved_class_prefix
        )
