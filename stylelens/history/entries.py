"""Factories for the history entries the editor records."""

from __future__ import annotations

from stylelens.core.types import HistoryEntry, HistoryEntryType


def create_style_entry(
    entry_type: HistoryEntryType,
    target: str,
    prop: str,
    old_value: str,
    new_value: str,
    element: str | None = None,
) -> HistoryEntry:
    """Class-style (``target`` is a selector) or inline-style (``element`` is a handle) change."""
    if entry_type not in (HistoryEntryType.CLASS_STYLE, HistoryEntryType.INLINE_STYLE):
        raise ValueError(f"Not a style entry type: {entry_type}")
    return HistoryEntry(
        type=entry_type,
        description=f"Changed {prop} on {target}",
        target=target,
        property=prop,
        old_value=old_value,
        new_value=new_value,
        element=element if entry_type is HistoryEntryType.INLINE_STYLE else None,
    )


def create_class_entry(
    entry_type: HistoryEntryType,
    element: str,
    class_name: str,
    target: str = "",
) -> HistoryEntry:
    if entry_type is HistoryEntryType.ADD_CLASS:
        verb = "Added"
    elif entry_type is HistoryEntryType.REMOVE_CLASS:
        verb = "Removed"
    else:
        raise ValueError(f"Not a class entry type: {entry_type}")
    return HistoryEntry(
        type=entry_type,
        description=f"{verb} class .{class_name}",
        target=target,
        element=element,
        class_name=class_name,
    )


def create_attribute_entry(
    element: str,
    name: str,
    old_value: str | None,
    new_value: str | None,
    target: str = "",
) -> HistoryEntry:
    """A None (or empty) value means the attribute is absent on that side."""
    return HistoryEntry(
        type=HistoryEntryType.ATTRIBUTE,
        description=f"Changed attribute {name}",
        target=target,
        property=name,
        old_value=old_value,
        new_value=new_value,
        element=element,
    )


def create_dom_entry(
    entry_type: HistoryEntryType,
    element: str,
    description: str,
    *,
    html: str = "",
    parent_path: str | None = None,
    index: int | None = None,
    target: str = "",
) -> HistoryEntry:
    if entry_type not in (
        HistoryEntryType.DOM_ADD,
        HistoryEntryType.DOM_REMOVE,
        HistoryEntryType.DOM_MOVE,
    ):
        raise ValueError(f"Not a DOM entry type: {entry_type}")
    return HistoryEntry(
        type=entry_type,
        description=description,
        target=target,
        element=element,
        html=html,
        parent_path=parent_path,
        index=index,
    )
