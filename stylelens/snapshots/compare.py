"""Selector-keyed diff between two StyleSnapshots."""

from __future__ import annotations

from stylelens.core.types import (
    ElementSnapshot,
    ModifiedElement,
    PropertyChange,
    SnapshotDiff,
    StyleSnapshot,
)
from stylelens.snapshots.capture import COMPUTED_PROPERTIES


def compare_snapshots(before: StyleSnapshot, after: StyleSnapshot) -> SnapshotDiff:
    """
    Diff two snapshots by derived selector.

    removed  — selectors only in ``before`` (before order)
    added    — selectors only in ``after`` (after order)
    modified — selectors in both whose allow-listed computed properties differ

    Duplicate selectors within one snapshot collapse to the last element.
    Swapping the arguments swaps added/removed and before/after of every change.
    """
    before_index = _index(before)
    after_index = _index(after)

    removed = [el for sel, el in before_index.items() if sel not in after_index]
    added: list[ElementSnapshot] = []
    modified: list[ModifiedElement] = []

    for selector, after_el in after_index.items():
        before_el = before_index.get(selector)
        if before_el is None:
            added.append(after_el)
            continue
        changes = _compare_props(before_el, after_el)
        if changes:
            modified.append(ModifiedElement(element=after_el, changes=changes))

    return SnapshotDiff(added=added, removed=removed, modified=modified)


def _index(snapshot: StyleSnapshot) -> dict[str, ElementSnapshot]:
    # Last write wins; the selector keeps its first position
    return {element.selector: element for element in snapshot.elements}


def _compare_props(before: ElementSnapshot, after: ElementSnapshot) -> list[PropertyChange]:
    changes: list[PropertyChange] = []
    for prop in COMPUTED_PROPERTIES:
        old_val = before.computed_styles.get(prop, "")
        new_val = after.computed_styles.get(prop, "")
        if old_val != new_val:
            changes.append(PropertyChange(property=prop, before=old_val, after=new_val))
    return changes
