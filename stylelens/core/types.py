"""Shared types and dataclasses for StyleLens."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HistoryEntryType(str, Enum):
    CLASS_STYLE = "class-style"  # rule shared by every element with a class
    INLINE_STYLE = "inline-style"  # style attribute on one element
    ADD_CLASS = "add-class"
    REMOVE_CLASS = "remove-class"
    DOM_ADD = "dom-add"
    DOM_REMOVE = "dom-remove"
    DOM_MOVE = "dom-move"
    ATTRIBUTE = "attribute"


# Entry types recorded for the host but never replayed
STRUCTURAL_ENTRY_TYPES = frozenset({
    HistoryEntryType.DOM_ADD,
    HistoryEntryType.DOM_REMOVE,
    HistoryEntryType.DOM_MOVE,
})


class Direction(str, Enum):
    UNDO = "undo"
    REDO = "redo"


class ApplyOutcome(str, Enum):
    APPLIED = "applied"
    STALE_REFERENCE = "stale_reference"  # element no longer retained
    NOT_REVERSIBLE = "not_reversible"  # structural entries are one-way
    REJECTED = "rejected"  # rule list refused the value


@dataclass
class StyleRule:
    """One materialized rule: the merged properties of a selector and its list position."""

    selector: str
    properties: dict[str, str]
    rule_index: int


@dataclass
class HistoryEntry:
    """A reversible edit. ``id`` and ``timestamp`` are assigned by HistoryLog.append()."""

    type: HistoryEntryType
    description: str
    target: str = ""  # selector for class-style, element path otherwise
    property: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    element: str | None = None  # weak handle id, None for class-style entries
    class_name: str | None = None
    # Structural entries only
    parent_path: str | None = None
    html: str | None = None
    index: int | None = None
    id: str = ""
    timestamp: float = 0.0


@dataclass
class HistoryStep:
    """What undo()/redo() did with the entry at the cursor."""

    entry: HistoryEntry
    direction: Direction
    outcome: ApplyOutcome = ApplyOutcome.APPLIED

    @property
    def applied(self) -> bool:
        return self.outcome is ApplyOutcome.APPLIED


@dataclass
class BoundingBox:
    width: float = 0.0
    height: float = 0.0
    top: float = 0.0
    left: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "width": self.width,
            "height": self.height,
            "top": self.top,
            "left": self.left,
        }


@dataclass
class ElementSnapshot:
    """Style-relevant state of a single element at capture time."""

    selector: str
    tag: str
    class_attr: str = ""
    id: str = ""
    computed_styles: dict[str, str] = field(default_factory=dict)
    inline_styles: dict[str, str] = field(default_factory=dict)
    bounding_box: BoundingBox = field(default_factory=BoundingBox)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selector": self.selector,
            "tag": self.tag,
            "class_attr": self.class_attr,
            "id": self.id,
            "computed_styles": dict(self.computed_styles),
            "inline_styles": dict(self.inline_styles),
            "bounding_box": self.bounding_box.to_dict(),
        }


@dataclass
class SnapshotMetadata:
    url: str = ""
    viewport_width: int = 0
    viewport_height: int = 0
    user_agent: str = ""


@dataclass
class StyleSnapshot:
    """A named, timestamped capture of a bounded set of elements."""

    id: str
    name: str
    timestamp: float
    elements: list[ElementSnapshot] = field(default_factory=list)
    global_css: str = ""
    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "timestamp": self.timestamp,
            "elements": [e.to_dict() for e in self.elements],
            "global_css": self.global_css,
            "metadata": {
                "url": self.metadata.url,
                "viewport_width": self.metadata.viewport_width,
                "viewport_height": self.metadata.viewport_height,
                "user_agent": self.metadata.user_agent,
            },
        }


@dataclass
class PropertyChange:
    property: str
    before: str
    after: str


@dataclass
class ModifiedElement:
    element: ElementSnapshot  # after-side snapshot
    changes: list[PropertyChange]

    @property
    def selector(self) -> str:
        return self.element.selector


@dataclass
class SnapshotDiff:
    """Structural diff between two StyleSnapshots."""

    added: list[ElementSnapshot] = field(default_factory=list)
    removed: list[ElementSnapshot] = field(default_factory=list)
    modified: list[ModifiedElement] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed and not self.modified

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)


@dataclass
class PersistResult:
    """Outcome of a persistence write; a warning means memory is still authoritative."""

    ok: bool
    session_id: str | None = None
    warning: str | None = None
