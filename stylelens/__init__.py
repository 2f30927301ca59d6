from stylelens.config import StyleLensConfig
from stylelens.core.session import StyleSession
from stylelens.core.types import (
    ApplyOutcome,
    BoundingBox,
    Direction,
    ElementSnapshot,
    HistoryEntry,
    HistoryEntryType,
    HistoryStep,
    ModifiedElement,
    PersistResult,
    PropertyChange,
    SnapshotDiff,
    SnapshotMetadata,
    StyleRule,
    StyleSnapshot,
)
from stylelens.history.elements import ElementNode, HandleRegistry
from stylelens.history.log import HistoryLog
from stylelens.rules.repository import StyleRuleRepository
from stylelens.rules.rule_list import InMemoryRuleList, RuleRejectedError
from stylelens.snapshots.capture import create_snapshot
from stylelens.snapshots.compare import compare_snapshots

__all__ = [
    "StyleLensConfig",
    "StyleSession",
    "ApplyOutcome",
    "BoundingBox",
    "Direction",
    "ElementSnapshot",
    "HistoryEntry",
    "HistoryEntryType",
    "HistoryStep",
    "ModifiedElement",
    "PersistResult",
    "PropertyChange",
    "SnapshotDiff",
    "SnapshotMetadata",
    "StyleRule",
    "StyleSnapshot",
    # Subsystems
    "ElementNode",
    "HandleRegistry",
    "HistoryLog",
    "InMemoryRuleList",
    "RuleRejectedError",
    "StyleRuleRepository",
    "compare_snapshots",
    "create_snapshot",
]
