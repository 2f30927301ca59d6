from stylelens.snapshots.capture import COMPUTED_PROPERTIES, create_snapshot, derive_selector
from stylelens.snapshots.compare import compare_snapshots
from stylelens.snapshots.store import SnapshotStore, deserialize, serialize

__all__ = [
    "COMPUTED_PROPERTIES",
    "SnapshotStore",
    "compare_snapshots",
    "create_snapshot",
    "derive_selector",
    "deserialize",
    "serialize",
]
