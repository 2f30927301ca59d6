"""Snapshot store — keeps captured StyleSnapshots and persists them as JSON."""

from __future__ import annotations

import json
import logging
from typing import Any

from stylelens.core.types import (
    BoundingBox,
    ElementSnapshot,
    PersistResult,
    SnapshotMetadata,
    StyleSnapshot,
)
from stylelens.rules.persistence import KeyValueStore, StorageQuotaError

logger = logging.getLogger(__name__)

SNAPSHOTS_KEY = "lumos-style-snapshots"


def serialize(snapshots: list[StyleSnapshot]) -> str:
    return json.dumps([s.to_dict() for s in snapshots], indent=2)


def deserialize(text: str) -> list[StyleSnapshot]:
    """Parse serialized snapshots. Any corruption yields an empty list instead of raising."""
    try:
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError("snapshot blob is not a list")
        return [_snapshot_from_dict(d) for d in data]
    except (
        json.JSONDecodeError, ValueError, KeyError, TypeError, AttributeError,
        ArithmeticError, RecursionError,
    ) as exc:
        logger.warning("Discarding corrupt snapshot data: %s", exc)
        return []


def _snapshot_from_dict(d: dict[str, Any]) -> StyleSnapshot:
    meta = d.get("metadata") or {}
    return StyleSnapshot(
        id=str(d["id"]),
        name=str(d["name"]),
        timestamp=float(d.get("timestamp", 0.0)),
        elements=[_element_from_dict(e) for e in d.get("elements", [])],
        global_css=str(d.get("global_css", "")),
        metadata=SnapshotMetadata(
            url=str(meta.get("url", "")),
            viewport_width=int(meta.get("viewport_width", 0)),
            viewport_height=int(meta.get("viewport_height", 0)),
            user_agent=str(meta.get("user_agent", "")),
        ),
        description=str(d.get("description", "")),
    )


def _element_from_dict(d: dict[str, Any]) -> ElementSnapshot:
    box = d.get("bounding_box") or {}
    return ElementSnapshot(
        selector=str(d["selector"]),
        tag=str(d["tag"]),
        class_attr=str(d.get("class_attr", "")),
        id=str(d.get("id", "")),
        computed_styles={str(k): str(v) for k, v in d.get("computed_styles", {}).items()},
        inline_styles={str(k): str(v) for k, v in d.get("inline_styles", {}).items()},
        bounding_box=BoundingBox(
            width=float(box.get("width", 0.0)),
            height=float(box.get("height", 0.0)),
            top=float(box.get("top", 0.0)),
            left=float(box.get("left", 0.0)),
        ),
    )


class SnapshotStore:
    """
    Multi-slot store of snapshots, newest first.

    With a KeyValueStore attached every change is written through; a corrupt
    stored blob is dropped on load and the store starts empty.
    """

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store
        self._snapshots: list[StyleSnapshot] = []
        if store is not None:
            self._load()

    def add(self, snapshot: StyleSnapshot) -> PersistResult:
        self._snapshots.insert(0, snapshot)
        return self._persist()

    def get(self, snapshot_id: str) -> StyleSnapshot | None:
        return next((s for s in self._snapshots if s.id == snapshot_id), None)

    def latest(self) -> StyleSnapshot | None:
        return self._snapshots[0] if self._snapshots else None

    def snapshots(self) -> list[StyleSnapshot]:
        return list(self._snapshots)

    def delete(self, snapshot_id: str) -> bool:
        remaining = [s for s in self._snapshots if s.id != snapshot_id]
        if len(remaining) == len(self._snapshots):
            return False
        self._snapshots = remaining
        self._persist()
        return True

    def clear(self) -> None:
        self._snapshots = []
        if self._store is not None:
            self._store.remove(SNAPSHOTS_KEY)

    def export_json(self) -> str:
        return serialize(self._snapshots)

    def import_json(self, text: str) -> int:
        """Prepend snapshots from an export. Returns how many were imported (0 on bad input)."""
        imported = deserialize(text)
        if imported:
            self._snapshots = imported + self._snapshots
            self._persist()
        return len(imported)

    def __len__(self) -> int:
        return len(self._snapshots)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> None:
        raw = self._store.get(SNAPSHOTS_KEY)
        if raw is None:
            return
        self._snapshots = deserialize(raw)
        if not self._snapshots and raw.strip() not in ("[]", ""):
            self._store.remove(SNAPSHOTS_KEY)

    def _persist(self) -> PersistResult:
        if self._store is None:
            return PersistResult(ok=True)
        try:
            self._store.set(SNAPSHOTS_KEY, serialize(self._snapshots))
        except StorageQuotaError as exc:
            warning = f"Snapshots not saved, storage is full: {exc}"
            logger.warning(warning)
            return PersistResult(ok=False, warning=warning)
        return PersistResult(ok=True)
