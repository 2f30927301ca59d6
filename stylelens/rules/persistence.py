"""Style persistence — saved sessions and exports on top of a key/value byte store."""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from stylelens.core.types import PersistResult
from stylelens.rules.repository import StyleRuleRepository

logger = logging.getLogger(__name__)

STYLES_KEY = "lumos-inspector-styles"
SESSIONS_KEY = "lumos-inspector-sessions"


class StorageQuotaError(Exception):
    """Raised by a KeyValueStore when a write would exceed its quota."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store with an optional byte quota, like a browser's localStorage."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._quota = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota is not None:
            used = sum(_size(k, v) for k, v in self._data.items() if k != key)
            if used + _size(key, value) > self._quota:
                raise StorageQuotaError(
                    f"Writing {key!r} would exceed the {self._quota}-byte quota"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """
    Filesystem store: one file per key.

    Directory layout::

        {directory}/
            {key}.json
    """

    def __init__(self, directory: str, quota_bytes: int | None = None) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._quota = quota_bytes

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        if self._quota is not None:
            target = self._path(key)
            used = sum(p.stat().st_size for p in self._dir.glob("*.json") if p != target)
            if used + len(value.encode("utf-8")) > self._quota:
                raise StorageQuotaError(
                    f"Writing {key!r} would exceed the {self._quota}-byte quota"
                )
        self._path(key).write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


def _size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class ExportFormat(str, Enum):
    CSS = "css"
    JSON = "json"
    TAILWIND = "tailwind"
    DESIGN_TOKENS = "design-tokens"


@dataclass
class SavedSession:
    id: str
    name: str
    created_at: float
    updated_at: float
    styles: dict[str, dict[str, str]] = field(default_factory=dict)


# Tailwind theme section each property feeds into
_TAILWIND_SECTIONS: dict[str, str] = {
    "background-color": "colors",
    "color": "colors",
    "border-color": "colors",
    "padding": "spacing",
    "margin": "spacing",
    "gap": "spacing",
    "border-radius": "borderRadius",
    "box-shadow": "boxShadow",
    "font-size": "fontSize",
}


class StylePersistence:
    """
    Saves and restores the repository's style cache.

    The in-memory cache is always authoritative: a failed write leaves it
    untouched and comes back as a warning, and a corrupt stored blob is
    discarded instead of raised.
    """

    def __init__(self, repository: StyleRuleRepository, store: KeyValueStore) -> None:
        self._repo = repository
        self._store = store

    # ------------------------------------------------------------------
    # Save / load
    # ------------------------------------------------------------------

    def save(self, name: str | None = None) -> PersistResult:
        styles = self._repo.all_styles()
        now = time.time()
        session = SavedSession(
            id=f"session-{uuid.uuid4().hex[:12]}",
            name=name or f"Session {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(now))}",
            created_at=now,
            updated_at=now,
            styles=styles,
        )
        sessions = self.sessions()
        previous_sessions = self._store.get(SESSIONS_KEY)
        sessions.append(session)
        try:
            self._store.set(SESSIONS_KEY, json.dumps([asdict(s) for s in sessions]))
            self._store.set(STYLES_KEY, json.dumps(styles))
        except StorageQuotaError as exc:
            # Both keys are written or neither
            if previous_sessions is None:
                self._store.remove(SESSIONS_KEY)
            else:
                self._store.set(SESSIONS_KEY, previous_sessions)
            warning = f"Styles not saved, storage is full: {exc}"
            logger.warning(warning)
            return PersistResult(ok=False, warning=warning)
        return PersistResult(ok=True, session_id=session.id)

    def load(self, session_id: str | None = None) -> bool:
        """
        Replace the repository's styles with a saved session, or with the last
        saved styles when no session id is given.
        """
        if session_id is not None:
            session = next((s for s in self.sessions() if s.id == session_id), None)
            if session is None:
                return False
            self._replace_styles(session.styles)
            return True

        raw = self._store.get(STYLES_KEY)
        if raw is None:
            return False
        try:
            styles = _coerce_styles(json.loads(raw))
        except (json.JSONDecodeError, ValueError, RecursionError) as exc:
            logger.warning("Discarding corrupt stored styles: %s", exc)
            self._store.remove(STYLES_KEY)
            self._repo.clear()
            return False
        self._replace_styles(styles)
        return True

    def sessions(self) -> list[SavedSession]:
        raw = self._store.get(SESSIONS_KEY)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("sessions blob is not a list")
            return [
                SavedSession(
                    id=str(d["id"]),
                    name=str(d.get("name", "")),
                    created_at=float(d.get("created_at", 0.0)),
                    updated_at=float(d.get("updated_at", 0.0)),
                    styles=_coerce_styles(d.get("styles", {})),
                )
                for d in data
            ]
        except (
            json.JSONDecodeError, ValueError, KeyError, TypeError, AttributeError, RecursionError,
        ) as exc:
            logger.warning("Discarding corrupt stored sessions: %s", exc)
            self._store.remove(SESSIONS_KEY)
            return []

    def delete_session(self, session_id: str) -> bool:
        sessions = self.sessions()
        remaining = [s for s in sessions if s.id != session_id]
        if len(remaining) == len(sessions):
            return False
        self._store.set(SESSIONS_KEY, json.dumps([asdict(s) for s in remaining]))
        return True

    def import_json(self, text: str) -> bool:
        """Merge styles from a JSON export into the repository. Returns False on bad input."""
        try:
            styles = _coerce_styles(json.loads(text))
        except (json.JSONDecodeError, ValueError, RecursionError) as exc:
            logger.warning("Could not import styles: %s", exc)
            return False
        ok = True
        for selector, properties in styles.items():
            ok = self._repo.set_properties(selector, properties) and ok
        return ok

    def clear_all(self) -> None:
        self._store.remove(STYLES_KEY)
        self._store.remove(SESSIONS_KEY)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, fmt: ExportFormat | str = ExportFormat.CSS) -> str:
        fmt = ExportFormat(fmt)
        if fmt is ExportFormat.JSON:
            return json.dumps(self._repo.all_styles(), indent=2)
        if fmt is ExportFormat.TAILWIND:
            return self._export_tailwind()
        if fmt is ExportFormat.DESIGN_TOKENS:
            return self._export_design_tokens()
        return self._repo.export()

    def _export_tailwind(self) -> str:
        extend: dict[str, dict[str, str]] = {
            "colors": {}, "spacing": {}, "borderRadius": {}, "boxShadow": {}, "fontSize": {},
        }
        for selector, properties in self._repo.all_styles().items():
            class_name = selector.replace(".", "", 1)
            for prop, value in properties.items():
                section = _TAILWIND_SECTIONS.get(prop)
                if section is not None:
                    extend[section][f"custom-{class_name}"] = value
        extend = {k: v for k, v in extend.items() if v}
        body = json.dumps(extend, indent=2).replace("\n", "\n    ")
        return (
            "// tailwind.config.js extend\n"
            "module.exports = {\n"
            "  theme: {\n"
            f"    extend: {body}\n"
            "  }\n"
            "}"
        )

    def _export_design_tokens(self) -> str:
        grouped: dict[str, list[dict[str, str]]] = {}
        for selector, properties in self._repo.all_styles().items():
            class_name = selector.replace(".", "", 1)
            for prop, value in properties.items():
                category = _token_category(prop)
                grouped.setdefault(category, []).append({
                    "name": f"{class_name}-{prop.replace('-', '_')}",
                    "value": value,
                    "category": category,
                    "description": f"{prop} for {selector}",
                })
        return json.dumps(grouped, indent=2)

    def _replace_styles(self, styles: dict[str, dict[str, str]]) -> None:
        self._repo.clear()
        for selector, properties in styles.items():
            self._repo.set_properties(selector, properties)


def _token_category(prop: str) -> str:
    if "color" in prop:
        return "color"
    if "padding" in prop or "margin" in prop or prop == "gap":
        return "spacing"
    if "font" in prop or "line-height" in prop or "text" in prop:
        return "typography"
    if "border" in prop:
        return "border"
    if "shadow" in prop:
        return "shadow"
    return "other"


def _coerce_styles(data: object) -> dict[str, dict[str, str]]:
    """Validate a parsed ``{selector: {property: value}}`` blob."""
    if not isinstance(data, dict):
        raise ValueError("styles blob is not an object")
    styles: dict[str, dict[str, str]] = {}
    for selector, properties in data.items():
        if not isinstance(properties, dict):
            raise ValueError(f"properties for {selector!r} are not an object")
        styles[str(selector)] = {str(k): str(v) for k, v in properties.items()}
    return styles
