"""Session configuration and defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

DEFAULT_HISTORY_CAPACITY: Final = 100
DEFAULT_SNAPSHOT_LIMIT: Final = 100
DEFAULT_STORAGE_DIR: Final = os.path.join(os.path.expanduser("~"), ".stylelens")
DEFAULT_STORAGE_QUOTA: Final = 5 * 1024 * 1024  # roughly a browser's localStorage budget
DEFAULT_RESERVED_CLASS_PREFIX: Final = "lumos-"


@dataclass(frozen=True)
class StyleLensConfig:
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    snapshot_limit: int = DEFAULT_SNAPSHOT_LIMIT
    storage_dir: str = DEFAULT_STORAGE_DIR
    storage_quota_bytes: int | None = DEFAULT_STORAGE_QUOTA
    reserved_class_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX

    @classmethod
    def from_env(cls) -> StyleLensConfig:
        """Build a config from ``STYLELENS_*`` environment variables, falling back to defaults."""
        quota_raw = os.environ.get("STYLELENS_STORAGE_QUOTA")
        quota: int | None = DEFAULT_STORAGE_QUOTA
        if quota_raw is not None:
            # "0" or "" disables the quota
            quota = int(quota_raw) if quota_raw.strip() not in ("", "0") else None
        return cls(
            history_capacity=int(
                os.environ.get("STYLELENS_HISTORY_CAPACITY", DEFAULT_HISTORY_CAPACITY)
            ),
            snapshot_limit=int(
                os.environ.get("STYLELENS_SNAPSHOT_LIMIT", DEFAULT_SNAPSHOT_LIMIT)
            ),
            storage_dir=os.environ.get("STYLELENS_STORAGE_DIR", DEFAULT_STORAGE_DIR),
            storage_quota_bytes=quota,
            reserved_class_prefix=os.environ.get(
                "STYLELENS_RESERVED_CLASS_PREFIX", DEFAULT_RESERVED_CLASS_PREFIX
            ),
        )
