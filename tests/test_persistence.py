"""Tests for key/value stores and StylePersistence (pure memory / filesystem)."""

import json
import logging

import pytest

from stylelens.rules.persistence import (
    SESSIONS_KEY,
    STYLES_KEY,
    ExportFormat,
    FileKeyValueStore,
    MemoryKeyValueStore,
    StorageQuotaError,
    StylePersistence,
)
from stylelens.rules.repository import StyleRuleRepository


class RejectingKeyValueStore(MemoryKeyValueStore):
    """Memory store that reports a full quota for selected keys."""

    def __init__(self) -> None:
        super().__init__()
        self.rejected: set[str] = set()

    def set(self, key: str, value: str) -> None:
        if key in self.rejected:
            raise StorageQuotaError(f"Writing {key!r} would exceed the quota")
        super().set(key, value)


class TestMemoryKeyValueStore:
    def test_set_get_remove(self):
        kv = MemoryKeyValueStore()
        kv.set("k", "v")
        assert kv.get("k") == "v"
        kv.remove("k")
        kv.remove("k")
        assert kv.get("k") is None

    def test_quota_exceeded(self):
        kv = MemoryKeyValueStore(quota_bytes=8)
        kv.set("a", "1234")
        with pytest.raises(StorageQuotaError):
            kv.set("b", "123456")
        assert kv.get("b") is None

    def test_overwrite_does_not_double_count(self):
        kv = MemoryKeyValueStore(quota_bytes=8)
        kv.set("a", "1234567")
        kv.set("a", "7654321")
        assert kv.get("a") == "7654321"


class TestFileKeyValueStore:
    def test_set_get_remove(self, tmp_path):
        kv = FileKeyValueStore(str(tmp_path / "store"))
        kv.set("styles", '{"a": 1}')
        assert (tmp_path / "store" / "styles.json").is_file()
        assert kv.get("styles") == '{"a": 1}'
        kv.remove("styles")
        kv.remove("styles")
        assert kv.get("styles") is None

    def test_quota(self, tmp_path):
        kv = FileKeyValueStore(str(tmp_path), quota_bytes=5)
        with pytest.raises(StorageQuotaError):
            kv.set("k", "too long")
        assert kv.get("k") is None


class TestStylePersistence:
    def setup_method(self):
        self.kv = MemoryKeyValueStore()
        self.repo = StyleRuleRepository()
        self.persistence = StylePersistence(self.repo, self.kv)

    # ------------------------------------------------------------------ save / load

    def test_save_then_load_into_fresh_repository(self):
        self.repo.set_properties(".card", {"color": "red", "margin": "0"})
        result = self.persistence.save("first")
        assert result.ok
        assert result.session_id

        fresh = StyleRuleRepository()
        assert StylePersistence(fresh, self.kv).load() is True
        assert fresh.get_properties(".card") == {"color": "red", "margin": "0"}
        assert len(fresh.rule_list) == 1

    def test_load_replaces_current_styles(self):
        self.repo.set_property(".a", "color", "red")
        self.persistence.save()
        self.repo.set_property(".b", "color", "blue")
        assert self.persistence.load()
        assert self.repo.selectors() == [".a"]

    def test_load_without_saved_data(self):
        assert self.persistence.load() is False

    @pytest.mark.parametrize("blob", [
        "{broken",
        '["not", "a", "map"]',
        '{".a": "color"}',
        "[" * 100000,
    ])
    def test_corrupt_blob_discarded_and_reinitialized(self, blob, caplog):
        self.repo.set_property(".a", "color", "red")
        self.kv.set(STYLES_KEY, blob)

        with caplog.at_level(logging.WARNING):
            assert self.persistence.load() is False

        assert "corrupt" in caplog.text
        assert self.kv.get(STYLES_KEY) is None
        assert len(self.repo) == 0
        assert len(self.repo.rule_list) == 0

    def test_quota_failure_is_a_warning(self):
        persistence = StylePersistence(self.repo, MemoryKeyValueStore(quota_bytes=10))
        self.repo.set_property(".a", "color", "red")
        result = persistence.save()
        assert result.ok is False
        assert result.warning
        assert self.repo.get_properties(".a") == {"color": "red"}

    def test_failed_styles_write_keeps_previous_session_list(self):
        kv = RejectingKeyValueStore()
        persistence = StylePersistence(self.repo, kv)
        self.repo.set_property(".a", "color", "red")
        assert persistence.save("first").ok

        kv.rejected.add(STYLES_KEY)
        self.repo.set_property(".a", "color", "blue")
        result = persistence.save("second")

        assert result.ok is False
        assert result.session_id is None
        assert [s.name for s in persistence.sessions()] == ["first"]
        assert json.loads(kv.get(STYLES_KEY)) == {".a": {"color": "red"}}

    def test_failed_first_save_leaves_no_session(self):
        kv = RejectingKeyValueStore()
        kv.rejected.add(STYLES_KEY)
        persistence = StylePersistence(self.repo, kv)
        self.repo.set_property(".a", "color", "red")

        assert persistence.save("only").ok is False
        assert kv.get(SESSIONS_KEY) is None
        assert persistence.sessions() == []

    # ------------------------------------------------------------------ sessions

    def test_sessions_listed_in_save_order(self):
        self.persistence.save("A")
        self.persistence.save("B")
        assert [s.name for s in self.persistence.sessions()] == ["A", "B"]

    def test_default_session_name(self):
        self.persistence.save()
        assert self.persistence.sessions()[0].name.startswith("Session ")

    def test_load_specific_session(self):
        self.repo.set_property(".a", "color", "red")
        first = self.persistence.save("A").session_id
        self.repo.set_property(".a", "color", "blue")
        self.persistence.save("B")

        assert self.persistence.load(first) is True
        assert self.repo.get_properties(".a") == {"color": "red"}

    def test_load_unknown_session(self):
        assert self.persistence.load("session-missing") is False

    def test_delete_session(self):
        session_id = self.persistence.save("A").session_id
        assert self.persistence.delete_session(session_id) is True
        assert self.persistence.delete_session(session_id) is False
        assert self.persistence.sessions() == []

    @pytest.mark.parametrize("blob", ["[{", "[1]", "[" * 100000])
    def test_corrupt_sessions_blob(self, blob):
        self.kv.set(SESSIONS_KEY, blob)
        assert self.persistence.sessions() == []
        assert self.kv.get(SESSIONS_KEY) is None

    def test_clear_all(self):
        self.persistence.save()
        self.persistence.clear_all()
        assert self.kv.get(STYLES_KEY) is None
        assert self.kv.get(SESSIONS_KEY) is None

    # ------------------------------------------------------------------ import / export

    def test_import_json_merges(self):
        self.repo.set_property(".a", "color", "red")
        assert self.persistence.import_json('{".a": {"margin": "0"}, ".b": {"color": "blue"}}')
        assert self.repo.get_properties(".a") == {"color": "red", "margin": "0"}
        assert self.repo.get_properties(".b") == {"color": "blue"}

    def test_import_bad_json(self):
        assert self.persistence.import_json("nope") is False
        assert self.persistence.import_json('["x"]') is False

    def test_export_css(self):
        self.repo.set_property(".a", "color", "red")
        assert self.persistence.export(ExportFormat.CSS) == ".a { color: red !important }"
        assert self.persistence.export("css") == self.repo.export()

    def test_export_json(self):
        self.repo.set_property(".a", "color", "red")
        assert json.loads(self.persistence.export("json")) == {".a": {"color": "red"}}

    def test_export_tailwind(self):
        self.repo.set_properties(".card", {"color": "red", "padding": "8px", "display": "flex"})
        text = self.persistence.export(ExportFormat.TAILWIND)
        assert text.startswith("// tailwind.config.js extend")
        assert '"custom-card": "red"' in text
        assert '"custom-card": "8px"' in text
        assert "boxShadow" not in text
        assert "flex" not in text

    def test_export_design_tokens(self):
        self.repo.set_properties(".card", {"background-color": "red", "margin": "4px", "z-index": "2"})
        tokens = json.loads(self.persistence.export(ExportFormat.DESIGN_TOKENS))
        assert tokens["color"][0]["name"] == "card-background_color"
        assert tokens["spacing"][0]["value"] == "4px"
        assert tokens["other"][0]["description"] == "z-index for .card"

    def test_unknown_export_format(self):
        with pytest.raises(ValueError):
            self.persistence.export("yaml")
