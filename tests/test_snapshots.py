"""Tests for snapshot capture, comparison, serialization and the snapshot store."""

import json

import pytest

from stylelens.core.types import (
    BoundingBox,
    ElementSnapshot,
    PropertyChange,
    StyleSnapshot,
)
from stylelens.history.elements import ElementNode
from stylelens.rules.persistence import MemoryKeyValueStore
from stylelens.snapshots.capture import (
    COMPUTED_PROPERTIES,
    capture_element,
    create_snapshot,
    derive_selector,
    element_snapshot_from_raw,
)
from stylelens.snapshots.compare import compare_snapshots
from stylelens.snapshots.store import SNAPSHOTS_KEY, SnapshotStore, deserialize, serialize


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_element(selector: str, tag: str = "div", **styles: str) -> ElementSnapshot:
    return ElementSnapshot(
        selector=selector,
        tag=tag,
        computed_styles={k.replace("_", "-"): v for k, v in styles.items()},
    )


def make_snapshot(*elements: ElementSnapshot, name: str = "snap") -> StyleSnapshot:
    return StyleSnapshot(id=f"id-{name}", name=name, timestamp=1.0, elements=list(elements))


# ---------------------------------------------------------------------------
# Selector derivation and capture
# ---------------------------------------------------------------------------

class TestDeriveSelector:
    def test_id_wins(self):
        assert derive_selector("div", "main", "card big") == "#main"

    def test_first_class(self):
        assert derive_selector("button", "", "btn primary") == "button.btn"

    def test_reserved_classes_skipped(self):
        assert derive_selector("div", "", "lumos-selected card__body panel") == "div.panel"

    def test_bare_tag(self):
        assert derive_selector("SECTION", "", "") == "section"
        assert derive_selector("div", "", "lumos-hover") == "div"

    def test_custom_reserved_prefix(self):
        assert derive_selector("div", "", "ed-x card", reserved_prefix="ed-") == "div.card"


class TestCapture:
    def test_records_allow_listed_computed_properties_only(self):
        el = ElementNode("div", classes=["card"], computed={"color": "red", "z-index": "3"})
        snap = capture_element(el)
        assert set(snap.computed_styles) == set(COMPUTED_PROPERTIES)
        assert snap.computed_styles["color"] == "red"
        assert snap.computed_styles["display"] == ""

    def test_inline_overrides_recorded_and_win(self):
        el = ElementNode("div", computed={"color": "red"}, inline_style={"color": "blue"})
        snap = capture_element(el)
        assert snap.inline_styles == {"color": "blue"}
        assert snap.computed_styles["color"] == "blue"

    def test_layout_box_copied(self):
        el = ElementNode("div", bounding_box=BoundingBox(width=10, height=20, top=1, left=2))
        snap = capture_element(el)
        assert snap.bounding_box == BoundingBox(width=10, height=20, top=1, left=2)
        assert snap.bounding_box is not el.bounding_box

    def test_selector_independent_of_capture_order(self):
        a = ElementNode("div", element_id="hero")
        b = ElementNode("p", classes=["lead"])
        first = create_snapshot("one", [a, b])
        second = create_snapshot("two", [b, a])
        assert [e.selector for e in first.elements] == ["#hero", "p.lead"]
        assert [e.selector for e in second.elements] == ["p.lead", "#hero"]

    def test_target_count_is_capped(self):
        targets = [ElementNode("div", element_id=f"e{i}") for i in range(5)]
        snap = create_snapshot("capped", targets, limit=3)
        assert [e.selector for e in snap.elements] == ["#e0", "#e1", "#e2"]

    def test_snapshot_fields(self):
        snap = create_snapshot("named", [ElementNode("div")], global_css=".a { color: red }")
        assert snap.name == "named"
        assert snap.id.startswith("snap_")
        assert snap.timestamp > 0
        assert snap.global_css == ".a { color: red }"

    def test_from_raw_page_record(self):
        raw = {
            "tag": "BUTTON",
            "id": "",
            "className": "lumos-selected btn",
            "computed": {"color": "rgb(0, 0, 0)"},
            "inline": {"margin": "0px"},
            "rect": {"width": 100, "height": 30, "top": 5, "left": 6},
        }
        snap = element_snapshot_from_raw(raw)
        assert snap.selector == "button.btn"
        assert snap.computed_styles["color"] == "rgb(0, 0, 0)"
        assert snap.inline_styles == {"margin": "0px"}
        assert snap.bounding_box.width == 100.0


# ---------------------------------------------------------------------------
# compare_snapshots
# ---------------------------------------------------------------------------

class TestCompareSnapshots:
    def test_identical_snapshot_is_empty(self):
        snap = make_snapshot(make_element(".a", color="red"), make_element("#b", width="10px"))
        diff = compare_snapshots(snap, snap)
        assert diff.added == []
        assert diff.removed == []
        assert diff.modified == []
        assert diff.is_empty

    def test_button_color_change(self):
        before = make_snapshot(make_element(".btn", tag="button", color="red"))
        after = make_snapshot(make_element(".btn", tag="button", color="blue"))
        diff = compare_snapshots(before, after)
        assert diff.added == []
        assert diff.removed == []
        assert len(diff.modified) == 1
        assert diff.modified[0].selector == ".btn"
        assert diff.modified[0].changes == [PropertyChange(property="color", before="red", after="blue")]

    def test_added_and_removed(self):
        before = make_snapshot(make_element(".old"), make_element(".same"))
        after = make_snapshot(make_element(".same"), make_element(".new"))
        diff = compare_snapshots(before, after)
        assert [e.selector for e in diff.removed] == [".old"]
        assert [e.selector for e in diff.added] == [".new"]
        assert diff.modified == []
        assert diff.total_changes == 2

    def test_unchanged_element_excluded_from_modified(self):
        before = make_snapshot(make_element(".a", color="red"), make_element(".b", color="red"))
        after = make_snapshot(make_element(".a", color="red"), make_element(".b", color="green"))
        diff = compare_snapshots(before, after)
        assert [m.selector for m in diff.modified] == [".b"]

    def test_properties_outside_allow_list_ignored(self):
        before = make_snapshot(make_element(".a", z_index="1"))
        after = make_snapshot(make_element(".a", z_index="2"))
        assert compare_snapshots(before, after).is_empty

    def test_inline_only_difference_ignored(self):
        a = make_element(".a", color="red")
        b = make_element(".a", color="red")
        b.inline_styles = {"color": "red"}
        assert compare_snapshots(make_snapshot(a), make_snapshot(b)).is_empty

    def test_comparison_is_symmetric(self):
        first = make_snapshot(
            make_element(".a", color="red"),
            make_element(".b", color="x", width="1px"),
        )
        second = make_snapshot(
            make_element(".b", color="y", width="1px"),
            make_element(".c"),
        )
        forward = compare_snapshots(first, second)
        backward = compare_snapshots(second, first)

        assert [e.selector for e in forward.added] == [e.selector for e in backward.removed]
        assert [e.selector for e in forward.removed] == [e.selector for e in backward.added]
        assert [m.selector for m in forward.modified] == [m.selector for m in backward.modified]
        for fwd, bwd in zip(forward.modified, backward.modified):
            assert [(c.property, c.before, c.after) for c in fwd.changes] == [
                (c.property, c.after, c.before) for c in bwd.changes
            ]

    def test_duplicate_selectors_last_write_wins(self):
        before = make_snapshot(make_element(".x", color="red"), make_element(".x", color="blue"))
        after = make_snapshot(make_element(".x", color="blue"))
        assert compare_snapshots(before, after).is_empty


# ---------------------------------------------------------------------------
# serialize / deserialize
# ---------------------------------------------------------------------------

class TestSerialization:
    def test_round_trip(self):
        el = ElementNode(
            "div", classes=["card"], computed={"color": "red"}, inline_style={"margin": "0"},
            bounding_box=BoundingBox(width=1, height=2, top=3, left=4),
        )
        snap = create_snapshot("saved", [el], global_css=".card { color: red }")
        restored = deserialize(serialize([snap]))
        assert restored == [snap]

    @pytest.mark.parametrize("text", [
        "{not json",
        '{"a": 1}',
        '[{"id": "x"}]',
        "[1, 2]",
        "[" * 100000,
        '[{"id": "a", "name": "b", "metadata": {"viewport_width": 1e400}}]',
        "",
    ])
    def test_corrupt_input_fails_closed(self, text):
        assert deserialize(text) == []


# ---------------------------------------------------------------------------
# SnapshotStore
# ---------------------------------------------------------------------------

class TestSnapshotStore:
    def test_newest_first(self):
        store = SnapshotStore()
        store.add(make_snapshot(name="first"))
        store.add(make_snapshot(name="second"))
        assert [s.name for s in store.snapshots()] == ["second", "first"]
        assert store.latest().name == "second"

    def test_get_and_delete(self):
        store = SnapshotStore()
        snap = make_snapshot(name="a")
        store.add(snap)
        assert store.get("id-a") is snap
        assert store.delete("id-a") is True
        assert store.delete("id-a") is False
        assert store.get("id-a") is None

    def test_persists_through_key_value_store(self):
        kv = MemoryKeyValueStore()
        SnapshotStore(kv).add(make_snapshot(make_element(".a", color="red"), name="kept"))
        reloaded = SnapshotStore(kv)
        assert [s.name for s in reloaded.snapshots()] == ["kept"]
        assert reloaded.snapshots()[0].elements[0].computed_styles == {"color": "red"}

    def test_corrupt_stored_blob_discarded(self):
        kv = MemoryKeyValueStore()
        kv.set(SNAPSHOTS_KEY, "{corrupt")
        store = SnapshotStore(kv)
        assert len(store) == 0
        assert kv.get(SNAPSHOTS_KEY) is None

    def test_quota_failure_keeps_snapshot_in_memory(self):
        store = SnapshotStore(MemoryKeyValueStore(quota_bytes=10))
        result = store.add(make_snapshot(name="big"))
        assert result.ok is False
        assert "storage is full" in result.warning
        assert len(store) == 1

    def test_import_export(self):
        source = SnapshotStore()
        source.add(make_snapshot(name="a"))
        source.add(make_snapshot(name="b"))
        target = SnapshotStore()
        target.add(make_snapshot(name="own"))
        assert target.import_json(source.export_json()) == 2
        assert [s.name for s in target.snapshots()] == ["b", "a", "own"]

    def test_import_bad_json_imports_nothing(self):
        store = SnapshotStore()
        assert store.import_json("nope") == 0
        assert len(store) == 0

    def test_clear_removes_stored_blob(self):
        kv = MemoryKeyValueStore()
        store = SnapshotStore(kv)
        store.add(make_snapshot())
        store.clear()
        assert len(store) == 0
        assert kv.get(SNAPSHOTS_KEY) is None

    def test_export_is_json(self):
        store = SnapshotStore()
        store.add(make_snapshot(make_element(".a"), name="x"))
        data = json.loads(store.export_json())
        assert data[0]["name"] == "x"
        assert data[0]["elements"][0]["selector"] == ".a"
