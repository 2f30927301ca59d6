"""Snapshot capture — derive stable selectors and record allow-listed style state."""

from __future__ import annotations

import itertools
import time
import uuid
from typing import Any, Iterable

from stylelens.config import DEFAULT_RESERVED_CLASS_PREFIX, DEFAULT_SNAPSHOT_LIMIT
from stylelens.core.types import (
    BoundingBox,
    ElementSnapshot,
    SnapshotMetadata,
    StyleSnapshot,
)
from stylelens.history.elements import ElementNode

# Computed properties recorded for every element and compared between snapshots
COMPUTED_PROPERTIES: tuple[str, ...] = (
    "display", "position", "width", "height", "padding", "margin",
    "border", "background", "color", "font-size", "font-weight",
    "flex", "grid", "gap", "opacity", "transform", "box-shadow",
)


def is_reserved_class(class_name: str, reserved_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX) -> bool:
    """Editor-owned classes and BEM-style internals never name an element."""
    return class_name.startswith(reserved_prefix) or "__" in class_name


def derive_selector(
    tag: str,
    element_id: str = "",
    class_attr: str = "",
    reserved_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX,
) -> str:
    """
    Stable selector for an element: ``#id``, else ``tag.firstClass``, else ``tag``.

    Depends only on the element's own attributes, never on capture order,
    so the same element yields the same selector in every snapshot.
    """
    tag = tag.lower()
    if element_id:
        return f"#{element_id}"
    for class_name in class_attr.split():
        if not is_reserved_class(class_name, reserved_prefix):
            return f"{tag}.{class_name}"
    return tag


def capture_element(
    element: ElementNode,
    reserved_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX,
) -> ElementSnapshot:
    computed = element.computed_style()
    box = element.bounding_box
    return ElementSnapshot(
        selector=derive_selector(element.tag, element.element_id, element.class_attr, reserved_prefix),
        tag=element.tag,
        class_attr=element.class_attr,
        id=element.element_id,
        computed_styles={prop: computed.get(prop, "") for prop in COMPUTED_PROPERTIES},
        inline_styles=dict(element.inline_style),
        bounding_box=BoundingBox(width=box.width, height=box.height, top=box.top, left=box.left),
    )


def element_snapshot_from_raw(
    raw: dict[str, Any],
    reserved_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX,
) -> ElementSnapshot:
    """Build an ElementSnapshot from the record the page-capture script returns."""
    tag = str(raw.get("tag", "")).lower()
    element_id = str(raw.get("id", "") or "")
    class_attr = str(raw.get("className", "") or "")
    computed = raw.get("computed") or {}
    rect = raw.get("rect") or {}
    return ElementSnapshot(
        selector=derive_selector(tag, element_id, class_attr, reserved_prefix),
        tag=tag,
        class_attr=class_attr,
        id=element_id,
        computed_styles={prop: str(computed.get(prop, "")) for prop in COMPUTED_PROPERTIES},
        inline_styles={str(k): str(v) for k, v in (raw.get("inline") or {}).items()},
        bounding_box=BoundingBox(
            width=float(rect.get("width", 0.0)),
            height=float(rect.get("height", 0.0)),
            top=float(rect.get("top", 0.0)),
            left=float(rect.get("left", 0.0)),
        ),
    )


def build_snapshot(
    name: str,
    elements: list[ElementSnapshot],
    global_css: str = "",
    metadata: SnapshotMetadata | None = None,
    description: str = "",
) -> StyleSnapshot:
    return StyleSnapshot(
        id=generate_snapshot_id(),
        name=name,
        timestamp=time.time(),
        elements=elements,
        global_css=global_css,
        metadata=metadata or SnapshotMetadata(),
        description=description,
    )


def create_snapshot(
    name: str,
    targets: Iterable[ElementNode],
    global_css: str = "",
    metadata: SnapshotMetadata | None = None,
    *,
    limit: int = DEFAULT_SNAPSHOT_LIMIT,
    reserved_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX,
    description: str = "",
) -> StyleSnapshot:
    """Capture up to ``limit`` targets; the rest are ignored to keep snapshots bounded."""
    elements = [
        capture_element(element, reserved_prefix)
        for element in itertools.islice(targets, max(limit, 0))
    ]
    return build_snapshot(name, elements, global_css, metadata, description)


def generate_snapshot_id() -> str:
    return f"snap_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"
