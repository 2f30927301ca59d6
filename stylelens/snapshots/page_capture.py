"""Capture and restore StyleSnapshots on a live page through Playwright."""

from __future__ import annotations

import logging

from playwright.async_api import Page

from stylelens.config import DEFAULT_RESERVED_CLASS_PREFIX, DEFAULT_SNAPSHOT_LIMIT
from stylelens.core.types import SnapshotMetadata, StyleSnapshot
from stylelens.snapshots.capture import (
    COMPUTED_PROPERTIES,
    build_snapshot,
    element_snapshot_from_raw,
)

logger = logging.getLogger(__name__)

RESTORED_STYLE_ID = "lumos-restored-styles"
_DEFAULT_TARGETS = "body *:not(script):not(style):not(link)"

_CAPTURE_JS = """(args) => {
    const { selector, limit, properties } = args;
    const elements = Array.from(document.querySelectorAll(selector)).slice(0, limit);
    const records = elements.map((el) => {
        const computed = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        const computedStyles = {};
        for (const prop of properties) {
            computedStyles[prop] = computed.getPropertyValue(prop);
        }
        const inline = {};
        for (let i = 0; i < el.style.length; i++) {
            const prop = el.style[i];
            inline[prop] = el.style.getPropertyValue(prop);
        }
        return {
            tag: el.tagName.toLowerCase(),
            id: el.id || '',
            className: typeof el.className === 'string' ? el.className : '',
            computed: computedStyles,
            inline,
            rect: { width: rect.width, height: rect.height, top: rect.top, left: rect.left },
        };
    });
    return {
        elements: records,
        metadata: {
            url: window.location.href,
            viewportWidth: window.innerWidth,
            viewportHeight: window.innerHeight,
            userAgent: navigator.userAgent,
        },
    };
}"""

_RESTORE_JS = """(args) => {
    const { styleId, globalCSS, elements } = args;
    if (globalCSS) {
        let styleEl = document.getElementById(styleId);
        if (!styleEl) {
            styleEl = document.createElement('style');
            styleEl.id = styleId;
            document.head.appendChild(styleEl);
        }
        styleEl.textContent = globalCSS;
    }
    let applied = 0;
    for (const snap of elements) {
        let el = null;
        try {
            el = document.querySelector(snap.selector);
        } catch (e) {
            continue;  // invalid selector
        }
        if (!el) continue;
        for (const [prop, value] of Object.entries(snap.inline)) {
            el.style.setProperty(prop, value);
        }
        applied++;
    }
    return applied;
}"""


async def capture_page(
    page: Page,
    name: str,
    *,
    selector: str | None = None,
    limit: int = DEFAULT_SNAPSHOT_LIMIT,
    global_css: str = "",
    reserved_prefix: str = DEFAULT_RESERVED_CLASS_PREFIX,
    description: str = "",
) -> StyleSnapshot:
    """
    Snapshot up to ``limit`` elements matching ``selector`` (default: every
    element in the body except script/style/link) in one page round trip.
    """
    raw = await page.evaluate(
        _CAPTURE_JS,
        {
            "selector": selector or _DEFAULT_TARGETS,
            "limit": max(limit, 0),
            "properties": list(COMPUTED_PROPERTIES),
        },
    )
    raw = raw or {}
    elements = [
        element_snapshot_from_raw(r, reserved_prefix)
        for r in (raw.get("elements") or [])[: max(limit, 0)]
    ]
    meta = raw.get("metadata") or {}
    metadata = SnapshotMetadata(
        url=str(meta.get("url", page.url)),
        viewport_width=int(meta.get("viewportWidth", 0)),
        viewport_height=int(meta.get("viewportHeight", 0)),
        user_agent=str(meta.get("userAgent", "")),
    )
    return build_snapshot(name, elements, global_css, metadata, description)


async def restore_page(page: Page, snapshot: StyleSnapshot) -> int:
    """
    Re-inject the snapshot's global CSS and reapply inline styles to the
    elements its selectors match. Returns how many elements were updated.
    """
    applied = await page.evaluate(
        _RESTORE_JS,
        {
            "styleId": RESTORED_STYLE_ID,
            "globalCSS": snapshot.global_css,
            "elements": [
                {"selector": e.selector, "inline": dict(e.inline_styles)}
                for e in snapshot.elements
            ],
        },
    )
    applied = int(applied or 0)
    logger.debug("Restored snapshot %s onto %d elements", snapshot.name, applied)
    return applied
