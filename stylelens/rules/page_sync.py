"""Mirror the managed rule list into a live page through Playwright."""

from __future__ import annotations

import logging

from playwright.async_api import Page

from stylelens.rules.repository import StyleRuleRepository

logger = logging.getLogger(__name__)

STYLE_ELEMENT_ID = "devtools-global-styles"

_PUSH_RULES_JS = """(args) => {
    const { styleId, rules } = args;
    let styleEl = document.getElementById(styleId);
    if (!styleEl) {
        styleEl = document.createElement('style');
        styleEl.id = styleId;
        styleEl.setAttribute('data-devtools', 'true');
        document.head.appendChild(styleEl);
    }
    const sheet = styleEl.sheet;
    while (sheet.cssRules.length > 0) {
        sheet.deleteRule(0);
    }
    const rejected = [];
    for (const rule of rules) {
        try {
            sheet.insertRule(rule, sheet.cssRules.length);
        } catch (e) {
            rejected.push(rule);
        }
    }
    return rejected;
}"""

_REMOVE_STYLE_JS = """(styleId) => {
    const styleEl = document.getElementById(styleId);
    if (styleEl) styleEl.remove();
    return !!styleEl;
}"""


class PageRuleSync:
    """
    Pushes the repository's rules into a dedicated <style> element.

    The page copy is rebuilt in rule-list order on every push, so it always
    holds exactly one rule per managed selector.
    """

    def __init__(self, repository: StyleRuleRepository, style_id: str = STYLE_ELEMENT_ID) -> None:
        self._repo = repository
        self._style_id = style_id

    async def push(self, page: Page) -> list[str]:
        """Write the current rules into the page. Returns rule texts the browser rejected."""
        rules = self._repo.rule_list.rules()
        rejected = await page.evaluate(
            _PUSH_RULES_JS, {"styleId": self._style_id, "rules": rules}
        )
        rejected = list(rejected or [])
        for rule in rejected:
            logger.warning("Browser rejected rule %r", rule)
        return rejected

    async def remove(self, page: Page) -> bool:
        """Delete the managed <style> element. Returns True if it was present."""
        return bool(await page.evaluate(_REMOVE_STYLE_JS, self._style_id))
