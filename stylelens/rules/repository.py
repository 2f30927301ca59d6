"""StyleRuleRepository — selector → properties cache kept materialized as one rule per selector."""

from __future__ import annotations

import logging

from stylelens.core.types import StyleRule
from stylelens.rules.rule_list import (
    InMemoryRuleList,
    RuleList,
    RuleRejectedError,
    build_rule_text,
)

logger = logging.getLogger(__name__)


class StyleRuleRepository:
    """
    Owns the canonical style cache and its materialized rules.

    The rule list only supports append and delete-at-index, so every update
    is delete-old + append-new. Deleting at ``i`` shifts every later rule
    down one position; the index map is decremented in the same step so
    each selector always knows where its single rule lives.

    Usage:
        repo = StyleRuleRepository()
        repo.set_property(".card", "color", "red")
        repo.get_properties(".card")   # {"color": "red"}
    """

    def __init__(self, rule_list: RuleList | None = None) -> None:
        self._rules: RuleList = rule_list if rule_list is not None else InMemoryRuleList()
        self._cache: dict[str, dict[str, str]] = {}
        self._rule_map: dict[str, int] = {}  # selector -> index in the rule list

    @property
    def rule_list(self) -> RuleList:
        return self._rules

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_property(self, selector: str, prop: str, value: str) -> bool:
        """
        Set one property on ``selector`` and rematerialize its rule.

        An empty value unsets the property. Returns False when the host
        rejects the rule; the cache is then rolled back.
        """
        return self._update(selector, {prop: value})

    def set_properties(self, selector: str, properties: dict[str, str]) -> bool:
        """Batch variant of set_property(): one delete and one insert for the whole map."""
        return self._update(selector, properties)

    def get_properties(self, selector: str) -> dict[str, str]:
        return dict(self._cache.get(selector, {}))

    def remove_selector(self, selector: str) -> bool:
        """Delete the selector's rule and drop its cache entry. Returns True if it existed."""
        self._delete_materialized(selector)
        return self._cache.pop(selector, None) is not None

    def clear(self) -> None:
        """Remove every managed rule and wipe the cache."""
        # Highest index first so earlier deletes don't shift later targets
        for selector, index in sorted(self._rule_map.items(), key=lambda kv: kv[1], reverse=True):
            if 0 <= index < len(self._rules):
                self._rules.delete_rule(index)
            else:
                logger.warning("Skipping stale rule index %d for %s during clear", index, selector)
        self._rule_map.clear()
        self._cache.clear()

    def export(self) -> str:
        """Serialize the cache (not the live rule list) to CSS text."""
        return "\n\n".join(
            build_rule_text(selector, properties)
            for selector, properties in self._cache.items()
        )

    def selectors(self) -> list[str]:
        return list(self._cache)

    def all_styles(self) -> dict[str, dict[str, str]]:
        return {selector: dict(props) for selector, props in self._cache.items()}

    def rule_index(self, selector: str) -> int | None:
        return self._rule_map.get(selector)

    def rules(self) -> list[StyleRule]:
        """Managed rules in rule-list order."""
        return [
            StyleRule(selector=selector, properties=dict(self._cache[selector]), rule_index=index)
            for selector, index in sorted(self._rule_map.items(), key=lambda kv: kv[1])
            if selector in self._cache
        ]

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, selector: object) -> bool:
        return selector in self._cache

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _update(self, selector: str, updates: dict[str, str]) -> bool:
        previous = self._cache.get(selector)
        merged = dict(previous or {})
        for prop, value in updates.items():
            if value is None or not str(value).strip():
                merged.pop(prop, None)
            else:
                merged[prop] = value

        self._delete_materialized(selector)

        if not merged:
            self._cache.pop(selector, None)
            return True

        self._cache[selector] = merged
        try:
            self._materialize(selector, merged)
        except RuleRejectedError as exc:
            logger.warning("Rule for %s rejected: %s", selector, exc)
            self._rollback(selector, previous)
            return False
        return True

    def _materialize(self, selector: str, properties: dict[str, str]) -> None:
        rule_text = build_rule_text(selector, properties)
        index = self._rules.insert_rule(rule_text)
        self._rule_map[selector] = index
        logger.debug("Materialized %s at index %d", selector, index)

    def _rollback(self, selector: str, previous: dict[str, str] | None) -> None:
        """Restore the pre-update cache entry and put its rule back in the list."""
        if previous is None:
            self._cache.pop(selector, None)
            return
        self._cache[selector] = previous
        try:
            self._materialize(selector, previous)
        except RuleRejectedError as exc:
            # Previous rule no longer accepted either; keep cache and list in agreement
            logger.warning("Could not restore rule for %s: %s", selector, exc)
            self._cache.pop(selector, None)

    def _delete_materialized(self, selector: str) -> None:
        index = self._rule_map.pop(selector, None)
        if index is None:
            return

        if index < 0 or index >= len(self._rules):
            # Someone else touched the rule list; forget the index and carry on
            logger.warning(
                "Invalid rule index %d for selector %s (rule list has %d rules)",
                index, selector, len(self._rules),
            )
            return

        self._rules.delete_rule(index)
        for key, other in self._rule_map.items():
            if other > index:
                self._rule_map[key] = other - 1
