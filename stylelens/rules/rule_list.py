"""Rule list — the append/delete-only surface that managed rules are materialized into."""

from __future__ import annotations

import re
from typing import Protocol

# selector { declarations }
_RULE_RE = re.compile(r"^\s*(?P<selector>[^{}]+?)\s*\{(?P<body>[^{}]*)\}\s*$", re.S)
_DECLARATION_RE = re.compile(
    r"^\s*(?P<prop>-{0,2}[A-Za-z][A-Za-z0-9-]*)\s*:\s*(?P<value>\S.*?)\s*$", re.S
)
_CAMEL_RE = re.compile(r"([A-Z])")


class RuleRejectedError(ValueError):
    """Raised by a rule list when rule text cannot be parsed."""


class RuleList(Protocol):
    """
    Ordered rule records exposed by the host rendering surface.

    Only append and delete-at-index are available; there is no in-place
    replace. Deleting at ``i`` shifts every later rule down by one.
    """

    def __len__(self) -> int: ...

    def insert_rule(self, rule_text: str) -> int: ...

    def delete_rule(self, index: int) -> None: ...

    def rules(self) -> list[str]: ...


class InMemoryRuleList:
    """Default rule list: a plain list of rule strings with a defensive shape check on insert."""

    def __init__(self) -> None:
        self._rules: list[str] = []

    def __len__(self) -> int:
        return len(self._rules)

    def insert_rule(self, rule_text: str) -> int:
        validate_rule_text(rule_text)
        self._rules.append(rule_text)
        return len(self._rules) - 1

    def delete_rule(self, index: int) -> None:
        if index < 0 or index >= len(self._rules):
            raise IndexError(f"rule index {index} out of range (length {len(self._rules)})")
        del self._rules[index]

    def rules(self) -> list[str]:
        return list(self._rules)

    def selector_at(self, index: int) -> str:
        return parse_selector(self._rules[index])


def validate_rule_text(rule_text: str) -> None:
    """Raise RuleRejectedError unless ``rule_text`` looks like ``selector { prop: value; ... }``."""
    match = _RULE_RE.match(rule_text)
    if match is None:
        raise RuleRejectedError(f"Malformed rule: {rule_text!r}")
    _validate_selector(match.group("selector"))
    for declaration in match.group("body").split(";"):
        if not declaration.strip():
            continue
        if _DECLARATION_RE.match(declaration) is None:
            raise RuleRejectedError(f"Malformed declaration {declaration.strip()!r}")


def _validate_selector(selector: str) -> None:
    selector = selector.strip()
    if not selector or ";" in selector:
        raise RuleRejectedError(f"Malformed selector: {selector!r}")
    if selector[0].isdigit():
        raise RuleRejectedError(f"Selector cannot start with a digit: {selector!r}")
    for opening, closing in (("(", ")"), ("[", "]")):
        if selector.count(opening) != selector.count(closing):
            raise RuleRejectedError(f"Unbalanced {opening}{closing} in selector {selector!r}")
    for quote in ('"', "'"):
        if selector.count(quote) % 2:
            raise RuleRejectedError(f"Unbalanced quote in selector {selector!r}")


def parse_selector(rule_text: str) -> str:
    match = _RULE_RE.match(rule_text)
    if match is None:
        raise RuleRejectedError(f"Malformed rule: {rule_text!r}")
    return match.group("selector").strip()


def to_kebab_case(prop: str) -> str:
    """``backgroundColor`` → ``background-color``; already-kebab names pass through."""
    return _CAMEL_RE.sub(r"-\1", prop).lower()


def build_rule_text(selector: str, properties: dict[str, str]) -> str:
    """
    Serialize a selector's merged properties into one rule.

    Empty values are skipped. Every declaration carries ``!important`` so
    edited styles win over the page's own stylesheets.
    """
    declarations = "; ".join(
        f"{to_kebab_case(prop)}: {value} !important"
        for prop, value in properties.items()
        if value and value.strip()
    )
    return f"{selector} {{ {declarations} }}"
