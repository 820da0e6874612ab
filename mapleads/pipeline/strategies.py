"""
Prioritized lookup strategies.

A strategy is a small frozen callable ``(view) -> Optional[str]`` over
anything exposing the Playwright page/element query surface
(``query_selector``, ``evaluate``). Field lookups are ordered tuples of
strategies; ``first_match`` returns the first non-empty result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Collection, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


Strategy = Callable[[Any], Optional[str]]


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class TextOf:
    """Text content of the first element matching ``selector``."""
    selector: str

    def __call__(self, view: Any) -> Optional[str]:
        el = view.query_selector(self.selector)
        if el is None:
            return None
        return _text(el.text_content())


@dataclass(frozen=True)
class AttributeOf:
    """An attribute of the first element matching ``selector``."""
    selector: str
    attribute: str

    def __call__(self, view: Any) -> Optional[str]:
        el = view.query_selector(self.selector)
        if el is None:
            return None
        return _text(el.get_attribute(self.attribute))


@dataclass(frozen=True)
class AriaMatch:
    """Regex group 1 (or the whole label) over the element's aria-label."""
    selector: str
    pattern: str = ""

    def __call__(self, view: Any) -> Optional[str]:
        el = view.query_selector(self.selector)
        if el is None:
            return None
        label = _text(el.get_attribute("aria-label"))
        if not label or not self.pattern:
            return label
        m = re.search(self.pattern, label, re.IGNORECASE)
        if not m:
            return None
        return _text(m.group(1) if m.groups() else m.group(0))


@dataclass(frozen=True)
class ScriptResult:
    """String returned by an in-page script."""
    script: str

    def __call__(self, view: Any) -> Optional[str]:
        return _text(view.evaluate(self.script))


def first_match(view: Any, strategies: Iterable[Strategy], skip: Collection[str] = ()) -> Optional[str]:
    """Try ``strategies`` in order; a raising strategy counts as no result.

    Values in ``skip`` also count as no result, so later strategies still run.
    """
    for strategy in strategies:
        try:
            value = strategy(view)
        except Exception:
            continue
        if value and value not in skip:
            return value
    return None


def strategy_from_mapping(entry: Mapping[str, str]) -> Strategy:
    """Build one strategy from a config entry.

    Supported shapes::

        {text: "h1.DUwDvf"}
        {attribute: "a[data-item-id='authority']", name: "href"}
        {aria: "span[role='img']", pattern: "(\\d+\\.?\\d*)\\s+star"}
        {script: "() => document.title"}
    """
    if "text" in entry:
        return TextOf(entry["text"])
    if "attribute" in entry:
        return AttributeOf(entry["attribute"], entry.get("name", "href"))
    if "aria" in entry:
        return AriaMatch(entry["aria"], entry.get("pattern", ""))
    if "script" in entry:
        return ScriptResult(entry["script"])
    raise ValueError(f"unknown strategy entry: {dict(entry)}")


def build_strategy_table(
    base: Mapping[str, Sequence[Strategy]],
    overrides: Optional[Mapping[str, List[Mapping[str, str]]]] = None,
) -> Dict[str, Tuple[Strategy, ...]]:
    """Copy of ``base`` with the fields named in ``overrides`` replaced."""
    table = {field: tuple(strategies) for field, strategies in base.items()}
    for field, entries in (overrides or {}).items():
        if field not in table:
            raise ValueError(f"unknown field in selector overrides: {field}")
        table[field] = tuple(strategy_from_mapping(e) for e in entries)
    return table
