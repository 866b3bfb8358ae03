"""
Rule Explanations - Human readable answers to "why is this (un)available?".

explain() turns a rule into text using the names the database knows:

    >>> explain(Rule.parse({"any": ["hookshot", ["hammer", "gloves"]]}), db)
    'Hookshot or (Magic Hammer and Power Glove)'

Lookups of facts bound to other rules are expanded in place, named rules
are shown by name, and rules that read no facts become "Always"/"Never".
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from ..engine_core.rule import ListRule, LookupRule, Rule

if TYPE_CHECKING:
    from .database import Database
    from .location import Location

CLEARED_SUFFIX = ".cleared"


def explain(rule: Rule, db: Database, parenthesize: bool = False) -> str:
    """Explain a rule in terms of the database's entities."""
    if rule.is_independent():
        return "Always" if rule.is_always_true() else "Never"

    if rule.name:
        return rule.name

    if isinstance(rule, LookupRule):
        return _explain_field(rule.field, db, parenthesize)

    if isinstance(rule, ListRule):
        joiner = " and " if rule.all else " or "
        text = joiner.join(explain(child, db, parenthesize=True) for child in rule.children)
        if parenthesize and len(rule.children) > 1:
            return f"({text})"
        return text

    return "Error: Unknown Rule Element"


def _explain_field(field: str, db: Database, parenthesize: bool) -> str:
    region = db.regions.get(field)
    if region is not None:
        return f"Access to {region.name}"

    bound = db.environment.get_bound_rule(field)
    if bound is not None:
        return explain(bound, db, parenthesize)

    item = db.items.get(field)
    if item is not None:
        return item.name

    if field.endswith(CLEARED_SUFFIX):
        dungeon = db.dungeons.get(field[: -len(CLEARED_SUFFIX)])
        if dungeon is not None:
            if dungeon.boss is not None:
                return f"{dungeon.boss.name} Defeated"
            return f"{dungeon.name} Cleared"

    return f"unknown: {field}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def describe_items(location: Location, db: Database) -> str:
    """
    Summarize a location's items, e.g. "2 items available, 1 visible item".

    Visible counts only items that can be seen but not taken.
    """
    env = db.environment
    available = location.get_accessible_item_count(env)
    visible = location.get_visible_item_count(env)
    total = location.total_item_count

    parts: list[str] = []
    if available > 0:
        parts.append(_plural(available, "item") + " available")
    if visible > 0:
        parts.append(_plural(visible, "item") + " visible" if available == 0
                     else _plural(visible, "visible item"))
    inaccessible = total - available - visible
    if inaccessible > 0:
        parts.append(_plural(inaccessible, "inaccessible item"))
    return ", ".join(parts)
