"""
Selection Rule Models

A small tagged-variant rule language over catalog item ids:

- Requires:   item usable only when every required item is selected
- Excludes:   item usable only when no excluded item is selected
- BundleGift: selecting every trigger item makes the gift item free

Requires and BundleGift also take a threshold: with `min_count` set the
condition holds once at least that many items of the pool are selected. The
pool is the listed ids, narrowed to `categories` when given; with no ids it
is every selected item (of those categories). The gated or gift item never
counts towards its own threshold.

Rules are read-only configuration; RuleSet indexes them by affected item id.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from fiera.parsing import parse_flag

logger = logging.getLogger(__name__)


def _ids(values: Any) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(str(v).strip() for v in values if str(v).strip())


def _categories(values: Any) -> FrozenSet[str]:
    return frozenset(v.lower() for v in _ids(values))


_INVALID = object()


def _min_count(data: Dict[str, Any]) -> Any:
    """Threshold from `min_count` / `minimumCount` / `value`; _INVALID when unusable"""
    raw = data.get("min_count", data.get("minimumCount", data.get("value")))
    if raw is None:
        return None
    if isinstance(raw, bool):
        return _INVALID
    try:
        count = int(raw)
    except (TypeError, ValueError):
        return _INVALID
    return count if count >= 1 else _INVALID


@dataclass(frozen=True)
class Requires:
    """item_id needs ALL of required_ids (or min_count of the pool) selected first"""
    item_id: str
    required_ids: FrozenSet[str] = frozenset()
    rule_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    min_count: Optional[int] = None
    categories: FrozenSet[str] = frozenset()
    kind: str = field(default="requires", init=False)

    @property
    def label(self) -> str:
        return self.rule_id or self.name or f"requires:{self.item_id}"

    @property
    def is_self_referential(self) -> bool:
        return self.item_id in self.required_ids

    @property
    def is_threshold(self) -> bool:
        return self.min_count is not None


@dataclass(frozen=True)
class Excludes:
    """item_id is blocked while ANY of excluded_ids is selected"""
    item_id: str
    excluded_ids: FrozenSet[str]
    rule_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    kind: str = field(default="excludes", init=False)

    @property
    def label(self) -> str:
        return self.rule_id or self.name or f"excludes:{self.item_id}"

    @property
    def is_self_referential(self) -> bool:
        return self.item_id in self.excluded_ids


@dataclass(frozen=True)
class BundleGift:
    """Selecting ALL trigger_ids (or min_count of the pool) makes gift_item_id free"""
    trigger_ids: FrozenSet[str]
    gift_item_id: str
    rule_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    min_count: Optional[int] = None
    categories: FrozenSet[str] = frozenset()
    kind: str = field(default="bundle_gift", init=False)

    @property
    def label(self) -> str:
        return self.rule_id or self.name or f"gift:{self.gift_item_id}"

    @property
    def is_self_referential(self) -> bool:
        return self.gift_item_id in self.trigger_ids

    @property
    def is_threshold(self) -> bool:
        return self.min_count is not None


SelectionRule = Union[Requires, Excludes, BundleGift]


def mutually_exclusive(item_a: str, item_b: str, description: Optional[str] = None) -> Tuple[Excludes, Excludes]:
    """Symmetric exclusion between two items, as two Excludes rules"""
    return (
        Excludes(item_a, frozenset([item_b]), rule_id=f"mx:{item_a}:{item_b}", description=description),
        Excludes(item_b, frozenset([item_a]), rule_id=f"mx:{item_b}:{item_a}", description=description),
    )


def parse_rule(data: Dict[str, Any]) -> Optional[SelectionRule]:
    """
    Parse one rule from its YAML/JSON form.

    Accepted shapes:
        {type: requires, item: X, requires: [A, B]}
        {type: excludes, item: X, excludes: [A]}
        {type: bundle_gift, triggers: [A, B], gift: G}

    Requires and bundle_gift also accept `min_count` (alias `minimumCount`)
    and `categories`:
        {type: requires, item: X, requires: [A, B, C], min_count: 2}
        {type: bundle_gift, categories: [service], min_count: 3, gift: G}

    Returns None (and logs) for inactive or malformed rules.
    """
    if not isinstance(data, dict):
        logger.warning(f"Skipping non-mapping rule: {data!r}")
        return None

    if not parse_flag(data.get("active"), default=True):
        return None

    kind = str(data.get("type", "")).strip().lower()
    meta = {
        "rule_id": data.get("id"),
        "name": data.get("name"),
        "description": data.get("description"),
    }

    if kind in ("requires", "bundle_gift"):
        min_count = _min_count(data)
        categories = _categories(data.get("categories"))
        if min_count is _INVALID:
            logger.warning(f"Skipping {kind} rule with invalid min_count: {data!r}")
            return None
        if categories and min_count is None:
            min_count = 1
        ids = _ids(data.get("requires") if kind == "requires" else data.get("triggers"))
        if min_count is not None and ids and min_count > len(ids):
            logger.warning(f"Skipping {kind} rule: min_count {min_count} exceeds its {len(ids)} items")
            return None
        meta.update(min_count=min_count, categories=categories)

    if kind == "requires":
        item_id = str(data.get("item") or "").strip()
        required = _ids(data.get("requires"))
        if not item_id or not (required or min_count):
            logger.warning(f"Skipping malformed requires rule: {data!r}")
            return None
        return Requires(item_id, required, **meta)

    if kind == "excludes":
        item_id = str(data.get("item") or "").strip()
        excluded = _ids(data.get("excludes"))
        if not item_id or not excluded:
            logger.warning(f"Skipping malformed excludes rule: {data!r}")
            return None
        return Excludes(item_id, excluded, **meta)

    if kind == "bundle_gift":
        gift_id = str(data.get("gift") or "").strip()
        triggers = _ids(data.get("triggers"))
        if not gift_id or not (triggers or min_count):
            logger.warning(f"Skipping malformed bundle_gift rule: {data!r}")
            return None
        return BundleGift(triggers, gift_id, **meta)

    if kind == "mutually_exclusive":
        # Expanded by parse_rules; a single rule cannot represent both sides
        logger.warning(f"mutually_exclusive must be parsed with parse_rules: {data!r}")
        return None

    logger.warning(f"Skipping rule with unknown type {kind!r}")
    return None


def parse_rules(rows: Iterable[Dict[str, Any]]) -> List[SelectionRule]:
    """Parse a rule list; `mutually_exclusive` rows expand to two Excludes rules"""
    rules: List[SelectionRule] = []
    for row in rows or []:
        if isinstance(row, dict) and str(row.get("type", "")).strip().lower() == "mutually_exclusive":
            if not parse_flag(row.get("active"), default=True):
                continue
            items = sorted(_ids(row.get("items")))
            if len(items) < 2:
                logger.warning(f"Skipping mutually_exclusive rule with fewer than two items: {row!r}")
                continue
            for i, a in enumerate(items):
                for b in items[i + 1:]:
                    rules.extend(mutually_exclusive(a, b, row.get("description")))
            continue

        rule = parse_rule(row)
        if rule is not None:
            rules.append(rule)
    return rules


class RuleSet:
    """
    Read-only rule collection indexed by affected item id.

    Requires/Excludes are keyed by the gated item, BundleGift by the gift item.
    """

    def __init__(self, rules: Iterable[SelectionRule] = ()):
        self._rules: Tuple[SelectionRule, ...] = tuple(rules)
        self._requirements: Dict[str, List[Requires]] = {}
        self._exclusions: Dict[str, List[Excludes]] = {}
        self._gifts: Dict[str, List[BundleGift]] = {}

        for rule in self._rules:
            if isinstance(rule, Requires):
                self._requirements.setdefault(rule.item_id, []).append(rule)
            elif isinstance(rule, Excludes):
                self._exclusions.setdefault(rule.item_id, []).append(rule)
            elif isinstance(rule, BundleGift):
                self._gifts.setdefault(rule.gift_item_id, []).append(rule)
            else:
                logger.warning(f"Ignoring unsupported rule object: {rule!r}")

    @classmethod
    def coerce(cls, rules: Union["RuleSet", Iterable[SelectionRule], None]) -> "RuleSet":
        if isinstance(rules, RuleSet):
            return rules
        return cls(rules or ())

    @property
    def rules(self) -> Tuple[SelectionRule, ...]:
        return self._rules

    def requirements_for(self, item_id: str) -> List[Requires]:
        return list(self._requirements.get(item_id, ()))

    def exclusions_for(self, item_id: str) -> List[Excludes]:
        return list(self._exclusions.get(item_id, ()))

    def gifts_for(self, item_id: str) -> List[BundleGift]:
        return list(self._gifts.get(item_id, ()))

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)
