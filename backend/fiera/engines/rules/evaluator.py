"""
Rules Evaluator

Computes, for every active catalog item, whether it may be added to the
current selection and whether a bundle rule currently makes it a gift.

Evaluation is total: broken rules (self references, unknown ids) are logged
and skipped, never raised. Rules gate additions only; items that are
already selected keep their place and simply report the same status, so the
cart owner can warn about conflicts instead of silently dropping them.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from fiera.catalog.models import CatalogItem, active_catalog, category_name
from fiera.engines.rules.models import (
    BundleGift,
    Excludes,
    Requires,
    RuleSet,
    SelectionRule,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemStatus:
    """Availability and gift state of one catalog item"""
    item_id: str
    available: bool = True
    reason: Optional[str] = None
    is_gift: bool = False
    gift_original_price: Optional[float] = None
    missing_requirements: Tuple[str, ...] = ()
    excluded_by: Tuple[str, ...] = ()
    applied_rules: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "available": self.available,
            "reason": self.reason,
            "is_gift": self.is_gift,
            "gift_original_price": self.gift_original_price,
            "missing_requirements": list(self.missing_requirements),
            "excluded_by": list(self.excluded_by),
            "applied_rules": list(self.applied_rules),
        }


def _sanitize_threshold(
    rule: Union[Requires, BundleGift],
    ids: FrozenSet[str],
    known: Dict[str, CatalogItem],
) -> Optional[Tuple[FrozenSet[str], FrozenSet[str]]]:
    """Known pool ids and canonical categories of a threshold rule, None when unreachable"""
    kept = frozenset(i for i in ids if i in known)
    if kept != ids:
        logger.warning(f"Rule {rule.label}: ignoring unknown items {sorted(ids - kept)}")
    if ids and len(kept) < rule.min_count:
        logger.warning(f"Skipping rule {rule.label}: fewer than {rule.min_count} known items")
        return None

    categories = frozenset(filter(None, (category_name(c) for c in rule.categories)))
    if rule.categories and not categories:
        logger.warning(f"Skipping rule {rule.label}: unknown categories {sorted(rule.categories)}")
        return None
    return kept, categories


def _sanitize(rule: SelectionRule, known: Dict[str, CatalogItem]) -> Optional[SelectionRule]:
    """Drop what cannot be evaluated against the active catalog."""
    if rule.is_self_referential:
        logger.warning(f"Skipping self-referential rule {rule.label}")
        return None

    if isinstance(rule, Requires) and rule.is_threshold:
        if rule.item_id not in known:
            logger.warning(f"Skipping rule {rule.label}: unknown item {rule.item_id}")
            return None
        pool = _sanitize_threshold(rule, rule.required_ids, known)
        if pool is None:
            return None
        return replace(rule, required_ids=pool[0], categories=pool[1])

    if isinstance(rule, (Requires, Excludes)):
        if rule.item_id not in known:
            logger.warning(f"Skipping rule {rule.label}: unknown item {rule.item_id}")
            return None
        ids = rule.required_ids if isinstance(rule, Requires) else rule.excluded_ids
        kept = frozenset(i for i in ids if i in known)
        if kept != ids:
            logger.warning(f"Rule {rule.label}: ignoring unknown items {sorted(ids - kept)}")
        if not kept:
            return None
        if isinstance(rule, Requires):
            return replace(rule, required_ids=kept)
        return replace(rule, excluded_ids=kept)

    if isinstance(rule, BundleGift):
        if rule.gift_item_id not in known:
            logger.warning(f"Skipping rule {rule.label}: unknown gift item {rule.gift_item_id}")
            return None
        if rule.is_threshold:
            pool = _sanitize_threshold(rule, rule.trigger_ids, known)
            if pool is None:
                return None
            return replace(rule, trigger_ids=pool[0], categories=pool[1])
        unknown = rule.trigger_ids - set(known)
        if unknown:
            # A trigger that cannot be selected makes the bundle unreachable
            logger.warning(f"Skipping rule {rule.label}: unknown trigger items {sorted(unknown)}")
            return None
        return rule

    logger.warning(f"Skipping unsupported rule {rule!r}")
    return None


class RulesEvaluator:
    """
    Rules evaluator bound to one catalog and rule set.

    The catalog and rules are sanitized once at construction; evaluate() can
    then be called on every selection change.
    """

    def __init__(
        self,
        rules: Union[RuleSet, Iterable[SelectionRule], None],
        catalog: Iterable[CatalogItem],
    ):
        self._catalog: List[CatalogItem] = active_catalog(catalog)
        self._by_id: Dict[str, CatalogItem] = {item.id: item for item in self._catalog}
        self._order: Dict[str, int] = {item.id: idx for idx, item in enumerate(self._catalog)}

        source = RuleSet.coerce(rules)
        sanitized = []
        for rule in source:
            clean = _sanitize(rule, self._by_id)
            if clean is not None:
                sanitized.append(clean)
        self._rules = RuleSet(sanitized)

    @property
    def catalog(self) -> List[CatalogItem]:
        return list(self._catalog)

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def get(self, item_id: str) -> Optional[CatalogItem]:
        """Active catalog item by id"""
        return self._by_id.get(item_id)

    def _in_catalog_order(self, ids: Iterable[str]) -> List[str]:
        return sorted(set(ids), key=lambda i: self._order[i])

    def _titles(self, ids: Sequence[str]) -> str:
        return ", ".join(self._by_id[i].title for i in ids)

    def selected_ids(self, selection: Iterable[str]) -> set:
        return {item_id for item_id in selection if item_id in self._by_id}

    def _pool(self, rule: Union[Requires, BundleGift], selected: set) -> set:
        """Selected items that count towards a threshold rule"""
        ids = rule.required_ids if isinstance(rule, Requires) else rule.trigger_ids
        target = rule.item_id if isinstance(rule, Requires) else rule.gift_item_id
        pool = selected - {target}
        if ids:
            pool &= ids
        if rule.categories:
            pool = {i for i in pool if self._by_id[i].category.value in rule.categories}
        return pool

    def _condition_met(self, rule: Union[Requires, BundleGift], selected: set) -> bool:
        if rule.is_threshold:
            return len(self._pool(rule, selected)) >= rule.min_count
        ids = rule.required_ids if isinstance(rule, Requires) else rule.trigger_ids
        return ids <= selected

    def _threshold_reason(self, rule: Requires) -> str:
        if rule.required_ids:
            return f"Requires {rule.min_count} of: {self._titles(self._in_catalog_order(rule.required_ids))}"
        scope = f"{'/'.join(sorted(rule.categories))} items" if rule.categories else "items"
        return f"Requires {rule.min_count} selected {scope}"

    def evaluate(self, selection: Iterable[str]) -> Dict[str, ItemStatus]:
        """
        Evaluate every active catalog item against the selection.

        Returns a mapping item id -> ItemStatus in catalog order.
        """
        selected = self.selected_ids(selection)
        statuses: Dict[str, ItemStatus] = {}

        for item in self._catalog:
            applied: List[str] = []
            missing: set = set()
            open_choices: set = set()
            shortfalls: List[str] = []
            excluders: set = set()

            # Prerequisites
            for rule in self._rules.requirements_for(item.id):
                if self._condition_met(rule, selected):
                    continue
                applied.append(rule.label)
                if rule.is_threshold:
                    # "N of these": any unselected candidate can close the gap
                    open_choices |= rule.required_ids - selected
                    shortfalls.append(self._threshold_reason(rule))
                else:
                    missing |= rule.required_ids - selected

            # Exclusions win over satisfied prerequisites
            for rule in self._rules.exclusions_for(item.id):
                hit = rule.excluded_ids & selected
                if hit:
                    excluders |= hit
                    applied.append(rule.label)

            # Gifts are independent of availability
            is_gift = False
            for rule in self._rules.gifts_for(item.id):
                if self._condition_met(rule, selected):
                    is_gift = True
                    applied.append(rule.label)

            missing_ordered = self._in_catalog_order(missing)
            excluders_ordered = self._in_catalog_order(excluders)

            reason = None
            if excluders_ordered:
                reason = f"Not combinable with: {self._titles(excluders_ordered)}"
            elif missing_ordered or shortfalls:
                parts = [f"Requires: {self._titles(missing_ordered)}"] if missing_ordered else []
                reason = "; ".join(parts + shortfalls)

            statuses[item.id] = ItemStatus(
                item_id=item.id,
                available=reason is None,
                reason=reason,
                is_gift=is_gift,
                gift_original_price=item.price if is_gift else None,
                missing_requirements=tuple(self._in_catalog_order(missing | open_choices)),
                excluded_by=tuple(excluders_ordered),
                applied_rules=tuple(applied),
            )

        return statuses

    def debug_info(self, selection: Iterable[str]) -> Dict[str, Any]:
        """Per-rule report of what the current selection triggers"""
        selected = self.selected_ids(selection)
        evaluated = []
        for rule in self._rules:
            if isinstance(rule, Requires):
                met = self._condition_met(rule, selected)
                targets = [rule.item_id]
                will_apply = not met
            elif isinstance(rule, Excludes):
                met = bool(rule.excluded_ids & selected)
                targets = [rule.item_id]
                will_apply = met
            else:
                met = self._condition_met(rule, selected)
                targets = [rule.gift_item_id]
                will_apply = met
            evaluated.append({
                "rule": rule.label,
                "kind": rule.kind,
                "name": rule.name,
                "description": rule.description,
                "condition_met": met,
                "will_apply": will_apply,
                "targets": targets,
            })

        statuses = self.evaluate(selected)
        return {
            "total_rules": len(self._rules),
            "selected": self._in_catalog_order(selected),
            "evaluated_rules": evaluated,
            "item_states": {k: v.to_dict() for k, v in statuses.items()},
        }


def evaluate(
    selection: Iterable[str],
    rules: Union[RuleSet, Iterable[SelectionRule], None],
    catalog: Iterable[CatalogItem],
) -> Dict[str, ItemStatus]:
    """Evaluate availability and gift status of the whole catalog."""
    return RulesEvaluator(rules, catalog).evaluate(selection)
