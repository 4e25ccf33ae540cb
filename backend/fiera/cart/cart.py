"""
Cart

Owns the customer's current selection. Every derived value (availability,
gifts, prices) comes from the rules evaluator and the pricing calculator;
the cart never computes a price itself.

Each mutation re-evaluates the rules for the whole catalog and re-prices the
selected items in one pass. Rules gate additions only: when a later change
puts an already-selected item in conflict, the item stays and is reported by
conflicts().
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import uuid4

from fiera.cart.models import CartItem
from fiera.catalog.models import CatalogItem
from fiera.engines.pricing.calculator import PricingBreakdown, calculate_pricing
from fiera.engines.pricing.discounts import DiscountConfig
from fiera.engines.rules.evaluator import ItemStatus, RulesEvaluator
from fiera.engines.rules.models import RuleSet, SelectionRule

logger = logging.getLogger(__name__)

UNAVAILABLE = "Not available"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Cart:
    """
    Selection state holder.

    Configuration (catalog, rules, discounts) is injected and can be
    replaced with update_config() when the configuration store publishes a
    new snapshot.
    """

    def __init__(
        self,
        catalog: Iterable[CatalogItem],
        rules: Union[RuleSet, Iterable[SelectionRule], None] = None,
        discounts: Optional[DiscountConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        cart_id: Optional[str] = None,
    ):
        self.id = cart_id or f"CART-{uuid4().hex[:8].upper()}"
        self._clock = clock or utcnow
        self._selection: Dict[str, CartItem] = {}
        self._statuses: Dict[str, ItemStatus] = {}
        self._unlocked: Tuple[str, ...] = ()

        self._catalog: List[CatalogItem] = list(catalog)
        self._rules = RuleSet.coerce(rules)
        self._discounts = discounts or DiscountConfig()
        self._evaluator = RulesEvaluator(self._rules, self._catalog)
        self._recompute()

    # === Configuration ===

    def update_config(
        self,
        catalog: Optional[Iterable[CatalogItem]] = None,
        rules: Union[RuleSet, Iterable[SelectionRule], None] = None,
        discounts: Optional[DiscountConfig] = None,
    ):
        """Swap in a fresh configuration snapshot; omitted parts are kept."""
        if catalog is not None:
            self._catalog = list(catalog)
        if rules is not None:
            self._rules = RuleSet.coerce(rules)
        if discounts is not None:
            self._discounts = discounts
        self._evaluator = RulesEvaluator(self._rules, self._catalog)
        self._recompute()

    @property
    def discounts(self) -> DiscountConfig:
        return self._discounts

    @property
    def evaluator(self) -> RulesEvaluator:
        return self._evaluator

    # === Mutations ===

    def add(self, item: Union[str, CatalogItem, CartItem]) -> bool:
        """
        Add an item if the rules allow it.

        Returns False (nothing changes) for unknown or inactive items, items
        already in the cart and items the rules currently block.
        """
        item_id = item if isinstance(item, str) else item.id
        catalog_item = self._evaluator.get(item_id)
        if catalog_item is None:
            logger.info(f"Cart {self.id}: rejected unknown or inactive item {item_id}")
            return False

        if item_id in self._selection:
            logger.debug(f"Cart {self.id}: {item_id} already selected")
            return False

        status = self._statuses.get(item_id)
        if status is None or not status.available:
            reason = status.reason if status else UNAVAILABLE
            logger.info(f"Cart {self.id}: rejected {item_id} ({reason})")
            return False

        self._selection[item_id] = CartItem.from_catalog(
            catalog_item,
            is_gift=status.is_gift,
            gift_price=status.gift_original_price,
        )
        self._recompute()
        return True

    def remove(self, item_id: str) -> bool:
        if item_id not in self._selection:
            return False
        del self._selection[item_id]
        self._recompute()
        return True

    def clear(self):
        self._selection.clear()
        self._recompute()

    def restore(self, items: Iterable[Union[str, CartItem, Dict[str, Any]]]) -> int:
        """
        Replace the selection with a persisted one, bypassing rule gating.

        Unknown or inactive ids are dropped. Conflicting items are kept and
        surface through conflicts(). Returns the number of items restored.
        """
        restored: Dict[str, CartItem] = {}
        for entry in items:
            if isinstance(entry, str):
                item_id = entry
            elif isinstance(entry, dict):
                item_id = str(entry.get("id", ""))
            else:
                item_id = entry.id

            catalog_item = self._evaluator.get(item_id)
            if catalog_item is None:
                logger.warning(f"Cart {self.id}: dropping unknown item {item_id!r} from restored selection")
                continue
            restored[item_id] = CartItem.from_catalog(catalog_item)

        self._selection = restored
        self._recompute()
        return len(restored)

    def _recompute(self):
        """Re-evaluate rules for the whole catalog and re-price the selection."""
        previous_gifts = {k for k, s in self._statuses.items() if s.is_gift}
        self._statuses = self._evaluator.evaluate(self._selection.keys())

        for item_id, cart_item in self._selection.items():
            catalog_item = self._evaluator.get(item_id)
            status = self._statuses.get(item_id)
            if catalog_item is None or status is None:
                continue
            fresh = CartItem.from_catalog(
                catalog_item,
                is_gift=status.is_gift,
                gift_price=status.gift_original_price,
            )
            cart_item.price = fresh.price
            cart_item.original_price = fresh.original_price

        self._unlocked = tuple(
            k for k, s in self._statuses.items() if s.is_gift and k not in previous_gifts
        )
        if self._unlocked:
            logger.info(f"Cart {self.id}: gifts unlocked {list(self._unlocked)}")

    # === Derived values ===

    def get_breakdown(self, now: Optional[datetime] = None) -> PricingBreakdown:
        """Canonical breakdown for the current selection."""
        priced = [item.copy() for item in self._selection.values() if item.id in self._statuses]
        return calculate_pricing(priced, self._discounts, self._statuses, now or self._clock())

    def is_available(self, item_id: str) -> bool:
        status = self._statuses.get(item_id)
        return bool(status and status.available)

    def unavailable_reason(self, item_id: str) -> Optional[str]:
        status = self._statuses.get(item_id)
        if status is None:
            return UNAVAILABLE
        return status.reason

    def is_gift(self, item_id: str) -> bool:
        status = self._statuses.get(item_id)
        return bool(status and status.is_gift)

    def is_in_cart(self, item_id: str) -> bool:
        return item_id in self._selection

    @property
    def items(self) -> List[CartItem]:
        return [item.copy() for item in self._selection.values()]

    @property
    def item_ids(self) -> List[str]:
        return list(self._selection.keys())

    @property
    def statuses(self) -> Dict[str, ItemStatus]:
        return dict(self._statuses)

    @property
    def unlocked_gifts(self) -> Tuple[str, ...]:
        """Gift ids newly unlocked by the last mutation"""
        return self._unlocked

    def conflicts(self) -> List[Dict[str, Any]]:
        """Selected items the current rules or catalog would not allow"""
        result = []
        for item_id in self._selection:
            status = self._statuses.get(item_id)
            if status is None:
                result.append({"id": item_id, "reason": UNAVAILABLE})
            elif not status.available:
                result.append({"id": item_id, "reason": status.reason})
        return result

    def catalog_with_availability(self) -> List[Dict[str, Any]]:
        """Active catalog annotated for the storefront carousel"""
        rows = []
        for item in self._evaluator.catalog:
            status = self._statuses[item.id]
            rows.append({
                **item.to_dict(),
                "in_cart": item.id in self._selection,
                "available": status.available,
                "reason": status.reason,
                "is_gift": status.is_gift,
                "gift_original_price": status.gift_original_price,
                "missing_requirements": list(status.missing_requirements),
            })
        return rows

    def to_dict(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "id": self.id,
            "items": [
                {**item.to_dict(), "is_gift": self.is_gift(item.id)}
                for item in self._selection.values()
            ],
            "item_count": len(self._selection),
            "pricing": self.get_breakdown(now).to_dict(),
            "conflicts": self.conflicts(),
            "unlocked_gifts": list(self._unlocked),
        }
