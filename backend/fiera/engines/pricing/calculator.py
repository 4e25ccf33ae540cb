"""
Pricing Calculator

The only producer of PricingBreakdown. Every consumer (cart display,
checkout payload, lead persistence, WhatsApp text, quote PDF) reads the
breakdown it returns and never recomputes any of its fields.

Order of operations:
    1. split gifts from paid items
    2. resolve each paid item's item-level discount (override or stored gap)
    3. subtotal of paid items
    4. global discount on the subtotal
    5. final total
    6. gift savings
    7. total savings
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from fiera.engines.pricing.discounts import DiscountConfig
from fiera.engines.pricing.money import ZERO, clamp, round_half_up, to_decimal
from fiera.engines.rules.evaluator import ItemStatus

if TYPE_CHECKING:
    from fiera.cart.models import CartItem

_SEAL = object()

DISCOUNT_INDIVIDUAL = "individual"


def _num(value: Decimal) -> Any:
    """JSON-friendly number: int when whole, else 2 decimals."""
    if value == value.to_integral_value():
        return int(value)
    return float(round(value, 2))


@dataclass(frozen=True)
class PricedLine:
    """Per-item detail of a breakdown"""
    id: str
    title: str
    category: str
    original_price: Decimal
    final_price: Decimal
    is_gift: bool = False
    discount_type: Optional[str] = None
    savings: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "originalPrice": _num(self.original_price),
            "finalPrice": _num(self.final_price),
            "isGift": self.is_gift,
            "discountType": self.discount_type,
            "savings": _num(self.savings),
        }


@dataclass(frozen=True)
class PricingBreakdown:
    """
    Canonical price breakdown.

    Sealed: only calculate_pricing() and from_snapshot() can build one, so
    no surface can assemble its own totals.
    """
    subtotal: int
    individual_discount_savings: int
    global_discount_savings: int
    gift_savings: int
    final_total: int
    total_savings: int
    original_subtotal: int = 0
    global_discount_label: Optional[str] = None
    lines: Tuple[PricedLine, ...] = ()
    _seal: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._seal is not _SEAL:
            raise TypeError("PricingBreakdown can only be produced by calculate_pricing()")

    @property
    def gift_lines(self) -> Tuple[PricedLine, ...]:
        return tuple(line for line in self.lines if line.is_gift)

    @property
    def paid_lines(self) -> Tuple[PricedLine, ...]:
        return tuple(line for line in self.lines if not line.is_gift)

    def to_dict(self) -> Dict[str, Any]:
        """Persisted / transported form; field names are the public contract"""
        return {
            "subtotal": self.subtotal,
            "individualDiscountSavings": self.individual_discount_savings,
            "globalDiscountSavings": self.global_discount_savings,
            "giftSavings": self.gift_savings,
            "finalTotal": self.final_total,
            "totalSavings": self.total_savings,
            "originalSubtotal": self.original_subtotal,
            "globalDiscountLabel": self.global_discount_label,
            "items": [line.to_dict() for line in self.lines],
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "PricingBreakdown":
        """
        Restore a persisted breakdown verbatim.

        Values are copied as stored, never recomputed, so a quote keeps the
        numbers it was given with.
        """
        def amount(*keys: str) -> int:
            for key in keys:
                if data.get(key) is not None:
                    return round_half_up(to_decimal(data[key]))
            return 0

        lines = tuple(
            PricedLine(
                id=str(row.get("id", "")),
                title=str(row.get("title", "")),
                category=str(row.get("category", "")),
                original_price=to_decimal(row.get("originalPrice")),
                final_price=to_decimal(row.get("finalPrice")),
                is_gift=bool(row.get("isGift", False)),
                discount_type=row.get("discountType"),
                savings=to_decimal(row.get("savings")),
            )
            for row in data.get("items") or []
            if isinstance(row, Mapping)
        )

        return cls(
            subtotal=amount("subtotal"),
            individual_discount_savings=amount("individualDiscountSavings"),
            global_discount_savings=amount("globalDiscountSavings"),
            gift_savings=amount("giftSavings"),
            final_total=amount("finalTotal", "total"),
            total_savings=amount("totalSavings"),
            original_subtotal=amount("originalSubtotal"),
            global_discount_label=data.get("globalDiscountLabel"),
            lines=lines,
            _seal=_SEAL,
        )


def _is_gift(item: "CartItem", status: Optional[ItemStatus]) -> bool:
    if status is not None and status.is_gift:
        return True
    return to_decimal(item.price) == 0 and to_decimal(item.original_price) > 0


def _category(item: "CartItem") -> str:
    category = getattr(item, "category", "")
    return getattr(category, "value", category) or ""


def _reference_price(item: "CartItem") -> Decimal:
    original = to_decimal(item.original_price)
    if original > 0:
        return original
    return clamp(to_decimal(item.price))


def calculate_pricing(
    selection: Sequence["CartItem"],
    discounts: Optional[DiscountConfig],
    statuses: Mapping[str, ItemStatus],
    now: datetime,
) -> PricingBreakdown:
    """
    Compute the canonical breakdown for a selection.

    Pure: the result depends only on the arguments (`now` is explicit), so
    identical inputs always give an identical breakdown.
    """
    discounts = discounts or DiscountConfig()
    statuses = statuses or {}

    lines: List[PricedLine] = []
    paid_total = ZERO
    individual_total = ZERO
    gift_total = ZERO
    reference_total = ZERO

    for item in selection:
        status = statuses.get(item.id)
        category = _category(item)

        # 1. gifts
        if _is_gift(item, status):
            gift_value = to_decimal(item.original_price)
            if gift_value <= 0 and status is not None:
                gift_value = to_decimal(status.gift_original_price)
            gift_value = clamp(gift_value)
            gift_total += gift_value
            reference_total += gift_value
            lines.append(PricedLine(
                id=item.id,
                title=item.title,
                category=category,
                original_price=gift_value,
                final_price=ZERO,
                is_gift=True,
                savings=gift_value,
            ))
            continue

        # 2. item-level discount: an override in effect replaces the stored gap
        reference = _reference_price(item)
        override = discounts.override_for(item.id)
        if override is not None and override.is_in_effect(now):
            price = reference - override.exact_amount_on(reference)
        else:
            price = clamp(to_decimal(item.price))
        savings = clamp(reference - price)

        paid_total += price
        individual_total += savings
        reference_total += reference
        lines.append(PricedLine(
            id=item.id,
            title=item.title,
            category=category,
            original_price=reference,
            final_price=price,
            discount_type=DISCOUNT_INDIVIDUAL if savings > 0 else None,
            savings=savings,
        ))

    # 3. subtotal
    subtotal = round_half_up(paid_total)

    # 4. global discount
    global_discount = discounts.global_in_effect(now)
    global_savings = 0
    if global_discount is not None:
        global_savings = round_half_up(global_discount.amount_on(Decimal(subtotal)))

    # 5. final total
    final_total = max(0, subtotal - global_savings)

    # 6. gifts
    gift_savings = round_half_up(gift_total)
    individual_savings = round_half_up(individual_total)

    # 7. savings
    total_savings = individual_savings + global_savings + gift_savings

    return PricingBreakdown(
        subtotal=subtotal,
        individual_discount_savings=individual_savings,
        global_discount_savings=global_savings,
        gift_savings=gift_savings,
        final_total=final_total,
        total_savings=total_savings,
        original_subtotal=round_half_up(reference_total),
        global_discount_label=global_discount.label() if global_discount else None,
        lines=tuple(lines),
        _seal=_SEAL,
    )
