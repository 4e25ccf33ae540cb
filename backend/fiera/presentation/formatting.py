"""
Price Formatting

Italian-locale text for breakdown figures. Nothing here computes a total:
every number comes from a PricingBreakdown or a stored lead's pricing.
"""

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Union

from fiera.engines.pricing.calculator import PricingBreakdown
from fiera.engines.pricing.money import ZERO, to_decimal

PricingLike = Union[PricingBreakdown, Mapping[str, Any]]

FREE_LABEL = "GRATIS"


def format_eur(amount: Any) -> str:
    """
    Italian number format: "." groups thousands, "," separates decimals.

    Whole amounts have no decimals (3050 -> "3.050"); others keep two
    (1234.5 -> "1.234,50").
    """
    value = to_decimal(amount)
    if value == value.to_integral_value():
        text = f"{int(value):,}"
        return text.replace(",", ".")
    text = f"{value.quantize(Decimal('0.01')):,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def as_pricing_dict(pricing: PricingLike) -> Mapping[str, Any]:
    if isinstance(pricing, PricingBreakdown):
        return pricing.to_dict()
    return pricing or {}


def _amount(pricing: Mapping[str, Any], *keys: str) -> Decimal:
    for key in keys:
        if pricing.get(key) is not None:
            return to_decimal(pricing[key])
    return ZERO


def pricing_summary_lines(pricing: PricingLike) -> List[str]:
    """Summary block shared by WhatsApp text and the quote document"""
    data = as_pricing_dict(pricing)
    individual = _amount(data, "individualDiscountSavings")
    global_savings = _amount(data, "globalDiscountSavings")
    gifts = _amount(data, "giftSavings")
    total_savings = _amount(data, "totalSavings")

    lines = [f"Subtotale servizi/prodotti: €{format_eur(_amount(data, 'subtotal'))}"]
    if individual > 0:
        lines.append(f"Sconti per prodotto/servizio: -€{format_eur(individual)}")
    if global_savings > 0:
        label = data.get("globalDiscountLabel")
        prefix = f"Sconto globale ({label})" if label else "Sconto globale"
        lines.append(f"{prefix}: -€{format_eur(global_savings)}")
    if gifts > 0:
        lines.append(f"Servizi in omaggio: -€{format_eur(gifts)}")
    lines.append(f"TOTALE: €{format_eur(_amount(data, 'finalTotal', 'total'))}")
    if total_savings > 0:
        lines.append(f"Totale risparmiato: €{format_eur(total_savings)}!")
    return lines


def _field(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, Mapping):
            if item.get(name) is not None:
                return item[name]
        elif getattr(item, name, None) is not None:
            return getattr(item, name)
    return None


def item_line(item: Any) -> str:
    title = _field(item, "title") or "Voce"
    price = to_decimal(_field(item, "price"))
    original = to_decimal(_field(item, "original_price", "originalPrice"))

    if price == 0 and original > 0:
        return f"• {title} - ~€{format_eur(original)}~  {FREE_LABEL}"
    if price == 0:
        return f"• {title} - {FREE_LABEL}"
    if original > price:
        return f"• {title} - ~€{format_eur(original)}~  €{format_eur(price)}"
    return f"• {title} - €{format_eur(price)}"


def item_lines(items: Iterable[Any]) -> List[str]:
    """One bullet per selected item; discounted prices struck through"""
    return [item_line(item) for item in items]
