"""
Marketing Messages

Savings-driven copy shown next to the total. Thresholds are percentages of
the original subtotal and absolute euro amounts.
"""

from decimal import Decimal
from typing import Dict

from fiera.engines.pricing.money import HUNDRED, round_half_up, to_decimal
from fiera.presentation.formatting import PricingLike, as_pricing_dict, format_eur

PREMIUM_THRESHOLD = Decimal(5000)
COMPLETE_THRESHOLD = Decimal(2000)


def savings_percentage(total_savings: Decimal, original_subtotal: Decimal) -> int:
    if original_subtotal <= 0:
        return 0
    return round_half_up(total_savings / original_subtotal * HUNDRED)


def generate_marketing_messages(pricing: PricingLike) -> Dict[str, str]:
    """
    Returns any of: main_savings, gift_message, urgency_text,
    value_proposition. Empty when nothing is saved.
    """
    data = as_pricing_dict(pricing)
    total_savings = to_decimal(data.get("totalSavings"))
    if total_savings <= 0:
        return {}

    original = to_decimal(data.get("originalSubtotal"))
    gift_savings = to_decimal(data.get("giftSavings"))
    final_total = to_decimal(data.get("finalTotal"))
    pct = savings_percentage(total_savings, original)
    saved = format_eur(total_savings)

    messages: Dict[str, str] = {}
    if pct >= 50:
        messages["main_savings"] = f"🔥 INCREDIBILE! Stai risparmiando oltre il {pct}% - ben €{saved}!"
    elif pct >= 30:
        messages["main_savings"] = f"💰 SUPER RISPARMIO! {pct}% di sconto equivale a €{saved} in meno!"
    elif pct >= 15:
        messages["main_savings"] = f"✨ OTTIMO AFFARE! Risparmi €{saved} ({pct}% di sconto)"
    else:
        messages["main_savings"] = f"💡 Conveniente! Risparmi €{saved}"

    if gift_savings > 0:
        gift_count = sum(1 for row in data.get("items") or [] if row.get("isGift"))
        messages["gift_message"] = (
            f"🎁 Inclusi {gift_count} servizi GRATUITI del valore di €{format_eur(gift_savings)}!"
        )

    if pct >= 40:
        messages["urgency_text"] = "⚡ Offerta limitata! Non perdere questo vantaggio esclusivo!"
    elif pct >= 20:
        messages["urgency_text"] = "⏰ Approfitta subito di questo prezzo speciale!"

    if original >= PREMIUM_THRESHOLD:
        messages["value_proposition"] = (
            f"💎 Pacchetto Premium: €{format_eur(original)} di servizi "
            f"al prezzo di €{format_eur(final_total)}"
        )
    elif original >= COMPLETE_THRESHOLD:
        messages["value_proposition"] = (
            f"🌟 Pacchetto Completo: qualità professionale con {pct}% di risparmio"
        )

    return messages
