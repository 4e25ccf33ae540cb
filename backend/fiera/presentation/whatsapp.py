"""
WhatsApp Hand-off

Builds the pre-filled message and wa.me link sent to the studio after a
quote request.
"""

import re
from typing import List, Optional
from urllib.parse import quote

from fiera.leads.models import Lead
from fiera.presentation.formatting import item_lines, pricing_summary_lines

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
DEFAULT_COUNTRY_PREFIX = "+39"

CUSTOMER_LABELS = {
    "name": "Nome",
    "surname": "Cognome",
    "email": "Email",
    "phone": "Telefono",
    "event_date": "Data evento",
    "notes": "Note",
}


def _clean(phone: str) -> str:
    return re.sub(r"[^\d+]", "", phone or "")


def format_phone_number_for_whatsapp(phone: str) -> str:
    """Strip formatting; numbers without an international prefix are Italian."""
    cleaned = _clean(phone)
    if cleaned.startswith("0"):
        cleaned = DEFAULT_COUNTRY_PREFIX + cleaned[1:]
    if not cleaned.startswith("+"):
        cleaned = DEFAULT_COUNTRY_PREFIX + cleaned
    return cleaned


def validate_phone_number(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(_clean(phone)))


def generate_whatsapp_link(phone: str, message: str) -> str:
    return f"https://wa.me/{_clean(phone)}?text={quote(message, safe='')}"


def _customer_lines(lead: Lead) -> List[str]:
    lines = []
    for key, value in lead.customer.to_dict().items():
        if not value:
            continue
        lines.append(f"{CUSTOMER_LABELS.get(key, key)}: {value}")
    return lines


def build_whatsapp_message(lead: Lead, quote_link: Optional[str] = None) -> str:
    sections = [
        "🎬 RICHIESTA INFORMAZIONI",
        "📋 DATI CLIENTE:\n" + "\n".join(_customer_lines(lead)),
        "🛍️ SERVIZI/PRODOTTI SELEZIONATI:\n" + "\n".join(item_lines(lead.selected_items)),
        "💰 RIEPILOGO:\n" + "\n".join(pricing_summary_lines(lead.pricing)),
        f"📝 Lead ID: {lead.id}",
    ]
    if quote_link:
        sections.append(f"🔗 Link preventivo: {quote_link}")
    return "\n\n".join(sections)
