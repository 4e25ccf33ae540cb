"""
Quote Document

Structured content of the customer's quote (the PDF renderer only lays it
out). Rows and totals are read from the lead snapshot as stored.
"""

from typing import Any, Dict, List

from fiera.engines.pricing.money import to_decimal
from fiera.leads.models import Lead
from fiera.presentation.formatting import FREE_LABEL, format_eur, pricing_summary_lines
from fiera.presentation.whatsapp import CUSTOMER_LABELS

QUOTE_PATH = "preventivo"
EMPTY_SELECTION = "Nessun elemento selezionato"


def build_quote_link(base_url: str, lead_id: str) -> str:
    return f"{(base_url or '').rstrip('/')}/{QUOTE_PATH}/{lead_id}"


def _item_rows(lead: Lead) -> List[Dict[str, Any]]:
    rows = []
    for item in lead.selected_items:
        price = to_decimal(item.price)
        original = to_decimal(item.original_price)
        is_gift = price == 0
        rows.append({
            "id": item.id,
            "title": item.title,
            "price": FREE_LABEL if is_gift else f"€{format_eur(price)}",
            "original_price": f"€{format_eur(original)}" if original > price else None,
            "is_gift": is_gift,
        })
    return rows


def build_quote_document(lead: Lead, studio_name: str) -> Dict[str, Any]:
    """
    Quote content: header, customer block, item table and totals.
    """
    customer = [
        {"label": CUSTOMER_LABELS.get(key, key), "value": value}
        for key, value in lead.customer.to_dict().items()
        if value
    ]
    created = lead.created_at.strftime("%d/%m/%Y") if lead.created_at else ""

    return {
        "header": {
            "studio_name": studio_name,
            "title": "Preventivo",
            "lead_id": lead.id,
            "date": created,
        },
        "customer": customer,
        "columns": ["Voce", "Prezzo"],
        "items": _item_rows(lead),
        "empty_message": EMPTY_SELECTION if not lead.selected_items else None,
        "totals": pricing_summary_lines(lead.pricing),
    }
