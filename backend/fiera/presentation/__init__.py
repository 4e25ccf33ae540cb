"""
Presentation Module

Customer-facing text built from pricing breakdowns
"""

from fiera.presentation.formatting import format_eur, item_lines, pricing_summary_lines
from fiera.presentation.marketing import generate_marketing_messages
from fiera.presentation.quote import build_quote_document, build_quote_link
from fiera.presentation.whatsapp import (
    build_whatsapp_message,
    format_phone_number_for_whatsapp,
    generate_whatsapp_link,
    validate_phone_number,
)

__all__ = [
    "build_quote_document",
    "build_quote_link",
    "build_whatsapp_message",
    "format_eur",
    "format_phone_number_for_whatsapp",
    "generate_marketing_messages",
    "generate_whatsapp_link",
    "item_lines",
    "pricing_summary_lines",
    "validate_phone_number",
]
