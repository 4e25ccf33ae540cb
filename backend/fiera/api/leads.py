"""
Leads API Endpoints

Checkout (quote request) and the studio's follow-up of leads.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from fiera.cart.repository import get_cart_repo
from fiera.leads.models import GdprConsent, LeadStatus, build_lead
from fiera.leads.repository import get_lead_repo
from fiera.presentation.formatting import item_lines, pricing_summary_lines
from fiera.presentation.marketing import generate_marketing_messages
from fiera.presentation.quote import build_quote_document, build_quote_link
from fiera.presentation.whatsapp import build_whatsapp_message, generate_whatsapp_link

router = APIRouter()
logger = logging.getLogger(__name__)

PUBLIC_URL = os.getenv("FIERA_PUBLIC_URL", "http://localhost:8000")
WHATSAPP_NUMBER = os.getenv("FIERA_WHATSAPP_NUMBER", "")
STUDIO_NAME = os.getenv("FIERA_STUDIO_NAME", "Studio Fotografico")


# === Request Models ===

class ConsentPayload(BaseModel):
    accepted: bool = False
    text: str = ""


class CreateLeadRequest(BaseModel):
    cart_id: str
    customer: Dict[str, Any] = Field(default_factory=dict)
    gdpr_consent: ConsentPayload = Field(default_factory=ConsentPayload)
    source: Optional[str] = None


class StatusRequest(BaseModel):
    trigger: str


def _whatsapp_link(lead, quote_link: str) -> Optional[str]:
    if not WHATSAPP_NUMBER:
        return None
    return generate_whatsapp_link(WHATSAPP_NUMBER, build_whatsapp_message(lead, quote_link))


# === Endpoints ===

@router.post("")
async def create_lead(request: CreateLeadRequest):
    """
    Checkout: freeze the cart into a lead.

    The breakdown is taken from the cart once and stored as-is; the
    WhatsApp text and quote are built from that stored copy.
    """
    if not request.gdpr_consent.accepted:
        raise HTTPException(status_code=400, detail="GDPR consent is required")

    cart = await get_cart_repo().get(request.cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail=f"Cart {request.cart_id} not found")
    if not cart.item_ids:
        raise HTTPException(status_code=400, detail="Cart is empty")

    now = datetime.now(timezone.utc)
    breakdown = cart.get_breakdown(now)
    priced_ids = {line.id for line in breakdown.lines}

    lead = build_lead(
        customer=request.customer,
        cart_items=[item for item in cart.items if item.id in priced_ids],
        breakdown=breakdown,
        gdpr_consent=GdprConsent(
            accepted=True,
            text=request.gdpr_consent.text,
            timestamp=now,
        ),
        source=request.source,
        now=now,
    )
    await get_lead_repo().create(lead)

    quote_link = build_quote_link(PUBLIC_URL, lead.id)
    return {
        "lead": lead.to_dict(),
        "quote_link": quote_link,
        "whatsapp_link": _whatsapp_link(lead, quote_link),
        "marketing": generate_marketing_messages(lead.pricing),
    }


@router.get("")
async def list_leads(status: Optional[str] = None, limit: int = 100):
    try:
        status_filter = LeadStatus(status) if status else None
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")

    leads = await get_lead_repo().list(status=status_filter, limit=limit)
    return {"leads": [lead.to_summary() for lead in leads], "count": len(leads)}


@router.get("/{lead_id}")
async def get_lead(lead_id: str):
    lead = await get_lead_repo().get(lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found")
    return lead.to_dict()


@router.get("/{lead_id}/quote")
async def get_quote(lead_id: str):
    """Quote content for the PDF renderer and the public quote page"""
    lead = await get_lead_repo().get(lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found")

    quote_link = build_quote_link(PUBLIC_URL, lead.id)
    return {
        "lead_id": lead.id,
        "item_lines": item_lines(lead.selected_items),
        "summary_lines": pricing_summary_lines(lead.pricing),
        "document": build_quote_document(lead, STUDIO_NAME),
        "marketing": generate_marketing_messages(lead.pricing),
        "quote_link": quote_link,
        "whatsapp_link": _whatsapp_link(lead, quote_link),
    }


@router.post("/{lead_id}/status")
async def update_lead_status(lead_id: str, request: StatusRequest):
    """Apply a follow-up transition (contact, send_email, send_quote, close, reopen)"""
    result = await get_lead_repo().update_status(lead_id, request.trigger)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found")

    ok, value = result
    if not ok:
        raise HTTPException(status_code=400, detail=value)
    return value.to_dict()
