"""
Lead Models

A lead is the customer's quote request: contact data, the selected items
and the pricing breakdown, frozen at submission time. Values are copied,
never referenced, so later catalog or discount changes cannot alter a quote
already given to a customer.
"""

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import uuid4

from fiera.engines.pricing.calculator import PricingBreakdown
from fiera.engines.pricing.discounts import normalize_instant


class LeadStatus(Enum):
    """Lead follow-up status"""
    NEW = "new"
    CONTACTED = "contacted"
    EMAIL_SENT = "email_sent"
    QUOTED = "quoted"
    CLOSED = "closed"


# Contact form fields with a dedicated attribute; the rest go to `extra`
_CUSTOMER_FIELDS = ("name", "surname", "email", "phone", "event_date", "notes")

_CUSTOMER_ALIASES = {
    "nome": "name",
    "cognome": "surname",
    "telefono": "phone",
    "eventDate": "event_date",
    "data_evento": "event_date",
    "note_aggiuntive": "notes",
}


def remove_none_deep(value: Any) -> Any:
    """Drop None (and NaN / inf) values from nested dicts and lists."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    if isinstance(value, Mapping):
        cleaned = {}
        for key, item in value.items():
            item = remove_none_deep(item)
            if item is not None:
                cleaned[key] = item
        return cleaned
    if isinstance(value, (list, tuple)):
        cleaned_items = (remove_none_deep(item) for item in value)
        return [item for item in cleaned_items if item is not None]
    return value


@dataclass(frozen=True)
class CustomerInfo:
    """Contact form data"""
    name: str = ""
    surname: str = ""
    email: str = ""
    phone: str = ""
    event_date: Optional[str] = None
    notes: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.name, self.surname) if part)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CustomerInfo":
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if value is None or value == "":
                continue
            target = _CUSTOMER_ALIASES.get(key, key)
            if target in _CUSTOMER_FIELDS:
                values[target] = str(value)
            elif target not in ("gdpr_consent", "gdprConsent"):
                extra[key] = copy.deepcopy(value)
        return cls(**values, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "surname": self.surname,
            "email": self.email,
            "phone": self.phone,
            "event_date": self.event_date,
            "notes": self.notes,
            **copy.deepcopy(self.extra),
        }


@dataclass(frozen=True)
class SelectedItemSnapshot:
    """Selected item as priced at submission time"""
    id: str
    title: str
    price: float
    original_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "originalPrice": self.original_price,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SelectedItemSnapshot":
        original = data.get("originalPrice", data.get("original_price"))
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            price=float(data.get("price") or 0),
            original_price=float(original) if original is not None else None,
        )


@dataclass(frozen=True)
class GdprConsent:
    """Privacy consent as given on the contact form"""
    accepted: bool
    text: str = ""
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "text": self.text,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "GdprConsent":
        data = data or {}
        return cls(
            accepted=bool(data.get("accepted", False)),
            text=str(data.get("text") or ""),
            timestamp=normalize_instant(data.get("timestamp")),
        )


@dataclass(frozen=True)
class Lead:
    """Quote request snapshot"""
    id: str
    customer: CustomerInfo
    selected_items: Tuple[SelectedItemSnapshot, ...]
    pricing: Dict[str, Any]
    gdpr_consent: GdprConsent
    status: LeadStatus = LeadStatus.NEW
    source: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def breakdown(self) -> PricingBreakdown:
        """The stored breakdown, restored verbatim"""
        return PricingBreakdown.from_snapshot(self.pricing)

    def to_record(self) -> Dict[str, Any]:
        """Create-lead payload with empty values removed"""
        return remove_none_deep({
            "id": self.id,
            "customer": self.customer.to_dict(),
            "selectedItems": [item.to_dict() for item in self.selected_items],
            "pricing": copy.deepcopy(self.pricing),
            "gdprConsent": self.gdpr_consent.to_dict(),
            "status": self.status.value,
            "source": self.source,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        })

    def to_dict(self) -> Dict[str, Any]:
        return self.to_record()

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer": self.customer.full_name,
            "email": self.customer.email,
            "items": len(self.selected_items),
            "final_total": self.pricing.get("finalTotal"),
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def build_lead(
    customer: Mapping[str, Any],
    cart_items: Iterable[Any],
    breakdown: PricingBreakdown,
    gdpr_consent: GdprConsent,
    source: Optional[str] = None,
    lead_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Lead:
    """
    Freeze a checkout into a Lead.

    `cart_items` are the cart items (anything with id / title / price /
    original_price). Prices of items present in the breakdown are taken from
    its lines so the snapshot and the totals agree. Every value is copied;
    the lead shares no state with the cart or the discount configuration.
    """
    lines = {line.id: line for line in breakdown.lines}
    snapshots: List[SelectedItemSnapshot] = []
    for item in cart_items:
        line = lines.get(item.id)
        if line is not None:
            price = float(line.final_price)
            original = float(line.original_price)
        else:
            price = float(item.price)
            original = float(item.original_price) if item.original_price is not None else None
        snapshots.append(SelectedItemSnapshot(
            id=str(item.id),
            title=str(item.title),
            price=price,
            original_price=original,
        ))

    return Lead(
        id=lead_id or f"LEAD-{uuid4().hex[:8].upper()}",
        customer=CustomerInfo.from_dict(customer),
        selected_items=tuple(snapshots),
        pricing=copy.deepcopy(breakdown.to_dict()),
        gdpr_consent=gdpr_consent,
        status=LeadStatus.NEW,
        source=source,
        created_at=now or datetime.now(timezone.utc),
    )
