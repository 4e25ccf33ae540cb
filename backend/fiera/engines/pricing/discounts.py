"""
Discount Configuration

A studio-wide, time-bounded global discount plus optional per-item
overrides. Dates may arrive as datetimes, ISO strings or epoch numbers;
everything is normalized to aware UTC datetimes before comparison.

Malformed configuration never raises: the affected discount is treated as
inactive and the problem is logged.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from fiera.engines.pricing.money import HUNDRED, ZERO, clamp, round_half_up, to_decimal
from fiera.parsing import parse_flag

logger = logging.getLogger(__name__)

# Epoch values above this are milliseconds (JS Date.getTime())
_EPOCH_MS_THRESHOLD = 10 ** 11


class DiscountType(Enum):
    """How a discount value is interpreted"""
    PERCENT = "percent"
    FIXED = "fixed"


class DiscountStatus(Enum):
    """Admin-facing discount state"""
    ACTIVE = "active"
    EXPIRED = "expired"
    SCHEDULED = "scheduled"
    INACTIVE = "inactive"


class _Malformed:
    """Sentinel for a date value that could not be parsed"""


MALFORMED = _Malformed()


def normalize_instant(value: Any, end_of_day: bool = False) -> Optional[datetime]:
    """
    Normalize a date-like value to an aware UTC datetime.

    Accepts datetime (naive = UTC), date, ISO-8601 strings (`Z` suffix,
    offsets and date-only forms), epoch seconds / milliseconds and
    `{"seconds": ...}` timestamp mappings. A date-only value used as an end
    bound means the end of that day. Returns None for anything else.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min, tzinfo=timezone.utc)

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, Mapping) and "seconds" in value:
        return normalize_instant(value.get("seconds"), end_of_day)

    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            try:
                return normalize_instant(date.fromisoformat(text), end_of_day)
            except ValueError:
                return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            return normalize_instant(datetime.fromisoformat(text), end_of_day)
        except ValueError:
            return None

    return None


def _parse_bound(raw: Any, end_of_day: bool):
    if raw is None or raw == "":
        return None
    parsed = normalize_instant(raw, end_of_day=end_of_day)
    return MALFORMED if parsed is None else parsed


@dataclass(frozen=True)
class Discount:
    """A percent or fixed discount valid within [start_date, end_date]"""
    type: DiscountType = DiscountType.PERCENT
    value: float = 0.0
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    malformed: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], name: str = "discount") -> Optional["Discount"]:
        """Tolerant parse; returns None when there is nothing to parse."""
        if not data:
            return None
        if not isinstance(data, Mapping):
            logger.warning(f"Ignoring {name}: expected a mapping, got {data!r}")
            return None

        malformed = False

        raw_type = str(data.get("type", "percent")).strip().lower()
        try:
            discount_type = DiscountType(raw_type)
        except ValueError:
            logger.warning(f"{name}: unknown discount type {raw_type!r}, treating as inactive")
            discount_type = DiscountType.PERCENT
            malformed = True

        value = to_decimal(data.get("value"))
        if value < 0:
            logger.warning(f"{name}: negative value {data.get('value')!r}, treating as inactive")
            malformed = True

        start = _parse_bound(data.get("start_date", data.get("startDate")), end_of_day=False)
        end = _parse_bound(data.get("end_date", data.get("endDate")), end_of_day=True)
        if start is MALFORMED or end is MALFORMED:
            logger.warning(f"{name}: malformed start/end date, treating as inactive")
            malformed = True
            start = None if start is MALFORMED else start
            end = None if end is MALFORMED else end

        is_active = data.get("is_active", data.get("isActive", True))

        return cls(
            type=discount_type,
            value=float(value),
            is_active=parse_flag(is_active, default=True),
            start_date=start,
            end_date=end,
            malformed=malformed,
        )

    def is_in_effect(self, now: datetime) -> bool:
        return self.status(now) == DiscountStatus.ACTIVE

    def status(self, now: datetime) -> DiscountStatus:
        if self.malformed or not self.is_active or self.value <= 0:
            return DiscountStatus.INACTIVE
        instant = normalize_instant(now)
        if instant is None:
            return DiscountStatus.INACTIVE
        if self.start_date and instant < self.start_date:
            return DiscountStatus.SCHEDULED
        if self.end_date and instant > self.end_date:
            return DiscountStatus.EXPIRED
        return DiscountStatus.ACTIVE

    def exact_amount_on(self, base: Decimal) -> Decimal:
        """Unrounded discount amount on `base`, clamped to [0, base]."""
        base = clamp(to_decimal(base))
        value = clamp(to_decimal(self.value))
        if self.type == DiscountType.PERCENT:
            amount = base * value / HUNDRED
        else:
            amount = value
        return clamp(amount, ZERO, base)

    def amount_on(self, base: Decimal) -> Decimal:
        """
        Discount amount on `base`, clamped to [0, base].

        Percent amounts are rounded half-up to whole euros. Per-line amounts
        use exact_amount_on() so that only the aggregates get rounded.
        """
        base = clamp(to_decimal(base))
        return clamp(Decimal(round_half_up(self.exact_amount_on(base))), ZERO, base)

    def label(self) -> str:
        if self.type == DiscountType.PERCENT:
            return f"-{self.value:g}%"
        return f"-€{self.value:g}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "value": self.value,
            "is_active": self.is_active,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass(frozen=True)
class DiscountConfig:
    """Global discount plus per-item overrides"""
    global_discount: Optional[Discount] = None
    per_item_overrides: Dict[str, Discount] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DiscountConfig":
        if not data or not isinstance(data, Mapping):
            return cls()

        overrides: Dict[str, Discount] = {}
        raw_overrides = data.get("per_item_overrides", data.get("perItemOverrides")) or {}
        if isinstance(raw_overrides, Mapping):
            for item_id, raw in raw_overrides.items():
                parsed = Discount.from_dict(raw, name=f"override {item_id}")
                if parsed is not None:
                    overrides[str(item_id)] = parsed
        else:
            logger.warning(f"Ignoring per-item overrides: expected a mapping, got {raw_overrides!r}")

        return cls(
            global_discount=Discount.from_dict(data.get("global"), name="global discount"),
            per_item_overrides=overrides,
        )

    def override_for(self, item_id: str) -> Optional[Discount]:
        return self.per_item_overrides.get(item_id)

    def global_in_effect(self, now: datetime) -> Optional[Discount]:
        if self.global_discount and self.global_discount.is_in_effect(now):
            return self.global_discount
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global": self.global_discount.to_dict() if self.global_discount else None,
            "per_item_overrides": {k: v.to_dict() for k, v in sorted(self.per_item_overrides.items())},
        }

    def status_report(self, now: datetime) -> Dict[str, Any]:
        """Discounts with their current status, for the admin dashboard"""
        report: Dict[str, Any] = {"global": None, "per_item_overrides": {}}
        if self.global_discount:
            report["global"] = {
                **self.global_discount.to_dict(),
                "status": self.global_discount.status(now).value,
                "label": self.global_discount.label(),
            }
        for item_id, discount in sorted(self.per_item_overrides.items()):
            report["per_item_overrides"][item_id] = {
                **discount.to_dict(),
                "status": discount.status(now).value,
                "label": discount.label(),
            }
        return report
