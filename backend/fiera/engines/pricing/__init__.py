"""
Pricing Engine Module
"""

from fiera.engines.pricing.calculator import (
    PricedLine,
    PricingBreakdown,
    calculate_pricing,
)
from fiera.engines.pricing.discounts import (
    Discount,
    DiscountConfig,
    DiscountStatus,
    DiscountType,
    normalize_instant,
)

__all__ = [
    "PricedLine",
    "PricingBreakdown",
    "calculate_pricing",
    "Discount",
    "DiscountConfig",
    "DiscountStatus",
    "DiscountType",
    "normalize_instant",
]
