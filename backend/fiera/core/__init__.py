"""
Core Module

Includes:
- PricingConfigStore: catalog / rules / discounts configuration snapshots
"""

from fiera.core.config_store import (
    PricingConfigStore,
    PricingSnapshot,
    get_config_store,
    set_config_store,
)

__all__ = [
    "PricingConfigStore",
    "PricingSnapshot",
    "get_config_store",
    "set_config_store",
]
