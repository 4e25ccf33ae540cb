"""
Engines Module

Pure computation: selection rules and pricing
"""

from fiera.engines.pricing.calculator import PricingBreakdown, calculate_pricing
from fiera.engines.rules.evaluator import ItemStatus, RulesEvaluator, evaluate

__all__ = [
    "PricingBreakdown",
    "calculate_pricing",
    "ItemStatus",
    "RulesEvaluator",
    "evaluate",
]
