"""
Selection Rules Engine Module
"""

from fiera.engines.rules.evaluator import ItemStatus, RulesEvaluator, evaluate
from fiera.engines.rules.models import (
    BundleGift,
    Excludes,
    Requires,
    RuleSet,
    SelectionRule,
    mutually_exclusive,
    parse_rule,
    parse_rules,
)

__all__ = [
    "ItemStatus",
    "RulesEvaluator",
    "evaluate",
    "BundleGift",
    "Excludes",
    "Requires",
    "RuleSet",
    "SelectionRule",
    "mutually_exclusive",
    "parse_rule",
    "parse_rules",
]
