"""
Pricing Configuration Store

Loads the catalog, selection rules and discounts from YAML and publishes
immutable snapshots to watchers.

The engine never subscribes to anything: the store pushes a fresh snapshot
to its watchers (cart sessions, caches) whenever the configuration changes,
and they call the pure engine functions again.

Files in the configuration directory:
- catalog.yaml    items: [...]
- rules.yaml      rules: [...]
- discounts.yaml  global: {...}, per_item_overrides: {...}
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from fiera.catalog.models import CatalogItem, parse_catalog
from fiera.engines.pricing.discounts import DiscountConfig
from fiera.engines.rules.models import RuleSet, parse_rules

logger = logging.getLogger(__name__)

CONFIG_DIR = os.getenv("FIERA_CONFIG_DIR", "config")

CATALOG_FILE = "catalog.yaml"
RULES_FILE = "rules.yaml"
DISCOUNTS_FILE = "discounts.yaml"


@dataclass(frozen=True)
class PricingSnapshot:
    """Catalog, rules and discounts as loaded at one instant"""
    catalog: Tuple[CatalogItem, ...] = ()
    rules: RuleSet = field(default_factory=RuleSet)
    discounts: DiscountConfig = field(default_factory=DiscountConfig)
    loaded_at: Optional[datetime] = None

    @classmethod
    def empty(cls) -> "PricingSnapshot":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "catalog_items": len(self.catalog),
            "rules": len(self.rules),
            "loaded_at": self.loaded_at.isoformat() if self.loaded_at else None,
        }


class PricingConfigStore:
    """
    Configuration store

    Manages the catalog / rules / discounts configuration
    """

    def __init__(self, config_dir: Optional[str] = None):
        self.config_dir = config_dir or CONFIG_DIR
        self._snapshot = PricingSnapshot.empty()
        self._watchers: List[Callable[[PricingSnapshot], None]] = []

    @property
    def snapshot(self) -> PricingSnapshot:
        return self._snapshot

    def _read_yaml(self, filename: str) -> Any:
        """Read one YAML file; missing or broken files yield None"""
        file_path = Path(self.config_dir) / filename
        if not file_path.exists():
            logger.warning(f"Config file not found: {file_path}")
            return None

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load {file_path}: {e}")
            return None

    def load_all(self) -> PricingSnapshot:
        """Load every configuration file and publish the snapshot"""
        config_path = Path(self.config_dir)
        if not config_path.exists():
            logger.warning(f"Config directory not found: {self.config_dir}")

        catalog_doc = self._read_yaml(CATALOG_FILE) or {}
        rules_doc = self._read_yaml(RULES_FILE) or {}
        discounts_doc = self._read_yaml(DISCOUNTS_FILE) or {}

        catalog_rows = catalog_doc.get("items", []) if isinstance(catalog_doc, dict) else catalog_doc
        rule_rows = rules_doc.get("rules", []) if isinstance(rules_doc, dict) else rules_doc

        snapshot = PricingSnapshot(
            catalog=tuple(parse_catalog(catalog_rows if isinstance(catalog_rows, list) else [])),
            rules=RuleSet(parse_rules(rule_rows if isinstance(rule_rows, list) else [])),
            discounts=DiscountConfig.from_dict(discounts_doc if isinstance(discounts_doc, dict) else {}),
            loaded_at=datetime.now(timezone.utc),
        )

        logger.info(
            f"Loaded pricing config: {len(snapshot.catalog)} items, "
            f"{len(snapshot.rules)} rules from {self.config_dir}"
        )
        self._publish(snapshot)
        return snapshot

    def reload(self) -> PricingSnapshot:
        return self.load_all()

    def update_discounts(self, discounts: Dict[str, Any], updated_by: str = "admin") -> PricingSnapshot:
        """
        Persist a new discount configuration and publish it.

        Args:
            discounts: raw discount document (global / per_item_overrides)
            updated_by: author, for the log

        Returns:
            The new snapshot
        """
        config_path = Path(self.config_dir)
        config_path.mkdir(parents=True, exist_ok=True)

        with open(config_path / DISCOUNTS_FILE, "w", encoding="utf-8") as f:
            yaml.safe_dump(discounts, f, default_flow_style=False, allow_unicode=True)

        snapshot = PricingSnapshot(
            catalog=self._snapshot.catalog,
            rules=self._snapshot.rules,
            discounts=DiscountConfig.from_dict(discounts),
            loaded_at=datetime.now(timezone.utc),
        )
        logger.info(f"Updated discounts by {updated_by}")
        self._publish(snapshot)
        return snapshot

    def watch(self, callback: Callable[[PricingSnapshot], None]):
        """Register a snapshot listener"""
        self._watchers.append(callback)

    def _publish(self, snapshot: PricingSnapshot):
        self._snapshot = snapshot
        for callback in self._watchers:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Config watcher failed: {e}")


_config_store: Optional[PricingConfigStore] = None


def get_config_store() -> PricingConfigStore:
    """Get the shared PricingConfigStore instance."""
    global _config_store
    if _config_store is None:
        _config_store = PricingConfigStore()
    return _config_store


def set_config_store(store: PricingConfigStore):
    global _config_store
    _config_store = store
