"""
Catalog Models

Services and products offered by the studio. Items are immutable once loaded;
the catalog provider (YAML store, admin tooling) owns them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from fiera.parsing import parse_flag

logger = logging.getLogger(__name__)


class ItemCategory(Enum):
    """Catalog item category"""
    SERVICE = "service"
    PRODUCT = "product"


# Italian labels used by the studio's historical data
_CATEGORY_ALIASES: Dict[str, ItemCategory] = {
    "service": ItemCategory.SERVICE,
    "servizio": ItemCategory.SERVICE,
    "product": ItemCategory.PRODUCT,
    "prodotto": ItemCategory.PRODUCT,
}


def parse_category(value: Any) -> ItemCategory:
    if isinstance(value, ItemCategory):
        return value
    return _CATEGORY_ALIASES.get(str(value or "").strip().lower(), ItemCategory.PRODUCT)


def category_name(value: Any) -> Optional[str]:
    """Canonical category value for a label, None when the label is unknown"""
    if isinstance(value, ItemCategory):
        return value.value
    category = _CATEGORY_ALIASES.get(str(value or "").strip().lower())
    return category.value if category else None


def _to_price(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if price != price or price < 0:  # NaN or negative
        return None
    return price


@dataclass(frozen=True)
class CatalogItem:
    """A purchasable service or product"""
    id: str
    title: str
    category: ItemCategory = ItemCategory.PRODUCT
    price: float = 0.0
    original_price: Optional[float] = None
    active: bool = True
    sort_order: int = 0

    # Display only
    subtitle: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def reference_price(self) -> float:
        """Pre-discount price: original_price when set, else the list price."""
        if self.original_price is not None and self.original_price > 0:
            return self.original_price
        return self.price

    @property
    def has_item_discount(self) -> bool:
        return self.reference_price > self.price

    @property
    def sort_key(self) -> tuple:
        return (self.sort_order, self.id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["CatalogItem"]:
        """
        Parse a catalog row (snake_case or camelCase keys).

        Returns None for rows that cannot be priced; the reason is logged.
        """
        item_id = str(data.get("id") or "").strip()
        if not item_id:
            logger.warning(f"Skipping catalog row without id: {data!r}")
            return None

        price = _to_price(data.get("price"))
        if price is None:
            logger.warning(f"Skipping catalog item {item_id}: invalid price {data.get('price')!r}")
            return None

        original_raw = data.get("original_price", data.get("originalPrice"))
        original_price = _to_price(original_raw)
        if original_raw not in (None, "") and original_price is None:
            logger.warning(f"Catalog item {item_id}: ignoring invalid original price {original_raw!r}")

        try:
            sort_order = int(data.get("sort_order", data.get("sortOrder", 0)) or 0)
        except (TypeError, ValueError):
            sort_order = 0

        return cls(
            id=item_id,
            title=str(data.get("title") or item_id),
            category=parse_category(data.get("category")),
            price=price,
            original_price=original_price,
            active=parse_flag(data.get("active"), default=True),
            sort_order=sort_order,
            subtitle=data.get("subtitle"),
            description=data.get("description"),
            image_url=data.get("image_url", data.get("imageUrl")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "price": self.price,
            "original_price": self.original_price,
            "active": self.active,
            "sort_order": self.sort_order,
            "subtitle": self.subtitle,
            "description": self.description,
            "image_url": self.image_url,
        }


def parse_catalog(rows: Iterable[Dict[str, Any]]) -> List[CatalogItem]:
    """Parse catalog rows, skipping invalid ones and duplicate ids (first wins)."""
    items: List[CatalogItem] = []
    seen = set()
    for row in rows or []:
        if not isinstance(row, dict):
            logger.warning(f"Skipping non-mapping catalog row: {row!r}")
            continue
        item = CatalogItem.from_dict(row)
        if item is None:
            continue
        if item.id in seen:
            logger.warning(f"Duplicate catalog id {item.id}, keeping the first definition")
            continue
        seen.add(item.id)
        items.append(item)
    return items


def active_catalog(items: Iterable[CatalogItem]) -> List[CatalogItem]:
    """Active items in deterministic display / tie-break order."""
    return sorted((i for i in items if i.active), key=lambda i: i.sort_key)
