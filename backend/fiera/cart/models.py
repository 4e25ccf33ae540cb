"""
Cart Models
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fiera.catalog.models import CatalogItem, ItemCategory, parse_category


@dataclass
class CartItem:
    """
    A selected catalog item.

    `price` is the price at the moment of addition (0 for a gift) and
    `original_price` the reference used to show savings. Only Cart's
    recompute pass may change them after insertion.
    """
    id: str
    title: str
    category: ItemCategory = ItemCategory.PRODUCT
    price: float = 0.0
    original_price: Optional[float] = None

    @classmethod
    def from_catalog(cls, item: CatalogItem, is_gift: bool = False, gift_price: Optional[float] = None) -> "CartItem":
        if is_gift:
            value = gift_price if gift_price is not None else item.price
            return cls(id=item.id, title=item.title, category=item.category, price=0.0, original_price=value)
        return cls(
            id=item.id,
            title=item.title,
            category=item.category,
            price=item.price,
            original_price=item.reference_price,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        original = data.get("original_price", data.get("originalPrice"))
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or data["id"]),
            category=parse_category(data.get("category")),
            price=float(data.get("price") or 0),
            original_price=float(original) if original is not None else None,
        )

    def copy(self) -> "CartItem":
        return CartItem(self.id, self.title, self.category, self.price, self.original_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "price": self.price,
            "original_price": self.original_price,
        }
