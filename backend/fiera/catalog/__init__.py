"""
Catalog Module

Studio services and products
"""

from fiera.catalog.models import (
    CatalogItem,
    ItemCategory,
    active_catalog,
    parse_catalog,
    parse_category,
)
from fiera.catalog.repository import CatalogRepository, get_catalog_repo, set_catalog_repo

__all__ = [
    "CatalogItem",
    "ItemCategory",
    "active_catalog",
    "parse_catalog",
    "parse_category",
    "CatalogRepository",
    "get_catalog_repo",
    "set_catalog_repo",
]
