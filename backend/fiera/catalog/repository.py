"""
Catalog Repository

In-memory catalog, refreshed from the configuration store snapshot.
"""

from typing import Dict, Iterable, List, Optional

from fiera.catalog.models import CatalogItem, active_catalog


class CatalogRepository:
    """In-memory repository for catalog items"""

    def __init__(self, items: Optional[Iterable[CatalogItem]] = None):
        self._items: Dict[str, CatalogItem] = {}
        if items:
            self._store(items)

    def _store(self, items: Iterable[CatalogItem]):
        self._items = {item.id: item for item in items}

    async def replace_all(self, items: Iterable[CatalogItem]) -> int:
        """Replace the whole catalog (items are immutable, so no merge)"""
        self._store(items)
        return len(self._items)

    async def get(self, item_id: str) -> Optional[CatalogItem]:
        """Get a catalog item by ID (inactive items included)"""
        return self._items.get(item_id)

    async def list(self, include_inactive: bool = False) -> List[CatalogItem]:
        """List items sorted by sort order, then id"""
        if include_inactive:
            return sorted(self._items.values(), key=lambda i: i.sort_key)
        return active_catalog(self._items.values())

    def snapshot(self) -> List[CatalogItem]:
        """Synchronous copy of every item, for engine calls"""
        return sorted(self._items.values(), key=lambda i: i.sort_key)

    def apply_snapshot(self, snapshot):
        """Configuration store watcher"""
        self._store(snapshot.catalog)


_catalog_repo: Optional[CatalogRepository] = None


def get_catalog_repo() -> CatalogRepository:
    """Get the shared CatalogRepository instance."""
    global _catalog_repo
    if _catalog_repo is None:
        _catalog_repo = CatalogRepository()
    return _catalog_repo


def set_catalog_repo(repo: CatalogRepository):
    global _catalog_repo
    _catalog_repo = repo
