from datetime import datetime, timezone

from fiera.catalog.models import CatalogItem, ItemCategory

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

BUNDLE_TRIGGERS = [
    "servizio-fotografico",
    "videomaker",
    "album-30x40",
    "videoproiezione",
    "drone",
    "album-genitori",
]

CATALOG_ROWS = [
    {"id": "servizio-fotografico", "title": "Servizio Fotografico", "category": "service", "price": 600, "sort_order": 1},
    {"id": "videomaker", "title": "Videomaker", "category": "service", "price": 850, "sort_order": 2},
    {"id": "album-30x40", "title": "Album Sposi Big 30x40", "category": "product", "price": 800, "sort_order": 3},
    {"id": "videoproiezione", "title": "VideoProiezione", "category": "service", "price": 200, "sort_order": 4},
    {"id": "drone", "title": "Riprese Drone", "category": "service", "price": 300, "sort_order": 5},
    {"id": "album-genitori", "title": "Album Genitori", "category": "product", "price": 300, "sort_order": 6},
    {"id": "foto-invitati", "title": "Foto per Invitati", "category": "service", "price": 450, "sort_order": 7},
    {"id": "prematrimoniale", "title": "Servizio Prematrimoniale", "category": "service",
     "price": 350, "original_price": 450, "sort_order": 8},
    {"id": "chiavetta-usb", "title": "Chiavetta USB", "category": "product", "price": 60, "sort_order": 9},
    {"id": "stampe-fine-art", "title": "Stampe Fine Art", "category": "product", "price": 250, "sort_order": 10},
    {"id": "cornice", "title": "Cornice", "category": "product", "price": 120, "sort_order": 11, "active": False},
]

RULE_ROWS = [
    {"id": "pacchetto-completo", "type": "bundle_gift", "triggers": BUNDLE_TRIGGERS, "gift": "foto-invitati"},
    {"id": "album-richiede-foto", "type": "requires", "item": "album-30x40", "requires": ["servizio-fotografico"]},
    {"id": "supporto", "type": "mutually_exclusive", "items": ["chiavetta-usb", "stampe-fine-art"]},
]

DISCOUNTS_DOC = {
    "global": {"type": "percent", "value": 10, "is_active": True, "start_date": "2025-01-01"},
    "per_item_overrides": {},
}


def make_item(item_id, price, title=None, original_price=None, category=ItemCategory.SERVICE,
              sort_order=0, active=True):
    return CatalogItem(
        id=item_id,
        title=title or item_id.title(),
        category=category,
        price=price,
        original_price=original_price,
        active=active,
        sort_order=sort_order,
    )
