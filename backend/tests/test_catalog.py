import asyncio

from fiera.catalog.models import CatalogItem, ItemCategory, active_catalog, parse_catalog, parse_category
from fiera.catalog.repository import CatalogRepository


def test_parse_category_accepts_italian_labels():
    assert parse_category("servizio") is ItemCategory.SERVICE
    assert parse_category("Prodotto") is ItemCategory.PRODUCT
    assert parse_category("service") is ItemCategory.SERVICE
    assert parse_category(None) is ItemCategory.PRODUCT


def test_from_dict_reads_camel_case_keys():
    parsed = CatalogItem.from_dict({
        "id": "drone",
        "title": "Riprese Drone",
        "category": "servizio",
        "price": "300",
        "originalPrice": 400,
        "sortOrder": 3,
        "imageUrl": "https://example.com/drone.jpg",
    })
    assert parsed.price == 300
    assert parsed.original_price == 400
    assert parsed.sort_order == 3
    assert parsed.image_url == "https://example.com/drone.jpg"
    assert parsed.reference_price == 400
    assert parsed.has_item_discount


def test_from_dict_rejects_rows_without_id_or_price():
    assert CatalogItem.from_dict({"title": "No id", "price": 10}) is None
    assert CatalogItem.from_dict({"id": "x", "price": "abc"}) is None
    assert CatalogItem.from_dict({"id": "x", "price": -5}) is None


def test_active_flag_reads_strings():
    assert CatalogItem.from_dict({"id": "x", "price": 10, "active": "false"}).active is False
    assert CatalogItem.from_dict({"id": "x", "price": 10, "active": "0"}).active is False
    assert CatalogItem.from_dict({"id": "x", "price": 10, "active": "yes"}).active is True
    assert CatalogItem.from_dict({"id": "x", "price": 10, "active": None}).active is True


def test_reference_price_falls_back_to_price():
    parsed = CatalogItem.from_dict({"id": "x", "price": 100, "original_price": 0})
    assert parsed.reference_price == 100
    assert not parsed.has_item_discount


def test_parse_catalog_keeps_first_duplicate():
    items = parse_catalog([
        {"id": "a", "title": "First", "price": 10},
        {"id": "a", "title": "Second", "price": 20},
        "not a row",
        {"id": "b", "price": 5},
    ])
    assert [i.id for i in items] == ["a", "b"]
    assert items[0].title == "First"


def test_active_catalog_sorts_and_drops_inactive(catalog):
    ids = [i.id for i in active_catalog(reversed(catalog))]
    assert ids[0] == "servizio-fotografico"
    assert "cornice" not in ids
    assert len(ids) == len(catalog) - 1


def test_repository_lists_and_gets(catalog):
    repo = CatalogRepository(catalog)

    active = asyncio.run(repo.list())
    everything = asyncio.run(repo.list(include_inactive=True))

    assert len(everything) == len(active) + 1
    assert asyncio.run(repo.get("cornice")).active is False
    assert asyncio.run(repo.get("missing")) is None


def test_repository_replace_all(catalog):
    repo = CatalogRepository(catalog)
    count = asyncio.run(repo.replace_all(catalog[:2]))
    assert count == 2
    assert [i.id for i in repo.snapshot()] == ["servizio-fotografico", "videomaker"]
