from fiera.cart.cart import UNAVAILABLE, Cart
from fiera.catalog.models import CatalogItem
from fiera.engines.pricing.discounts import DiscountConfig
from fiera.engines.rules.models import RuleSet

from helpers import BUNDLE_TRIGGERS, NOW


def make_cart(catalog, rules, discounts=None, clock=None):
    return Cart(catalog, rules, discounts, clock=clock or (lambda: NOW))


def test_add_and_remove(catalog, rules):
    cart = make_cart(catalog, rules)

    assert cart.add("servizio-fotografico") is True
    assert cart.is_in_cart("servizio-fotografico")
    assert cart.get_breakdown().subtotal == 600

    assert cart.remove("servizio-fotografico") is True
    assert cart.remove("servizio-fotografico") is False
    assert cart.item_ids == []


def test_add_rejects_unknown_inactive_and_duplicates(catalog, rules):
    cart = make_cart(catalog, rules)

    assert cart.add("ghost") is False
    assert cart.add("cornice") is False
    assert cart.add("drone") is True
    assert cart.add("drone") is False
    assert cart.item_ids == ["drone"]


def test_add_respects_requirements(catalog, rules):
    cart = make_cart(catalog, rules)

    assert cart.add("album-30x40") is False
    assert cart.unavailable_reason("album-30x40") == "Requires: Servizio Fotografico"

    cart.add("servizio-fotografico")
    assert cart.is_available("album-30x40")
    assert cart.add("album-30x40") is True


def test_add_respects_exclusions(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("chiavetta-usb")

    assert cart.add("stampe-fine-art") is False
    assert cart.unavailable_reason("stampe-fine-art") == "Not combinable with: Chiavetta USB"


def test_unknown_item_reason(catalog, rules):
    cart = make_cart(catalog, rules)
    assert cart.unavailable_reason("ghost") == UNAVAILABLE
    assert cart.is_available("ghost") is False


def test_bundle_unlocks_gift(catalog, rules, ten_percent):
    cart = make_cart(catalog, rules, ten_percent)
    for item_id in BUNDLE_TRIGGERS[:-1]:
        cart.add(item_id)
    assert not cart.is_gift("foto-invitati")

    cart.add(BUNDLE_TRIGGERS[-1])
    assert cart.unlocked_gifts == ("foto-invitati",)
    assert cart.is_gift("foto-invitati")

    cart.add("foto-invitati")
    gift = next(i for i in cart.items if i.id == "foto-invitati")
    assert gift.price == 0
    assert gift.original_price == 450
    assert cart.unlocked_gifts == ()

    breakdown = cart.get_breakdown()
    assert breakdown.final_total == 2745
    assert breakdown.gift_savings == 450


def test_gift_reprices_when_bundle_breaks(catalog, rules):
    cart = make_cart(catalog, rules)
    for item_id in BUNDLE_TRIGGERS + ["foto-invitati"]:
        cart.add(item_id)

    cart.remove("drone")

    gift = next(i for i in cart.items if i.id == "foto-invitati")
    assert gift.price == 450
    assert cart.get_breakdown().gift_savings == 0


def test_restore_keeps_conflicting_items(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("chiavetta-usb")

    # a stale session brings in the excluded item without gating
    restored = cart.restore(["chiavetta-usb", "stampe-fine-art", "ghost"])

    assert restored == 2
    assert cart.item_ids == ["chiavetta-usb", "stampe-fine-art"]
    assert cart.is_available("chiavetta-usb") is False
    reasons = {c["id"]: c["reason"] for c in cart.conflicts()}
    assert reasons["chiavetta-usb"] == "Not combinable with: Stampe Fine Art"
    assert reasons["stampe-fine-art"] == "Not combinable with: Chiavetta USB"


def test_clear(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("drone")
    cart.clear()
    assert cart.item_ids == []
    assert cart.get_breakdown().final_total == 0


def test_items_are_copies(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("drone")

    cart.items[0].price = 1
    assert cart.get_breakdown().subtotal == 300


def test_update_config_reprices_and_keeps_removed_items(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("drone")
    cart.add("videomaker")

    cheaper = [CatalogItem(id="drone", title="Riprese Drone", price=250)]
    cart.update_config(catalog=cheaper, discounts=DiscountConfig.from_dict({"global": {"value": 10}}))

    assert cart.item_ids == ["drone", "videomaker"]
    assert {"id": "videomaker", "reason": UNAVAILABLE} in cart.conflicts()
    breakdown = cart.get_breakdown()
    assert breakdown.subtotal == 250
    assert breakdown.global_discount_savings == 25


def test_update_config_with_new_rules(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("drone")
    cart.update_config(rules=RuleSet())
    assert cart.add("album-30x40") is True


def test_catalog_with_availability(catalog, rules):
    cart = make_cart(catalog, rules)
    cart.add("chiavetta-usb")

    rows = {row["id"]: row for row in cart.catalog_with_availability()}

    assert "cornice" not in rows
    assert rows["chiavetta-usb"]["in_cart"] is True
    assert rows["stampe-fine-art"]["available"] is False
    assert rows["album-30x40"]["missing_requirements"] == ["servizio-fotografico"]


def test_to_dict(catalog, rules, ten_percent):
    cart = make_cart(catalog, rules, ten_percent)
    cart.add("servizio-fotografico")

    data = cart.to_dict()

    assert data["id"] == cart.id
    assert data["item_count"] == 1
    assert data["pricing"]["finalTotal"] == 540
    assert data["conflicts"] == []
