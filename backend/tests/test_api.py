import inspect
from urllib.parse import unquote

import pytest
from fastapi.testclient import TestClient

from fiera.api import discounts as discounts_api
from fiera.api import leads as leads_api
from fiera.cart.repository import CartRepository, set_cart_repo
from fiera.catalog.repository import CatalogRepository, set_catalog_repo
from fiera.core.config_store import PricingConfigStore, set_config_store
from fiera.leads.repository import LeadRepository, set_lead_repo
from fiera.main import app

from helpers import BUNDLE_TRIGGERS, NOW

CONSENT = {"accepted": True, "text": "Acconsento al trattamento dei dati"}


@pytest.fixture
def store(config_dir):
    return PricingConfigStore(str(config_dir))


@pytest.fixture
def client(store, session_factory, monkeypatch):
    set_config_store(store)
    set_catalog_repo(CatalogRepository())
    set_cart_repo(CartRepository(clock=lambda: NOW))
    set_lead_repo(LeadRepository(session_factory=session_factory))
    monkeypatch.setattr(leads_api, "WHATSAPP_NUMBER", "+39 333 000 1111")
    monkeypatch.setattr(leads_api, "PUBLIC_URL", "https://studio.example")

    with TestClient(app) as test_client:
        yield test_client


def open_cart(client, items=()):
    cart_id = client.post("/api/v1/cart").json()["id"]
    for item_id in items:
        r = client.post(f"/api/v1/cart/{cart_id}/items", json={"item_id": item_id})
        assert r.status_code == 200, r.text
    return cart_id


def checkout(client, cart_id, consent=CONSENT):
    return client.post("/api/v1/leads", json={
        "cart_id": cart_id,
        "customer": {"name": "Giulia", "surname": "Rossi", "email": "giulia@example.com"},
        "gdpr_consent": consent,
        "source": "fiera",
    })


# === Health / Catalog ===

def test_health(client):
    data = client.get("/health").json()
    assert data["status"] == "healthy"
    assert data["config"]["catalog_items"] == 11


def test_catalog_with_selection(client):
    r = client.get("/api/v1/catalog", params=[("selected", "chiavetta-usb")])
    assert r.status_code == 200

    rows = {row["id"]: row for row in r.json()["items"]}
    assert rows["stampe-fine-art"]["available"] is False
    assert rows["stampe-fine-art"]["reason"] == "Not combinable with: Chiavetta USB"
    assert r.json()["pricing"]["subtotal"] == 60


def test_catalog_items(client):
    assert client.get("/api/v1/catalog/items").json()["count"] == 10
    assert client.get("/api/v1/catalog/items", params={"include_inactive": True}).json()["count"] == 11
    assert client.get("/api/v1/catalog/items/drone").json()["price"] == 300
    assert client.get("/api/v1/catalog/items/ghost").status_code == 404


# === Cart ===

def test_cart_flow(client):
    cart_id = open_cart(client, BUNDLE_TRIGGERS)

    cart = client.get(f"/api/v1/cart/{cart_id}").json()
    assert cart["pricing"]["subtotal"] == 3050

    r = client.post(f"/api/v1/cart/{cart_id}/items", json={"item_id": "foto-invitati"})
    pricing = r.json()["pricing"]
    assert pricing["finalTotal"] == 2745
    assert pricing["giftSavings"] == 450
    assert pricing["totalSavings"] == 755

    r = client.delete(f"/api/v1/cart/{cart_id}/items/drone")
    assert r.json()["pricing"]["giftSavings"] == 0

    r = client.delete(f"/api/v1/cart/{cart_id}")
    assert r.json()["item_count"] == 0


def test_add_blocked_item_returns_409(client):
    cart_id = open_cart(client, ["chiavetta-usb"])

    r = client.post(f"/api/v1/cart/{cart_id}/items", json={"item_id": "stampe-fine-art"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Not combinable with: Chiavetta USB"

    r = client.post(f"/api/v1/cart/{cart_id}/items", json={"item_id": "chiavetta-usb"})
    assert r.status_code == 409


def test_cart_not_found(client):
    assert client.get("/api/v1/cart/CART-NOPE").status_code == 404
    cart_id = open_cart(client)
    assert client.post(f"/api/v1/cart/{cart_id}/items", json={"item_id": "ghost"}).status_code == 404
    assert client.delete(f"/api/v1/cart/{cart_id}/items/drone").status_code == 404


# === Leads ===

def test_checkout_creates_lead(client):
    cart_id = open_cart(client, BUNDLE_TRIGGERS + ["foto-invitati"])

    r = checkout(client, cart_id)
    assert r.status_code == 200, r.text
    data = r.json()

    lead = data["lead"]
    assert lead["pricing"]["finalTotal"] == 2745
    assert lead["status"] == "new"
    assert data["quote_link"] == f"https://studio.example/preventivo/{lead['id']}"
    assert data["whatsapp_link"].startswith("https://wa.me/+393330001111?text=")
    assert "TOTALE: €2.745" in unquote(data["whatsapp_link"])
    assert data["marketing"]["gift_message"].startswith("🎁")

    stored = client.get(f"/api/v1/leads/{lead['id']}").json()
    assert stored["pricing"] == lead["pricing"]


def test_checkout_requires_consent(client):
    cart_id = open_cart(client, ["drone"])
    r = checkout(client, cart_id, consent={"accepted": False})
    assert r.status_code == 400


def test_checkout_unknown_or_empty_cart(client):
    assert checkout(client, "CART-NOPE").status_code == 404
    assert checkout(client, open_cart(client)).status_code == 400


def test_stored_quote_survives_discount_change(client, store):
    cart_id = open_cart(client, ["servizio-fotografico"])
    lead_id = checkout(client, cart_id).json()["lead"]["id"]

    store.update_discounts({"global": {"type": "percent", "value": 50}})

    assert client.get(f"/api/v1/cart/{cart_id}").json()["pricing"]["finalTotal"] == 300
    quote = client.get(f"/api/v1/leads/{lead_id}/quote").json()
    assert "TOTALE: €540" in quote["summary_lines"]
    assert quote["document"]["header"]["lead_id"] == lead_id
    assert quote["item_lines"] == ["• Servizio Fotografico - €600"]


def test_list_and_update_status(client):
    lead_id = checkout(client, open_cart(client, ["drone"])).json()["lead"]["id"]

    r = client.post(f"/api/v1/leads/{lead_id}/status", json={"trigger": "contact"})
    assert r.status_code == 200
    assert r.json()["status"] == "contacted"

    assert client.post(f"/api/v1/leads/{lead_id}/status", json={"trigger": "contact"}).status_code == 400
    assert client.post("/api/v1/leads/LEAD-NOPE/status", json={"trigger": "contact"}).status_code == 404

    listed = client.get("/api/v1/leads", params={"status": "contacted"}).json()
    assert [l["id"] for l in listed["leads"]] == [lead_id]
    assert client.get("/api/v1/leads", params={"status": "bogus"}).status_code == 400
    assert client.get("/api/v1/leads/LEAD-NOPE").status_code == 404


# === Discounts ===

def test_discounts_status_and_reload(client, config_dir):
    data = client.get("/api/v1/discounts").json()
    assert data["global"]["label"] == "-10%"

    (config_dir / "discounts.yaml").write_text("global:\n  type: fixed\n  value: 100\n", encoding="utf-8")
    r = client.post("/api/v1/discounts/reload")
    assert r.json()["status"] == "reloaded"
    assert client.get("/api/v1/discounts").json()["global"]["label"] == "-€100"


def test_reload_runs_in_threadpool():
    # file reads and cart re-pricing must not block the event loop
    assert not inspect.iscoroutinefunction(discounts_api.reload_config)
