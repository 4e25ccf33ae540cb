import asyncio
import os

import pytest
import yaml

# The app module builds its engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from fiera.catalog.models import CatalogItem
from fiera.db.database import build_session_factory, create_tables
from fiera.engines.pricing.discounts import DiscountConfig
from fiera.engines.rules.models import BundleGift, Requires, RuleSet, mutually_exclusive

from helpers import BUNDLE_TRIGGERS, CATALOG_ROWS, DISCOUNTS_DOC, NOW, RULE_ROWS


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def catalog():
    return [CatalogItem.from_dict(row) for row in CATALOG_ROWS]


@pytest.fixture
def rules():
    return RuleSet([
        BundleGift(frozenset(BUNDLE_TRIGGERS), "foto-invitati", rule_id="pacchetto-completo"),
        Requires("album-30x40", frozenset(["servizio-fotografico"]), rule_id="album-richiede-foto"),
        *mutually_exclusive("chiavetta-usb", "stampe-fine-art"),
    ])


@pytest.fixture
def ten_percent():
    return DiscountConfig.from_dict(DISCOUNTS_DOC)


@pytest.fixture
def config_dir(tmp_path):
    """A configuration directory with catalog, rules and discounts"""
    path = tmp_path / "config"
    path.mkdir()
    (path / "catalog.yaml").write_text(yaml.safe_dump({"items": CATALOG_ROWS}), encoding="utf-8")
    (path / "rules.yaml").write_text(yaml.safe_dump({"rules": RULE_ROWS}), encoding="utf-8")
    (path / "discounts.yaml").write_text(yaml.safe_dump(DISCOUNTS_DOC), encoding="utf-8")
    return path


@pytest.fixture
def session_factory(tmp_path):
    """File-backed SQLite per test; NullPool keeps connections loop-local."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leads.db'}", poolclass=NullPool)
    asyncio.run(create_tables(engine))
    yield build_session_factory(engine)
    asyncio.run(engine.dispose())
