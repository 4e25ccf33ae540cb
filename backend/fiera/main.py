"""
Fiera Quote - FastAPI Application Entry Point
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fiera import __version__
from fiera.api import cart, catalog, discounts, health, leads
from fiera.cart.repository import get_cart_repo
from fiera.catalog.repository import get_catalog_repo
from fiera.core.config_store import get_config_store
from fiera.db.database import create_tables

logger = logging.getLogger(__name__)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FIERA_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    await create_tables()

    store = get_config_store()
    store.watch(get_catalog_repo().apply_snapshot)
    store.watch(get_cart_repo().apply_snapshot)
    snapshot = store.load_all()

    logger.info(
        f"Fiera Quote is starting up: {len(snapshot.catalog)} items, "
        f"{len(snapshot.rules)} rules"
    )
    yield
    # Shutdown
    logger.info("Fiera Quote is shutting down")


app = FastAPI(
    title="Fiera Quote",
    description="Pricing, discounts and selection rules for the studio storefront",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(catalog.router, prefix="/api/v1/catalog", tags=["Catalog"])
app.include_router(cart.router, prefix="/api/v1/cart", tags=["Cart"])
app.include_router(leads.router, prefix="/api/v1/leads", tags=["Leads"])
app.include_router(discounts.router, prefix="/api/v1/discounts", tags=["Discounts"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Fiera Quote",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
    }
