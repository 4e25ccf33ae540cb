"""
Discounts API Router

Current discount configuration and reload
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from fiera.core.config_store import get_config_store

router = APIRouter()


@router.get("")
async def get_discounts():
    """Discount configuration with each discount's current status"""
    snapshot = get_config_store().snapshot
    return snapshot.discounts.status_report(datetime.now(timezone.utc))


@router.post("/reload")
def reload_config():
    """Re-read the YAML configuration and push it to open carts"""
    snapshot = get_config_store().reload()
    return {"status": "reloaded", **snapshot.to_dict()}
