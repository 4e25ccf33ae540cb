"""
Catalog API Router

Storefront catalog with availability and gift status
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query

from fiera.cart.repository import get_cart_repo
from fiera.catalog.repository import get_catalog_repo

router = APIRouter()


@router.get("")
async def list_catalog(selected: List[str] = Query(default=[])):
    """
    Active items annotated for a given selection.

    `selected` is evaluated as-is (no gating), so the response also shows
    conflicts a stored selection would have.
    """
    cart = get_cart_repo().new_cart()
    cart.restore(selected)
    items = cart.catalog_with_availability()
    return {
        "items": items,
        "count": len(items),
        "selected": cart.item_ids,
        "pricing": cart.get_breakdown().to_dict(),
        "conflicts": cart.conflicts(),
    }


@router.get("/items")
async def list_items(include_inactive: bool = False):
    """Raw catalog items"""
    items = await get_catalog_repo().list(include_inactive=include_inactive)
    return {"items": [i.to_dict() for i in items], "count": len(items)}


@router.get("/items/{item_id}")
async def get_item(item_id: str):
    item = await get_catalog_repo().get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"Item {item_id} not found")
    return item.to_dict()
