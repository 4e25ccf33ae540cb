"""
Cart API Router

Cart sessions: the server owns the selection, rules and pricing; the
client only renders what comes back.
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from fiera.cart.repository import get_cart_repo

router = APIRouter()
logger = logging.getLogger(__name__)


class AddItemRequest(BaseModel):
    item_id: str


async def _get_cart_or_404(cart_id: str):
    cart = await get_cart_repo().get(cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail=f"Cart {cart_id} not found")
    return cart


@router.post("")
async def create_cart():
    cart = await get_cart_repo().create()
    logger.info(f"Opened cart {cart.id}")
    return cart.to_dict()


@router.get("/{cart_id}")
async def get_cart(cart_id: str):
    cart = await _get_cart_or_404(cart_id)
    return cart.to_dict()


@router.get("/{cart_id}/catalog")
async def get_cart_catalog(cart_id: str):
    """Catalog annotated with this cart's availability and gifts"""
    cart = await _get_cart_or_404(cart_id)
    return {"items": cart.catalog_with_availability()}


@router.post("/{cart_id}/items")
async def add_item(cart_id: str, request: AddItemRequest):
    """Add an item; 409 with the reason when the rules block it"""
    cart = await _get_cart_or_404(cart_id)

    if cart.evaluator.get(request.item_id) is None:
        raise HTTPException(status_code=404, detail=f"Item {request.item_id} not found")
    if cart.is_in_cart(request.item_id):
        raise HTTPException(status_code=409, detail=f"Item {request.item_id} already in cart")

    if not cart.add(request.item_id):
        raise HTTPException(status_code=409, detail=cart.unavailable_reason(request.item_id))

    return cart.to_dict()


@router.delete("/{cart_id}/items/{item_id}")
async def remove_item(cart_id: str, item_id: str):
    cart = await _get_cart_or_404(cart_id)
    if not cart.remove(item_id):
        raise HTTPException(status_code=404, detail=f"Item {item_id} not in cart")
    return cart.to_dict()


@router.delete("/{cart_id}")
async def clear_cart(cart_id: str):
    cart = await _get_cart_or_404(cart_id)
    cart.clear()
    return cart.to_dict()
