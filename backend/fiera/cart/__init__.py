"""
Cart Module

Customer selection state
"""

from fiera.cart.cart import Cart
from fiera.cart.models import CartItem
from fiera.cart.repository import CartRepository, get_cart_repo, set_cart_repo

__all__ = [
    "Cart",
    "CartItem",
    "CartRepository",
    "get_cart_repo",
    "set_cart_repo",
]
