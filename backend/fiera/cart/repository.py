"""
Cart Repository

In-memory cart sessions. Subscribed to the configuration store: when a new
catalog / rules / discounts snapshot is published, every open cart is
re-evaluated against it.
"""

import logging
from typing import Callable, Dict, Optional

from fiera.cart.cart import Cart
from fiera.core.config_store import PricingSnapshot

logger = logging.getLogger(__name__)


class CartRepository:
    """In-memory repository for cart sessions"""

    def __init__(self, snapshot: Optional[PricingSnapshot] = None, clock: Optional[Callable] = None):
        self._carts: Dict[str, Cart] = {}
        self._snapshot = snapshot or PricingSnapshot.empty()
        self._clock = clock

    @property
    def snapshot(self) -> PricingSnapshot:
        return self._snapshot

    def apply_snapshot(self, snapshot: PricingSnapshot):
        """Configuration store watcher: push the new snapshot into every cart"""
        self._snapshot = snapshot
        for cart in self._carts.values():
            cart.update_config(
                catalog=snapshot.catalog,
                rules=snapshot.rules,
                discounts=snapshot.discounts,
            )
        logger.info(f"Applied configuration snapshot to {len(self._carts)} carts")

    def new_cart(self) -> Cart:
        return Cart(
            self._snapshot.catalog,
            self._snapshot.rules,
            self._snapshot.discounts,
            clock=self._clock,
        )

    async def create(self) -> Cart:
        """Open a new cart session"""
        cart = self.new_cart()
        self._carts[cart.id] = cart
        return cart

    async def get(self, cart_id: str) -> Optional[Cart]:
        return self._carts.get(cart_id)


_cart_repo: Optional[CartRepository] = None


def get_cart_repo() -> CartRepository:
    """Get the shared CartRepository instance."""
    global _cart_repo
    if _cart_repo is None:
        _cart_repo = CartRepository()
    return _cart_repo


def set_cart_repo(repo: CartRepository):
    global _cart_repo
    _cart_repo = repo
