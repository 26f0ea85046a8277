"""
In-Memory Cart Store

Guest carts are short-lived session state: they live in a bounded
``cachetools.TTLCache`` and disappear after ``cart_ttl_seconds`` without an
update, or when the cache is full and the oldest carts are evicted.
Nothing here is persisted; checkout copies the lines into the orders table.

Usage:
    from takeaway.services.cart import get_cart_store

    carts = get_cart_store()
    cart = carts.create()
    carts.add_item(cart.id, item_id="spring-rolls", name="Spring Rolls", base_price_pence=450)
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

from cachetools import TTLCache

from takeaway.core.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class CartItem:
    """
    A cart line. ``unit_price_pence`` already includes modifier deltas.
    """
    item_id: str
    name: str
    qty: int
    unit_price_pence: int
    modifiers: list[dict[str, Any]] = field(default_factory=list)

    @property
    def line_total_pence(self) -> int:
        return self.unit_price_pence * self.qty

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "qty": self.qty,
            "unit_price_pence": self.unit_price_pence,
            "line_total_pence": self.line_total_pence,
            "modifiers": self.modifiers,
        }


@dataclass
class Cart:
    id: str
    items: list[CartItem] = field(default_factory=list)

    @property
    def subtotal_pence(self) -> int:
        return sum(item.line_total_pence for item in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": [item.to_dict() for item in self.items],
            "subtotal_pence": self.subtotal_pence,
        }


def modifier_delta_pence(modifiers: list[dict[str, Any]]) -> int:
    """Sum of ``price_delta_pence`` over the chosen modifiers."""
    return sum(int(m.get("price_delta_pence") or 0) for m in modifiers)


class CartStore:
    """
    Bounded, expiring cart storage.

    Args:
        ttl_seconds: Idle lifetime of a cart; refreshed on every update
        maxsize: Maximum number of carts held at once
        timer: Clock used for expiry
    """

    def __init__(self, ttl_seconds: int = 3600, maxsize: int = 10000, timer=time.monotonic):
        self._carts: TTLCache[str, Cart] = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)

    def __len__(self) -> int:
        return len(self._carts)

    def create(self) -> Cart:
        cart_id = secrets.token_urlsafe(8)
        while cart_id in self._carts:
            cart_id = secrets.token_urlsafe(8)
        cart = Cart(id=cart_id)
        self._carts[cart_id] = cart
        logger.debug(f"Cart {cart_id} created ({len(self._carts)} active)")
        return cart

    def get(self, cart_id: str) -> Optional[Cart]:
        return self._carts.get(cart_id)

    def add_item(
        self,
        cart_id: str,
        item_id: str,
        name: str,
        base_price_pence: int,
        qty: int = 1,
        modifiers: Optional[list[dict[str, Any]]] = None,
    ) -> Optional[Cart]:
        """
        Append a line to a cart.

        Args:
            cart_id: Cart to update
            item_id: Menu item id
            name: Menu item name
            base_price_pence: Menu price before modifiers
            qty: Quantity (must be positive)
            modifiers: Chosen options, each with an optional ``price_delta_pence``

        Returns:
            The updated cart, or None if the cart does not exist (or expired)

        Raises:
            ValueError: If qty is not positive or the unit price is negative
        """
        if qty < 1:
            raise ValueError("Quantity must be at least 1")

        modifiers = list(modifiers or [])
        unit_price_pence = base_price_pence + modifier_delta_pence(modifiers)
        if unit_price_pence < 0:
            raise ValueError(f"Unit price cannot be negative ({unit_price_pence})")

        cart = self._carts.get(cart_id)
        if cart is None:
            return None

        cart.items.append(CartItem(
            item_id=item_id,
            name=name,
            qty=qty,
            unit_price_pence=unit_price_pence,
            modifiers=modifiers,
        ))
        # Re-assign so the TTL restarts from this update
        self._carts[cart_id] = cart
        return cart

    def discard(self, cart_id: str) -> None:
        """Drop a cart once it has been checked out."""
        self._carts.pop(cart_id, None)

    def clear(self) -> None:
        self._carts.clear()


@lru_cache()
def get_cart_store() -> CartStore:
    """Get the process-wide cart store."""
    settings = get_settings()
    logger.info(
        f"Cart Store: TTL {settings.cart_ttl_seconds}s, "
        f"max {settings.cart_max_entries} carts"
    )
    return CartStore(
        ttl_seconds=settings.cart_ttl_seconds,
        maxsize=settings.cart_max_entries,
    )


def reset_cart_store() -> None:
    """Clear the cached cart store instance."""
    get_cart_store.cache_clear()
