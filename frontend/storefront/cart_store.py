# frontend/storefront/cart_store.py

import json
import logging
from typing import Any, Callable, Dict, List, MutableMapping

from storefront.cart import Cart
from storefront.constants import CART_STORAGE_KEY, MAX_QUANTITY_PER_ITEM

logger = logging.getLogger("giftbloom.storefront.cart_store")

CartListener = Callable[[Dict[str, Any]], None]


class CartStore:
    """
    Keeps the cart as JSON inside a mapping backend.

    In the Streamlit app the backend is ``st.session_state``; tests pass a
    plain dict. Every successful mutation saves the cart and then fires the
    change listeners with an event dict such as ``{"type": "item_added"}``.
    Mutations report problems through ``{"success": False, "error": ...}``
    instead of raising.
    """

    def __init__(self, storage: MutableMapping, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._listeners: List[CartListener] = []

    # --- listeners ---
    def add_change_listener(self, listener: CartListener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: CartListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event_type: str, **detail):
        event = {"type": event_type, **detail}
        for listener in list(self._listeners):
            listener(event)

    # --- persistence ---
    def load(self) -> Cart:
        raw = self.storage.get(self.key)
        if not raw:
            return Cart()
        try:
            return Cart.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable stored cart: {e}")
            return Cart()

    def save(self, cart: Cart):
        self.storage[self.key] = json.dumps(cart.to_dict())

    def get_cart(self) -> Dict[str, Any]:
        cart = self.load()
        return {"cart": cart, "summary": cart.get_summary()}

    # --- mutations ---
    def add_item(self, product: Dict[str, Any], quantity: int = 1) -> Dict[str, Any]:
        if not product or product.get("id") is None:
            return {"success": False, "error": "Cannot add product to cart: invalid product"}
        if quantity <= 0:
            return {"success": False, "error": "Quantity must be at least 1"}

        cart = self.load()
        existing = cart.get_item(product["id"])
        if (existing.quantity if existing else 0) + quantity > MAX_QUANTITY_PER_ITEM:
            return {"success": False, "error": f"You can order at most {MAX_QUANTITY_PER_ITEM} of {product.get('name', 'this item')}"}

        cart.add_item(product, quantity)
        self.save(cart)
        self._notify("item_added", product_id=str(product["id"]), quantity=quantity)
        return {"success": True, "cart": cart}

    def remove_item(self, product_id) -> Dict[str, Any]:
        cart = self.load()
        if cart.get_item(product_id) is None:
            return {"success": False, "error": "Item not found in cart"}
        cart.remove_item(product_id)
        self.save(cart)
        self._notify("item_removed", product_id=str(product_id))
        return {"success": True, "cart": cart}

    def update_quantity(self, product_id, quantity: int) -> Dict[str, Any]:
        if quantity > MAX_QUANTITY_PER_ITEM:
            return {"success": False, "error": f"You can order at most {MAX_QUANTITY_PER_ITEM} of an item"}
        cart = self.load()
        if cart.get_item(product_id) is None:
            return {"success": False, "error": "Item not found in cart"}
        cart.update_quantity(product_id, quantity)
        self.save(cart)
        self._notify("quantity_updated", product_id=str(product_id), quantity=max(quantity, 0))
        return {"success": True, "cart": cart}

    def clear_cart(self) -> Dict[str, Any]:
        cart = Cart()
        self.save(cart)
        self._notify("cart_cleared")
        return {"success": True, "cart": cart}

    def validate_cart(self) -> Dict[str, Any]:
        cart = self.load()
        errors = []
        if cart.is_empty():
            errors.append("Your cart is empty")
        for item in cart.items:
            name = item.product.get("name", item.id)
            if item.unit_price <= 0:
                errors.append(f"{name} has an invalid price")
            if item.quantity > MAX_QUANTITY_PER_ITEM:
                errors.append(f"{name}: quantity exceeds {MAX_QUANTITY_PER_ITEM}")
        return {"is_valid": not errors, "errors": errors}

    @staticmethod
    def to_order_items(cart: Cart) -> List[Dict[str, Any]]:
        """Cart lines in the shape the order API expects."""
        return [
            {"product_id": item.id, "quantity": item.quantity, "unit_price": item.unit_price}
            for item in cart.items
        ]
