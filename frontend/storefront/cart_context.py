# frontend/storefront/cart_context.py

import logging
from typing import Any, Dict, Optional

from storefront.api_client import ApiError, OrderApiClient
from storefront.cart_store import CartStore

logger = logging.getLogger("giftbloom.storefront.cart_context")

INITIAL_STATE = {
    "cart": None,
    "summary": None,
    "loading": True,
    "error": None,
}

REQUIRED_CHECKOUT_FIELDS = {
    "customer_name": "Full name is required",
    "customer_email": "Email is required",
}
REQUIRED_ADDRESS_FIELDS = ("street", "city", "postal_code")


def cart_reducer(state: Dict[str, Any], action: Dict[str, Any]) -> Dict[str, Any]:
    """Pure state transition for the cart UI state."""
    action_type = action.get("type")
    payload = action.get("payload")

    if action_type == "SET_CART":
        return {**state, "cart": payload["cart"], "summary": payload["summary"], "loading": False, "error": None}
    if action_type == "SET_LOADING":
        return {**state, "loading": payload}
    if action_type == "SET_ERROR":
        return {**state, "error": payload, "loading": False}
    if action_type == "CLEAR_ERROR":
        return {**state, "error": None}
    return state


def validate_checkout_data(checkout_data: Dict[str, Any]) -> list:
    errors = [message for field, message in REQUIRED_CHECKOUT_FIELDS.items()
              if not str(checkout_data.get(field) or "").strip()]
    address = checkout_data.get("shipping_address") or {}
    for field in REQUIRED_ADDRESS_FIELDS:
        if not str(address.get(field) or "").strip():
            errors.append(f"Shipping address {field.replace('_', ' ')} is required")
    return errors


class CartContext:
    """
    UI-facing cart state.

    Subscribes to the CartStore and reloads the whole cart each time a change
    event fires. Reloads are not de-duplicated.
    """

    def __init__(self, store: CartStore, api_client: Optional[OrderApiClient] = None):
        self.store = store
        self.api_client = api_client
        self.state = dict(INITIAL_STATE)
        self.store.add_change_listener(self._handle_cart_change)
        self.load_cart()

    def dispatch(self, action: Dict[str, Any]):
        self.state = cart_reducer(self.state, action)

    def _handle_cart_change(self, event: Dict[str, Any]):
        logger.debug(f"Cart change event received: {event}")
        self.load_cart()

    def close(self):
        self.store.remove_change_listener(self._handle_cart_change)

    def load_cart(self):
        self.dispatch({"type": "SET_LOADING", "payload": True})
        try:
            result = self.store.get_cart()
        except Exception as e:
            logger.error(f"Error loading cart: {e}")
            self.dispatch({"type": "SET_ERROR", "payload": "Failed to load cart"})
            return
        self.dispatch({"type": "SET_CART", "payload": result})

    def _apply(self, result: Dict[str, Any]) -> bool:
        if not result.get("success"):
            self.dispatch({"type": "SET_ERROR", "payload": result.get("error")})
            return False
        return True

    # --- actions ---
    def add_to_cart(self, product: Dict[str, Any], quantity: int = 1) -> bool:
        self.dispatch({"type": "CLEAR_ERROR"})
        return self._apply(self.store.add_item(product, quantity))

    def remove_from_cart(self, product_id) -> bool:
        self.dispatch({"type": "CLEAR_ERROR"})
        return self._apply(self.store.remove_item(product_id))

    def update_quantity(self, product_id, quantity: int) -> bool:
        self.dispatch({"type": "CLEAR_ERROR"})
        return self._apply(self.store.update_quantity(product_id, quantity))

    def clear_cart(self) -> bool:
        self.dispatch({"type": "CLEAR_ERROR"})
        return self._apply(self.store.clear_cart())

    def validate_cart(self) -> Dict[str, Any]:
        return self.store.validate_cart()

    def clear_error(self):
        self.dispatch({"type": "CLEAR_ERROR"})

    def process_checkout(self, checkout_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit the cart as an order.

        The cart is cleared only after the API confirms the order. Every
        failure ends up in ``state["error"]`` and in the returned ``errors``.
        """
        self.dispatch({"type": "CLEAR_ERROR"})

        errors = validate_checkout_data(checkout_data)
        validation = self.validate_cart()
        errors.extend(validation["errors"])
        if errors:
            self.dispatch({"type": "SET_ERROR", "payload": ", ".join(errors)})
            return {"success": False, "errors": errors}

        if self.api_client is None:
            raise RuntimeError("CartContext was created without an API client")

        cart = self.store.load()
        payload = {
            **checkout_data,
            "items": CartStore.to_order_items(cart),
        }

        self.dispatch({"type": "SET_LOADING", "payload": True})
        try:
            order = self.api_client.create_order(payload)
        except ApiError as e:
            logger.error(f"Checkout failed: {e}")
            self.dispatch({"type": "SET_ERROR", "payload": str(e)})
            return {"success": False, "errors": e.errors or [str(e)]}
        self.dispatch({"type": "SET_LOADING", "payload": False})

        self.clear_cart()
        return {"success": True, "order": order}

    # --- computed values ---
    @property
    def cart(self):
        return self.state["cart"]

    @property
    def summary(self):
        return self.state["summary"]

    @property
    def loading(self) -> bool:
        return self.state["loading"]

    @property
    def error(self) -> Optional[str]:
        return self.state["error"]

    @property
    def total_items(self) -> int:
        return (self.summary or {}).get("total_items", 0)

    @property
    def total_price(self) -> float:
        return (self.summary or {}).get("total_price", 0.0)

    @property
    def is_empty(self) -> bool:
        return (self.summary or {}).get("is_empty", True)

    def is_in_cart(self, product_id) -> bool:
        return self.cart is not None and self.cart.get_item(product_id) is not None

    def get_item_quantity(self, product_id) -> int:
        if self.cart is None:
            return 0
        item = self.cart.get_item(product_id)
        return item.quantity if item else 0
