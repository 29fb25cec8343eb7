# frontend/storefront/cart.py

from typing import Any, Dict, List, Optional


class CartItem:
    """One cart line: a product and how many of it."""

    def __init__(self, product: Dict[str, Any], quantity: int = 1):
        self.id = str(product["id"])
        self.product = product
        self.quantity = max(0, int(quantity))

    @property
    def unit_price(self) -> float:
        return float(self.product.get("price", 0))

    def get_total_price(self) -> float:
        return self.unit_price * self.quantity

    def get_formatted_total_price(self) -> str:
        return f"${self.get_total_price():.2f}"

    def increase_quantity(self, amount: int = 1):
        self.quantity = max(0, self.quantity + amount)

    def decrease_quantity(self, amount: int = 1):
        self.quantity = max(0, self.quantity - amount)

    def set_quantity(self, quantity: int):
        self.quantity = max(0, int(quantity))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product": self.product,
            "quantity": self.quantity,
            "total_price": self.get_total_price(),
        }


class Cart:
    """
    Ordered collection of cart lines keyed by product id.

    Adding a product that is already in the cart bumps its quantity instead of
    appending a second line. Totals are recomputed on every call.
    """

    def __init__(self, items: Optional[List[Any]] = None):
        self.items: List[CartItem] = []
        for item in items or []:
            if isinstance(item, CartItem):
                self.items.append(item)
            else:
                self.items.append(CartItem(item["product"], item.get("quantity", 1)))

    def _find(self, product_id) -> Optional[CartItem]:
        product_id = str(product_id)
        return next((item for item in self.items if item.id == product_id), None)

    def add_item(self, product: Dict[str, Any], quantity: int = 1):
        # Lowering a quantity goes through update_quantity
        if quantity <= 0:
            return
        existing = self._find(product["id"])
        if existing:
            existing.increase_quantity(quantity)
        else:
            self.items.append(CartItem(product, quantity))

    def remove_item(self, product_id):
        product_id = str(product_id)
        self.items = [item for item in self.items if item.id != product_id]

    def update_quantity(self, product_id, quantity: int):
        item = self._find(product_id)
        if item is None:
            return
        if quantity <= 0:
            self.remove_item(product_id)
        else:
            item.set_quantity(quantity)

    def get_item(self, product_id) -> Optional[CartItem]:
        return self._find(product_id)

    def clear(self):
        self.items = []

    def get_total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def get_total_price(self) -> float:
        return sum(item.get_total_price() for item in self.items)

    def get_formatted_total_price(self) -> str:
        return f"${self.get_total_price():.2f}"

    def is_empty(self) -> bool:
        return len(self.items) == 0

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_items": self.get_total_items(),
            "total_price": self.get_total_price(),
            "formatted_total_price": self.get_formatted_total_price(),
            "is_empty": self.is_empty(),
            "item_count": len(self.items),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "summary": self.get_summary(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Cart":
        if not data:
            return cls()
        return cls(data.get("items", []))
