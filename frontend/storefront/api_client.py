# frontend/storefront/api_client.py

from typing import Any, Dict, List, Optional, Tuple

import requests

from storefront.constants import API_BASE_URL, API_TIMEOUT


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class OrderApiClient:
    """Thin wrapper over the /api/orders endpoints that unwraps the response envelope."""

    def __init__(self, base_url: str = API_BASE_URL, timeout: float = API_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, endpoint: str, json_data=None, params=None) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, json=json_data, params=params, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            raise ApiError(f"Could not connect to backend at {self.base_url}. Is the server running?") from e
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            raise ApiError(f"HTTP {response.status_code}: {response.text}", status_code=response.status_code)

        if not response.ok or not body.get("success", False):
            errors = [f"{error.get('field')}: {error.get('message')}" for error in body.get("errors", [])]
            raise ApiError(body.get("message", f"HTTP {response.status_code}"),
                           status_code=response.status_code, errors=errors)
        return body

    # --- checkout ---
    def create_order(self, order_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/orders", json_data=order_data)["data"]

    def calculate_totals(self, items: List[Dict[str, Any]], promo_code: Optional[str] = None,
                         shipping_address: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {"items": items, "promo_code": promo_code or None, "shipping_address": shipping_address}
        return self._request("POST", "/orders/calculate-totals", json_data=payload)["data"]

    def get_order_tracking(self, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/orders/{order_id}/tracking")["data"]

    # --- admin ---
    def list_orders(self, page: int = 1, limit: int = 10, status: Optional[str] = None,
                    user_id: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        params = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        if user_id:
            params["userId"] = user_id
        body = self._request("GET", "/orders", params=params)
        return body["data"], body.get("pagination", {})

    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/orders/{order_id}")["data"]

    def update_order_status(self, order_id: str, status: str, notes: Optional[str] = None) -> Dict[str, Any]:
        payload = {"status": status}
        if notes:
            payload["notes"] = notes
        return self._request("PATCH", f"/orders/{order_id}/status", json_data=payload)["data"]

    def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return self._request("PATCH", f"/orders/{order_id}/cancel", json_data={"reason": reason})["data"]

    def process_payment(self, order_id: str, payment_method: str, amount: Optional[float] = None) -> Dict[str, Any]:
        payload = {"payment_method": payment_method, "amount": amount}
        return self._request("POST", f"/orders/{order_id}/payment", json_data=payload)["data"]

    def get_statistics(self, period: str = "30d") -> Dict[str, Any]:
        return self._request("GET", "/orders/statistics", params={"period": period})["data"]

    def delete_order(self, order_id: str) -> bool:
        return self._request("DELETE", f"/orders/{order_id}")["success"]
