# frontend/storefront/constants.py
import os

# FastAPI Backend URL for API calls (internal Docker network)
BACKEND_API_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
API_BASE_URL = f"{BACKEND_API_URL}/api"

# Seconds before a storefront API call is abandoned
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))

CART_STORAGE_KEY = "giftbloom_cart"
MAX_QUANTITY_PER_ITEM = 99

PLACEHOLDER_IMAGES = {
    "teddy-bears": "https://images.unsplash.com/photo-1551024709-8f23befc6f87?auto=format&fit=crop&w=400&q=80",
    "bouquets": "https://images.unsplash.com/photo-1563241527-3004b7be0ffd?auto=format&fit=crop&w=400&q=80",
}
DEFAULT_PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1542838132-92c53300491e?auto=format&fit=crop&w=400&q=80"

ORDER_STATUS_LABELS = {
    "pending": "🕒 Pending",
    "processing": "📦 Processing",
    "shipped": "🚚 Shipped",
    "completed": "✅ Completed",
    "cancelled": "❌ Cancelled",
}

PAYMENT_METHODS = {
    "credit_card": "Credit card",
    "paypal": "PayPal",
    "cash_on_delivery": "Cash on delivery",
    "bank_transfer": "Bank transfer",
}


def get_image_url(product):
    """
    Resolve the image to show for a catalog product.
    Products without a real image fall back to a per-category placeholder.
    """
    image_path = product.get("image_url")
    if image_path and image_path.startswith(('http://', 'https://')):
        return image_path

    # Relative /static paths are served by the backend
    if image_path and image_path.startswith('/static'):
        return f"{BACKEND_API_URL}{image_path}"

    return PLACEHOLDER_IMAGES.get(product.get("category"), DEFAULT_PLACEHOLDER_IMAGE)
