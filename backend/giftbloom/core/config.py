# backend/giftbloom/core/config.py

import os
from decimal import Decimal
from typing import Dict

from dotenv import load_dotenv

# Load .env from the working directory (no-op when absent)
load_dotenv()

SERVICE_NAME = "GiftBloom Backend API"
SERVICE_VERSION = "1.0.0"

APP_ENV = os.getenv("APP_ENV", "development")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8501")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Pricing rules ---
TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.08"))
SHIPPING_FLAT_RATE = Decimal(os.getenv("SHIPPING_FLAT_RATE", "5.99"))
FREE_SHIPPING_THRESHOLD = Decimal(os.getenv("FREE_SHIPPING_THRESHOLD", "50.00"))
PROMO_CODES_RAW = os.getenv("PROMO_CODES", "SAVE10:10,SAVE20:20,WELCOME15:15")

# Days added to the order date when estimating delivery on the tracking page
ESTIMATED_DELIVERY_DAYS = int(os.getenv("ESTIMATED_DELIVERY_DAYS", "5"))


def parse_promo_codes(raw: str) -> Dict[str, Decimal]:
    """Parse "CODE:percent,CODE:percent" into {CODE: Decimal(percent)}."""
    codes = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        code, _, percent = entry.partition(":")
        if not percent:
            raise ValueError(f"Promo code '{code}' has no percentage")
        codes[code.strip().upper()] = Decimal(percent.strip())
    return codes


PROMO_CODES = parse_promo_codes(PROMO_CODES_RAW)
