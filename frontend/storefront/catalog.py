# frontend/storefront/catalog.py

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "products.json"

SORT_OPTIONS = {
    "featured": "Featured",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
    "rating": "Highest Rated",
    "newest": "Newest First",
}


def load_catalog(path: Path = DEFAULT_CATALOG_PATH) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def get_product(catalog: Dict[str, Any], product_id: str) -> Optional[Dict[str, Any]]:
    return next((p for p in catalog["products"] if str(p["id"]) == str(product_id)), None)


def category_options(catalog: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Categories with product counts, "all" first."""
    products = catalog["products"]
    options = [{"id": "all", "name": "All Products", "count": len(products)}]
    for category in catalog.get("categories", []):
        options.append({
            **category,
            "count": sum(1 for p in products if p.get("category") == category["id"]),
        })
    return options


def _matches_search(product: Dict[str, Any], term: str) -> bool:
    term = term.lower()
    return (
        term in product.get("name", "").lower()
        or term in product.get("description", "").lower()
        or any(term in tag.lower() for tag in product.get("tags", []))
    )


def filter_products(
    products: List[Dict[str, Any]],
    category: str = "all",
    search_term: str = "",
    price_range: Tuple[float, float] = (0, 200),
    sort_by: str = "featured",
) -> List[Dict[str, Any]]:
    filtered = list(products)

    if category and category != "all":
        filtered = [p for p in filtered if p.get("category") == category]

    if search_term.strip():
        filtered = [p for p in filtered if _matches_search(p, search_term.strip())]

    low, high = price_range
    filtered = [p for p in filtered if low <= p.get("price", 0) <= high]

    if sort_by == "price-low":
        filtered.sort(key=lambda p: p.get("price", 0))
    elif sort_by == "price-high":
        filtered.sort(key=lambda p: p.get("price", 0), reverse=True)
    elif sort_by == "rating":
        filtered.sort(key=lambda p: p.get("rating", 0), reverse=True)
    elif sort_by == "newest":
        filtered.sort(key=lambda p: p.get("added_at", ""), reverse=True)
    else:
        # stable: featured products first, catalog order otherwise
        filtered.sort(key=lambda p: not p.get("is_featured", False))

    return filtered
