#!/usr/bin/env python3
"""
Quick script to add sample orders for the admin page and statistics demo
"""

import os
import random

import requests

# Configuration
API_BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000").rstrip("/") + "/api"

PRODUCTS = [
    ("bear-classic-grad", 29.99),
    ("bear-jumbo-grad", 59.99),
    ("bear-mini-duo", 19.50),
    ("bouquet-sunflower", 45.00),
    ("bouquet-rose-gold", 64.99),
    ("bouquet-preserved", 89.00),
    ("set-bear-bouquet", 69.99),
    ("set-sweet-success", 34.50),
]

SAMPLE_CUSTOMERS = [
    {
        "customer_name": "Alice Johnson",
        "customer_email": "alice.johnson@example.com",
        "customer_phone": "555-0101",
        "shipping_address": {"street": "123 Tech Street", "city": "San Francisco", "state": "CA", "postal_code": "94105"},
    },
    {
        "customer_name": "Bob Smith",
        "customer_email": "bob.smith@example.com",
        "customer_phone": "555-0102",
        "shipping_address": {"street": "456 Commerce Ave", "city": "New York", "state": "NY", "postal_code": "10001"},
    },
    {
        "customer_name": "Carol Davis",
        "customer_email": "carol.davis@example.com",
        "customer_phone": "555-0103",
        "shipping_address": {"street": "789 Market Road", "city": "Chicago", "state": "IL", "postal_code": "60601"},
    },
]

# Status each sample order is walked to after creation
STATUS_PATHS = [
    [],
    ["processing"],
    ["processing", "shipped"],
    ["processing", "shipped", "completed"],
    ["cancelled"],
]


def create_sample_order(order_data):
    """Create a sample order"""
    response = requests.post(f"{API_BASE}/orders", json=order_data, timeout=10)
    if response.status_code == 201:
        return response.json()["data"]
    print(f"Failed to create order: {response.status_code} - {response.text}")
    return None


def advance_order(order_id, statuses):
    for status in statuses:
        response = requests.patch(f"{API_BASE}/orders/{order_id}/status", json={"status": status}, timeout=10)
        if response.status_code != 200:
            print(f"Failed to move order {order_id} to {status}: {response.status_code} - {response.text}")
            return False
    return True


def main():
    print("🚀 Adding sample orders...")

    try:
        response = requests.get(f"{API_BASE}/orders", params={"limit": 1}, timeout=10)
    except requests.exceptions.ConnectionError:
        print(f"❌ Could not connect to backend at {API_BASE}")
        return

    if response.status_code == 200:
        existing = response.json()["pagination"]["total"]
        print(f"📊 Found {existing} existing orders")
        if existing >= 10:
            print("✅ Sufficient order data already exists")
            return

    created = 0
    for i in range(10):
        customer = random.choice(SAMPLE_CUSTOMERS)
        items = [
            {"product_id": product_id, "quantity": random.randint(1, 3), "unit_price": price}
            for product_id, price in random.sample(PRODUCTS, random.randint(1, 3))
        ]
        order_data = {
            **customer,
            "payment_method": random.choice(["credit_card", "paypal", "cash_on_delivery"]),
            "items": items,
            "promo_code": random.choice([None, None, "SAVE10", "WELCOME15"]),
        }
        order = create_sample_order(order_data)
        if not order:
            continue
        created += 1
        advance_order(order["id"], STATUS_PATHS[i % len(STATUS_PATHS)])
        print(f"✅ Created order {order['id']} for {customer['customer_name']} (${order['total_amount']:.2f})")

    print(f"✅ Created {created} sample orders")
    print("\n💡 Open the storefront at: http://localhost:8501/?page=admin")


if __name__ == "__main__":
    main()
