# frontend/streamlit_app.py

import logging

import pandas as pd
import streamlit as st
from dotenv import load_dotenv
from pythonjsonlogger.json import JsonFormatter

# Load environment variables from .env before the storefront constants are read
load_dotenv()

from storefront.api_client import ApiError, OrderApiClient
from storefront.cart_context import CartContext
from storefront.cart_store import CartStore
from storefront.catalog import SORT_OPTIONS, category_options, filter_products, load_catalog
from storefront.constants import ORDER_STATUS_LABELS, PAYMENT_METHODS, get_image_url

st.set_page_config(layout="wide", page_title="GiftBloom")

logger = logging.getLogger("giftbloom.storefront")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

PAGES = {
    "shop": "🛍️ Shop",
    "cart": "🛒 Cart",
    "track": "📦 Track Order",
    "admin": "🔧 Admin",
}


# --- URL Routing Setup ---
def navigate_to(page):
    """Switch page through the query string and rerun"""
    st.query_params["page"] = page
    st.rerun()


def current_page():
    page = st.query_params.get("page", "shop")
    return page if page in PAGES else "shop"


@st.cache_data
def get_catalog():
    return load_catalog()


def get_api_client():
    if "api_client" not in st.session_state:
        st.session_state.api_client = OrderApiClient()
    return st.session_state.api_client


def get_cart_context():
    """Cart lives in session_state; the context is rebuilt on each rerun"""
    store = CartStore(st.session_state)
    return CartContext(store, api_client=get_api_client())


def show_navigation(cart):
    columns = st.columns(len(PAGES))
    page = current_page()
    for column, (key, label) in zip(columns, PAGES.items()):
        with column:
            if key == "cart" and cart.total_items:
                label = f"{label} ({cart.total_items})"
            if st.button(label, key=f"nav_{key}", disabled=key == page, use_container_width=True):
                navigate_to(key)
    st.markdown("---")


# --- Main Page: Store ---
def show_shop_page(cart):
    catalog = get_catalog()
    st.title("🎓 GiftBloom Store")
    st.markdown("Find the perfect graduation gift to celebrate their achievement")

    with st.expander("🔎 Search & Filter Products", expanded=True):
        categories = category_options(catalog)
        col1, col2, col3, col4 = st.columns([0.35, 0.25, 0.2, 0.2])
        with col1:
            search_term = st.text_input("🔍 Search", "", placeholder="bear, roses, chocolate...")
        with col2:
            category = st.selectbox(
                "🏷️ Category",
                [c["id"] for c in categories],
                format_func=lambda cid: next(f"{c['name']} ({c['count']})" for c in categories if c["id"] == cid),
            )
        with col3:
            price_range = st.slider("💰 Price", 0, 200, (0, 200))
        with col4:
            sort_by = st.selectbox("↕️ Sort by", list(SORT_OPTIONS), format_func=SORT_OPTIONS.get)

    products = filter_products(catalog["products"], category, search_term, price_range, sort_by)
    if not products:
        st.info("No products match your filters.")
        return

    st.caption(f"{len(products)} products")
    for row_start in range(0, len(products), 3):
        columns = st.columns(3)
        for column, product in zip(columns, products[row_start:row_start + 3]):
            with column:
                st.image(get_image_url(product), use_container_width=True)
                st.markdown(f"**{product['name']}**")
                st.markdown(f"${product['price']:.2f} · ⭐ {product.get('rating', 0)} ({product.get('reviews', 0)})")
                st.caption(product.get("description", ""))
                in_cart = cart.get_item_quantity(product["id"])
                label = f"Add to cart ({in_cart} in cart)" if in_cart else "Add to cart"
                if st.button(label, key=f"add_{product['id']}", use_container_width=True):
                    if cart.add_to_cart(product):
                        st.toast(f"{product['name']} added to cart")
                        st.rerun()
                    else:
                        st.error(cart.error)


# --- Cart & Checkout ---
def show_cart_page(cart):
    st.title("🛒 Shopping Cart")

    if cart.is_empty:
        st.info("Your cart is empty. Go shopping!")
        if st.button("🛍️ Continue Shopping"):
            navigate_to("shop")
        return

    st.markdown(f"**Items in cart:** {cart.total_items} | **Subtotal:** {cart.cart.get_formatted_total_price()}")
    st.markdown("---")

    for item in list(cart.cart.items):
        col1, col2, col3, col4 = st.columns([0.2, 0.4, 0.2, 0.2])
        with col1:
            st.image(get_image_url(item.product), width=100)
        with col2:
            st.markdown(f"**{item.product.get('name', 'Unknown Product')}**")
            st.markdown(f"Price: ${item.unit_price:.2f}")
            st.markdown(f"Line total: {item.get_formatted_total_price()}")
        with col3:
            new_quantity = st.number_input("Qty", min_value=0, max_value=99, value=item.quantity,
                                           key=f"qty_{item.id}_{item.quantity}")
            if new_quantity != item.quantity:
                cart.update_quantity(item.id, new_quantity)
                st.rerun()
        with col4:
            if st.button("🗑️ Remove", key=f"remove_{item.id}"):
                cart.remove_from_cart(item.id)
                st.rerun()
        st.markdown("---")

    show_checkout_form(cart)


def show_checkout_form(cart):
    api = get_api_client()
    st.markdown("### 💳 Checkout")

    col1, col2 = st.columns(2)
    with col2:
        st.markdown("**Shipping Information:**")
        customer_name = st.text_input("Full Name", key="checkout_name")
        customer_email = st.text_input("Email", key="checkout_email")
        customer_phone = st.text_input("Phone", key="checkout_phone")
        street = st.text_input("Street", key="checkout_street")
        city_col, zip_col = st.columns(2)
        city = city_col.text_input("City", key="checkout_city")
        postal_code = zip_col.text_input("Postal code", key="checkout_postal_code")
        state = st.text_input("State", key="checkout_state")
        payment_method = st.selectbox("Payment method", list(PAYMENT_METHODS), format_func=PAYMENT_METHODS.get)
        notes = st.text_area("Gift message / notes", key="checkout_notes")

    with col1:
        st.markdown("**Order Summary:**")
        promo_code = st.text_input("Promo code", key="checkout_promo").strip()
        try:
            totals = api.calculate_totals(CartStore.to_order_items(cart.cart), promo_code or None)
            st.markdown(f"Items: {totals['item_count']}")
            st.markdown(f"Subtotal: ${totals['subtotal']:.2f}")
            st.markdown(f"Tax: ${totals['tax_amount']:.2f}")
            st.markdown(f"Shipping: ${totals['shipping_cost']:.2f}")
            if totals["discount_amount"]:
                st.markdown(f"Discount ({totals['promo_code']}): -${totals['discount_amount']:.2f}")
            elif promo_code:
                st.warning(f"Promo code '{promo_code}' is not valid")
            st.markdown(f"**Total: ${totals['total_amount']:.2f}**")
        except ApiError as e:
            st.error(f"Could not calculate totals: {e}")

    checkout_data = {
        "customer_name": customer_name,
        "customer_email": customer_email,
        "customer_phone": customer_phone or None,
        "shipping_address": {"street": street, "city": city, "state": state or None, "postal_code": postal_code},
        "payment_method": payment_method,
        "notes": notes or None,
        "promo_code": promo_code or None,
    }

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("🛍️ Continue Shopping", use_container_width=True):
            navigate_to("shop")
    with col2:
        if st.button("🗑️ Clear Cart", use_container_width=True):
            cart.clear_cart()
            st.rerun()
    with col3:
        if st.button("✅ Place Order", use_container_width=True, type="primary"):
            with st.spinner("Processing your order..."):
                result = cart.process_checkout(checkout_data)
            if result["success"]:
                order = result["order"]
                st.session_state.last_order_id = order["id"]
                logger.info("Order placed", extra={"order_id": order["id"]})
                st.success(f"🎉 Order placed! Your order number is `{order['id']}`")
                st.balloons()
            else:
                for error in result["errors"]:
                    st.error(error)


# --- Order tracking ---
def show_tracking_page():
    api = get_api_client()
    st.title("📦 Track Your Order")
    order_id = st.text_input("Order number", value=st.session_state.get("last_order_id", ""))
    if not order_id:
        return
    try:
        tracking = api.get_order_tracking(order_id.strip())
    except ApiError as e:
        st.error(str(e))
        return

    st.markdown(f"**Status:** {ORDER_STATUS_LABELS.get(tracking['order_status'], tracking['order_status'])}")
    st.markdown(f"**Payment:** {tracking['payment_status']}")
    if tracking.get("tracking_number"):
        st.markdown(f"**Tracking number:** `{tracking['tracking_number']}`")
    if tracking.get("estimated_delivery"):
        st.markdown(f"**Estimated delivery:** {tracking['estimated_delivery'][:10]}")
    for step in tracking["timeline"]:
        st.markdown(f"{'✅' if step['completed'] else '⬜'} {step['label']}")


# --- Admin ---
def show_admin_page():
    api = get_api_client()
    st.title("🔧 Orders Admin")

    period = st.selectbox("Statistics period", ["7d", "30d", "90d", "365d"], index=1)
    try:
        stats = api.get_statistics(period)
        col1, col2, col3, col4, col5 = st.columns(5)
        col1.metric("Orders", stats["total_orders"])
        col2.metric("Completed", stats["completed_orders"])
        col3.metric("Pending", stats["pending_orders"])
        col4.metric("Cancelled", stats["cancelled_orders"])
        col5.metric("Revenue", f"${stats['total_revenue']:.2f}", help=f"Average ${stats['average_order_value']:.2f}")
    except ApiError as e:
        st.error(f"Failed to load statistics: {e}")

    st.markdown("---")
    col1, col2 = st.columns(2)
    status_filter = col1.selectbox("Status", ["all"] + list(ORDER_STATUS_LABELS))
    page = col2.number_input("Page", min_value=1, value=1)
    try:
        orders, pagination = api.list_orders(page=page, limit=20,
                                             status=None if status_filter == "all" else status_filter)
    except ApiError as e:
        st.error(f"Failed to fetch orders: {e}")
        return

    if not orders:
        st.info("No orders found.")
        return

    df = pd.DataFrame(orders)[["id", "customer_name", "order_status", "payment_status", "total_amount", "created_at"]]
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.caption(f"Page {pagination.get('page')} of {pagination.get('pages')} · {pagination.get('total')} orders")

    st.markdown("### ✏️ Update order")
    order_id = st.selectbox("Order", [o["id"] for o in orders])
    new_status = st.selectbox("New status", list(ORDER_STATUS_LABELS), format_func=ORDER_STATUS_LABELS.get)
    notes = st.text_input("Notes")
    col1, col2, col3 = st.columns(3)
    if col3.button("Mark as paid", use_container_width=True):
        order = next(o for o in orders if o["id"] == order_id)
        try:
            result = api.process_payment(order_id, order["payment_method"], order["total_amount"])
            st.success(f"Payment recorded: {result['transaction_id']}")
            st.rerun()
        except ApiError as e:
            st.error(str(e))
    if col1.button("Update status", use_container_width=True):
        try:
            api.update_order_status(order_id, new_status, notes or None)
            st.success("Order status updated")
            st.rerun()
        except ApiError as e:
            st.error(str(e))
    if col2.button("Cancel order", use_container_width=True):
        try:
            api.cancel_order(order_id, notes or None)
            st.success("Order cancelled")
            st.rerun()
        except ApiError as e:
            st.error(str(e))


def main():
    cart = get_cart_context()
    show_navigation(cart)

    page = current_page()
    if page == "cart":
        show_cart_page(cart)
    elif page == "track":
        show_tracking_page()
    elif page == "admin":
        show_admin_page()
    else:
        show_shop_page(cart)


main()
