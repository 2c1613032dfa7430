"""Shared test fixtures for the storeforge test suite.

``known_store`` builds a small, precisely counted store so analytics can be
asserted exactly. All timestamps hang off ``NOW``; dispatchers and analytics
contexts are pinned to it.

Store "store_a" (the one under test):

* products: saree (20 in stock), kurta (3, low), dupatta (0, out of stock),
  lamp (50, never sold), planter (0 but draft), mug (archived)
* current 30 days: three paid orders (6000 + 4000 + 2000) and one unpaid
* previous 30 days: one paid order of 10000
* coupons SAVE10 (40/100 used, expires in 2 days) and FREESHIP (unbounded)
* 6 active, 2 recovered and 1 expired abandoned carts
* 5 unread notifications (3 false, 2 null) and 1 read

Store "store_b" exists only to check tenant isolation.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from storeforge.analytics.context import AnalyticsContext
from storeforge.api.server import create_app
from storeforge.config import Settings
from storeforge.store.duckdb_store import DuckDBStore
from storeforge.tools.contracts import ToolContext
from storeforge.tools.dispatcher import ToolDispatcher


NOW = datetime(2025, 6, 15, 12, 0, 0)
STORE = "store_a"
OTHER_STORE = "store_b"


def _days_ago(days: float, hours: float = 0) -> datetime:
    return NOW - timedelta(days=days, hours=hours)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

def _seed_products(db: DuckDBStore) -> None:
    rows = [
        ("p_saree", "Cotton Saree", "Sarees", 2000.0, 20, "published", "SAR-1"),
        ("p_kurta", "Block Kurta", "Kurtas", 1000.0, 3, "published", "KUR-1"),
        ("p_dupatta", "Silk Dupatta", "Accessories", 500.0, 0, "published", "DUP-1"),
        ("p_lamp", "Brass Lamp", "Home", 1500.0, 50, "published", "LMP-1"),
        ("p_planter", "Terracotta Planter", "Home", 300.0, 0, "draft", "PLN-1"),
        ("p_mug", "Old Mug", "Home", 200.0, 10, "archived", "MUG-1"),
    ]
    for pid, title, category, price, qty, status, sku in rows:
        db.insert("products", STORE, {
            "id": pid,
            "title": title,
            "category": category,
            "price": price,
            "quantity": qty,
            "track_quantity": True,
            "status": status,
            "sku": sku,
            "featured": False,
            "created_at": _days_ago(200),
        })


def _seed_orders(db: DuckDBStore) -> None:
    orders = [
        # id, number, total, payment, status, customer, created, shipped after hours, state, city, method, coupon, discount
        ("o1", "1001", 6000.0, "paid", "delivered", "c1", _days_ago(2), 24, "Karnataka", "Bengaluru", "upi", "SAVE10", 600.0),
        ("o2", "1002", 4000.0, "paid", "shipped", "c2", _days_ago(5), 48, "Maharashtra", "Mumbai", "card", None, 0.0),
        ("o3", "1003", 2000.0, "paid", "confirmed", "c1", _days_ago(10), None, "Karnataka", "Bengaluru", "upi", None, 0.0),
        ("o4", "1004", 1500.0, "pending", "pending", None, _days_ago(3), None, "Delhi", "New Delhi", "cod", None, 0.0),
        ("o5", "1005", 10000.0, "paid", "delivered", "c2", _days_ago(40), 30, "Maharashtra", "Mumbai", "card", None, 0.0),
    ]
    names = {"c1": ("Asha Rao", "asha@example.com"), "c2": ("Vikram Shah", "vikram@example.com")}
    for oid, number, total, payment, status, cid, created, ship_hours, state, city, method, coupon, discount in orders:
        name, email = names.get(cid, ("Guest Buyer", "Guest@Example.com"))
        db.insert("orders", STORE, {
            "id": oid,
            "order_number": number,
            "total": total,
            "payment_status": payment,
            "status": status,
            "customer_id": cid,
            "customer_name": name,
            "customer_email": email,
            "created_at": created,
            "shipped_at": created + timedelta(hours=ship_hours) if ship_hours else None,
            "shipping_state": state,
            "shipping_city": city,
            "payment_method": method,
            "coupon_code": coupon,
            "discount_amount": discount,
        })

    items = [
        ("o1", "p_saree", "Cotton Saree", 3, 6000.0),
        ("o2", "p_kurta", "Block Kurta", 2, 2000.0),
        ("o2", "p_dupatta", "Silk Dupatta", 4, 2000.0),
        ("o3", "p_saree", "Cotton Saree", 1, 2000.0),
        ("o4", "p_kurta", "Block Kurta", 1, 1500.0),
        ("o5", "p_saree", "Cotton Saree", 5, 10000.0),
    ]
    for order_id, product_id, title, qty, total in items:
        db.insert("order_items", STORE, {
            "order_id": order_id,
            "product_id": product_id,
            "title": title,
            "quantity": qty,
            "total": total,
        })

    for cid, (name, email) in names.items():
        db.insert("customers", STORE, {"id": cid, "name": name, "email": email, "created_at": _days_ago(90)})


def _seed_marketing(db: DuckDBStore) -> None:
    db.insert("coupons", STORE, {
        "id": "cp_save10",
        "code": "SAVE10",
        "discount_type": "percentage",
        "discount_value": 10,
        "max_uses": 100,
        "used_count": 40,
        "expires_at": NOW + timedelta(days=2),
        "is_active": True,
    })
    db.insert("coupons", STORE, {
        "id": "cp_freeship",
        "code": "FREESHIP",
        "discount_type": "fixed",
        "discount_value": 99,
        "used_count": 3,
        "expires_at": NOW + timedelta(days=20),
        "is_active": True,
    })

    reviews = [
        ("r1", "p_saree", 5, "approved"),
        ("r2", "p_saree", 4, "approved"),
        ("r3", "p_kurta", 5, "approved"),
        ("r4", "p_dupatta", 3, "approved"),
        ("r5", "p_dupatta", 4, "approved"),
        ("r6", "p_lamp", 2, "pending"),
    ]
    for rid, product_id, rating, status in reviews:
        db.insert("product_reviews", STORE, {
            "id": rid,
            "product_id": product_id,
            "rating": rating,
            "status": status,
            "created_at": _days_ago(1),
        })

    statuses = ["active"] * 6 + ["recovered"] * 2 + ["expired"]
    for i, status in enumerate(statuses):
        db.insert("abandoned_carts", STORE, {
            "id": f"cart_{i}",
            "email": f"visitor{i}@example.com",
            "subtotal": 1000.0,
            "recovery_status": status,
            "created_at": _days_ago(i + 1),
        })

    for i, is_read in enumerate([False, False, False, None, None, True]):
        db.insert("notifications", STORE, {"id": f"n{i}", "title": f"Notice {i}", "is_read": is_read})


def _seed_other_store(db: DuckDBStore) -> None:
    db.create_store({"id": OTHER_STORE, "name": "Other Shop", "slug": "other-shop"})
    db.insert("products", OTHER_STORE, {
        "id": "p_other",
        "title": "Other Product",
        "price": 100.0,
        "quantity": 0,
        "track_quantity": True,
        "status": "published",
    })
    db.insert("product_reviews", OTHER_STORE, {"id": "r_other", "product_id": "p_other", "rating": 1, "status": "approved"})


def seed_known_store(db: DuckDBStore) -> None:
    db.create_store({
        "id": STORE,
        "name": "Known Crafts",
        "slug": "known-crafts",
        "blueprint": {"brand_colors": {"primary": "#112233"}, "tagline": "Handmade in India"},
    })
    _seed_products(db)
    _seed_orders(db)
    _seed_marketing(db)
    _seed_other_store(db)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def empty_store():
    db = DuckDBStore(":memory:")
    yield db
    db.close()


@pytest.fixture
def known_store():
    db = DuckDBStore(":memory:")
    seed_known_store(db)
    yield db
    db.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(db_path=":memory:", analytics_workers=4)


@pytest.fixture
def dispatcher(known_store, settings) -> ToolDispatcher:
    return ToolDispatcher(known_store, settings=settings, clock=lambda: NOW)


@pytest.fixture
def tool_context() -> ToolContext:
    return ToolContext(store_id=STORE, conversation_id="conv_test")


@pytest.fixture
def analytics_ctx(known_store) -> AnalyticsContext:
    return AnalyticsContext(store_id=STORE, gateway=known_store, now=NOW, max_workers=4)


@pytest.fixture
def api_client(known_store, settings):
    app = create_app(store=known_store, settings=settings)
    # Pin the analytics clock to the seeded data.
    app.state.dispatcher.clock = lambda: NOW
    with TestClient(app) as client:
        yield client
