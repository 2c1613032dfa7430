"""Deterministic demo store for local runs of the CLI and the API."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta

from storeforge.analytics.period import utc_now
from storeforge.store.duckdb_store import DuckDBStore


logger = logging.getLogger(__name__)


CATALOGUE = [
    # title, category, price, quantity, status
    ("Handloom Cotton Saree", "Sarees", 2499.0, 18, "published"),
    ("Block Print Kurta", "Kurtas", 1299.0, 4, "published"),
    ("Silk Dupatta", "Accessories", 899.0, 0, "published"),
    ("Brass Diya Set", "Home", 649.0, 60, "published"),
    ("Jute Tote Bag", "Accessories", 399.0, 240, "published"),
    ("Indigo Bedsheet", "Home", 1799.0, 2, "published"),
    ("Terracotta Planter", "Home", 549.0, 0, "draft"),
]

CUSTOMERS = [
    ("Asha Rao", "asha@example.com", "Karnataka", "Bengaluru"),
    ("Vikram Shah", "vikram@example.com", "Maharashtra", "Mumbai"),
    ("Meera Iyer", "meera@example.com", "Tamil Nadu", "Chennai"),
    ("Rohan Das", "rohan@example.com", "West Bengal", "Kolkata"),
    ("Zoya Khan", "zoya@example.com", "Delhi", "New Delhi"),
]

PAYMENT_METHODS = ["upi", "card", "cod", "netbanking"]


def seed_demo_store(
    store: DuckDBStore,
    *,
    name: str = "Demo Crafts",
    now: datetime | None = None,
    orders: int = 60,
    seed: int = 7,
) -> str:
    """Create a store with products, customers, orders and marketing data. Returns its id."""
    now = now or utc_now()
    rng = random.Random(seed)

    store_row = store.create_store({
        "name": name,
        "slug": name.lower().replace(" ", "-"),
        "blueprint": {"brand_colors": {"primary": "#7c3aed"}, "location": {"currency": "INR"}},
    })
    store_id = store_row["id"]

    products = [
        store.insert("products", store_id, {
            "title": title,
            "description": f"{title} made by partner artisans",
            "price": price,
            "category": category,
            "sku": f"DEMO-{i + 1:03d}",
            "quantity": quantity,
            "track_quantity": True,
            "status": status,
            "featured": i == 0,
            "created_at": now - timedelta(days=120),
        })
        for i, (title, category, price, quantity, status) in enumerate(CATALOGUE)
    ]
    sellable = [p for p in products if p["status"] == "published"]

    customers = [
        (store.insert("customers", store_id, {
            "name": cname,
            "email": email,
            "created_at": now - timedelta(days=100),
        }), state, city)
        for cname, email, state, city in CUSTOMERS
    ]

    for n in range(orders):
        customer, state, city = rng.choice(customers)
        created = now - timedelta(days=rng.randint(0, 89), hours=rng.randint(0, 23))
        lines = rng.sample(sellable, k=rng.randint(1, 3))
        quantities = [rng.randint(1, 3) for _ in lines]
        total = sum(p["price"] * q for p, q in zip(lines, quantities))
        coupon = "WELCOME10" if n % 7 == 0 else None
        discount = round(total * 0.1, 2) if coupon else 0.0
        status = rng.choice(["pending", "confirmed", "shipped", "delivered", "delivered"])
        order = store.insert("orders", store_id, {
            "order_number": f"{1001 + n}",
            "status": status,
            "payment_status": "pending" if status == "pending" else "paid",
            "payment_method": rng.choice(PAYMENT_METHODS),
            "total": round(total - discount, 2),
            "discount_amount": discount,
            "coupon_code": coupon,
            "customer_id": customer["id"],
            "customer_name": customer["name"],
            "customer_email": customer["email"],
            "shipping_state": state,
            "shipping_city": city,
            "shipped_at": created + timedelta(hours=30) if status in ("shipped", "delivered") else None,
            "created_at": created,
        })
        for product, qty in zip(lines, quantities):
            store.insert("order_items", store_id, {
                "order_id": order["id"],
                "product_id": product["id"],
                "title": product["title"],
                "quantity": qty,
                "total": product["price"] * qty,
            })

    store.insert("coupons", store_id, {
        "code": "WELCOME10",
        "discount_type": "percentage",
        "discount_value": 10,
        "max_uses": 100,
        "used_count": orders // 7 + 1,
        "expires_at": now + timedelta(days=2),
        "is_active": True,
        "description": "10% off the first order",
    })
    store.insert("coupons", store_id, {
        "code": "FLAT200",
        "discount_type": "fixed",
        "discount_value": 200,
        "min_order_value": 1500,
        "used_count": 0,
        "expires_at": now + timedelta(days=45),
        "is_active": True,
    })

    for product in sellable[:3]:
        for rating, status in ((5, "approved"), (4, "approved"), (3, "pending")):
            store.insert("product_reviews", store_id, {
                "product_id": product["id"],
                "rating": rating,
                "status": status,
                "title": "Lovely" if rating > 3 else "Okay",
                "customer_name": rng.choice(CUSTOMERS)[0],
            })

    for i in range(8):
        store.insert("abandoned_carts", store_id, {
            "email": f"visitor{i}@example.com",
            "subtotal": 500.0 + 150 * i,
            "recovery_status": "recovered" if i % 4 == 0 else "active",
            "created_at": now - timedelta(days=i),
        })

    for title in ("New order received", "Low stock alert", "Payout settled"):
        store.insert("notifications", store_id, {"title": title, "is_read": False})

    logger.info("Seeded demo store %s with %d orders", store_id, orders)
    return store_id
