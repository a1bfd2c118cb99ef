from datetime import date
from typing import Sequence

import pandas as pd

from .schemas import DashboardStats, Order, PaymentRecord, Product

ORDER_COLUMNS = ["id", "created_at", "customer_name", "customer_email", "customer_phone", "items",
                 "total", "status", "payment_method", "payment_status", "tracking_number"]
PRODUCT_COLUMNS = ["name", "price", "originalPrice", "category", "description", "images", "sizes", "colors",
                   "inStock", "featured", "tags", "supportsFeedingFriendly", "isStitchedDress"]


def orders_frame(orders: Sequence[Order]) -> pd.DataFrame:
    rows = [
        {
            "id": o.id,
            "created_at": o.created_at,
            "customer_name": o.customer_name,
            "customer_email": o.customer_email,
            "customer_phone": o.customer_phone,
            "items": sum(i.quantity for i in o.items),
            "total": o.total,
            "status": o.status,
            "payment_method": o.payment_method,
            "payment_status": o.payment_status,
            "tracking_number": o.tracking_number,
        }
        for o in orders
    ]
    df = pd.DataFrame(rows, columns=ORDER_COLUMNS)
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    return df


def orders_csv(orders: Sequence[Order]) -> str:
    df = orders_frame(orders)
    df["created_at"] = df["created_at"].map(lambda ts: ts.isoformat())
    return df.to_csv(index=False)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def products_csv(products: Sequence[Product]) -> str:
    """Export in the bulk-upload column layout: lists comma-joined, booleans as true/false."""
    rows = [
        {
            "name": p.name,
            "price": p.price,
            "originalPrice": p.original_price if p.original_price is not None else "",
            "category": p.category,
            "description": p.description,
            "images": ",".join(p.images),
            "sizes": ",".join(p.sizes),
            "colors": ",".join(p.colors),
            "inStock": _flag(p.in_stock),
            "featured": _flag(p.featured),
            "tags": ",".join(p.tags),
            "supportsFeedingFriendly": _flag(p.supports_feeding_friendly),
            "isStitchedDress": _flag(p.is_stitched_dress),
        }
        for p in products
    ]
    return pd.DataFrame(rows, columns=PRODUCT_COLUMNS).to_csv(index=False)


def dashboard_stats(orders: Sequence[Order], products: Sequence[Product],
                    payments: Sequence[PaymentRecord], today: date) -> DashboardStats:
    df = orders_frame(orders)
    stats = DashboardStats(
        total_products=len(products),
        low_stock_items=sum(1 for p in products if not p.in_stock),
    )
    if not df.empty:
        todays = df[df["created_at"].dt.date == today]
        stats.today_orders = int(len(todays))
        stats.today_revenue = float(todays.loc[todays["status"] != "cancelled", "total"].sum())
        stats.orders_by_status = {k: int(v) for k, v in df["status"].value_counts().items()}
        recent_ids = df.sort_values("created_at", ascending=False)["id"].head(5).tolist()
        by_id = {o.id: o for o in orders}
        stats.recent_orders = [by_id[i] for i in recent_ids]

    if payments:
        pay = pd.DataFrame([{"status": p.status, "created_at": p.created_at} for p in payments])
        pay["created_at"] = pd.to_datetime(pay["created_at"], utc=True)
        stats.total_payments = int(len(pay))
        stats.today_payments = int((pay["created_at"].dt.date == today).sum())
        stats.successful_payments = int((pay["status"] == "captured").sum())
        stats.failed_payments = int((pay["status"] == "failed").sum())
        stats.total_refunds = int((pay["status"] == "refunded").sum())
    return stats
