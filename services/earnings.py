"""Aggregates for the cook's earnings and dashboard pages."""

import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from models.order import OrderStatus


def _as_utc(value) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def summarize_earnings(orders: list[dict], now: Optional[datetime] = None) -> dict:
    """Earnings summary over completed orders (newest first).

    Each order needs `total_price`, `created_at`, `customer_id` and optionally
    `listing_title`.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    today = now.date()
    week_start = today - timedelta(days=6)
    month_start = today.replace(day=1)

    chart = {}
    for i in range(6, -1, -1):
        day = today - timedelta(days=i)
        chart[day] = 0

    today_sum = week_sum = month_sum = 0
    dish_counts: Counter = Counter()
    customer_counts: Counter = Counter()

    for o in orders:
        day = _as_utc(o["created_at"]).date()
        price = o["total_price"]

        if day == today:
            today_sum += price
        if week_start <= day <= today:
            week_sum += price
            chart[day] += price
        if day >= month_start:
            month_sum += price

        dish_counts[o.get("listing_title") or "Unknown"] += 1
        customer_counts[o["customer_id"]] += 1

    top_dish = "-"
    for name, count in dish_counts.items():
        if top_dish == "-" or count >= dish_counts[top_dish]:
            top_dish = name

    chart_data = [{"name": day.strftime("%a"), "amount": amount} for day, amount in chart.items()]
    best = chart_data[0]
    for entry in chart_data[1:]:
        if not best["amount"] > entry["amount"]:
            best = entry

    repeat = sum(1 for count in customer_counts.values() if count > 1)
    customers = len(customer_counts)
    repeat_rate = f"{_round_half_up(repeat / customers * 100)}%" if customers else "0%"

    total = sum(o["total_price"] for o in orders)
    return {
        "today": today_sum,
        "week": week_sum,
        "month": month_sum,
        "avg_order": _round_half_up(total / len(orders)) if orders else 0,
        "total_orders": len(orders),
        "best_day": best["name"] if best["amount"] > 0 else "-",
        "top_dish": top_dish,
        "repeat_rate": repeat_rate,
        "chart": chart_data,
        "transactions": orders[:5],
    }


def dashboard_stats(
    orders: Iterable[dict],
    listings: Iterable[dict],
    profile: Optional[dict],
    now: Optional[datetime] = None,
) -> dict:
    """Headline numbers for the cook dashboard; cancelled orders do not count."""
    now = _as_utc(now or datetime.now(timezone.utc))
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    orders = [o for o in orders if o["status"] != OrderStatus.cancelled.value]
    profile = profile or {}
    return {
        "total_earnings": sum(o["total_price"] for o in orders),
        "total_orders": len(orders),
        "active_listings": sum(1 for listing in listings if listing.get("is_active")),
        "this_month_earnings": sum(
            o["total_price"] for o in orders if _as_utc(o["created_at"]) >= month_start
        ),
        "rating": profile.get("average_rating") or 0,
        "total_reviews": profile.get("total_ratings") or 0,
    }


def customer_stats(orders: list[dict], favorites_count: int) -> dict:
    return {
        "total_orders": len(orders),
        "favorites_count": favorites_count,
        "total_spent": sum(
            o["total_price"] for o in orders if o["status"] != OrderStatus.cancelled.value
        ),
        "cooks_supported": len({o["cook_id"] for o in orders}),
    }
