"""Dashboard figures derived from the store (nothing here is persisted)."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from .constants import DEFAULT_TIPS_CATEGORY
from .models import AnalyticsSnapshot, Product


def _growth_percent(current: int, previous: int) -> int:
    return round((current - previous) / max(previous, 1) * 100)


def dashboard_metrics(analytics: AnalyticsSnapshot) -> Dict[str, int]:
    """Totals plus week-over-week growth of the two most recent buckets."""
    avg_views = round(analytics.total_views / analytics.total_products) if analytics.total_products > 0 else 0
    views_growth = products_growth = 0
    if len(analytics.weekly_stats) >= 2:
        previous, current = analytics.weekly_stats[-2], analytics.weekly_stats[-1]
        views_growth = _growth_percent(current.views, previous.views)
        products_growth = _growth_percent(current.products, previous.products)
    return {
        "total_products": analytics.total_products,
        "total_views": analytics.total_views,
        "total_chats": analytics.total_chats,
        "avg_views_per_product": avg_views,
        "views_growth": views_growth,
        "products_growth": products_growth,
    }


def category_distribution(products: Sequence[Product]) -> Dict[str, int]:
    """Product count per category, in first-seen order."""
    return dict(Counter(p.category for p in products))


def most_common_category(products: Sequence[Product], default: str = DEFAULT_TIPS_CATEGORY) -> str:
    counts = Counter(p.category for p in products if p.category)
    if not counts:
        return default
    return counts.most_common(1)[0][0]


def _price_value(price: str) -> Optional[Decimal]:
    try:
        return Decimal(str(price).replace(",", "").strip())
    except InvalidOperation:
        return None


def top_products(products: Sequence[Product], limit: int = 5) -> List[Dict[str, Any]]:
    """Most viewed products first; ties keep insertion order."""
    ranked = sorted(products, key=lambda p: p.views, reverse=True)[:limit]
    return [
        {"id": p.id, "title": p.title, "views": p.views, "price": _price_value(p.price)}
        for p in ranked
    ]
