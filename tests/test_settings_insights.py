from __future__ import annotations

import json

import pytest

from karigar.errors import SettingsError
from karigar.store import AnalyticsSnapshot, DataStore, MemoryKeyValueStore, WeeklyBucket
from karigar.store.constants import KEY_SETTINGS
from karigar.store.insights import category_distribution, dashboard_metrics, most_common_category, top_products
from karigar.store.settings import currency_symbol


def test_settings_defaults(store: DataStore) -> None:
    assert store.get_settings() == {"theme": "light", "language": "en", "region": "IN"}


def test_save_and_read_setting(store: DataStore) -> None:
    store.save_setting("theme", "dark")
    store.save_setting("region", "GB")
    assert store.get_setting("theme") == "dark"
    assert currency_symbol(store.get_setting("region")) == "£"


def test_invalid_setting_rejected(store: DataStore) -> None:
    with pytest.raises(SettingsError):
        store.save_setting("theme", "neon")
    with pytest.raises(SettingsError):
        store.save_setting("font", "serif")


def test_unrecognised_stored_value_falls_back_to_default() -> None:
    kv = MemoryKeyValueStore({KEY_SETTINGS: json.dumps({"theme": "neon", "legacy": True})})
    store = DataStore(kv)
    assert store.get_setting("theme") == "light"

    store.save_setting("language", "hi")
    assert json.loads(kv.get(KEY_SETTINGS))["legacy"] is True


def test_settings_do_not_touch_other_collections(store: DataStore) -> None:
    store.save_setting("language", "hi")
    assert store.get_products() == []
    assert store.get_analytics() == AnalyticsSnapshot()


def test_currency_symbols() -> None:
    assert currency_symbol("IN") == "₹"
    assert currency_symbol("EU") == "€"
    assert currency_symbol("US") == "$"


def test_dashboard_metrics_growth() -> None:
    analytics = AnalyticsSnapshot(
        total_products=4,
        total_views=10,
        total_chats=2,
        weekly_stats=[
            WeeklyBucket("2026-W41", products=2, views=4, chats=1),
            WeeklyBucket("2026-W42", products=1, views=6, chats=1),
        ],
    )
    metrics = dashboard_metrics(analytics)
    assert metrics["avg_views_per_product"] == 2
    assert metrics["views_growth"] == 50
    assert metrics["products_growth"] == -50


def test_dashboard_metrics_without_history() -> None:
    metrics = dashboard_metrics(AnalyticsSnapshot())
    assert metrics["avg_views_per_product"] == 0
    assert metrics["views_growth"] == 0


def test_category_helpers(store: DataStore) -> None:
    assert most_common_category([]) == "General Handicrafts"

    a = store.save_product({"title": "Pot", "category": "Pottery & Ceramics", "price": "100"})
    store.save_product({"title": "Bowl", "category": "Pottery & Ceramics", "price": "n/a"})
    store.save_product({"title": "Scarf", "category": "Textiles & Weaving", "price": "250"})
    store.increment_product_views(a.id)
    products = store.get_products()

    assert category_distribution(products) == {"Pottery & Ceramics": 2, "Textiles & Weaving": 1}
    assert most_common_category(products) == "Pottery & Ceramics"

    top = top_products(products, limit=2)
    assert [t["title"] for t in top] == ["Pot", "Bowl"]
    assert top[1]["price"] is None
