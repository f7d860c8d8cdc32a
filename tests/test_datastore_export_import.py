from __future__ import annotations

import json

from karigar.store import DataStore


def _seed(store: DataStore, clock) -> None:
    store.create_user("asha", email="asha@example.com", name="Asha", language="hi")
    pot = store.save_product({"title": "Clay Pot", "price": "299", "category": "Pottery & Ceramics"})
    store.save_product({"title": "Silk Scarf", "price": "1200", "category": "Textiles & Weaving", "keywords": ["silk"]})
    store.increment_product_views(pot.id)
    clock.advance(days=8)
    store.save_chat_message("How do I ship fragile pots?", "Double-box them with padding.")


def test_export_contains_every_collection(store: DataStore, clock) -> None:
    _seed(store, clock)

    data = json.loads(store.export_data())

    assert set(data) == {"user", "products", "chats", "analytics", "exportedAt"}
    assert data["user"]["username"] == "asha"
    assert [p["title"] for p in data["products"]] == ["Clay Pot", "Silk Scarf"]
    assert data["analytics"]["totalViews"] == 1
    assert data["exportedAt"].endswith("Z")


def test_export_clear_import_round_trip(store: DataStore, clock) -> None:
    _seed(store, clock)
    products, chats, analytics = store.get_products(), store.get_chats(), store.get_analytics()
    exported = store.export_data()

    store.clear_all()
    assert store.get_products() == []
    assert store.get_chats() == []
    assert store.get_analytics().total_products == 0

    assert store.import_data(exported) is True
    assert store.get_products() == products
    assert store.get_chats() == chats
    assert store.get_analytics() == analytics


def test_import_never_overwrites_profile(store: DataStore, clock) -> None:
    _seed(store, clock)
    exported = json.loads(store.export_data())
    exported["user"]["username"] = "intruder"

    store.logout()
    assert store.import_data(json.dumps(exported)) is True
    assert store.get_user() is None


def test_import_applies_only_present_collections(store: DataStore, clock) -> None:
    _seed(store, clock)
    chats_before = store.get_chats()

    assert store.import_data(json.dumps({"products": []})) is True

    assert store.get_products() == []
    assert store.get_chats() == chats_before


def test_import_rejects_malformed_payloads(store: DataStore, clock) -> None:
    _seed(store, clock)
    products_before = store.get_products()

    assert store.import_data("{broken") is False
    assert store.import_data("[1, 2, 3]") is False
    assert store.import_data(json.dumps({"products": [], "chats": "not a list"})) is False
    assert store.import_data(json.dumps({"products": [{"title": "no id"}]})) is False

    assert store.get_products() == products_before


def test_import_rejects_duplicate_product_ids(store: DataStore, clock) -> None:
    _seed(store, clock)
    exported = json.loads(store.export_data())
    exported["products"].append(exported["products"][0])
    assert store.import_data(json.dumps(exported)) is False


def test_logout_removes_profile(store: DataStore) -> None:
    profile = store.create_user("ravi")
    assert store.get_user() == profile
    assert profile.name == "ravi"

    store.logout()
    assert store.get_user() is None
