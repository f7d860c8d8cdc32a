from __future__ import annotations

import pytest

from karigar.errors import CorruptedStateError
from karigar.store import DataStore, MemoryKeyValueStore, Product, UserProfile
from karigar.store.constants import KEY_PRODUCTS


def _clay_pot() -> dict:
    return {
        "title": "Clay Pot",
        "description": "Hand-thrown terracotta pot",
        "price": "299",
        "category": "Pottery & Ceramics",
        "image": "",
        "keywords": [],
        "hashtags": [],
        "seo_suggestion": "",
        "pricing_tips": [],
    }


def test_save_product_stamps_fields(store: DataStore) -> None:
    product = store.save_product(_clay_pot())

    assert product.views == 0
    assert product.created_at == product.updated_at == "2026-10-17T12:00:00.000Z"
    assert product.title == "Clay Pot"
    assert store.get_products() == [product]


def test_get_products_is_idempotent_and_ordered(store: DataStore, clock) -> None:
    first = store.save_product(_clay_pot())
    clock.advance(minutes=1)
    second = store.save_product({**_clay_pot(), "title": "Brass Lamp", "category": "Metal Work"})

    assert [p.id for p in store.get_products()] == [first.id, second.id]
    assert store.get_products() == store.get_products()


def test_ids_unique_even_within_one_millisecond(store: DataStore) -> None:
    ids = {store.save_product(_clay_pot()).id for _ in range(50)}
    assert len(ids) == 50


def test_update_product_merges_and_refreshes_timestamp(store: DataStore, clock) -> None:
    product = store.save_product(_clay_pot())
    clock.advance(hours=2)

    updated = store.update_product(product.id, {"price": "349", "keywords": ["terracotta"]})

    assert updated is not None
    assert updated.price == "349"
    assert updated.keywords == ["terracotta"]
    assert updated.title == "Clay Pot"
    assert updated.created_at == product.created_at
    assert updated.updated_at == "2026-10-17T14:00:00.000Z"
    assert store.get_products() == [updated]


def test_update_product_ignores_identity_fields(store: DataStore) -> None:
    product = store.save_product(_clay_pot())
    updated = store.update_product(product.id, {"id": "hijacked", "createdAt": "1999-01-01T00:00:00.000Z"})
    assert updated.id == product.id
    assert updated.created_at == product.created_at


def test_update_product_accepts_camel_case_fields(store: DataStore) -> None:
    product = store.save_product(_clay_pot())
    updated = store.update_product(product.id, {"seoSuggestion": "Mention terracotta", "pricingTips": ["Bundle"]})
    assert updated.seo_suggestion == "Mention terracotta"
    assert updated.pricing_tips == ["Bundle"]


def test_update_product_rejects_unknown_field(store: DataStore) -> None:
    product = store.save_product(_clay_pot())
    with pytest.raises(TypeError):
        store.update_product(product.id, {"colour": "red"})


def test_update_missing_product_returns_none(store: DataStore) -> None:
    assert store.update_product("nope", {"title": "x"}) is None


def test_update_does_not_touch_analytics(store: DataStore) -> None:
    product = store.save_product(_clay_pot())
    before = store.get_analytics()
    store.update_product(product.id, {"title": "Big Clay Pot"})
    assert store.get_analytics() == before


def test_views_are_monotonic(store: DataStore) -> None:
    product = store.save_product(_clay_pot())
    for _ in range(4):
        store.increment_product_views(product.id)

    assert store.get_product(product.id).views == 4

    store.update_product(product.id, {"title": "Renamed"})
    assert store.get_product(product.id).views == 4

    with pytest.raises(ValueError):
        store.update_product(product.id, {"views": 1})


def test_increment_views_on_missing_product_is_noop(store: DataStore) -> None:
    store.increment_product_views("missing")
    assert store.get_analytics().total_views == 0


def test_delete_product(store: DataStore) -> None:
    keep = store.save_product(_clay_pot())
    drop = store.save_product({**_clay_pot(), "title": "Vase"})

    assert store.delete_product(drop.id) is True
    assert [p.id for p in store.get_products()] == [keep.id]
    assert store.delete_product(drop.id) is False


def test_corrupted_products_raise_and_can_be_reset() -> None:
    kv = MemoryKeyValueStore({KEY_PRODUCTS: "{not json"})
    store = DataStore(kv)

    with pytest.raises(CorruptedStateError) as excinfo:
        store.get_products()
    assert excinfo.value.key == KEY_PRODUCTS

    store.reset_collection("products")
    assert store.get_products() == []


def test_wrong_shape_is_treated_as_corruption() -> None:
    store = DataStore(MemoryKeyValueStore({KEY_PRODUCTS: '{"id": "x"}'}))
    with pytest.raises(CorruptedStateError):
        store.get_products()


def test_product_json_layout(store: DataStore) -> None:
    product = store.save_product({**_clay_pot(), "seo_suggestion": "Use 'handmade'"})
    raw = product.to_dict()
    assert raw["seoSuggestion"] == "Use 'handmade'"
    assert raw["createdAt"] == raw["updatedAt"]
    assert Product.from_dict(raw) == product


@pytest.mark.parametrize(
    "bad",
    [
        {"category": None},
        {"keywords": [1, 2]},
        {"keywords": "abc"},
        {"price": None},
        {"title": 42},
        {"image": b"raw bytes"},
    ],
)
def test_invalid_fields_are_rejected_before_writing(store: DataStore, bad: dict) -> None:
    existing = store.save_product(_clay_pot())

    with pytest.raises(TypeError):
        store.save_product({**_clay_pot(), **bad})
    with pytest.raises(TypeError):
        store.update_product(existing.id, bad)

    assert store.get_products() == [existing]
    assert store.get_analytics().total_products == 1


def test_numeric_price_is_stored_as_text(store: DataStore) -> None:
    product = store.save_product({**_clay_pot(), "price": 299})
    assert product.price == "299"
    assert store.update_product(product.id, {"price": 349.5}).price == "349.5"
    assert store.get_products()[0].price == "349.5"


def test_invalid_user_profile_is_not_stored(store: DataStore) -> None:
    store.create_user("asha")
    bad = UserProfile(
        id="u1",
        username="ravi",
        email="",
        name="Ravi",
        language="fr",
        created_at="2026-10-17T12:00:00.000Z",
    )

    with pytest.raises(ValueError):
        store.set_user(bad)

    assert store.get_user().username == "asha"
