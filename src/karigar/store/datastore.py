from __future__ import annotations

import json
import math
import secrets
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ..errors import CorruptedStateError, SettingsError
from ..logging import get_logger
from .constants import (
    COLLECTION_KEYS,
    EVENT_CHAT_SENT,
    EVENT_CHOICES,
    EVENT_PRODUCT_CREATED,
    EVENT_PRODUCT_VIEWED,
    KEY_ANALYTICS,
    KEY_CHATS,
    KEY_PRODUCTS,
    KEY_SETTINGS,
    KEY_USER,
    LANGUAGE_CHOICES,
    MAX_WEEKLY_BUCKETS,
)
from .kv import KeyValueStore, MemoryKeyValueStore
from .models import (
    PRODUCT_EDITABLE_FIELDS,
    AnalyticsSnapshot,
    ChatRecord,
    Product,
    UserProfile,
    WeeklyBucket,
)
from .settings import SETTING_OPTIONS, get_option


LOG = get_logger("store")

T = TypeVar("T")

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_ID_SUFFIX_LENGTH = 11

_FIELD_ALIASES = {
    "seoSuggestion": "seo_suggestion",
    "pricingTips": "pricing_tips",
}
_IGNORED_PATCH_FIELDS = {"id", "created_at", "createdAt", "updated_at", "updatedAt"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits))


def iso_timestamp(moment: datetime) -> str:
    """Return `YYYY-MM-DDTHH:MM:SS.mmmZ` for the moment in UTC."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def week_label(moment: datetime) -> str:
    """Return the `YYYY-W##` bucket label for a moment.

    week = ceil((days since Jan 1 + weekday of Jan 1 + 1) / 7), with fractional
    days and Sunday counted as weekday 0.
    """
    jan1 = moment.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    days = (moment - jan1).total_seconds() / 86400
    jan1_weekday = (jan1.weekday() + 1) % 7
    week = math.ceil((days + jan1_weekday + 1) / 7)
    return f"{moment.year}-W{week:02d}"


def _normalize_fields(fields: Mapping[str, Any], *, allow_views: bool) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for raw_key, value in fields.items():
        key = _FIELD_ALIASES.get(raw_key, raw_key)
        if raw_key in _IGNORED_PATCH_FIELDS:
            LOG.debug("Ignoring read-only product field %r", raw_key)
            continue
        if key not in PRODUCT_EDITABLE_FIELDS and not (allow_views and key == "views"):
            raise TypeError(f"Unknown product field {raw_key!r}")
        out[key] = _check_field(key, value)
    return out


def _check_field(key: str, value: Any) -> Any:
    """Apply the same type rules Product.from_dict enforces on read."""
    if key in ("keywords", "hashtags", "pricing_tips"):
        if value is None:
            return []
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise TypeError(f"{key} must be a list of strings")
        return list(value)
    if key == "price":
        # Numbers are kept as entered; the store holds prices as text.
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise TypeError("price must be a string or number")
        return str(value)
    if key == "image":
        if value is not None and not isinstance(value, str):
            raise TypeError("image must be a data URL string")
        return value
    if key == "views":
        return value
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


class DataStore:
    """Single owner of every persisted collection.

    Collections (user, products, chats, analytics, settings) are JSON values
    under fixed keys in a KeyValueStore. Each operation is a synchronous
    read-modify-write. Analytics are updated as a side effect of product
    creation, product views and chat messages.

    Not-found conditions return None/False or do nothing. A persisted value
    that cannot be decoded raises CorruptedStateError.
    """

    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        *,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.kv: KeyValueStore = kv if kv is not None else MemoryKeyValueStore()
        self._now = now or _utc_now

    # ---------- persistence helpers ----------
    def _read(self, key: str, default: T, decode: Callable[[Any], T]) -> T:
        raw = self.kv.get(key)
        if raw is None:
            return default
        try:
            return decode(json.loads(raw))
        except ValueError as exc:
            LOG.error("Failed to decode %s: %s", key, exc)
            raise CorruptedStateError(key, str(exc)) from exc

    def _write(self, key: str, value: Any) -> None:
        self.kv.set(key, json.dumps(value, ensure_ascii=False))

    @staticmethod
    def _decode_list(decode_item: Callable[[Any], T]) -> Callable[[Any], List[T]]:
        def _decode(data: Any) -> List[T]:
            if not isinstance(data, list):
                raise ValueError("expected a JSON array")
            return [decode_item(item) for item in data]

        return _decode

    def _timestamp(self) -> str:
        return iso_timestamp(self._now())

    def _generate_id(self, taken: Optional[set] = None) -> str:
        taken = taken or set()
        while True:
            ms = int(self._now().timestamp() * 1000)
            suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
            candidate = _base36(ms) + suffix
            if candidate not in taken:
                return candidate

    # ---------- user ----------
    def set_user(self, profile: UserProfile) -> None:
        """Store `profile`; raises ValueError if it would not read back."""
        data = profile.to_dict()
        UserProfile.from_dict(data)
        self._write(KEY_USER, data)

    def get_user(self) -> Optional[UserProfile]:
        return self._read(KEY_USER, None, UserProfile.from_dict)

    def create_user(self, username: str, *, email: str = "", name: str = "", language: str = "en") -> UserProfile:
        """Build a fresh profile for `username` and store it, replacing any existing one."""
        if language not in LANGUAGE_CHOICES:
            raise ValueError(f"language must be one of {LANGUAGE_CHOICES}")
        profile = UserProfile(
            id=self._generate_id(),
            username=username,
            email=email,
            name=name or username,
            language=language,
            created_at=self._timestamp(),
        )
        self.set_user(profile)
        LOG.info("Signed in as %s", username)
        return profile

    def logout(self) -> None:
        self.kv.remove(KEY_USER)

    # ---------- products ----------
    def get_products(self) -> List[Product]:
        return self._read(KEY_PRODUCTS, [], self._decode_list(Product.from_dict))

    def _write_products(self, products: List[Product]) -> None:
        self._write(KEY_PRODUCTS, [p.to_dict() for p in products])

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.get_products():
            if product.id == product_id:
                return product
        return None

    def save_product(self, fields: Mapping[str, Any]) -> Product:
        values = _normalize_fields(fields, allow_views=False)
        products = self.get_products()
        stamp = self._timestamp()
        product = Product(
            id=self._generate_id({p.id for p in products}),
            title=values.get("title", ""),
            description=values.get("description", ""),
            price=values.get("price", ""),
            category=values.get("category", ""),
            image=values.get("image"),
            keywords=values.get("keywords", []),
            hashtags=values.get("hashtags", []),
            seo_suggestion=values.get("seo_suggestion", ""),
            pricing_tips=values.get("pricing_tips", []),
            created_at=stamp,
            updated_at=stamp,
            views=0,
        )
        products.append(product)
        self._write_products(products)
        self._record_event(EVENT_PRODUCT_CREATED)
        LOG.debug("Saved product id=%s title=%r", product.id, product.title)
        return product

    def update_product(self, product_id: str, changes: Mapping[str, Any]) -> Optional[Product]:
        products = self.get_products()
        for index, current in enumerate(products):
            if current.id == product_id:
                break
        else:
            return None

        patch = _normalize_fields(changes, allow_views=True)
        if "views" in patch:
            views = patch["views"]
            if isinstance(views, bool) or not isinstance(views, int) or views < current.views:
                raise ValueError(f"views cannot go from {current.views} to {views!r}")
        # ISO strings in one format compare chronologically.
        updated_at = max(self._timestamp(), current.created_at)
        updated = replace(current, **patch, updated_at=updated_at)
        products[index] = updated
        self._write_products(products)
        return updated

    def delete_product(self, product_id: str) -> bool:
        products = self.get_products()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            return False
        self._write_products(remaining)
        return True

    def increment_product_views(self, product_id: str) -> None:
        products = self.get_products()
        for product in products:
            if product.id == product_id:
                product.views += 1
                self._write_products(products)
                self._record_event(EVENT_PRODUCT_VIEWED)
                return
        LOG.debug("View for unknown product id=%s ignored", product_id)

    # ---------- chats ----------
    def get_chats(self) -> List[ChatRecord]:
        return self._read(KEY_CHATS, [], self._decode_list(ChatRecord.from_dict))

    def save_chat_message(self, message: str, response: str) -> ChatRecord:
        chats = self.get_chats()
        record = ChatRecord(
            id=self._generate_id({c.id for c in chats}),
            message=message,
            response=response,
            timestamp=self._timestamp(),
        )
        chats.append(record)
        self._write(KEY_CHATS, [c.to_dict() for c in chats])
        self._record_event(EVENT_CHAT_SENT)
        return record

    def clear_chats(self) -> None:
        self._write(KEY_CHATS, [])

    # ---------- analytics ----------
    def get_analytics(self) -> AnalyticsSnapshot:
        return self._read(KEY_ANALYTICS, AnalyticsSnapshot(), AnalyticsSnapshot.from_dict)

    def _record_event(self, kind: str) -> None:
        analytics = self.get_analytics()
        if kind not in EVENT_CHOICES:
            raise ValueError(f"Unknown analytics event {kind!r}")
        if kind == EVENT_PRODUCT_CREATED:
            analytics.total_products += 1
        elif kind == EVENT_PRODUCT_VIEWED:
            analytics.total_views += 1
        else:
            analytics.total_chats += 1

        week = week_label(self._now())
        bucket = analytics.bucket_for(week)
        if bucket is None:
            bucket = WeeklyBucket(week=week)
            analytics.weekly_stats.append(bucket)

        if kind == EVENT_PRODUCT_CREATED:
            bucket.products += 1
        elif kind == EVENT_PRODUCT_VIEWED:
            bucket.views += 1
        else:
            bucket.chats += 1

        # New buckets are appended; truncate after the update, oldest first.
        analytics.weekly_stats = analytics.weekly_stats[-MAX_WEEKLY_BUCKETS:]
        self._write(KEY_ANALYTICS, analytics.to_dict())

    # ---------- settings ----------
    def _settings_bag(self) -> Dict[str, Any]:
        def _decode(data: Any) -> Dict[str, Any]:
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return data

        return self._read(KEY_SETTINGS, {}, _decode)

    def get_setting(self, name: str) -> str:
        option = get_option(name)
        value = self._settings_bag().get(name)
        if value is None:
            return option.default
        try:
            return option.validate(value)
        except SettingsError:
            LOG.warning("Stored %s=%r is not a recognised choice; using default %r", name, value, option.default)
            return option.default

    def get_settings(self) -> Dict[str, str]:
        return {name: self.get_setting(name) for name in SETTING_OPTIONS}

    def save_setting(self, name: str, value: str) -> None:
        option = get_option(name)
        bag = self._settings_bag()
        bag[name] = option.validate(value)
        self._write(KEY_SETTINGS, bag)

    # ---------- export / import ----------
    def export_data(self) -> str:
        user = self.get_user()
        data = {
            "user": user.to_dict() if user else None,
            "products": [p.to_dict() for p in self.get_products()],
            "chats": [c.to_dict() for c in self.get_chats()],
            "analytics": self.get_analytics().to_dict(),
            "exportedAt": self._timestamp(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_data(self, json_data: str) -> bool:
        """Replace products, chats and analytics with those in an export.

        The user profile is never imported. Every present collection is
        validated before anything is written; returns False on any failure.
        """
        try:
            data = json.loads(json_data)
            if not isinstance(data, dict):
                raise ValueError("import payload must be a JSON object")
            products = chats = analytics = None
            if data.get("products") is not None:
                products = self._decode_list(Product.from_dict)(data["products"])
                if len({p.id for p in products}) != len(products):
                    raise ValueError("duplicate product ids")
            if data.get("chats") is not None:
                chats = self._decode_list(ChatRecord.from_dict)(data["chats"])
            if data.get("analytics") is not None:
                analytics = AnalyticsSnapshot.from_dict(data["analytics"])
        except (TypeError, ValueError) as exc:
            LOG.error("Failed to import data: %s", exc)
            return False

        if products is not None:
            self._write_products(products)
        if chats is not None:
            self._write(KEY_CHATS, [c.to_dict() for c in chats])
        if analytics is not None:
            self._write(KEY_ANALYTICS, analytics.to_dict())
        LOG.info(
            "Imported data: products=%s chats=%s analytics=%s",
            len(products) if products is not None else "-",
            len(chats) if chats is not None else "-",
            "yes" if analytics is not None else "-",
        )
        return True

    # ---------- maintenance ----------
    def reset_collection(self, name: str) -> None:
        """Drop one collection so the next read returns its empty default."""
        try:
            key = COLLECTION_KEYS[name]
        except KeyError:
            raise ValueError(f"Unknown collection {name!r}; expected one of {', '.join(COLLECTION_KEYS)}") from None
        self.kv.remove(key)
        LOG.info("Reset collection %s", name)

    def clear_all(self) -> None:
        """Remove products, chats and analytics; profile and settings are kept."""
        for name in ("products", "chats", "analytics"):
            self.reset_collection(name)
