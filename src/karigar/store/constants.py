from __future__ import annotations

from typing import Dict, Tuple

# Persisted collection keys.
KEY_USER = "karigar_user"
KEY_PRODUCTS = "karigar_products"
KEY_CHATS = "karigar_chats"
KEY_ANALYTICS = "karigar_analytics"
KEY_SETTINGS = "karigar_settings"

COLLECTION_KEYS: Dict[str, str] = {
    "user": KEY_USER,
    "products": KEY_PRODUCTS,
    "chats": KEY_CHATS,
    "analytics": KEY_ANALYTICS,
    "settings": KEY_SETTINGS,
}

# Analytics event kinds.
EVENT_PRODUCT_CREATED = "product_created"
EVENT_PRODUCT_VIEWED = "product_viewed"
EVENT_CHAT_SENT = "chat_sent"

EVENT_CHOICES: Tuple[str, ...] = (
    EVENT_PRODUCT_CREATED,
    EVENT_PRODUCT_VIEWED,
    EVENT_CHAT_SENT,
)

MAX_WEEKLY_BUCKETS = 12

LANGUAGE_CHOICES: Tuple[str, ...] = ("en", "hi")

PRODUCT_CATEGORIES: Tuple[str, ...] = (
    "Pottery & Ceramics",
    "Textiles & Weaving",
    "Jewelry & Accessories",
    "Wood Crafts",
    "Metal Work",
    "Paintings & Art",
    "Leather Goods",
    "Stone Carving",
    "Glass Work",
    "Other Handicrafts",
)

DEFAULT_TIPS_CATEGORY = "General Handicrafts"
