"""Typed records persisted by DataStore.

`to_dict` emits the persisted/exported JSON layout (camelCase field names);
`from_dict` accepts the same layout and raises ValueError on a shape mismatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .constants import LANGUAGE_CHOICES


def _str(data: Mapping[str, Any], key: str, *, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _str_list(data: Mapping[str, Any], key: str) -> List[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return list(value)


def _count(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer")
    return value


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object")
    return data


@dataclass
class UserProfile:
    id: str
    username: str
    email: str
    name: str
    language: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "language": self.language,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "UserProfile":
        data = _require_mapping(data, "user")
        language = _str(data, "language", default="en")
        if language not in LANGUAGE_CHOICES:
            raise ValueError(f"language must be one of {LANGUAGE_CHOICES}")
        return cls(
            id=_str(data, "id"),
            username=_str(data, "username"),
            email=_str(data, "email", default=""),
            name=_str(data, "name", default=""),
            language=language,
            created_at=_str(data, "createdAt"),
        )


@dataclass
class Product:
    id: str
    title: str
    description: str
    price: str
    category: str
    created_at: str
    updated_at: str
    image: Optional[str] = None  # data URL
    keywords: List[str] = field(default_factory=list)
    hashtags: List[str] = field(default_factory=list)
    seo_suggestion: str = ""
    pricing_tips: List[str] = field(default_factory=list)
    views: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "keywords": list(self.keywords),
            "hashtags": list(self.hashtags),
            "seoSuggestion": self.seo_suggestion,
            "pricingTips": list(self.pricing_tips),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "views": self.views,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Product":
        data = _require_mapping(data, "product")
        image = data.get("image")
        if image is not None and not isinstance(image, str):
            raise ValueError("image must be a data URL string")
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title", default=""),
            description=_str(data, "description", default=""),
            price=_str(data, "price", default=""),
            category=_str(data, "category", default=""),
            image=image,
            keywords=_str_list(data, "keywords"),
            hashtags=_str_list(data, "hashtags"),
            seo_suggestion=_str(data, "seoSuggestion", default=""),
            pricing_tips=_str_list(data, "pricingTips"),
            created_at=_str(data, "createdAt"),
            updated_at=_str(data, "updatedAt"),
            views=_count(data, "views"),
        )


# Fields a caller may supply to save_product/update_product.
PRODUCT_EDITABLE_FIELDS = (
    "title",
    "description",
    "price",
    "category",
    "image",
    "keywords",
    "hashtags",
    "seo_suggestion",
    "pricing_tips",
)


@dataclass
class ChatRecord:
    id: str
    message: str
    response: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "response": self.response,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ChatRecord":
        data = _require_mapping(data, "chat")
        return cls(
            id=_str(data, "id"),
            message=_str(data, "message", default=""),
            response=_str(data, "response", default=""),
            timestamp=_str(data, "timestamp"),
        )


@dataclass
class WeeklyBucket:
    week: str  # YYYY-W##
    products: int = 0
    views: int = 0
    chats: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"week": self.week, "products": self.products, "views": self.views, "chats": self.chats}

    @classmethod
    def from_dict(cls, data: Any) -> "WeeklyBucket":
        data = _require_mapping(data, "weekly bucket")
        return cls(
            week=_str(data, "week"),
            products=_count(data, "products"),
            views=_count(data, "views"),
            chats=_count(data, "chats"),
        )


@dataclass
class AnalyticsSnapshot:
    total_products: int = 0
    total_views: int = 0
    total_chats: int = 0
    weekly_stats: List[WeeklyBucket] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "totalViews": self.total_views,
            "totalChats": self.total_chats,
            "weeklyStats": [b.to_dict() for b in self.weekly_stats],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AnalyticsSnapshot":
        data = _require_mapping(data, "analytics")
        buckets = data.get("weeklyStats") or []
        if not isinstance(buckets, list):
            raise ValueError("weeklyStats must be a list")
        return cls(
            total_products=_count(data, "totalProducts"),
            total_views=_count(data, "totalViews"),
            total_chats=_count(data, "totalChats"),
            weekly_stats=[WeeklyBucket.from_dict(b) for b in buckets],
        )

    def bucket_for(self, week: str) -> Optional[WeeklyBucket]:
        for bucket in self.weekly_stats:
            if bucket.week == week:
                return bucket
        return None
