from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

TIP_CATEGORIES: Tuple[str, ...] = ("pricing", "marketing", "packaging", "platform", "general")
TIP_PRIORITIES: Tuple[str, ...] = ("high", "medium", "low")
REPLY_CATEGORIES: Tuple[str, ...] = ("availability", "customization", "delivery", "general")


@dataclass
class ProductListing:
    title: str
    description: str
    keywords: List[str] = field(default_factory=list)
    hashtags: List[str] = field(default_factory=list)
    seo_suggestion: str = ""
    pricing_tips: List[str] = field(default_factory=list)

    def to_product_fields(self, *, price: str, category: str, image: str = "") -> Dict[str, Any]:
        """Return the mapping DataStore.save_product expects."""
        return {
            "title": self.title,
            "description": self.description,
            "price": price,
            "category": category,
            "image": image,
            "keywords": list(self.keywords),
            "hashtags": list(self.hashtags),
            "seo_suggestion": self.seo_suggestion,
            "pricing_tips": list(self.pricing_tips),
        }


@dataclass
class BusinessTip:
    id: str
    title: str
    description: str
    category: str = "general"
    priority: str = "medium"


@dataclass
class CustomerReply:
    question: str
    answer: str
    category: str = "general"
