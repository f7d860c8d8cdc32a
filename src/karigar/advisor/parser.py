from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from ..logging import get_logger
from .models import (
    REPLY_CATEGORIES,
    TIP_CATEGORIES,
    TIP_PRIORITIES,
    BusinessTip,
    CustomerReply,
    ProductListing,
)


LOG = get_logger("advisor-parser")

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)


class ReplyValidationError(Exception):
    pass


def strip_code_fences(text: str) -> str:
    """Remove ``` / ```json fence markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def _scavenge_json_block(s: str) -> Optional[Any]:
    candidates: List[str] = []

    start_obj = s.find("{")
    end_obj = s.rfind("}")
    if start_obj != -1 and end_obj > start_obj:
        candidates.append(s[start_obj : end_obj + 1])

    start_arr = s.find("[")
    end_arr = s.rfind("]")
    if start_arr != -1 and end_arr > start_arr:
        candidates.append(s[start_arr : end_arr + 1])

    # Prefer whichever block starts first in the text.
    candidates.sort(key=s.find)
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    return None


def parse_json_reply(text: str) -> Any:
    """Parse a model reply as JSON after stripping code fences.

    Falls back to the outermost {...} or [...] slice when the model wrapped
    the JSON in prose.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ReplyValidationError("empty reply")
    try:
        return json.loads(cleaned)
    except ValueError:
        LOG.debug("JSON parse failed; attempting fallback (first 500 chars: %r)", cleaned[:500])
    data = _scavenge_json_block(cleaned)
    if data is None:
        raise ReplyValidationError("reply is not valid JSON")
    return data


def _text(obj: Dict[str, Any], key: str, *, required: bool = True) -> str:
    value = obj.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    if required:
        raise ReplyValidationError(f"{key} must be a non-empty string")
    return ""


def _text_list(obj: Dict[str, Any], key: str) -> List[str]:
    value = obj.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        raise ReplyValidationError(f"{key} must be a list of strings")
    out: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ReplyValidationError(f"{key} must be a list of strings")
        if item.strip():
            out.append(item.strip())
    return out


def _choice(obj: Dict[str, Any], key: str, choices: tuple, default: str) -> str:
    value = obj.get(key)
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()
    if value is not None:
        LOG.debug("Unrecognised %s=%r; using %r", key, value, default)
    return default


def _object_list(data: Any, what: str) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        # Some models wrap the array in a single-key object.
        lists = [v for v in data.values() if isinstance(v, list)]
        if len(lists) == 1:
            data = lists[0]
    if not isinstance(data, list):
        raise ReplyValidationError(f"{what} must be a JSON array")
    if not all(isinstance(item, dict) for item in data):
        raise ReplyValidationError(f"every {what} entry must be an object")
    return data


def parse_product_listing(text: str) -> ProductListing:
    data = parse_json_reply(text)
    if not isinstance(data, dict):
        raise ReplyValidationError("listing must be a JSON object")
    return ProductListing(
        title=_text(data, "title"),
        description=_text(data, "description"),
        keywords=_text_list(data, "keywords"),
        hashtags=_text_list(data, "hashtags"),
        seo_suggestion=_text(data, "seo_suggestion", required=False),
        pricing_tips=_text_list(data, "pricing_tips"),
    )


def parse_business_tips(text: str) -> List[BusinessTip]:
    items = _object_list(parse_json_reply(text), "tips")
    tips: List[BusinessTip] = []
    for i, item in enumerate(items, start=1):
        raw_id = item.get("id")
        tips.append(
            BusinessTip(
                id=str(raw_id).strip() if raw_id not in (None, "") else f"tip_{i}",
                title=_text(item, "title"),
                description=_text(item, "description"),
                category=_choice(item, "category", TIP_CATEGORIES, "general"),
                priority=_choice(item, "priority", TIP_PRIORITIES, "medium"),
            )
        )
    return tips


def parse_customer_replies(text: str) -> List[CustomerReply]:
    items = _object_list(parse_json_reply(text), "replies")
    return [
        CustomerReply(
            question=_text(item, "question"),
            answer=_text(item, "answer"),
            category=_choice(item, "category", REPLY_CATEGORIES, "general"),
        )
        for item in items
    ]
