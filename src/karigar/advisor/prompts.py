from __future__ import annotations

import json
from typing import Any, Dict, Sequence

from ..store.models import Product

# Number of products and prior messages embedded in a chat prompt.
CHAT_PRODUCT_LIMIT = 3
CHAT_HISTORY_LIMIT = 5

DEFAULT_CUSTOMER_QUESTIONS = (
    "Is this available for immediate delivery?",
    "Can you customize this product?",
    "What materials are used?",
    "Do you ship internationally?",
    "What is your return policy?",
)


def listing_prompt(title: str, description: str, price: str, category: str) -> str:
    return f"""
You are an AI assistant helping local artisans create better product listings for online marketplaces.

Product Details:
- Title: {title}
- Description: {description}
- Price: {price}
- Category: {category}

Please generate a comprehensive product listing in JSON format with the following structure:
{{
  "title": "Improved, SEO-friendly title (max 60 chars)",
  "description": "Enhanced, compelling product description highlighting unique features and craftsmanship",
  "keywords": ["relevant", "search", "keywords"],
  "hashtags": ["#relevant", "#hashtags", "#for", "#social", "#media"],
  "seo_suggestion": "Brief SEO improvement suggestion",
  "pricing_tips": ["tip1", "tip2", "tip3"]
}}

Focus on:
- Highlighting traditional craftsmanship
- Using keywords buyers search for
- Emphasizing unique cultural value
- Making it marketplace-friendly
- Including emotional appeal

Return only valid JSON without any markdown formatting."""


def tips_prompt(category: str, goals: Sequence[str]) -> str:
    return f"""
You are a business advisor for local artisans. Generate 5 practical business tips for an artisan selling {category} products.

User goals: {", ".join(goals)}

Return a JSON array with this structure:
[
  {{
    "id": "unique_id",
    "title": "Brief tip title",
    "description": "Detailed actionable advice",
    "category": "pricing|marketing|packaging|platform|general",
    "priority": "high|medium|low"
  }}
]

Focus on:
- Practical, actionable advice
- Local market insights
- Online selling strategies
- Cost-effective solutions
- Cultural value preservation

Return only valid JSON array without markdown formatting."""


def replies_prompt(product_type: str, questions: Sequence[str]) -> str:
    return f"""
Generate professional customer service replies for an artisan selling {product_type} products.

Questions to answer: {", ".join(questions)}

Return a JSON array with this structure:
[
  {{
    "question": "customer question",
    "answer": "professional, friendly response",
    "category": "availability|customization|delivery|general"
  }}
]

Make responses:
- Professional but warm
- Informative about artisan processes
- Emphasizing quality and craftsmanship
- Including typical timelines
- Culturally appropriate

Return only valid JSON array without markdown formatting."""


def _product_context(product: Product) -> Dict[str, Any]:
    # Images are left out; inline data URLs would dwarf the prompt.
    return {
        "title": product.title,
        "description": product.description,
        "price": product.price,
        "category": product.category,
        "views": product.views,
    }


def chat_prompt(message: str, products: Sequence[Product], previous_messages: Sequence[str]) -> str:
    context = json.dumps([_product_context(p) for p in list(products)[:CHAT_PRODUCT_LIMIT]], ensure_ascii=False)
    history = "\n".join(list(previous_messages)[-CHAT_HISTORY_LIMIT:])
    return f"""
You are Karigar.AI, a helpful assistant for local artisans selling their products online.

Context:
- User's products: {context}
- Previous conversation: {history}

User message: {message}

Provide helpful, specific advice about:
- Product optimization
- Marketing strategies
- Pricing guidance
- Platform recommendations
- Customer service
- Cultural preservation in business

Keep responses:
- Friendly and supportive
- Specific and actionable
- Under 200 words
- Focused on local artisan needs

Response:"""
