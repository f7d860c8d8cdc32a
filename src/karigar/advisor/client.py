from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

from ..config import AdvisorConfig, load_advisor_config
from ..errors import GenerationError
from ..logging import get_logger
from ..store.models import Product
from . import prompts
from .backends import TextBackend, build_backend
from .models import BusinessTip, CustomerReply, ProductListing
from .parser import (
    parse_business_tips,
    parse_customer_replies,
    parse_product_listing,
    strip_code_fences,
)


LOG = get_logger("advisor")

T = TypeVar("T")


class AdvisoryClient:
    """Builds prompts from store data and parses the model's replies.

    The backend is created on first use from `config` (or the environment),
    so a missing credential surfaces as ConfigurationError at that point.
    Any failure of the call itself, or of parsing a structured reply, is
    logged and re-raised as GenerationError with a user-facing message.
    """

    def __init__(self, backend: Optional[TextBackend] = None, *, config: Optional[AdvisorConfig] = None) -> None:
        self._backend = backend
        self._config = config

    @property
    def backend(self) -> TextBackend:
        if self._backend is None:
            self._backend = build_backend(self._config or load_advisor_config())
        return self._backend

    def _ask(self, prompt: str, parse: Callable[[str], T], *, what: str, user_message: str) -> T:
        backend = self.backend
        try:
            raw = backend.generate(prompt)
            return parse(raw)
        except Exception as exc:
            LOG.error("Error generating %s: %s", what, exc)
            raise GenerationError(user_message) from exc

    def generate_product_listing(self, title: str, description: str, price: str, category: str) -> ProductListing:
        return self._ask(
            prompts.listing_prompt(title, description, price, category),
            parse_product_listing,
            what="product listing",
            user_message="Failed to generate product listing. Please try again.",
        )

    def generate_business_tips(self, category: str, goals: Sequence[str] = ()) -> List[BusinessTip]:
        return self._ask(
            prompts.tips_prompt(category, goals),
            parse_business_tips,
            what="business tips",
            user_message="Failed to generate business tips. Please try again.",
        )

    def generate_customer_replies(self, product_type: str, questions: Sequence[str] = ()) -> List[CustomerReply]:
        return self._ask(
            prompts.replies_prompt(product_type, questions or prompts.DEFAULT_CUSTOMER_QUESTIONS),
            parse_customer_replies,
            what="customer replies",
            user_message="Failed to generate customer replies. Please try again.",
        )

    def chat(
        self,
        message: str,
        products: Sequence[Product] = (),
        previous_messages: Sequence[str] = (),
    ) -> str:
        return self._ask(
            prompts.chat_prompt(message, products, previous_messages),
            _chat_text,
            what="chat response",
            user_message="Failed to get chat response. Please try again.",
        )


def _chat_text(raw: str) -> str:
    text = strip_code_fences(raw)
    if not text:
        raise ValueError("empty chat reply")
    return text
