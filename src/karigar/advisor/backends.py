"""Text-generation backends: one prompt in, one completion out."""

from __future__ import annotations

from typing import Optional, Protocol

import httpx
import requests
from google import genai
from openai import OpenAI

from ..config import AdvisorConfig
from ..errors import ConfigurationError
from ..logging import get_logger


LOG = get_logger("advisor-backends")


class BackendError(RuntimeError):
    """The service answered, but not with usable text."""


class TextBackend(Protocol):
    model_name: str

    def generate(self, prompt: str) -> str: ...


class GeminiBackend:
    def __init__(self, api_key: str, model_name: str) -> None:
        self.model_name = model_name
        self.client = genai.Client(api_key=api_key)

    def generate(self, prompt: str) -> str:
        response = self.client.models.generate_content(model=self.model_name, contents=prompt)
        text = response.text
        if not text:
            raise BackendError("Gemini returned no text")
        return text


class OpenAIBackend:
    def __init__(self, api_key: str, model_name: str, *, timeout_seconds: int = 120, base_url: Optional[str] = None) -> None:
        self.model_name = model_name
        http_client = httpx.Client(
            timeout=httpx.Timeout(connect=10.0, read=float(timeout_seconds), write=30.0, pool=10.0),
        )
        self.client = OpenAI(api_key=api_key, base_url=base_url, http_client=http_client, max_retries=0)

    def generate(self, prompt: str) -> str:
        resp = self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": "user", "content": prompt}],
        )
        if not resp.choices:
            raise BackendError("OpenAI returned no choices")
        text = resp.choices[0].message.content
        if not text:
            raise BackendError("OpenAI returned empty content")
        return text


class OpenRouterBackend:
    """Thin wrapper around the OpenRouter chat completions endpoint."""

    ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(self, api_key: str, model_name: str, *, timeout_seconds: int = 120) -> None:
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self.s = requests.Session()
        self.s.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model_name,
            "messages": [{"role": "user", "content": prompt}],
        }
        resp = self.s.post(self.ENDPOINT, json=payload, timeout=self.timeout_seconds)
        if resp.status_code >= 400:
            LOG.error("OpenRouter HTTP %s: %s", resp.status_code, resp.text[:500])
            resp.raise_for_status()
        body = resp.json()
        choices = body.get("choices") or []
        if not choices:
            raise BackendError(f"OpenRouter returned no choices: {str(body)[:200]}")
        text = (choices[0].get("message") or {}).get("content")
        if not text:
            raise BackendError("OpenRouter returned empty content")
        return text


def build_backend(config: AdvisorConfig) -> TextBackend:
    """Instantiate the configured backend; raises ConfigurationError without a credential."""
    if not config.api_key:
        raise ConfigurationError(
            f"AI advisor not configured. Add an API key for the {config.backend} backend to your environment or .env file."
        )
    LOG.info("Advisor backend: %s (model %s)", config.backend, config.model)
    if config.backend == "gemini":
        return GeminiBackend(config.api_key, config.model)
    if config.backend == "openai":
        return OpenAIBackend(config.api_key, config.model, timeout_seconds=config.timeout_seconds)
    if config.backend == "openrouter":
        return OpenRouterBackend(config.api_key, config.model, timeout_seconds=config.timeout_seconds)
    raise ConfigurationError(f"Unknown advisor backend {config.backend!r}")
