"""AI business advice over an external text-generation service.

Modules:
- backends: Gemini / OpenAI / OpenRouter text backends
- prompts: prompt templates
- parser: JSON reply parsing + validation
- models: typed advisor records
- client: AdvisoryClient, the entry point used by the CLI
"""

from .client import AdvisoryClient
from .models import BusinessTip, CustomerReply, ProductListing

__all__ = [
    "AdvisoryClient",
    "BusinessTip",
    "CustomerReply",
    "ProductListing",
]
