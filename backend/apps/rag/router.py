"""
Model routing.

Turns whatever model name a user or the settings panel supplied into a
provider-qualified name, and runs a completion with a single downgrade to
a fallback model when the provider reports payment required (HTTP 402).
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from apps.rag.errors import ProviderStatusError
from apps.rag.llm_client import BaseLLMClient, LLMMessage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/gpt-4o-mini"

MODEL_ALIASES: Dict[str, str] = {
    "gpt-4": "openai/gpt-4o-mini",
    "gpt4": "openai/gpt-4o-mini",
    "gpt-4o": "openai/gpt-4o",
    "gpt-4o-mini": "openai/gpt-4o-mini",
    "gpt-4.1-mini": "openai/gpt-4.1-mini",
    "claude": "anthropic/claude-3.5-sonnet",
    "claude-3.5-sonnet": "anthropic/claude-3.5-sonnet",
    "claude-3-haiku": "anthropic/claude-3-haiku",
    "llama": "meta-llama/llama-3.1-8b-instruct",
}


def normalize_model(raw: Optional[str]) -> str:
    """
    Normalize a model identifier. Never fails.

    - blank -> DEFAULT_MODEL
    - contains "/" -> unchanged (already provider-qualified)
    - known alias (case-insensitive) -> its qualified name
    - anything else -> DEFAULT_MODEL
    """
    name = (raw or "").strip()
    if not name:
        return DEFAULT_MODEL
    if "/" in name:
        return name

    resolved = MODEL_ALIASES.get(name.lower())
    if resolved is None:
        logger.info(f"Unknown model alias {name!r}, using {DEFAULT_MODEL}")
        return DEFAULT_MODEL

    logger.debug(f"Model alias {name!r} -> {resolved}")
    return resolved


@dataclass
class CompletionOutcome:
    """Successful completion, with the model that actually produced it."""
    reply: str
    used_model: str
    fallback_used: bool

    def to_dict(self) -> dict:
        return {
            "reply": self.reply,
            "usedModel": self.used_model,
            "fallbackUsed": self.fallback_used,
        }


def complete_with_fallback(
    client: BaseLLMClient,
    model: str,
    fallback_model: str,
    messages: List[LLMMessage],
) -> CompletionOutcome:
    """
    Complete with ``model``; on payment required, retry once with ``fallback_model``.

    Any other failure, and any failure of the fallback attempt, propagates
    unchanged.
    """
    try:
        response = client.chat(messages, model=model)
        return CompletionOutcome(reply=response.content, used_model=model, fallback_used=False)
    except ProviderStatusError as e:
        if not e.is_payment_required:
            raise
        logger.warning(
            f"Model {model} returned payment required, falling back to {fallback_model}"
        )

    response = client.chat(messages, model=fallback_model)
    return CompletionOutcome(reply=response.content, used_model=fallback_model, fallback_used=True)
