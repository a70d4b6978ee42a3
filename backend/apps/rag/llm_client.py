"""
LLM Client Abstraction Layer.

Chat completions go through an OpenAI-compatible endpoint (OpenRouter by
default). The model is chosen per call so that the router can downgrade to
a fallback model without building a second client.

Failures are classified:
- ProviderStatusError: non-2xx, carries upstream status and detail
- ProviderResponseError: 2xx without generated text
- ProviderUnavailableError: timeout or connection failure
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from django.conf import settings

from apps.rag.errors import (
    ConfigurationError,
    ProviderResponseError,
    ProviderStatusError,
    ProviderUnavailableError,
    safe_detail,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


@dataclass
class LLMMessage:
    """A message in a chat conversation."""
    role: str  # "system", "user", or "assistant"
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from an LLM call."""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None  # token usage if available


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    def chat(self, messages: List[LLMMessage], model: str) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of messages in the conversation
            model: Provider-qualified model name

        Returns:
            LLMResponse with the model's response

        Raises:
            ProviderStatusError: On a non-2xx response
            ProviderResponseError: When the response has no generated text
            ProviderUnavailableError: On timeout or connection failure
        """
        pass


class OpenRouterClient(BaseLLMClient):
    """
    LLM client for OpenAI-compatible chat completion APIs.

    Works with: OpenRouter, OpenAI, Groq, Together, local servers, etc.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        if not api_key:
            raise ConfigurationError("Completion provider API key not configured")
        self.api_key = api_key
        self.base_url = (
            base_url or getattr(settings, 'OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1')
        ).rstrip('/')
        self.timeout = float(timeout or getattr(settings, 'PROVIDER_TIMEOUT', DEFAULT_TIMEOUT))

    def chat(self, messages: List[LLMMessage], model: str) -> LLMResponse:
        """Send chat request to the provider."""
        logger.info(f"Calling completion API: model={model}, messages={len(messages)}")

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    json={
                        "model": model,
                        "messages": [m.to_dict() for m in messages],
                    },
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    }
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = extract_error_detail(e.response)
            logger.error(f"Completion API error {status} for model {model}: {detail}")
            raise ProviderStatusError(
                f"Completion provider failed ({status})",
                status_code=status,
                detail=detail,
            )
        except httpx.TimeoutException:
            logger.error(f"Completion request timed out after {self.timeout}s")
            raise ProviderUnavailableError("Completion provider timed out", status_code=504)
        except httpx.RequestError as e:
            logger.error(f"Completion provider connection error: {e}")
            raise ProviderUnavailableError("Could not connect to completion provider")
        except ValueError:
            logger.error("Completion provider returned a non-JSON body")
            raise ProviderResponseError("Invalid response from completion provider")

        content = extract_reply(data)

        usage = data.get("usage") if isinstance(data, dict) else None

        logger.info(f"Completion response: {len(content)} chars")
        return LLMResponse(content=content, model=model, usage=usage)


def extract_reply(data: Any) -> str:
    """Read ``choices[0].message.content`` or fail with ProviderResponseError."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise ProviderResponseError("No reply in completion provider response")

    if not content or not isinstance(content, str):
        raise ProviderResponseError("Empty reply from completion provider")

    return content


def extract_error_detail(response: httpx.Response) -> Any:
    """
    Pull the most specific error payload out of a failed response.

    Prefers ``error``, then ``message``, then the whole body.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] if response.text else "Completion provider error"

    if isinstance(body, dict):
        return safe_detail(body.get("error") or body.get("message") or body)
    return safe_detail(body)
