"""
Embedding generation against an OpenRouter-compatible provider.

One call embeds one text. Failures of any kind (HTTP status, timeout,
connection, malformed body) surface as EmbeddingProviderError; there are
no retries here, retry policy belongs to the caller.
"""
import logging
from typing import List, Optional

import httpx
from django.conf import settings

from apps.rag.errors import ConfigurationError, EmbeddingProviderError, safe_detail

logger = logging.getLogger(__name__)

# Embedding model configuration
EMBEDDING_MODEL = "text-embedding-3-small"
EMBEDDING_DIMENSIONS = 1536
DEFAULT_TIMEOUT = 60.0


def get_provider_url() -> str:
    """Get the provider base URL from settings."""
    return getattr(settings, 'OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1').rstrip('/')


class EmbeddingClient:
    """
    Single text -> vector client.

    Sends ``{"model": ..., "input": text}`` with bearer auth to
    ``<base_url>/embeddings`` and reads the vector from
    ``data[0].embedding``.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        if not api_key:
            raise ConfigurationError("Embedding provider API key not configured")
        self.api_key = api_key
        self.model = model or getattr(settings, 'EMBEDDING_MODEL', EMBEDDING_MODEL)
        self.base_url = (base_url or get_provider_url()).rstrip('/')
        self.timeout = float(timeout or getattr(settings, 'PROVIDER_TIMEOUT', DEFAULT_TIMEOUT))
        self.dimensions = getattr(settings, 'EMBEDDING_DIMENSIONS', EMBEDDING_DIMENSIONS)

    def embed(self, text: str) -> List[float]:
        """
        Generate an embedding vector for a single text.

        Args:
            text: The text to embed

        Returns:
            List of floats representing the embedding vector

        Raises:
            EmbeddingProviderError: If the call errors, times out or the
                response has no vector
        """
        url = f"{self.base_url}/embeddings"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    url,
                    json={"model": self.model, "input": text},
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = _error_detail(e.response)
            logger.error(f"Embedding request failed with status {status}: {detail}")
            raise EmbeddingProviderError(
                f"Embedding provider returned {status}",
                status_code=status,
                detail=detail,
            )
        except httpx.TimeoutException:
            logger.error(f"Embedding request timed out after {self.timeout}s")
            raise EmbeddingProviderError("Embedding provider timed out", status_code=504)
        except httpx.RequestError as e:
            logger.error(f"Embedding provider connection error: {e}")
            raise EmbeddingProviderError(f"Could not connect to embedding provider at {self.base_url}")
        except ValueError:
            logger.error("Embedding provider returned a non-JSON body")
            raise EmbeddingProviderError("Invalid response from embedding provider")

        embedding = extract_embedding(data)

        if len(embedding) != self.dimensions:
            logger.warning(
                f"Expected {self.dimensions} dimensions, got {len(embedding)}"
            )

        return embedding


def extract_embedding(data) -> List[float]:
    """
    Pull the vector out of an embeddings response body.

    A missing vector is a hard failure, not an empty result.
    """
    try:
        embedding = data["data"][0]["embedding"]
    except (KeyError, IndexError, TypeError):
        raise EmbeddingProviderError(
            "No embedding in provider response",
            detail=safe_detail(list(data.keys()) if isinstance(data, dict) else None),
        )

    if not embedding or not isinstance(embedding, list):
        raise EmbeddingProviderError("No embedding in provider response")

    return embedding


def _error_detail(response: httpx.Response):
    """Best-effort extraction of the provider's error payload."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] if response.text else "No details"
    if isinstance(body, dict):
        return safe_detail(body.get("error") or body.get("message") or body)
    return safe_detail(body)
