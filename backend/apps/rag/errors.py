"""
Error taxonomy for the retrieval pipeline.

Every failure the pipeline reports is one of these classes, so callers can
tell bad input from configuration problems, provider problems and store
failures. Views map them to HTTP responses through ``http_status``.
"""
from typing import Any, Optional


class RagError(Exception):
    """Base class for all classified pipeline failures."""
    kind = "internal"
    http_status = 500

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for error responses."""
        data = {"error": self.message, "kind": self.kind}
        if self.detail is not None:
            data["detail"] = self.detail
        return data


class ValidationError(RagError):
    """Missing or empty required input. Raised before any external call."""
    kind = "validation"
    http_status = 400


class NotFoundError(RagError):
    """A referenced document does not exist."""
    kind = "not_found"
    http_status = 404


class ConfigurationError(RagError):
    """A required credential or connection parameter is missing."""
    kind = "configuration"
    http_status = 500


class MissingCredentialsError(ConfigurationError):
    """No provider API key resolved from request, environment or settings."""
    http_status = 401


class StoreError(RagError):
    """The persistence layer reported a failure."""
    kind = "store"
    http_status = 500


class ProviderError(RagError):
    """
    Base class for embedding/completion provider failures.

    ``status_code`` is the upstream HTTP status when there was one.
    """
    kind = "provider"
    http_status = 502

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message, detail=detail)
        self.status_code = status_code

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.status_code is not None:
            data["status"] = self.status_code
        return data


class ProviderStatusError(ProviderError):
    """Non-2xx response from the provider. Propagated with upstream status."""
    kind = "provider_status"

    def __init__(self, message: str, status_code: int, detail: Any = None):
        super().__init__(message, status_code=status_code, detail=detail)
        # Upstream status is passed through to the caller verbatim
        self.http_status = status_code

    @property
    def is_payment_required(self) -> bool:
        return self.status_code == 402


class ProviderResponseError(ProviderError):
    """2xx response that lacks the expected field."""
    kind = "provider_response"


class ProviderUnavailableError(ProviderError):
    """Timeout or connection failure talking to the provider."""
    kind = "provider_unavailable"
    http_status = 503


class EmbeddingProviderError(ProviderError):
    """Any failure of a single embedding call."""
    kind = "embedding"


def safe_detail(value: Any) -> Any:
    """
    Make an upstream error payload safe to put in a JSON response.

    Strings and JSON-compatible containers pass through; anything else is
    stringified.
    """
    if value is None or isinstance(value, (str, int, float, bool, dict, list)):
        return value
    return str(value)
