"""
Per-call pipeline configuration.

The API key, model and system prompt are resolved at call time into an
explicit PipelineConfig. Precedence, first non-empty value wins:

    request override > process-level setting > persisted settings > default
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from apps.rag.errors import MissingCredentialsError
from apps.rag.router import DEFAULT_MODEL, normalize_model
from apps.rag.settings_store import PersistedSettings

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "Você é um assistente útil."


@dataclass
class RequestOverrides:
    """Values a single request may supply to override configuration."""
    api_key: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = None


@dataclass
class PipelineConfig:
    """Everything a query or ingest needs to talk to the provider."""
    api_key: str
    model: str
    fallback_model: str
    system_prompt: str

    def __repr__(self) -> str:
        # Never print the key
        return (
            f"PipelineConfig(model={self.model!r}, fallback_model={self.fallback_model!r}, "
            f"api_key={'set' if self.api_key else 'missing'})"
        )


def first_non_empty(*values: Optional[str]) -> str:
    """Return the first value that is a non-blank string, stripped, else ''."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def resolve_config(
    overrides: Optional[RequestOverrides] = None,
    persisted: Optional[PersistedSettings] = None,
) -> PipelineConfig:
    """
    Resolve the effective configuration for one call.

    Raises:
        MissingCredentialsError: If no API key resolves at any level
    """
    overrides = overrides or RequestOverrides()
    persisted = persisted or PersistedSettings()

    api_key = first_non_empty(
        overrides.api_key,
        getattr(settings, 'OPEN_ROUTER_API_KEY', ''),
        persisted.api_key,
    )
    if not api_key:
        raise MissingCredentialsError(
            "OPEN_ROUTER_API_KEY missing (request, environment and settings)"
        )

    raw_model = first_non_empty(
        overrides.model,
        getattr(settings, 'CHAT_MODEL', ''),
        persisted.selected_model,
    )
    model = normalize_model(raw_model)

    system_prompt = first_non_empty(
        overrides.system_prompt,
        getattr(settings, 'SYSTEM_PROMPT', ''),
        persisted.system_prompt,
        getattr(settings, 'DEFAULT_SYSTEM_PROMPT', ''),
    ) or DEFAULT_SYSTEM_PROMPT

    fallback_model = first_non_empty(getattr(settings, 'FALLBACK_MODEL', '')) or DEFAULT_MODEL

    config = PipelineConfig(
        api_key=api_key,
        model=model,
        fallback_model=fallback_model,
        system_prompt=system_prompt,
    )
    logger.debug(f"Resolved {config!r}")
    return config
