"""
Tests for per-call configuration resolution.

Precedence: request override > process-level setting > persisted settings > default.
"""
import pytest

from apps.rag.config import RequestOverrides, first_non_empty, resolve_config
from apps.rag.errors import ConfigurationError, MissingCredentialsError
from apps.rag.router import DEFAULT_MODEL
from apps.rag.settings_store import PersistedSettings


PERSISTED = PersistedSettings(
    api_key="db-key",
    selected_model="claude",
    system_prompt="Prompt salvo.",
)


class TestApiKeyPrecedence:
    """Tests for API key resolution."""

    def test_request_override_wins(self, provider_settings):
        provider_settings.OPEN_ROUTER_API_KEY = "env-key"

        config = resolve_config(RequestOverrides(api_key="req-key"), PERSISTED)

        assert config.api_key == "req-key"

    def test_environment_beats_persisted(self, provider_settings):
        provider_settings.OPEN_ROUTER_API_KEY = "env-key"

        assert resolve_config(None, PERSISTED).api_key == "env-key"

    def test_persisted_used_last(self, provider_settings):
        assert resolve_config(RequestOverrides(api_key="  "), PERSISTED).api_key == "db-key"

    def test_missing_everywhere(self, provider_settings):
        """No key at any level is a configuration failure."""
        with pytest.raises(MissingCredentialsError) as exc_info:
            resolve_config(None, PersistedSettings())

        assert isinstance(exc_info.value, ConfigurationError)
        assert exc_info.value.http_status == 401


class TestModelAndPrompt:
    """Tests for model and system prompt resolution."""

    def test_model_override_is_normalized(self, provider_settings):
        config = resolve_config(RequestOverrides(model="gpt-4"), PERSISTED)

        assert config.model == "openai/gpt-4o-mini"

    def test_process_model_beats_persisted(self, provider_settings):
        provider_settings.CHAT_MODEL = "openai/gpt-4.1-mini"

        assert resolve_config(None, PERSISTED).model == "openai/gpt-4.1-mini"

    def test_persisted_model(self, provider_settings):
        assert resolve_config(None, PERSISTED).model == "anthropic/claude-3.5-sonnet"

    def test_default_model(self, provider_settings):
        config = resolve_config(None, PersistedSettings(api_key="k"))

        assert config.model == DEFAULT_MODEL
        assert config.fallback_model == "openai/gpt-4o-mini"

    def test_prompt_precedence(self, provider_settings):
        assert resolve_config(RequestOverrides(system_prompt="Seja breve."), PERSISTED).system_prompt == "Seja breve."
        assert resolve_config(None, PERSISTED).system_prompt == "Prompt salvo."

        provider_settings.SYSTEM_PROMPT = "Prompt do ambiente."
        assert resolve_config(None, PERSISTED).system_prompt == "Prompt do ambiente."

    def test_default_prompt(self, provider_settings):
        config = resolve_config(None, PersistedSettings(api_key="k"))

        assert config.system_prompt == "Você é um assistente útil."

    def test_repr_hides_key(self, provider_settings):
        config = resolve_config(RequestOverrides(api_key="sk-secret"), PERSISTED)

        assert "sk-secret" not in repr(config)


def test_first_non_empty():
    assert first_non_empty(None, "", "  ", " x ", "y") == "x"
    assert first_non_empty(None, "") == ""
