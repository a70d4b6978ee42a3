import pytest


@pytest.fixture
def provider_settings(settings):
    """Pin process-level provider settings so the environment cannot leak in."""
    settings.OPEN_ROUTER_API_KEY = ""
    settings.CHAT_MODEL = ""
    settings.SYSTEM_PROMPT = ""
    settings.FALLBACK_MODEL = "openai/gpt-4o-mini"
    settings.DEFAULT_SYSTEM_PROMPT = "Você é um assistente útil."
    return settings
