"""
Persistence for the assistant settings singleton.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError

from apps.rag.errors import StoreError
from apps.rag.models import AssistantSettings, SETTINGS_ID

logger = logging.getLogger(__name__)


@dataclass
class PersistedSettings:
    """Snapshot of the settings row. Empty strings mean "not set"."""
    api_key: str = ""
    selected_model: str = ""
    system_prompt: str = ""
    updated_at: Optional[str] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key.strip())


class SettingsStore:
    """Reads and upserts the singleton settings row."""

    def load(self) -> PersistedSettings:
        """Return the stored settings, or an empty snapshot if none exist."""
        try:
            row = AssistantSettings.objects.filter(id=SETTINGS_ID).first()
        except DatabaseError as e:
            logger.error(f"Failed to read settings: {e}")
            raise StoreError(f"Failed to read settings: {e}", detail=str(e))

        if row is None:
            return PersistedSettings()

        return PersistedSettings(
            api_key=row.openrouter_api_key or "",
            selected_model=row.selected_model or "",
            system_prompt=row.system_prompt or "",
            updated_at=row.updated_at.isoformat() if row.updated_at else None,
        )

    def save(
        self,
        selected_model: str,
        system_prompt: str,
        api_key: Optional[str] = None,
    ) -> None:
        """
        Upsert the settings row.

        The stored key is only replaced when a non-blank ``api_key`` is given.
        """
        defaults = {
            "selected_model": selected_model,
            "system_prompt": system_prompt,
        }
        if api_key and api_key.strip():
            defaults["openrouter_api_key"] = api_key.strip()

        try:
            AssistantSettings.objects.update_or_create(id=SETTINGS_ID, defaults=defaults)
        except DatabaseError as e:
            logger.error(f"Failed to save settings: {e}")
            raise StoreError(f"Failed to save settings: {e}", detail=str(e))

        logger.info(
            f"Settings saved: model={selected_model!r}, "
            f"api_key_updated={'openrouter_api_key' in defaults}"
        )
