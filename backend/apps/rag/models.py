"""
Assistant settings singleton.
"""
from django.db import models

SETTINGS_ID = 1


class AssistantSettings(models.Model):
    """
    The single settings row (id=1).

    The API key is write-only: it is stored here but only ever exposed to
    clients as a presence flag.
    """
    id = models.PositiveSmallIntegerField(primary_key=True, default=SETTINGS_ID)

    openrouter_api_key = models.TextField(blank=True, default='')
    selected_model = models.CharField(max_length=200, blank=True, default='')
    system_prompt = models.TextField(blank=True, default='')

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'settings'

    def __str__(self):
        return f"Settings (model={self.selected_model or 'default'})"

    @property
    def has_api_key(self) -> bool:
        return bool(self.openrouter_api_key and self.openrouter_api_key.strip())
