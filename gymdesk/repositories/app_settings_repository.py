"""App Settings Repository - The single studio settings row."""
import copy
from datetime import datetime, timezone

from loguru import logger

from gymdesk.services.store_client import StoreGateway

APP_SETTINGS_TABLE = "app_settings"

DEFAULT_APP_SETTINGS = {
    "id": "1",
    "studio_name": "Forfit Ladies",
    "language": "en",
    "currency": "USD",
    "timezone": "UTC",
    "theme": {
        "primary": "#DC2684",
        "secondary": "#523A7A",
        "accentGold": "#FAD45B",
        "accentOrange": "#F19F67",
    },
    "typing_glow_enabled": True,
}


class AppSettingsRepository:
    """Loads the settings row, seeding defaults into an empty table."""

    def __init__(self, gateway: StoreGateway):
        self._gateway = gateway

    def load(self) -> dict:
        """Stored settings, or the defaults when the store is empty or unavailable."""
        result = self._gateway.select(APP_SETTINGS_TABLE, limit=1)

        if not result.ok:
            logger.warning(f"[AppSettingsRepository] Using default settings: {result.error}")
            return copy.deepcopy(DEFAULT_APP_SETTINGS)

        if result.first:
            return result.first

        # Table is empty, insert default settings
        now = datetime.now(timezone.utc).isoformat()
        defaults = copy.deepcopy(DEFAULT_APP_SETTINGS)
        defaults.update(created_at=now, updated_at=now)

        inserted = self._gateway.insert(APP_SETTINGS_TABLE, defaults)
        if not inserted.ok:
            logger.error(f"[AppSettingsRepository] Failed to insert default settings: {inserted.error}")
        else:
            logger.info("[AppSettingsRepository] Seeded default settings")
        return defaults

    def save(self, settings: dict):
        """Upsert the settings row; returns the StoreResult."""
        values = dict(settings)
        values.setdefault("id", DEFAULT_APP_SETTINGS["id"])
        values["updated_at"] = datetime.now(timezone.utc).isoformat()
        return self._gateway.upsert(APP_SETTINGS_TABLE, values)
