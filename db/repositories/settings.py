"""Repository for store_settings key/value table."""

from datetime import UTC, datetime

from db.models import StoreSettingRow
from db.repositories.base import BaseRepository

_TABLE = "store_settings"


class SettingsRepository(BaseRepository):
    """Raw string-valued settings storage. Typing lives in services/settings.py."""

    async def get_all(self) -> dict[str, str | None]:
        resp = await self._table(_TABLE).select("key,value").execute()
        rows = [StoreSettingRow(**row) for row in self._rows(resp)]
        return {row.key: row.value for row in rows}

    async def set_many(self, values: dict[str, str]) -> None:
        """Upsert several keys in one request."""
        if not values:
            return
        now = datetime.now(tz=UTC).isoformat()
        payload = [{"key": key, "value": value, "updated_at": now} for key, value in values.items()]
        await self._table(_TABLE).upsert(payload, on_conflict="key").execute()
