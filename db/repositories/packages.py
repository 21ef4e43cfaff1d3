"""Repository for resource_packages table (read side; CRUD lives in the admin panel)."""

from db.models import ResourcePackage
from db.repositories.base import BaseRepository

_TABLE = "resource_packages"


class PackagesRepository(BaseRepository):
    """Catalog reads for resource packages."""

    async def get_by_id(self, package_id: int) -> ResourcePackage | None:
        """Get package by ID, enabled or not. Returns None if not found."""
        resp = await self._table(_TABLE).select("*").eq("id", package_id).maybe_single().execute()
        row = self._single(resp)
        return ResourcePackage(**row) if row else None

    async def get_enabled(self) -> list[ResourcePackage]:
        """Enabled packages in display order (sort_order, then name)."""
        resp = (
            await self._table(_TABLE)
            .select("*")
            .eq("enabled", True)
            .order("sort_order")
            .order("name")
            .execute()
        )
        return [ResourcePackage(**row) for row in self._rows(resp)]
