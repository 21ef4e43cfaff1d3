"""Repository for individual_resources table (read side)."""

from db.models import IndividualResource
from db.repositories.base import BaseRepository

_TABLE = "individual_resources"


class IndividualResourcesRepository(BaseRepository):
    """Catalog reads for per-unit resources."""

    async def get_by_id(self, resource_id: int) -> IndividualResource | None:
        resp = await self._table(_TABLE).select("*").eq("id", resource_id).maybe_single().execute()
        row = self._single(resp)
        return IndividualResource(**row) if row else None

    async def get_enabled(self) -> list[IndividualResource]:
        """Enabled resources in display order (sort_order, then name)."""
        resp = (
            await self._table(_TABLE)
            .select("*")
            .eq("enabled", True)
            .order("sort_order")
            .order("name")
            .execute()
        )
        return [IndividualResource(**row) for row in self._rows(resp)]
