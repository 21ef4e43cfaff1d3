"""Repository for resource_purchases table (append-only history)."""

from db.models import Purchase, PurchaseCreate
from db.repositories.base import BaseRepository

_TABLE = "resource_purchases"
_SELECT_WITH_PACKAGE = "*, resource_packages(name)"


class PurchasesRepository(BaseRepository):
    """Insert and paginated read-back of package purchases."""

    async def create(self, data: PurchaseCreate) -> Purchase:
        """Append a purchase record."""
        resp = await self._table(_TABLE).insert(data.model_dump()).execute()
        row = self._require_first(resp)
        return Purchase(**row)

    async def get_page_by_user(self, user_id: int, page: int = 1, limit: int = 50) -> tuple[list[Purchase], int]:
        """One page of a user's purchases, newest first, plus the total row count."""
        start, end = self._page_bounds(page, limit)
        resp = (
            await self._table(_TABLE)
            .select(_SELECT_WITH_PACKAGE, count="exact")  # type: ignore[arg-type]
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .range(start, end)
            .execute()
        )
        return [Purchase(**row) for row in self._rows(resp)], self._count(resp)
