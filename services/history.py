"""Paginated purchase history for the storefront."""

import math
from dataclasses import dataclass
from typing import Any

from db.client import SupabaseClient
from db.models import Purchase
from db.repositories.purchases import PurchasesRepository

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class PurchasePage:
    purchases: list[Purchase]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "purchases": [p.model_dump(mode="json") for p in self.purchases],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
            },
        }


def clamp_page(page: int, limit: int) -> tuple[int, int]:
    """page >= 1, 1 <= limit <= MAX_PAGE_SIZE."""
    return max(1, page), max(1, min(MAX_PAGE_SIZE, limit))


class PurchaseHistoryService:
    """Read side of resource_purchases. Individual-resource purchases are not recorded."""

    def __init__(self, db: SupabaseClient) -> None:
        self._purchases = PurchasesRepository(db)

    async def list_purchases(self, user_id: int, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> PurchasePage:
        """Newest-first page of a user's package purchases."""
        page, limit = clamp_page(page, limit)
        purchases, total = await self._purchases.get_page_by_user(user_id, page=page, limit=limit)
        return PurchasePage(purchases=purchases, page=page, limit=limit, total=total)
