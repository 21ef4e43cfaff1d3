"""Resource-grant ledger adapter (user_resources table + add_user_resource RPC)."""

from typing import Any

import structlog

from db.models import ResourceType
from db.repositories.base import BaseRepository

log = structlog.get_logger()

_TABLE = "user_resources"


class ResourcesRepository(BaseRepository):
    """Grants resource-limit capacity to a user's hosting account."""

    async def ensure_user_resources(self, user_id: int) -> None:
        """Create the user's ledger row if missing. Existing rows are left untouched."""
        await (
            self._table(_TABLE)
            .upsert({"user_id": user_id}, on_conflict="user_id", ignore_duplicates=True)
            .execute()
        )

    async def add_user_resource(self, user_id: int, resource_type: ResourceType, amount: int) -> bool:
        """Increase one limit column by ``amount``. Returns True when the ledger accepted it."""
        result = await self._db.rpc(
            "add_user_resource",
            {"p_user_id": user_id, "p_resource_type": str(resource_type), "p_amount": amount},
        )
        accepted = self._extract_flag(result)
        if not accepted:
            log.warning("resource_grant_rejected", user_id=user_id, resource_type=str(resource_type), amount=amount)
        return accepted

    @staticmethod
    def _extract_flag(rpc_result: Any) -> bool:
        """Boolean RPC result: ``true``, ``[true]`` or ``[{"add_user_resource": true}]``."""
        if isinstance(rpc_result, list):
            if not rpc_result:
                return False
            rpc_result = rpc_result[0]
        if isinstance(rpc_result, dict):
            rpc_result = next(iter(rpc_result.values()), False)
        return bool(rpc_result)
