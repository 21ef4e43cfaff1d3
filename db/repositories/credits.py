"""Credit ledger adapter (users.credits column + atomic RPCs).

All balance mutations go through PostgreSQL functions:
- charge_credits(p_user_id, p_amount): debit only if balance >= amount,
  raises 'insufficient_credits' otherwise. Returns new balance.
- add_credits(p_user_id, p_amount): unconditional credit. Returns new balance.

The CAS fallback only runs when PostgREST reports the function as missing.
Any other RPC error may have committed server-side and is re-raised.
"""

from typing import Any

import structlog

from db.repositories.base import BaseRepository
from storefront.exceptions import AppError, InsufficientCreditsError

log = structlog.get_logger()

_TABLE = "users"
_MAX_RETRIES = 3
_MISSING_FUNCTION_CODE = "PGRST202"


def _is_missing_function(exc: Exception) -> bool:
    """True when PostgREST could not find the function (nothing was executed)."""
    if getattr(exc, "code", None) == _MISSING_FUNCTION_CODE:
        return True
    text = str(exc).lower()
    return _MISSING_FUNCTION_CODE.lower() in text or ("function" in text and "not found" in text)


class CreditsRepository(BaseRepository):
    """Balance reads and atomic debit/credit for the users table."""

    async def get_balance(self, user_id: int) -> int:
        """Current credit balance. Returns 0 if the user has no ledger row."""
        resp = await self._table(_TABLE).select("id,credits").eq("id", user_id).maybe_single().execute()
        row = self._single(resp)
        return int(row.get("credits") or 0) if row else 0

    async def charge(self, user_id: int, amount: int) -> int:
        """Atomically deduct credits. Raises InsufficientCreditsError if balance < amount.

        This is a conditional debit: the balance check and the write happen in
        one statement, so two concurrent purchases cannot both spend the same
        balance. Returns the new balance.
        """
        try:
            result = await self._db.rpc(
                "charge_credits", {"p_user_id": user_id, "p_amount": amount}
            )
            return self._extract_balance(result)
        except Exception as exc:
            if "insufficient_credits" in str(exc):
                available = await self.get_balance(user_id)
                raise InsufficientCreditsError(required=amount, available=available) from exc
            if not _is_missing_function(exc):
                raise
            log.warning("rpc_unavailable", fn="charge_credits", user_id=user_id, exc_info=True)

        # Fallback: CAS loop guarded by the balance we just read.
        for attempt in range(_MAX_RETRIES):
            balance = await self._require_balance(user_id)
            if balance < amount:
                raise InsufficientCreditsError(required=amount, available=balance)
            rows = self._rows(await self._cas_update(user_id, balance, balance - amount))
            if rows:
                return int(rows[0]["credits"])
            log.info("charge_credits_retry", user_id=user_id, attempt=attempt + 1, max_retries=_MAX_RETRIES)
        raise AppError(f"Credit debit conflict after {_MAX_RETRIES} retries")

    async def refund(self, user_id: int, amount: int) -> int:
        """Atomically return credits (compensation after a failed grant)."""
        try:
            result = await self._db.rpc("add_credits", {"p_user_id": user_id, "p_amount": amount})
            return self._extract_balance(result)
        except Exception as exc:
            if not _is_missing_function(exc):
                raise
            log.warning("rpc_unavailable", fn="add_credits", user_id=user_id, exc_info=True)

        for attempt in range(_MAX_RETRIES):
            balance = await self._require_balance(user_id)
            rows = self._rows(await self._cas_update(user_id, balance, balance + amount))
            if rows:
                return int(rows[0]["credits"])
            log.info("add_credits_retry", user_id=user_id, attempt=attempt + 1, max_retries=_MAX_RETRIES)
        raise AppError(f"Credit refund conflict after {_MAX_RETRIES} retries")

    async def _require_balance(self, user_id: int) -> int:
        resp = await self._table(_TABLE).select("id,credits").eq("id", user_id).maybe_single().execute()
        row = self._single(resp)
        if row is None:
            raise AppError(f"User {user_id} not found")
        return int(row.get("credits") or 0)

    async def _cas_update(self, user_id: int, expected: int, new_balance: int) -> Any:
        """Compare-and-set write; an empty result means the balance moved underneath us."""
        return await (
            self._table(_TABLE)
            .update({"credits": new_balance})
            .eq("id", user_id)
            .eq("credits", expected)
            .execute()
        )

    @staticmethod
    def _extract_balance(rpc_result: Any) -> int:
        """Extract integer balance from RPC result.

        PostgREST may return an int, ``[int]`` or ``[{"fn_name": int}]``.
        """
        if isinstance(rpc_result, bool):
            raise AppError("Balance RPC returned a boolean")
        if isinstance(rpc_result, int):
            return rpc_result
        if isinstance(rpc_result, list) and rpc_result:
            val = rpc_result[0]
            if isinstance(val, dict):
                return int(next(iter(val.values())))
            return int(val)
        raise AppError("Balance RPC returned unexpected result")
