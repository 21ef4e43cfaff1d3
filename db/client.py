"""Async Supabase PostgREST client wrapper."""

from typing import Any

from postgrest import AsyncPostgrestClient, AsyncRequestBuilder


class SupabaseClient:
    """Thin wrapper around AsyncPostgrestClient with Supabase auth headers.

    Store tables, ledger RPCs and the settings key/value table all live in the
    same PostgREST schema (``public`` unless overridden).
    """

    def __init__(self, url: str, key: str, schema: str = "public") -> None:
        rest_url = f"{url}/rest/v1"
        headers = {"apikey": key, "Authorization": f"Bearer {key}"}
        self._client = AsyncPostgrestClient(rest_url, headers=headers, schema=schema)

    def table(self, name: str) -> AsyncRequestBuilder:
        """Return a request builder for the given table."""
        return self._client.table(name)

    async def rpc(self, fn_name: str, params: dict[str, Any] | None = None) -> Any:
        """Call a PostgreSQL function exposed through PostgREST.

        Scalar functions come back as a bare value, set-returning ones as a
        list of rows. Raises if the function doesn't exist or errors.
        """
        resp = await self._client.rpc(fn_name, params or {}).execute()
        return resp.data

    async def close(self) -> None:
        """Close the underlying HTTP connections."""
        await self._client.aclose()
