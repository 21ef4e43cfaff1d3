"""Shared mock fixtures for repository tests.

Uses a MockSupabaseClient that records calls and returns configurable responses.
The mock auto-handles maybe_single() semantics:
- dict data + maybe_single() → returns dict (single row)
- dict data + no maybe_single() → wraps in list (for update/insert)
- list data + maybe_single() → returns first element or None
- None/[] + maybe_single() → returns None
range(start, end) slices list data (inclusive end), like PostgREST.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Mock PostgREST chain
# ---------------------------------------------------------------------------


@dataclass
class MockResponse:
    """Simulated PostgREST response."""

    data: Any = None
    count: int | None = None


class MockRequestBuilder:
    """Chainable mock that records method calls and returns configurable response.

    Automatically handles maybe_single() semantics: when called,
    execute() returns a single row (dict) or None instead of a list.
    """

    def __init__(self, table: str, response: MockResponse | None = None, calls: list | None = None) -> None:
        self._table = table
        self._response = response or MockResponse()
        self._is_maybe_single = False
        self._range: tuple[int, int] | None = None
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = calls if calls is not None else []

    def _chain(self, method: str, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        self.calls.append((method, args, kwargs))
        return self

    def select(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("select", *args, **kwargs)

    def insert(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("insert", *args, **kwargs)

    def update(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("update", *args, **kwargs)

    def upsert(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("upsert", *args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("delete", *args, **kwargs)

    def eq(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("eq", *args, **kwargs)

    def order(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("order", *args, **kwargs)

    def limit(self, *args: Any, **kwargs: Any) -> MockRequestBuilder:
        return self._chain("limit", *args, **kwargs)

    def range(self, start: int, end: int) -> MockRequestBuilder:
        self._range = (start, end)
        return self._chain("range", start, end)

    def maybe_single(self) -> MockRequestBuilder:
        self._is_maybe_single = True
        return self._chain("maybe_single")

    async def execute(self) -> MockResponse:
        """Return response with automatic maybe_single() and range() handling."""
        data = self._response.data
        count = self._response.count

        if self._is_maybe_single:
            resolved = (data[0] if data else None) if isinstance(data, list) else data
            return MockResponse(data=resolved, count=count)

        if data is None:
            return MockResponse(data=[], count=count)
        if isinstance(data, dict):
            return MockResponse(data=[data], count=count)
        if self._range is not None:
            start, end = self._range
            return MockResponse(data=data[start : end + 1], count=count)
        return self._response


@dataclass
class MockSupabaseClient:
    """SupabaseClient mock that returns preconfigured responses per table.

    Creates a NEW MockRequestBuilder for each table() call so that
    maybe_single() state doesn't leak between different query chains.
    Every chained call is appended to ``calls[table]``; every RPC to ``rpc_calls``.
    """

    _responses: dict[str, MockResponse] = field(default_factory=dict)
    _response_queues: dict[str, list[MockResponse]] = field(default_factory=dict)
    _rpc_responses: dict[str, Any] = field(default_factory=dict)
    calls: dict[str, list[tuple[str, tuple[Any, ...], dict[str, Any]]]] = field(default_factory=dict)
    rpc_calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def set_response(self, table: str, response: MockResponse) -> None:
        """Set the response for a given table name."""
        self._responses[table] = response

    def set_responses(self, table: str, responses: list[MockResponse]) -> None:
        """Set sequential responses for a table (consumed in order, then falls back to set_response)."""
        self._response_queues[table] = list(responses)

    def table(self, name: str) -> MockRequestBuilder:
        """Return a fresh MockRequestBuilder for the given table."""
        calls = self.calls.setdefault(name, [])
        queue = self._response_queues.get(name)
        if queue:
            resp = queue.pop(0)
            if not queue:
                del self._response_queues[name]
            return MockRequestBuilder(name, resp, calls)
        return MockRequestBuilder(name, self._responses.get(name, MockResponse()), calls)

    def set_rpc_response(self, fn_name: str, data: Any) -> None:
        """Set response data for an RPC call. An Exception instance is raised instead."""
        self._rpc_responses[fn_name] = data

    async def rpc(self, fn_name: str, params: dict[str, Any] | None = None) -> Any:
        """Mock RPC call. Raises RuntimeError if no response configured (simulates missing function)."""
        self.rpc_calls.append((fn_name, params or {}))
        if fn_name not in self._rpc_responses:
            msg = f"RPC function {fn_name} not found"
            raise RuntimeError(msg)
        result = self._rpc_responses[fn_name]
        if isinstance(result, Exception):
            raise result
        return result

    def called(self, table: str, method: str) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
        """(args, kwargs) of every ``method`` call made on ``table``."""
        return [(args, kwargs) for m, args, kwargs in self.calls.get(table, []) if m == method]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_response() -> type[MockResponse]:
    """MockResponse class for direct use."""
    return MockResponse


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """MockSupabaseClient instance."""
    return MockSupabaseClient()
