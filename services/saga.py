"""Compensation bookkeeping for multi-step purchases.

Each completed step may register a compensator. On failure the recorded
compensators run in reverse order; a failing compensator is logged and does
not stop the rest.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger()

type Compensator[T] = Callable[[T], Awaitable[Any]]


@dataclass(slots=True)
class _Recorded:
    step: str
    value: Any
    compensate: Compensator[Any] | None


class PurchaseSaga:
    """Tracks completed steps of one purchase."""

    def __init__(self, name: str, **context: Any) -> None:
        self._name = name
        self._context = context
        self._steps: list[_Recorded] = []

    @property
    def completed(self) -> list[str]:
        return [s.step for s in self._steps]

    async def step[T](
        self,
        name: str,
        action: Awaitable[T],
        compensate: Compensator[T] | None = None,
    ) -> T:
        """Await ``action``; on success record it with its compensator.

        Exceptions from ``action`` propagate and nothing is recorded.
        """
        value = await action
        self._steps.append(_Recorded(step=name, value=value, compensate=compensate))
        return value

    def record(self, name: str, value: Any = None) -> None:
        """Mark a step as done without a compensator."""
        self._steps.append(_Recorded(step=name, value=value, compensate=None))

    async def compensate(self) -> tuple[int, int]:
        """Run compensators in reverse. Returns (run, failed)."""
        run = 0
        failed = 0
        for recorded in reversed(self._steps):
            if recorded.compensate is None:
                continue
            try:
                await recorded.compensate(recorded.value)
                run += 1
            except Exception:
                failed += 1
                log.error(
                    "saga_compensation_failed",
                    saga=self._name,
                    step=recorded.step,
                    exc_info=True,
                    **self._context,
                )
        log.info(
            "saga_compensated",
            saga=self._name,
            completed=self.completed,
            compensators_run=run,
            compensators_failed=failed,
            **self._context,
        )
        return run, failed
