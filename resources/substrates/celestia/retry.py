"""Reconnect policy and clock abstraction for the RPC transport."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Time source for the transport's connect window and backoff waits."""

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``."""


class AsyncioClock:
    """Clock backed by the running event loop."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


@dataclass
class ReconnectPolicy:
    """Bounded linear backoff: delay is ``min(base * attempt, ceiling)``.

    ``next_delay`` consumes one attempt and returns its delay, or ``None``
    once ``max_attempts`` have been used, at which point the policy is
    terminal until ``reset``.
    """

    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 5.0
    max_attempts: int = 5
    attempts: int = 0

    def __post_init__(self) -> None:
        if self.base_delay_seconds <= 0:
            raise ValueError("base_delay_seconds must be positive")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    @property
    def terminal(self) -> bool:
        return self.attempts >= self.max_attempts

    def next_delay(self) -> float | None:
        if self.terminal:
            return None
        self.attempts += 1
        return min(self.base_delay_seconds * self.attempts, self.max_delay_seconds)

    def reset(self) -> None:
        self.attempts = 0
