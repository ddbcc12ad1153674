"""Clock helpers for stamping packet arrivals."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class WallClock:
    """Wall-clock source in milliseconds; ``time_fn`` is swappable for tests."""

    time_fn: Callable[[], float] = time.time

    def now_ms(self) -> int:
        return int(self.time_fn() * 1000)

    async def sleep(self, duration_ms: int) -> None:
        await asyncio.sleep(duration_ms / 1000.0)


class ManualClock(WallClock):
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now_ms = start_ms
        super().__init__(time_fn=lambda: self._now_ms / 1000.0)

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, delta_ms: int) -> int:
        self._now_ms += delta_ms
        return self._now_ms

    def set(self, now_ms: int) -> None:
        self._now_ms = now_ms


__all__ = ["ManualClock", "WallClock"]
