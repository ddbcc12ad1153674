"""Async pump from the transport's bounded channel into session buffers."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..core.queues import BoundedQueue, OverflowPolicy

if TYPE_CHECKING:
    from ..config import BufferingConfig
    from ..session.session_state import SessionState

logger = logging.getLogger(__name__)


class IngestKind(str, Enum):
    AUDIO = "audio"
    SPEAKING_STARTED = "speaking_started"


@dataclass(frozen=True, slots=True)
class IngestEvent:
    speaker_id: str
    kind: IngestKind = IngestKind.AUDIO
    payload: Optional[bytes] = field(default=None, repr=False)
    # Arrival time; stamped on submit when the transport does not provide one
    timestamp_ms: Optional[float] = None

    @classmethod
    def audio(cls, speaker_id: str, payload: bytes, timestamp_ms: Optional[float] = None) -> "IngestEvent":
        return cls(speaker_id=speaker_id, kind=IngestKind.AUDIO, payload=payload, timestamp_ms=timestamp_ms)

    @classmethod
    def speaking_started(cls, speaker_id: str, timestamp_ms: Optional[float] = None) -> "IngestEvent":
        return cls(speaker_id=speaker_id, kind=IngestKind.SPEAKING_STARTED, timestamp_ms=timestamp_ms)


class IngestPump:
    """Drains transport events into a session's per-speaker buffers."""

    def __init__(
        self,
        session: "SessionState",
        queue: Optional[BoundedQueue[IngestEvent]] = None,
        *,
        queue_max: int = 2_000,
        overflow_policy: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
    ) -> None:
        self.session = session
        if queue is None:
            queue = BoundedQueue(queue_max, overflow_policy)
        self.queue: BoundedQueue[IngestEvent] = queue
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, session: "SessionState", buffering: "BufferingConfig") -> "IngestPump":
        return cls(
            session,
            queue_max=buffering.ingress_queue_max,
            overflow_policy=OverflowPolicy(buffering.overflow_policy),
        )

    def submit(self, event: IngestEvent) -> bool:
        """Transport-side entry point; never blocks.

        Events without a timestamp are stamped with their arrival time here,
        before they wait in the queue.
        """
        if event.timestamp_ms is None:
            event = replace(event, timestamp_ms=self.session.clock.now_ms())
        return self.queue.put_nowait(event)

    def apply(self, event: IngestEvent) -> None:
        if event.kind == IngestKind.SPEAKING_STARTED:
            self.session.on_speaking_started(event.speaker_id, event.timestamp_ms)
        else:
            self.session.on_audio(event.speaker_id, event.payload, event.timestamp_ms)

    async def start(self) -> None:
        if self._task and not self._task.done():
            return

        async def worker():
            while True:
                try:
                    event = await self.queue.get()
                    self.apply(event)
                except asyncio.CancelledError:
                    break
                except Exception:
                    logger.exception("Ingest worker error (session=%s)", self.session.session_id)

        self._task = asyncio.create_task(worker(), name=f"ingest-{self.session.session_id}")

    async def drain(self) -> int:
        """Apply everything currently queued without waiting for new events."""
        applied = 0
        while len(self.queue):
            self.apply(await self.queue.get())
            applied += 1
        return applied

    async def shutdown(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None


__all__ = ["IngestEvent", "IngestKind", "IngestPump"]
