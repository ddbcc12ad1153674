"""Per-speaker rolling packet store."""
from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Optional, Tuple

from ..utils.time_utils import WallClock
from .packet import Packet


class SlidingWindowBuffer:
    """Keeps the last ``retention_ms`` of one speaker's packets in arrival order.

    Eviction only looks at the head of the queue, so it assumes packets arrive
    in roughly increasing timestamp order. Under heavy reordering a stale packet
    can outlive the window, or a fresh one can be evicted early.
    """

    def __init__(self, retention_ms: int, clock: Optional[WallClock] = None) -> None:
        if retention_ms <= 0:
            raise ValueError("retention_ms must be positive")
        self.retention_ms = retention_ms
        self.clock = clock or WallClock()
        self._packets: Deque[Packet] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._packets)

    def append(self, packet: Optional[Packet]) -> None:
        """Add a packet to the tail and evict anything older than the window."""
        if packet is None:
            return
        with self._lock:
            self._packets.append(packet)
            self._truncate_locked(packet.timestamp_ms)

    def truncate(self, latest_timestamp_ms: float) -> int:
        """Drop head packets older than ``latest_timestamp_ms - retention_ms``.

        Returns the number of packets evicted.
        """
        with self._lock:
            return self._truncate_locked(latest_timestamp_ms)

    def _truncate_locked(self, latest_timestamp_ms: float) -> int:
        evicted = 0
        packets = self._packets
        while packets and packets[0].timestamp_ms + self.retention_ms < latest_timestamp_ms:
            packets.popleft()
            evicted += 1
        return evicted

    def flag_speaking_start(self, timestamp_ms: Optional[float] = None) -> Packet:
        """Record that a new utterance began at ``timestamp_ms`` (default: now)."""
        marker = Packet.marker(timestamp_ms if timestamp_ms is not None else self.clock.now_ms())
        self.append(marker)
        return marker

    def snapshot(self) -> Tuple[Packet, ...]:
        """Copy of the current packets, safe to iterate while ingestion continues.

        The copy is not re-checked against the retention window.
        """
        with self._lock:
            return tuple(self._packets)

    @property
    def latest_timestamp_ms(self) -> Optional[float]:
        with self._lock:
            return self._packets[-1].timestamp_ms if self._packets else None

    def clear(self) -> None:
        with self._lock:
            self._packets.clear()


__all__ = ["SlidingWindowBuffer"]
