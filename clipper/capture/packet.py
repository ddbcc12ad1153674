from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..utils.time_utils import WallClock


@dataclass(frozen=True, slots=True)
class Packet:
    """One encoded frame (or speaking-start marker) stamped with its arrival time."""

    timestamp_ms: float
    # Encoded frame; None for markers
    payload: Optional[bytes] = None
    is_marker: bool = False

    def __post_init__(self) -> None:
        if self.is_marker and self.payload is not None:
            raise ValueError("Marker packets must not carry a payload")
        if not self.is_marker and self.payload is None:
            raise ValueError("Audio packets require a payload")

    @classmethod
    def audio(cls, payload: bytes, timestamp_ms: float) -> "Packet":
        return cls(timestamp_ms=timestamp_ms, payload=bytes(payload), is_marker=False)

    @classmethod
    def marker(cls, timestamp_ms: float) -> "Packet":
        return cls(timestamp_ms=timestamp_ms, payload=None, is_marker=True)


def timestamped(payload: bytes, clock: WallClock, is_marker: bool = False) -> Packet:
    """Stamp an incoming frame with the current wall-clock time."""
    if is_marker:
        return Packet.marker(clock.now_ms())
    return Packet.audio(payload, clock.now_ms())


__all__ = ["Packet", "timestamped"]
