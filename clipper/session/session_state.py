"""Per-session capture state: channel reference and one packet window per speaker."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from ..capture.packet import Packet
from ..capture.sliding_window import SlidingWindowBuffer
from ..config import CaptureConfig
from ..utils.time_utils import WallClock
from .types import VoiceChannel

logger = logging.getLogger(__name__)


def should_teardown(session: "SessionState", self_participant_id: Optional[str] = None) -> bool:
    """Return True when nothing justifies keeping the session open.

    That is: no channel, no human participant left, or the engine's own
    participant is no longer in the channel (e.g. it was kicked).
    """
    channel = session.channel
    if channel is None:
        return True
    members = list(channel.members)
    if not any(not member.is_bot for member in members):
        return True
    if self_participant_id is not None and not any(
        member.participant_id == self_participant_id for member in members
    ):
        return True
    return False


class SessionState:
    """Capture state for one active voice session.

    Buffers are created lazily the first time a speaker is observed and are
    dropped when the session disconnects.
    """

    def __init__(
        self,
        session_id: str,
        settings: Optional[CaptureConfig] = None,
        clock: Optional[WallClock] = None,
    ) -> None:
        self.session_id = session_id
        self.settings = settings or CaptureConfig()
        self.clock = clock or WallClock()
        self.channel: Optional[VoiceChannel] = None
        self.buffers: Dict[str, SlidingWindowBuffer] = {}

    @property
    def in_channel(self) -> bool:
        return self.channel is not None

    def attach(self, channel: VoiceChannel) -> None:
        self.channel = channel
        logger.info("Session %s attached to channel %s", self.session_id, channel.channel_id)

    def get_or_create_buffer(self, speaker_id: str) -> SlidingWindowBuffer:
        buffer = self.buffers.get(speaker_id)
        if buffer is None:
            buffer = SlidingWindowBuffer(self.settings.retention_ms, clock=self.clock)
            self.buffers[speaker_id] = buffer
            logger.debug("Session %s tracking new speaker %s", self.session_id, speaker_id)
        return buffer

    def buffers_for(self, speaker_ids: Iterable[str]) -> Dict[str, SlidingWindowBuffer]:
        """Existing buffers for ``speaker_ids``; speakers never heard are skipped."""
        return {speaker_id: self.buffers[speaker_id] for speaker_id in speaker_ids if speaker_id in self.buffers}

    def on_audio(self, speaker_id: str, payload: Optional[bytes], timestamp_ms: Optional[float] = None) -> None:
        if not payload:
            return
        stamp = timestamp_ms if timestamp_ms is not None else self.clock.now_ms()
        self.get_or_create_buffer(speaker_id).append(Packet.audio(payload, stamp))

    def on_speaking_started(self, speaker_id: str, timestamp_ms: Optional[float] = None) -> None:
        self.get_or_create_buffer(speaker_id).flag_speaking_start(timestamp_ms)

    def should_teardown(self) -> bool:
        return should_teardown(self, self.settings.self_participant_id)

    def disconnect(self) -> None:
        """Leave the channel and drop all captured audio."""
        if not self.in_channel:
            return
        self.channel = None
        for buffer in self.buffers.values():
            buffer.clear()
        self.buffers.clear()
        logger.info("Session %s disconnected", self.session_id)


__all__ = ["SessionState", "should_teardown"]
