"""Turn a clip request against a live session into a WAV attachment."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .audio import container
from .audio.decoder import Decoder, create_decoder
from .capture.packet_dump import save_packets
from .capture.reconstructor import Reconstructor
from .config import CaptureConfig
from .session.session_state import SessionState
from .session.types import VoiceChannel
from .utils.time_utils import WallClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipRequest:
    speaker_ids: Sequence[str]
    # Defaults to capture.max_clip_duration_ms
    duration_ms: Optional[int] = None
    # How far back the clip starts; defaults to the duration
    t_minus_ms: Optional[int] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class Clip:
    wav: bytes
    filename: str
    duration_ms: float
    speaker_ids: List[str] = field(default_factory=list)
    skipped_packets: int = 0


def resolve_speakers(
    channel: VoiceChannel,
    *,
    participant_id: Optional[str] = None,
    display_name: Optional[str] = None,
    role: Optional[str] = None,
) -> Tuple[List[str], str]:
    """Pick who to clip: one participant, everyone holding ``role``, or the whole channel.

    Returns the speaker ids and the label used to name the clip file.
    """
    if participant_id is not None:
        return [participant_id], f"{channel.name}-{display_name or participant_id}"
    if role is not None:
        ids = [member.participant_id for member in channel.members if role in member.roles]
        return ids, f"{channel.name}-{role}"
    return [member.participant_id for member in channel.members], channel.name


class ClipService:
    def __init__(
        self,
        settings: Optional[CaptureConfig] = None,
        decoder: Optional[Decoder] = None,
        clock: Optional[WallClock] = None,
    ) -> None:
        self.settings = settings or CaptureConfig()
        self.decoder = decoder or create_decoder(self.settings.decoder)
        self.clock = clock or WallClock()
        self.reconstructor = Reconstructor(self.decoder)

    def resolve_window(self, request: ClipRequest) -> Tuple[int, int]:
        """Return ``(duration_ms, start_ms)`` for a request, applying defaults."""
        duration = request.duration_ms if request.duration_ms is not None else self.settings.max_clip_duration_ms
        t_minus = request.t_minus_ms if request.t_minus_ms is not None else duration
        if duration <= 0:
            raise ValueError(f"Clip duration must be positive, got {duration}")
        if t_minus < 0:
            raise ValueError(f"t-minus must not be negative, got {t_minus}")
        return duration, self.clock.now_ms() - t_minus

    def create_clip(self, session: SessionState, request: ClipRequest) -> Optional[Clip]:
        """Build a WAV clip, or None if the requested speakers have no audio in range."""
        started = time.perf_counter()
        if not request.speaker_ids:
            return None

        buffers = session.buffers_for(request.speaker_ids)
        snapshots = {speaker_id: buffer.snapshot() for speaker_id, buffer in buffers.items()}
        if not any(snapshots.values()):
            logger.info("No captured packets for speakers %s", list(request.speaker_ids))
            return None

        if self.settings.dump_packets:
            save_packets(Path(self.settings.dump_path), snapshots)

        duration_ms, start_ms = self.resolve_window(request)
        clip = self.reconstructor.reconstruct(snapshots, duration_ms, start_ms)
        if clip is None:
            return None

        wav = container.wrap(clip.pcm)
        name = request.label or (session.channel.name if session.channel else session.session_id)
        logger.debug(
            "Clip %s built in %.1f ms (duration=%s, t0=%s, segments=%d)",
            name,
            (time.perf_counter() - started) * 1000,
            duration_ms,
            start_ms,
            clip.segment_count,
        )
        return Clip(
            wav=wav,
            filename=f"{name}-clip.wav",
            duration_ms=container.duration_ms(wav),
            speaker_ids=list(snapshots),
            skipped_packets=clip.skipped_packets,
        )


__all__ = ["Clip", "ClipRequest", "ClipService", "resolve_speakers"]
