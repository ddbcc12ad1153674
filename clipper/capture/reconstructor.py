"""Rebuild a mixed PCM clip from per-speaker packet windows.

Packets are stamped when they *arrive*, i.e. after the audio they carry has
been spoken, so each decoded chunk is placed ending at its packet timestamp.
Speaking-start markers split a speaker's packets into segments (utterances);
each segment is laid down as one contiguous run starting where its first
chunk starts, so silence between utterances stays silence instead of being
bridged.

    +---------------+---------------+-- - - --+---------------+
    |   FRAME 00    |   FRAME 01    |         |   FRAME  N    |
    +---+---+---+---+---+---+---+---+-- - - --+---+---+---+---+
    | L | L | R | R | L | L | R | R |         | L | L | R | R |
    +---+---+---+---+---+---+---+---+-- - - --+---+---+---+---+
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Union, cast

from ..audio.decoder import AudioDecodingError, Decoder
from ..audio.pcm import mix_into, trim_to_sample_boundary
from ..audio.types import BYTES_PER_MS, pcm_duration_ms, round_down_to_frame
from .packet import Packet
from .sliding_window import SlidingWindowBuffer

logger = logging.getLogger(__name__)

PacketSource = Union[SlidingWindowBuffer, Sequence[Packet]]


@dataclass(slots=True)
class DecodedSegment:
    """Decoded audio of one utterance, owned by a single reconstruction call."""

    speaker_id: str
    # Start of the first decoded chunk; None until one decodes
    start_ms: Optional[float] = None
    chunks: List[bytes] = field(default_factory=list)

    def pcm(self) -> bytes:
        return b"".join(self.chunks)


@dataclass(frozen=True)
class ReconstructedClip:
    """Mixed capture-format PCM covering ``[start_ms, end_ms]``."""

    pcm: bytes
    start_ms: float
    end_ms: float
    segment_count: int
    skipped_packets: int = 0

    @property
    def duration_ms(self) -> float:
        return pcm_duration_ms(self.pcm)


class _Bounds:
    def __init__(self) -> None:
        self.min_start: Optional[float] = None
        self.max_end: Optional[float] = None

    def include(self, timestamp_ms: float) -> None:
        if self.min_start is None or timestamp_ms < self.min_start:
            self.min_start = timestamp_ms
        if self.max_end is None or timestamp_ms > self.max_end:
            self.max_end = timestamp_ms


def _packets_of(source: PacketSource) -> Sequence[Packet]:
    if isinstance(source, SlidingWindowBuffer):
        return source.snapshot()
    return tuple(source)


def _offset_bytes(delta_ms: float) -> int:
    return round_down_to_frame(math.floor(delta_ms * BYTES_PER_MS))


class Reconstructor:
    """Decodes, aligns and mixes packets from one or more speakers."""

    def __init__(self, decoder: Decoder) -> None:
        self.decoder = decoder

    def reconstruct(
        self,
        packets_by_speaker: Mapping[str, PacketSource],
        duration_ms: float,
        start_ms: float,
    ) -> Optional[ReconstructedClip]:
        """Mix every packet stamped within ``[start_ms, start_ms + duration_ms]``.

        Returns None when nothing in range decodes to audio.
        """
        end_window_ms = start_ms + duration_ms
        bounds = _Bounds()
        segments: List[DecodedSegment] = []
        in_range = 0
        skipped = 0

        for speaker_id, source in packets_by_speaker.items():
            window = [
                packet
                for packet in _packets_of(source)
                if start_ms <= packet.timestamp_ms <= end_window_ms
            ]
            in_range += len(window)
            speaker_segments, speaker_skipped = self._decode_segments(speaker_id, window, bounds)
            segments.extend(speaker_segments)
            skipped += speaker_skipped

        if in_range == 0:
            logger.debug("No packets between %s and %s", start_ms, end_window_ms)
            return None

        audible = [segment for segment in segments if segment.chunks and segment.start_ms is not None]
        if not audible or bounds.min_start is None or bounds.max_end is None:
            logger.debug("%d packets in range but no decodable audio", in_range)
            return None

        size = _offset_bytes(bounds.max_end - bounds.min_start)
        if size == 0:
            return None

        data = bytearray(size)
        for segment in audible:
            offset = _offset_bytes(cast(float, segment.start_ms) - bounds.min_start)
            written = mix_into(data, offset, segment.pcm())
            logger.debug(
                "Placed segment speaker=%s offset=%d samples=%d",
                segment.speaker_id,
                offset,
                written,
            )

        if skipped:
            logger.warning("Skipped %d undecodable packets during reconstruction", skipped)

        return ReconstructedClip(
            pcm=bytes(data),
            start_ms=bounds.min_start,
            end_ms=bounds.max_end,
            segment_count=len(audible),
            skipped_packets=skipped,
        )

    def _decode_segments(
        self,
        speaker_id: str,
        packets: Iterable[Packet],
        bounds: _Bounds,
    ) -> tuple[List[DecodedSegment], int]:
        segments: List[DecodedSegment] = []
        current: Optional[DecodedSegment] = None
        skipped = 0

        for packet in packets:
            if packet.is_marker or current is None:
                current = DecodedSegment(speaker_id=speaker_id)
                segments.append(current)
                bounds.include(packet.timestamp_ms)
                if packet.is_marker:
                    continue

            try:
                pcm = self.decoder.decode(packet.payload)  # type: ignore[arg-type]
            except AudioDecodingError as exc:
                skipped += 1
                logger.debug("Dropping packet speaker=%s ts=%s: %s", speaker_id, packet.timestamp_ms, exc)
                continue
            pcm = trim_to_sample_boundary(pcm)
            if not pcm:
                continue

            chunk_start_ms = packet.timestamp_ms - pcm_duration_ms(pcm)
            if current.start_ms is None:
                current.start_ms = chunk_start_ms
            current.chunks.append(pcm)
            bounds.include(chunk_start_ms)
            bounds.include(packet.timestamp_ms)

        return segments, skipped


def reconstruct(
    packets_by_speaker: Mapping[str, PacketSource],
    duration_ms: float,
    start_ms: float,
    decoder: Decoder,
) -> Optional[ReconstructedClip]:
    return Reconstructor(decoder).reconstruct(packets_by_speaker, duration_ms, start_ms)


__all__ = ["DecodedSegment", "ReconstructedClip", "Reconstructor", "reconstruct"]
