from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SampleFormat = Literal["pcm16"]


class UnsupportedAudioFormatError(ValueError):
    """Raised when audio is not in a supported format (expected PCM16)."""


@dataclass(frozen=True)
class AudioFormat:
    """Describes raw PCM audio."""

    sample_rate_hz: int
    channels: int
    sample_format: SampleFormat

    def bytes_per_sample(self) -> int:
        """Return bytes per sample (PCM16 = 2)."""
        if self.sample_format != "pcm16":
            raise UnsupportedAudioFormatError(f"Unsupported audio sample format: {self.sample_format}")
        return 2

    def bytes_per_frame(self) -> int:
        """Return bytes per sample-frame = bytes_per_sample * channels."""
        return self.bytes_per_sample() * self.channels

    def byte_rate(self) -> int:
        """Return bytes per second."""
        return self.sample_rate_hz * self.bytes_per_frame()

    def bytes_per_ms(self) -> int:
        """Return bytes per millisecond. Only exact for rates divisible by 1000."""
        if self.byte_rate() % 1000:
            raise UnsupportedAudioFormatError(
                f"Byte rate {self.byte_rate()} is not a whole number of bytes per millisecond"
            )
        return self.byte_rate() // 1000

    def validate(self) -> "AudioFormat":
        if self.sample_rate_hz <= 0:
            raise UnsupportedAudioFormatError(f"Unsupported sample rate: {self.sample_rate_hz}")
        if self.channels not in (1, 2):
            raise UnsupportedAudioFormatError(f"Unsupported channel count: {self.channels}")
        self.bytes_per_ms()
        return self


# Voice transport output: 48 kHz stereo s16le.
CAPTURE_FORMAT = AudioFormat(sample_rate_hz=48_000, channels=2, sample_format="pcm16").validate()

BYTES_PER_MS = CAPTURE_FORMAT.bytes_per_ms()  # 192
FRAME_BYTES = CAPTURE_FORMAT.bytes_per_frame()  # 4
SAMPLE_BYTES = CAPTURE_FORMAT.bytes_per_sample()  # 2


def round_down_to_frame(byte_count: int, frame_bytes: int = FRAME_BYTES) -> int:
    """Round a byte count down to a whole number of sample-frames."""
    if byte_count <= 0:
        return 0
    return byte_count - (byte_count % frame_bytes)


def pcm_duration_ms(pcm: bytes) -> float:
    """Playback duration of capture-format PCM in milliseconds."""
    return len(pcm) / BYTES_PER_MS
