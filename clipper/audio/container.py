"""RIFF/WAVE container for reconstructed capture-format PCM.

Layout (http://soundfile.sapp.org/doc/WaveFormat/):

    offset  size  field
    0       4     "RIFF"
    4       4     chunk size = 36 + data size (LE)
    8       4     "WAVE"
    12      4     "fmt "
    16      4     16 (PCM fmt block size)
    20      2     1 (PCM)
    22      2     channels
    24      4     sample rate
    28      4     byte rate
    32      2     block align
    34      2     bits per sample
    36      4     "data"
    40      4     data size (LE)
    44      ...   samples
"""
from __future__ import annotations

import struct

from .types import BYTES_PER_MS, CAPTURE_FORMAT, SAMPLE_BYTES


class ContainerFormatError(ValueError):
    """Raised when bytes are not a WAV container this module can read."""


RIFF_TAG = b"RIFF"

FMT_BLOCK = b"".join(
    [
        b"WAVE",
        b"fmt ",
        struct.pack(
            "<IHHIIHH",
            16,
            1,
            CAPTURE_FORMAT.channels,
            CAPTURE_FORMAT.sample_rate_hz,
            CAPTURE_FORMAT.byte_rate(),
            CAPTURE_FORMAT.bytes_per_frame(),
            SAMPLE_BYTES * 8,
        ),
        b"data",
    ]
)

HEADER_LENGTH = len(RIFF_TAG) + 4 + len(FMT_BLOCK) + 4  # 44
# Size of the file not counting the RIFF tag and the chunk-size field.
HEADER_LENGTH_LESS = HEADER_LENGTH - 8

_MAX_U32 = 0xFFFFFFFF


def wrap(pcm: bytes) -> bytes:
    """Prefix raw PCM with the fixed 44-byte WAV header."""
    if HEADER_LENGTH_LESS + len(pcm) > _MAX_U32:
        raise ContainerFormatError(f"PCM payload too large for a WAV container: {len(pcm)} bytes")
    return b"".join(
        [
            RIFF_TAG,
            struct.pack("<I", HEADER_LENGTH_LESS + len(pcm)),
            FMT_BLOCK,
            struct.pack("<I", len(pcm)),
            bytes(pcm),
        ]
    )


def unwrap(container: bytes) -> bytes:
    """Return the PCM payload of a container produced by :func:`wrap`."""
    if len(container) < HEADER_LENGTH:
        raise ContainerFormatError(f"Container too short: {len(container)} bytes")
    if container[:4] != RIFF_TAG:
        raise ContainerFormatError("Missing RIFF tag")
    if container[8 : HEADER_LENGTH - 4] != FMT_BLOCK:
        raise ContainerFormatError("Unexpected WAVE format block")

    (chunk_size,) = struct.unpack_from("<I", container, 4)
    (data_size,) = struct.unpack_from("<I", container, HEADER_LENGTH - 4)
    if chunk_size != HEADER_LENGTH_LESS + data_size:
        raise ContainerFormatError(f"Chunk size {chunk_size} does not match data size {data_size}")
    if len(container) - HEADER_LENGTH < data_size:
        raise ContainerFormatError(
            f"Truncated container: declared {data_size} data bytes, found {len(container) - HEADER_LENGTH}"
        )
    return bytes(container[HEADER_LENGTH : HEADER_LENGTH + data_size])


def duration_ms(container: bytes) -> float:
    """WAV duration in milliseconds, derived from the container length."""
    return (len(container) - HEADER_LENGTH) / BYTES_PER_MS


__all__ = [
    "ContainerFormatError",
    "HEADER_LENGTH",
    "duration_ms",
    "unwrap",
    "wrap",
]
