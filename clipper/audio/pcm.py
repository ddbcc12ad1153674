from __future__ import annotations

import numpy as np

from .types import SAMPLE_BYTES

PCM16_DTYPE = "<i2"


def mix16(a: int, b: int) -> int:
    """Mix a new sample ``a`` into an existing sample ``b``.

    Silence (``b == 0``) is overwritten; otherwise the two are averaged and
    floored. Averaging keeps the result inside the 16-bit range without
    clamping, at the cost of halving the level where speakers overlap.
    """
    if b == 0:
        return a
    return (a + b) // 2


def mix_into(data: bytearray, offset: int, pcm: bytes) -> int:
    """Mix ``pcm`` into ``data`` starting at byte ``offset``, one 16-bit sample at a time.

    Each position is combined with :func:`mix16`, except that a silent incoming
    sample leaves the existing one untouched, so overlap results do not depend
    on which speaker is written first. Samples that would start at or beyond
    ``len(data) - 1`` are dropped. Returns the number of samples considered.
    """
    if offset < 0 or offset >= len(data) - 1:
        return 0
    count = min(len(pcm) // SAMPLE_BYTES, (len(data) - offset) // SAMPLE_BYTES)
    if count <= 0:
        return 0

    span = count * SAMPLE_BYTES
    incoming = np.frombuffer(pcm, dtype=PCM16_DTYPE, count=count).astype(np.int32)
    target = np.frombuffer(memoryview(data)[offset : offset + span], dtype=PCM16_DTYPE)
    existing = target.astype(np.int32)

    averaged = (incoming + existing) // 2
    mixed = np.where(incoming == 0, existing, np.where(existing == 0, incoming, averaged))
    target[:] = mixed.astype(PCM16_DTYPE)
    return count


def trim_to_sample_boundary(pcm: bytes) -> bytes:
    remainder = len(pcm) % SAMPLE_BYTES
    if remainder == 0:
        return pcm
    return pcm[: len(pcm) - remainder]
