from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, Optional, Protocol

from .types import CAPTURE_FORMAT, SAMPLE_BYTES


class AudioDecodingError(Exception):
    """Raised when an encoded frame cannot be decoded to PCM."""


class Decoder(Protocol):
    """Turns one encoded transport frame into capture-format PCM (48 kHz stereo s16le).

    Implementations must report every per-frame failure as
    :class:`AudioDecodingError`; reconstruction skips such frames and keeps
    going, while any other exception aborts it.
    """

    def decode(self, payload: bytes) -> bytes: ...


class PcmPassthroughDecoder:
    """Decoder for transports that already deliver raw s16le PCM frames."""

    def decode(self, payload: bytes) -> bytes:
        if not payload:
            raise AudioDecodingError("Empty audio frame")
        if len(payload) % SAMPLE_BYTES:
            raise AudioDecodingError(f"PCM16 frame has odd length: {len(payload)} bytes")
        return bytes(payload)


class OpusDecoder:
    """Decodes Opus voice frames with the libopus binding shipped in discord.py.

    Output is 48 kHz stereo s16le, the capture format. libopus keeps state
    between frames, so one instance per stream gives the cleanest audio.
    """

    def __init__(self, codec: Optional[Any] = None) -> None:
        self._opus = importlib.import_module("discord.opus")
        if codec is None:
            try:
                codec = self._opus.Decoder()
            except self._opus.OpusNotLoaded as exc:
                raise AudioDecodingError("libopus is not available on this system") from exc
        self._codec = codec

    def decode(self, payload: bytes) -> bytes:
        if not payload:
            # libopus treats an empty frame as packet loss and synthesises audio
            raise AudioDecodingError("Empty audio frame")
        try:
            pcm = self._codec.decode(bytes(payload))
        except (self._opus.OpusError, self._opus.OpusNotLoaded) as exc:
            raise AudioDecodingError(f"Opus frame could not be decoded: {exc}") from exc
        if len(pcm) % CAPTURE_FORMAT.bytes_per_frame():
            raise AudioDecodingError(f"Opus decoder returned {len(pcm)} bytes, not whole stereo frames")
        return pcm


_DECODERS: Dict[str, Callable[[], Decoder]] = {
    "opus": OpusDecoder,
    "pcm": PcmPassthroughDecoder,
}


def available_decoders() -> list[str]:
    return sorted(_DECODERS)


def create_decoder(name: str) -> Decoder:
    """Build a decoder by its configured name."""
    from ..config import ConfigError

    try:
        factory = _DECODERS[name.lower()]
    except KeyError as exc:
        raise ConfigError(
            f"Unknown decoder '{name}'. Available: {', '.join(available_decoders())}"
        ) from exc
    return factory()
