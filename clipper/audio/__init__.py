from .base64_codec import Base64AudioCodec
from .container import ContainerFormatError, HEADER_LENGTH, duration_ms, unwrap, wrap
from .decoder import AudioDecodingError, Decoder, PcmPassthroughDecoder, create_decoder
from .pcm import mix16, mix_into
from .types import (
    BYTES_PER_MS,
    CAPTURE_FORMAT,
    FRAME_BYTES,
    AudioFormat,
    UnsupportedAudioFormatError,
    round_down_to_frame,
)

__all__ = [
    "AudioDecodingError",
    "AudioFormat",
    "Base64AudioCodec",
    "BYTES_PER_MS",
    "CAPTURE_FORMAT",
    "ContainerFormatError",
    "Decoder",
    "FRAME_BYTES",
    "HEADER_LENGTH",
    "PcmPassthroughDecoder",
    "UnsupportedAudioFormatError",
    "create_decoder",
    "duration_ms",
    "mix16",
    "mix_into",
    "round_down_to_frame",
    "unwrap",
    "wrap",
]
