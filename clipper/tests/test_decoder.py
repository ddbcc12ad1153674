import numpy as np
import pytest

from clipper.audio.decoder import (
    AudioDecodingError,
    OpusDecoder,
    PcmPassthroughDecoder,
    available_decoders,
    create_decoder,
)
from clipper.config import ConfigError


def test_pcm_decoder_passes_frames_through():
    decoder = create_decoder("PCM")
    assert isinstance(decoder, PcmPassthroughDecoder)
    assert decoder.decode(bytearray(b"\x01\x00\x02\x00")) == b"\x01\x00\x02\x00"


@pytest.mark.parametrize("payload", [b"", b"\x01\x02\x03"])
def test_pcm_decoder_rejects_bad_frames(payload):
    with pytest.raises(AudioDecodingError):
        PcmPassthroughDecoder().decode(payload)


def test_unknown_decoder():
    assert available_decoders() == ["opus", "pcm"]
    with pytest.raises(ConfigError):
        create_decoder("mp3")


class _FailingCodec:
    def __init__(self, error):
        self.error = error

    def decode(self, data):
        raise self.error


class _FixedCodec:
    def __init__(self, pcm):
        self.pcm = pcm

    def decode(self, data):
        return self.pcm


def test_opus_codec_errors_become_decoding_errors():
    opus = pytest.importorskip("discord.opus")
    # OpusError formats its message through libopus; skip that to stay library-free
    error = opus.OpusError.__new__(opus.OpusError)
    decoder = OpusDecoder(codec=_FailingCodec(error))

    with pytest.raises(AudioDecodingError):
        decoder.decode(b"\xfc\xff\xfe")


def test_opus_decoder_rejects_empty_and_partial_output():
    pytest.importorskip("discord.opus")

    with pytest.raises(AudioDecodingError):
        OpusDecoder(codec=_FixedCodec(b"\x00" * 8)).decode(b"")
    with pytest.raises(AudioDecodingError):
        OpusDecoder(codec=_FixedCodec(b"\x00" * 6)).decode(b"\xfc")
    assert OpusDecoder(codec=_FixedCodec(b"\x00" * 8)).decode(b"\xfc") == b"\x00" * 8


def test_opus_frames_decode_to_capture_format():
    opus = pytest.importorskip("discord.opus")
    try:
        encoder = opus.Encoder()
    except opus.OpusNotLoaded:
        pytest.skip("libopus not installed")

    t = np.arange(960) / 48_000
    tone = (np.sin(2 * np.pi * 440 * t) * 8_000).astype("<i2")
    pcm = np.repeat(tone, 2).tobytes()  # 20 ms stereo
    frame = encoder.encode(pcm, 960)

    decoded = create_decoder("opus").decode(frame)

    assert len(decoded) == len(pcm) == 3_840
    assert np.abs(np.frombuffer(decoded, dtype="<i2")).max() > 0
