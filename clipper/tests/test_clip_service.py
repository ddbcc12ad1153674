import numpy as np
import pytest

from clipper.audio import container
from clipper.capture.packet_dump import load_packets
from clipper.clip_service import ClipRequest, ClipService, resolve_speakers
from clipper.config import CaptureConfig
from clipper.session.session_state import SessionState
from clipper.session.types import ChannelSnapshot, Participant
from clipper.utils.time_utils import ManualClock

ALICE = Participant("alice", "Alice", roles=frozenset({"host"}))
BOB = Participant("bob", "Bob")


def _session(clock, settings=None):
    session = SessionState("s1", settings, clock=clock)
    session.attach(ChannelSnapshot("c1", "general", [ALICE, BOB]))
    return session


def _frame(value=3):
    return np.full(480, value, dtype="<i2").tobytes()  # 5 ms


def test_defaults_clip_last_max_duration():
    clock = ManualClock(start_ms=100_000)
    service = ClipService(clock=clock)

    assert service.resolve_window(ClipRequest(["alice"])) == (30_000, 70_000)
    assert service.resolve_window(ClipRequest(["alice"], duration_ms=5_000)) == (5_000, 95_000)
    assert service.resolve_window(ClipRequest(["alice"], duration_ms=5_000, t_minus_ms=20_000)) == (5_000, 80_000)


@pytest.mark.parametrize("kwargs", [{"duration_ms": 0}, {"t_minus_ms": -1}])
def test_invalid_window_rejected(kwargs):
    with pytest.raises(ValueError):
        ClipService(clock=ManualClock(start_ms=0)).resolve_window(ClipRequest(["alice"], **kwargs))


def test_create_clip_wraps_reconstructed_audio():
    clock = ManualClock(start_ms=100_000)
    session = _session(clock)
    session.on_audio("alice", _frame(), timestamp_ms=95_000)
    session.on_audio("alice", _frame(), timestamp_ms=60_000)  # before the window

    clip = ClipService(clock=clock).create_clip(session, ClipRequest(["alice", "bob"]))

    assert clip is not None
    assert clip.filename == "general-clip.wav"
    assert clip.speaker_ids == ["alice"]
    assert clip.duration_ms == pytest.approx(5.0)
    assert container.unwrap(clip.wav) == _frame()


def test_create_clip_uses_label_for_filename():
    clock = ManualClock(start_ms=10_000)
    session = _session(clock)
    session.on_audio("bob", _frame(), timestamp_ms=9_000)
    ids, label = resolve_speakers(session.channel, participant_id="bob", display_name="Bob")

    clip = ClipService(clock=clock).create_clip(session, ClipRequest(ids, label=label))

    assert clip.filename == "general-Bob-clip.wav"


def test_create_clip_without_audio_returns_none():
    clock = ManualClock(start_ms=10_000)
    session = _session(clock)
    service = ClipService(clock=clock)

    assert service.create_clip(session, ClipRequest([])) is None
    assert service.create_clip(session, ClipRequest(["alice"])) is None

    session.on_audio("alice", _frame(), timestamp_ms=1_000)
    assert service.create_clip(session, ClipRequest(["alice"], duration_ms=1_000)) is None


def test_create_clip_dumps_packets(tmp_path):
    clock = ManualClock(start_ms=10_000)
    dump = tmp_path / "dump.json"
    session = _session(clock, CaptureConfig(dump_packets=True, dump_path=str(dump)))
    session.on_speaking_started("alice")
    session.on_audio("alice", _frame(), timestamp_ms=10_000)

    ClipService(session.settings, clock=clock).create_clip(session, ClipRequest(["alice"]))

    loaded = load_packets(dump)
    assert [p.is_marker for p in loaded["alice"]] == [True, False]


def test_resolve_speakers():
    channel = ChannelSnapshot("c1", "general", [ALICE, BOB])

    assert resolve_speakers(channel) == (["alice", "bob"], "general")
    assert resolve_speakers(channel, role="host") == (["alice"], "general-host")
    assert resolve_speakers(channel, participant_id="bob") == (["bob"], "general-bob")
