import asyncio

import pytest

from clipper.config import CaptureConfig
from clipper.session.session_manager import SessionManager
from clipper.session.session_state import SessionState, should_teardown
from clipper.session.types import ChannelSnapshot, Participant
from clipper.utils.time_utils import ManualClock

ENGINE = Participant("engine", "clipper", is_bot=True)
ALICE = Participant("alice", "Alice", roles=frozenset({"host"}))
MUSIC_BOT = Participant("music", "DJ", is_bot=True)


def _channel(*members):
    return ChannelSnapshot(channel_id="c1", name="general", members=list(members))


def test_should_teardown_without_channel():
    assert should_teardown(SessionState("s1"))


def test_should_teardown_when_only_bots_remain():
    session = SessionState("s1")
    session.attach(_channel(ENGINE, MUSIC_BOT))
    assert should_teardown(session, "engine")


def test_should_not_teardown_while_a_human_is_present():
    session = SessionState("s1")
    session.attach(_channel(ENGINE, ALICE))
    assert not should_teardown(session, "engine")
    assert not should_teardown(session)


def test_should_teardown_when_engine_was_removed():
    session = SessionState("s1")
    session.attach(_channel(ALICE))
    assert should_teardown(session, "engine")
    # Without a configured engine id only humans are checked
    assert not should_teardown(session)


def test_session_teardown_uses_configured_engine_id():
    session = SessionState("s1", CaptureConfig(self_participant_id="engine"))
    session.attach(_channel(ALICE))
    assert session.should_teardown()


def test_on_audio_stamps_arrival_with_clock_and_creates_buffer_lazily():
    clock = ManualClock(start_ms=10_000)
    session = SessionState("s1", clock=clock)
    assert session.buffers == {}

    session.on_audio("alice", b"\x01\x00\x01\x00")
    clock.advance(20)
    session.on_audio("alice", b"\x02\x00\x02\x00")
    session.on_audio("alice", b"")

    packets = session.buffers["alice"].snapshot()
    assert [p.timestamp_ms for p in packets] == [10_000, 10_020]


def test_speaking_started_appends_marker():
    clock = ManualClock(start_ms=500)
    session = SessionState("s1", clock=clock)

    session.on_speaking_started("alice")

    (marker,) = session.buffers["alice"].snapshot()
    assert marker.is_marker
    assert marker.timestamp_ms == 500


def test_buffers_use_configured_retention():
    clock = ManualClock()
    session = SessionState("s1", CaptureConfig(retention_ms=100), clock=clock)
    session.on_audio("alice", b"\x01\x00", timestamp_ms=0)
    session.on_audio("alice", b"\x01\x00", timestamp_ms=150)
    assert [p.timestamp_ms for p in session.buffers["alice"].snapshot()] == [150]


def test_buffers_for_skips_unknown_speakers():
    session = SessionState("s1")
    session.on_audio("alice", b"\x01\x00", timestamp_ms=1)
    assert list(session.buffers_for(["alice", "bob"])) == ["alice"]


def test_disconnect_drops_channel_and_buffers():
    session = SessionState("s1")
    session.attach(_channel(ALICE))
    session.on_audio("alice", b"\x01\x00", timestamp_ms=1)

    session.disconnect()

    assert not session.in_channel
    assert session.buffers == {}


def test_manager_tick_ends_idle_sessions_only():
    torn_down = []
    manager = SessionManager(CaptureConfig(self_participant_id="engine"), on_teardown=torn_down.append)
    busy = manager.join("busy", _channel(ENGINE, ALICE))
    manager.join("idle", _channel(ENGINE, MUSIC_BOT))
    busy.on_audio("alice", b"\x01\x00", timestamp_ms=1)

    ended = manager.tick()

    assert ended == ["idle"]
    assert manager.get("idle") is None
    assert manager.get("busy") is busy
    assert [s.session_id for s in torn_down] == ["idle"]
    assert manager.get_active_count() == 1


def test_manager_end_session_unknown_id():
    manager = SessionManager()
    assert manager.end_session("missing") is False


def test_get_or_create_returns_same_session():
    manager = SessionManager()
    assert manager.get_or_create("s1") is manager.get_or_create("s1")


@pytest.mark.asyncio
async def test_idle_monitor_tears_down_emptied_session():
    manager = SessionManager()
    channel = _channel(ALICE)
    manager.join("s1", channel)

    await manager.start_idle_monitor(interval_ms=5)
    await asyncio.sleep(0.03)
    assert manager.get("s1") is not None

    channel.members.clear()
    for _ in range(100):
        if manager.get("s1") is None:
            break
        await asyncio.sleep(0.01)

    assert manager.get("s1") is None
    await manager.shutdown_all()


@pytest.mark.asyncio
async def test_shutdown_all_ends_every_session():
    manager = SessionManager()
    manager.join("a", _channel(ALICE))
    manager.join("b", _channel(ALICE))
    await manager.start_idle_monitor(interval_ms=1_000)

    await manager.shutdown_all()

    assert manager.get_active_count() == 0
