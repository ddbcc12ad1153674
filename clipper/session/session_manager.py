"""Session manager: tracks active capture sessions and tears down idle ones."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from ..config import CaptureConfig
from ..utils.time_utils import WallClock
from .session_state import SessionState
from .types import VoiceChannel

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns every :class:`SessionState`, keyed by session id.

    Responsibilities:
    - Create sessions lazily and attach them to voice channels
    - End sessions (drop their buffers) on leave
    - Periodically tear down sessions with nobody left to record
    """

    def __init__(
        self,
        settings: Optional[CaptureConfig] = None,
        clock: Optional[WallClock] = None,
        *,
        on_teardown: Optional[Callable[[SessionState], None]] = None,
    ):
        self.settings = settings or CaptureConfig()
        self.clock = clock or WallClock()
        self.sessions: Dict[str, SessionState] = {}
        self._on_teardown = on_teardown
        self._monitor_task: Optional[asyncio.Task] = None

    def get(self, session_id: str) -> Optional[SessionState]:
        return self.sessions.get(session_id)

    def get_or_create(self, session_id: str) -> SessionState:
        session = self.sessions.get(session_id)
        if session is None:
            session = SessionState(session_id, self.settings, self.clock)
            self.sessions[session_id] = session
            logger.info("Created session %s", session_id)
        return session

    def join(self, session_id: str, channel: VoiceChannel) -> SessionState:
        session = self.get_or_create(session_id)
        session.attach(channel)
        return session

    def end_session(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.disconnect()
        if self._on_teardown:
            self._on_teardown(session)
        logger.info("Removed session %s", session_id)
        return True

    def tick(self) -> List[str]:
        """Run one idle check; returns the ids of sessions that were torn down."""
        ended = [session_id for session_id, session in self.sessions.items() if session.should_teardown()]
        for session_id in ended:
            logger.info("Session %s idle, tearing down", session_id)
            self.end_session(session_id)
        return ended

    async def start_idle_monitor(self, interval_ms: Optional[int] = None) -> None:
        if self._monitor_task and not self._monitor_task.done():
            return
        interval = interval_ms or self.settings.idle_check_interval_ms

        async def monitor():
            while True:
                try:
                    await self.clock.sleep(interval)
                    self.tick()
                except asyncio.CancelledError:
                    break
                except Exception:
                    logger.exception("Idle monitor error")

        self._monitor_task = asyncio.create_task(monitor(), name="session-idle-monitor")

    async def shutdown_all(self) -> None:
        logger.info("Shutting down all sessions")
        if self._monitor_task and not self._monitor_task.done():
            self._monitor_task.cancel()
            await asyncio.gather(self._monitor_task, return_exceptions=True)
        self._monitor_task = None
        for session_id in list(self.sessions):
            self.end_session(session_id)
        logger.info("All sessions shut down")

    def get_active_count(self) -> int:
        return len(self.sessions)
