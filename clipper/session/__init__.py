"""Session bookkeeping for voice capture."""

from .session_manager import SessionManager
from .session_state import SessionState, should_teardown
from .types import ChannelSnapshot, Participant, VoiceChannel

__all__ = [
    "ChannelSnapshot",
    "Participant",
    "SessionManager",
    "SessionState",
    "VoiceChannel",
    "should_teardown",
]
