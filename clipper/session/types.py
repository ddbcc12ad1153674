from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence


@dataclass(frozen=True, slots=True)
class Participant:
    participant_id: str
    display_name: str = ""
    # Automated participants (bots) never keep a session alive
    is_bot: bool = False
    roles: frozenset[str] = field(default_factory=frozenset)


class VoiceChannel(Protocol):
    """What the session needs to know about the voice channel it is attached to."""

    channel_id: str
    name: str

    @property
    def members(self) -> Sequence[Participant]: ...


@dataclass
class ChannelSnapshot:
    """Plain voice channel view, refreshed by the transport layer."""

    channel_id: str
    name: str
    members: list[Participant] = field(default_factory=list)
