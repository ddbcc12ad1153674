"""Save and load raw packet windows for offline replay."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..audio.base64_codec import Base64AudioCodec
from .packet import Packet

logger = logging.getLogger(__name__)

DUMP_VERSION = 1


class PacketDumpError(ValueError):
    """Raised when a packet dump cannot be parsed."""


def packets_to_dict(packets_by_speaker: Mapping[str, Sequence[Packet]]) -> Dict:
    return {
        "version": DUMP_VERSION,
        "speakers": {
            speaker_id: [
                {
                    "timestamp_ms": packet.timestamp_ms,
                    "payload": Base64AudioCodec.encode(packet.payload),
                    "is_marker": packet.is_marker,
                }
                for packet in packets
            ]
            for speaker_id, packets in packets_by_speaker.items()
        },
    }


def packets_from_dict(data: Mapping) -> Dict[str, List[Packet]]:
    if data.get("version") != DUMP_VERSION:
        raise PacketDumpError(f"Unsupported packet dump version: {data.get('version')!r}")
    speakers = data.get("speakers")
    if not isinstance(speakers, dict):
        raise PacketDumpError("Packet dump is missing the 'speakers' mapping")

    result: Dict[str, List[Packet]] = {}
    for speaker_id, entries in speakers.items():
        packets: List[Packet] = []
        for entry in entries or []:
            try:
                packets.append(
                    Packet(
                        timestamp_ms=entry["timestamp_ms"],
                        payload=Base64AudioCodec.decode(entry.get("payload")),
                        is_marker=bool(entry.get("is_marker", False)),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise PacketDumpError(f"Invalid packet for speaker {speaker_id}: {exc}") from exc
        result[str(speaker_id)] = packets
    return result


def save_packets(path: Path, packets_by_speaker: Mapping[str, Sequence[Packet]]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(packets_to_dict(packets_by_speaker)), encoding="utf-8")
    logger.info("Wrote packet dump for %d speaker(s) to %s", len(packets_by_speaker), path)
    return path


def load_packets(path: Path) -> Dict[str, List[Packet]]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PacketDumpError(f"Packet dump {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PacketDumpError(f"Packet dump {path} must contain a JSON object")
    return packets_from_dict(data)


def first_timestamp_ms(packets_by_speaker: Mapping[str, Sequence[Packet]]) -> float | None:
    timestamps = [packet.timestamp_ms for packets in packets_by_speaker.values() for packet in packets]
    return min(timestamps) if timestamps else None


__all__ = [
    "PacketDumpError",
    "first_timestamp_ms",
    "load_packets",
    "packets_from_dict",
    "packets_to_dict",
    "save_packets",
]
