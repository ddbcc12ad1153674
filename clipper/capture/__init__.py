from .ingest import IngestEvent, IngestKind, IngestPump
from .packet import Packet, timestamped
from .reconstructor import DecodedSegment, ReconstructedClip, Reconstructor, reconstruct
from .sliding_window import SlidingWindowBuffer

__all__ = [
    "DecodedSegment",
    "IngestEvent",
    "IngestKind",
    "IngestPump",
    "Packet",
    "ReconstructedClip",
    "Reconstructor",
    "SlidingWindowBuffer",
    "reconstruct",
    "timestamped",
]
