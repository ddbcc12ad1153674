from __future__ import annotations

import base64
import binascii
from typing import Optional


class Base64AudioCodec:
    """Text-safe encoding of frame payloads for packet dumps."""

    @staticmethod
    def encode(data: Optional[bytes]) -> Optional[str]:
        """Encode a payload; marker packets (``None``) stay ``None``."""
        if data is None:
            return None
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def decode(b64: Optional[str]) -> Optional[bytes]:
        """Decode a payload. Raises ValueError on invalid input."""
        if b64 is None:
            return None
        try:
            return base64.b64decode(b64, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Invalid base64 payload: {exc}") from exc
