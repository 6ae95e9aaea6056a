"""Base64 helpers for file contents exchanged with the contents API."""

from __future__ import annotations

import base64


def encode_base64(text: str) -> str:
    """Encode UTF-8 text as standard base64."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_base64(value: str) -> str:
    """Decode base64 (line breaks tolerated) back to UTF-8 text."""
    return base64.b64decode(value or "").decode("utf-8")


__all__ = ["decode_base64", "encode_base64"]
