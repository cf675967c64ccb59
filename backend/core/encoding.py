"""Turn a selected image into a transport-safe base64 payload."""
from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from typing import BinaryIO

from backend.core.errors import EncodingError


@dataclass(frozen=True, slots=True)
class EncodedImage:
    """Base64 image payload tagged with its declared MIME type."""

    mime_type: str
    data: str

    @property
    def size(self) -> int:
        """Length of the encoded payload in characters."""

        return len(self.data)

    @property
    def byte_length(self) -> int:
        """Length of the decoded payload in bytes."""

        padding = len(self.data) - len(self.data.rstrip("="))
        return len(self.data) * 3 // 4 - padding

    def decode(self) -> bytes:
        return base64.b64decode(self.data, validate=True)


def strip_data_url_prefix(value: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix when present."""

    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def encode_bytes(payload: bytes, mime_type: str) -> EncodedImage:
    data = base64.b64encode(payload).decode("ascii")
    return EncodedImage(mime_type=mime_type, data=data)


def _read_all(source: BinaryIO) -> bytes:
    try:
        payload = source.read()
    except (OSError, ValueError) as exc:
        raise EncodingError(f"unable to read image: {exc}") from exc
    if not isinstance(payload, (bytes, bytearray)):
        raise EncodingError("image source did not return bytes")
    return bytes(payload)


async def read_upload(source: BinaryIO) -> bytes:
    """Read ``source`` once in a worker thread."""

    return await asyncio.to_thread(_read_all, source)


async def encode_upload(source: BinaryIO, mime_type: str) -> EncodedImage:
    """Read ``source`` off the event loop and base64 encode its bytes.

    The encoder does not validate image type or size; callers do.
    """

    payload = await read_upload(source)
    return encode_bytes(payload, mime_type)


__all__ = [
    "EncodedImage",
    "encode_bytes",
    "encode_upload",
    "read_upload",
    "strip_data_url_prefix",
]
