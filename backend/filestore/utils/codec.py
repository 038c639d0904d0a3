"""Data-URL codec — inline file content as base64 text."""

import base64
import binascii

from filestore.exceptions import PayloadDecodeError

DEFAULT_MIME_TYPE = "application/octet-stream"
_BASE64_MARKER = ";base64"


def encode(data: bytes, mime_type: str = "") -> str:
    """Encode raw bytes as a ``data:<mime>;base64,<content>`` URL."""
    content = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME_TYPE}{_BASE64_MARKER},{content}"


def decode(payload: str) -> bytes:
    """Decode a data URL (or bare base64 text) back to the original bytes."""
    content = payload
    if payload.startswith("data:"):
        header, sep, content = payload.partition(",")
        if not sep or not header.endswith(_BASE64_MARKER):
            raise PayloadDecodeError("Payload is not a base64 data URL")
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadDecodeError(f"Invalid base64 payload: {exc}") from exc


def payload_mime_type(payload: str) -> str | None:
    """MIME type from a data URL header, or None for bare base64."""
    if not payload.startswith("data:"):
        return None
    header = payload.partition(",")[0][len("data:"):]
    mime_type = header.removesuffix(_BASE64_MARKER)
    return mime_type or None
