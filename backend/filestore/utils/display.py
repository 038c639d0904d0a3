"""Display helpers for file listings."""

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_size(size_bytes: int) -> str:
    """Human readable size, 1024-based, e.g. ``1.5 KB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    # 1.50 -> 1.5, 2.00 -> 2
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


def file_kind(mime_type: str) -> str:
    """Coarse category used to pick an icon."""
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    if mime_type.startswith("audio/"):
        return "audio"
    if "pdf" in mime_type:
        return "pdf"
    return "file"


def type_label(mime_type: str) -> str:
    """Short upper-case label from the MIME subtype (``FILE`` if missing)."""
    _, _, subtype = mime_type.partition("/")
    return subtype.upper() or "FILE"
