"""Size labels and media-type classification for vault files."""

from __future__ import annotations

import math

from .errors import InvalidArgumentError
from .models import MediaType

UNIT_BASE = 1024
UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")
MULTIPLIERS: dict[str, int] = {unit: UNIT_BASE**i for i, unit in enumerate(UNITS)}

_EXTENSIONS: dict[str, MediaType] = {
    "pdf": MediaType.PDF,
    "doc": MediaType.DOC,
    "docx": MediaType.DOC,
    "xls": MediaType.SPREADSHEET,
    "xlsx": MediaType.SPREADSHEET,
    "jpg": MediaType.IMAGE,
    "jpeg": MediaType.IMAGE,
    "png": MediaType.IMAGE,
}


def format_bytes(size: float) -> str:
    """Render a byte count with the largest unit not exceeding it.

    The value is rounded to two decimals and trailing zeros are dropped, so
    1_258_291 renders as ``"1.2 MB"`` and 1_300_000 as ``"1.24 MB"``.
    """
    if size < 0 or not math.isfinite(size):
        raise InvalidArgumentError("size", f"expected a non-negative byte count, got {size!r}")
    if size == 0:
        return "0 B"

    index = 0
    while index < len(UNITS) - 1 and size >= UNIT_BASE ** (index + 1):
        index += 1
    scaled = f"{size / UNIT_BASE**index:.2f}".rstrip("0").rstrip(".")
    return f"{scaled} {UNITS[index]}"


def parse_size(label: str | None) -> float:
    """Inverse of :func:`format_bytes`. Unparseable labels count as zero bytes."""
    if not label:
        return 0.0
    parts = label.split()
    if len(parts) != 2:
        return 0.0
    value, unit = parts
    try:
        amount = float(value)
    except ValueError:
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount * MULTIPLIERS.get(unit.upper(), 0)


def classify_media_type(filename: str) -> MediaType:
    if "." not in filename:
        return MediaType.UNKNOWN
    extension = filename.rsplit(".", 1)[1].lower()
    return _EXTENSIONS.get(extension, MediaType.UNKNOWN)
