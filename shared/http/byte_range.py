"""
HTTP Range header parsing according to RFC 7233.

Only the ``bytes`` unit is understood. Parsing resolves every range spec
against the current representation length, so the returned ranges are always
satisfiable: ``start + length <= size``.
"""

import re
from typing import List, Optional

from shared.models.negotiation import ByteRange


BYTES_PREFIX = "bytes="
_DIGITS = re.compile(r"[0-9]+")


class RangeParseError(ValueError):
    """Raised when a Range header is malformed or not satisfiable."""
    pass


def parse_range_header(header: str, size: int) -> List[ByteRange]:
    """
    Parse a Range header value against a representation of ``size`` bytes.

    Args:
        header: Range header value (e.g., "bytes=0-499")
        size: Total length of the representation in bytes

    Returns:
        List of satisfiable ranges in request order (never empty)

    Raises:
        RangeParseError: If the header is malformed or no range overlaps the file

    Examples:
        >>> parse_range_header("bytes=0-499", 1000)
        [ByteRange(start=0, length=500)]
        >>> parse_range_header("bytes=-100", 1000)
        [ByteRange(start=900, length=100)]
    """
    if not header.startswith(BYTES_PREFIX):
        raise RangeParseError(f"Unsupported range unit in {header!r}")

    ranges = []
    for spec in header[len(BYTES_PREFIX):].split(","):
        spec = spec.strip()
        if not spec:
            continue

        byte_range = _parse_range_spec(spec, size)
        if byte_range is not None:
            ranges.append(byte_range)

    if not ranges:
        raise RangeParseError(f"No satisfiable range in {header!r} for size {size}")

    return ranges


def _parse_range_spec(spec: str, size: int) -> Optional[ByteRange]:
    if "-" not in spec:
        raise RangeParseError(f"Range spec missing '-': {spec!r}")

    start_str, end_str = spec.split("-", 1)
    start_str = start_str.strip()
    end_str = end_str.strip()

    if not start_str:
        # Suffix range: the last N bytes
        length = _parse_position(end_str)
        length = min(length, size)
        if length == 0:
            return None
        return ByteRange(start=size - length, length=length)

    start = _parse_position(start_str)
    if start >= size:
        return None

    if not end_str:
        return ByteRange(start=start, length=size - start)

    end = _parse_position(end_str)
    if start > end:
        raise RangeParseError(f"Range start exceeds end: {spec!r}")
    end = min(end, size - 1)

    return ByteRange(start=start, length=end - start + 1)


def _parse_position(value: str) -> int:
    if not _DIGITS.fullmatch(value):
        raise RangeParseError(f"Invalid byte position: {value!r}")
    return int(value)


def is_header_text(value: str) -> bool:
    """Header values must be visible ASCII or horizontal tab."""
    return all(char == "\t" or 0x20 <= ord(char) < 0x7F for char in value)
