"""
Negotiation models: per-file configuration, requested byte ranges and the
negotiation outcome handed to response assembly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


IDENTITY_ENCODING = "identity"

# attr-char (RFC 8187) minus ALPHA / DIGIT, which quote() never escapes
_ATTR_CHAR_SAFE = "!#$&+-.^_`|~"


class DispositionType(str, Enum):
    """Content-Disposition type enumeration."""
    INLINE = "inline"
    ATTACHMENT = "attachment"
    FORM_DATA = "form-data"


class ContentDisposition(BaseModel):
    """
    Content-Disposition header value.

    Attributes:
        disposition: Disposition type
        filename: Plain filename parameter
        filename_ext: Extended (UTF-8) filename parameter for non-ASCII names
    """

    model_config = ConfigDict(frozen=True)

    disposition: DispositionType = DispositionType.ATTACHMENT
    filename: Optional[str] = None
    filename_ext: Optional[str] = None

    def render(self) -> str:
        """Render the header value, e.g. ``inline; filename="a.txt"``."""
        parts = [self.disposition.value]

        if self.filename is not None:
            # The plain parameter must stay Latin-1 encodable; non-ASCII goes in filename*
            fallback = self.filename.encode("ascii", "replace").decode("ascii")
            fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'filename="{fallback}"')

        if self.filename_ext is not None:
            encoded = quote(self.filename_ext, safe=_ATTR_CHAR_SAFE, encoding="utf-8")
            parts.append(f"filename*=UTF-8''{encoded}")

        return "; ".join(parts)

    def __str__(self) -> str:
        return self.render()


class NegotiationConfig(BaseModel):
    """
    Caller-supplied options for serving one file.

    Read-only during negotiation; NamedFile setters produce updated copies.
    """

    model_config = ConfigDict(frozen=True)

    use_etag: bool = True
    use_last_modified: bool = True
    content_disposition_enabled: bool = True
    prefer_utf8: bool = False
    content_type: str = "application/octet-stream"
    content_disposition: Optional[ContentDisposition] = None
    content_encoding: Optional[str] = None
    status_code: int = Field(default=200, ge=100, le=599)


@dataclass(frozen=True)
class ByteRange:
    """
    A satisfiable byte window into a file.

    Attributes:
        start: Offset of the first byte
        length: Number of bytes (at least 1)
    """
    start: int
    length: int

    @property
    def end(self) -> int:
        """Offset of the last byte (inclusive)."""
        return self.start + self.length - 1

    def content_range(self, total: int) -> str:
        return f"bytes {self.start}-{self.end}/{total}"


@dataclass
class NegotiationOutcome:
    """
    Result of negotiating one request against one file.

    Attributes:
        status_code: Response status
        headers: Response headers in emission order
        offset: First byte of the window to stream
        length: Number of bytes to stream
        has_body: Whether a body is streamed at all (False for 304/400/412/416)
        total_size: Full file length
        content_encoding: Effective encoding; ``identity`` for range responses
    """
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    offset: int = 0
    length: int = 0
    has_body: bool = False
    total_size: int = 0
    content_encoding: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        """True when the window is a strict subset of the file."""
        return self.has_body and (self.offset != 0 or self.length != self.total_size)
