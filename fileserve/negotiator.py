"""
Conditional GET and single-range negotiation for one file resource.

Given a file metadata snapshot, the serving configuration and the request's
conditional headers, decide between precondition failure (412), not modified
(304), range errors (400/416), a partial response (206) and a full response,
and produce the headers each outcome requires.

Everything here is pure: no I/O, no shared state between calls.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from shared.http.byte_range import RangeParseError, is_header_text, parse_range_header
from shared.http.conditionals import RequestConditionals
from shared.http.entity_tag import EntityTag
from shared.http.http_date import epoch_seconds, format_http_date
from shared.http.mime_types import equiv_utf8_text
from shared.models.file_descriptor import FileDescriptor, NANOS_PER_SECOND
from shared.models.negotiation import (
    IDENTITY_ENCODING,
    NegotiationConfig,
    NegotiationOutcome,
)

from .exceptions import ModificationTimeError


logger = logging.getLogger(__name__)

HTTP_200_OK = 200
HTTP_206_PARTIAL_CONTENT = 206
HTTP_304_NOT_MODIFIED = 304
HTTP_400_BAD_REQUEST = 400
HTTP_412_PRECONDITION_FAILED = 412
HTTP_416_RANGE_NOT_SATISFIABLE = 416


def _split_modified(descriptor: FileDescriptor) -> Optional[tuple]:
    if descriptor.modified_ns is None:
        return None
    if descriptor.modified_ns < 0:
        raise ModificationTimeError(
            f"modification time must be after epoch, got {descriptor.modified_ns}ns"
        )
    return divmod(descriptor.modified_ns, NANOS_PER_SECOND)


def derive_etag(descriptor: FileDescriptor) -> Optional[EntityTag]:
    """
    Strong entity tag ``"{inode:x}:{size:x}:{secs:x}:{nanos:x}"``.

    Returns None when the file has no modification time.

    Raises:
        ModificationTimeError: If the modification time is before the epoch
    """
    modified = _split_modified(descriptor)
    if modified is None:
        return None
    secs, nanos = modified
    return EntityTag.strong(f"{descriptor.inode:x}:{descriptor.size:x}:{secs:x}:{nanos:x}")


def derive_last_modified(descriptor: FileDescriptor) -> Optional[datetime]:
    """
    Modification time truncated to whole seconds (HTTP-date precision).

    Raises:
        ModificationTimeError: If the modification time is before the epoch
    """
    modified = _split_modified(descriptor)
    if modified is None:
        return None
    secs, _ = modified
    return datetime.fromtimestamp(secs, tz=timezone.utc)


def any_match(etag: Optional[EntityTag], conditionals: RequestConditionals) -> bool:
    """True if there is no If-Match header or one that strongly matches ``etag``."""
    if_match = conditionals.if_match
    if if_match is None or if_match.match_any:
        return True
    if etag is None:
        return False
    return any(item.strong_eq(etag) for item in if_match.tags)


def none_match(etag: Optional[EntityTag], conditionals: RequestConditionals) -> bool:
    """True unless an If-None-Match header weakly matches ``etag``; ``*`` never matches."""
    if_none_match = conditionals.if_none_match
    if if_none_match is None:
        return True
    if if_none_match.match_any:
        return False
    if etag is None:
        return True
    return not any(item.weak_eq(etag) for item in if_none_match.tags)


def precondition_failed(
    etag: Optional[EntityTag],
    last_modified: Optional[datetime],
    conditionals: RequestConditionals,
) -> bool:
    """If-Match failure, or a modification strictly after If-Unmodified-Since."""
    if not any_match(etag, conditionals):
        return True

    since = conditionals.if_unmodified_since
    if last_modified is None or since is None:
        return False

    modified_secs = epoch_seconds(last_modified)
    since_secs = epoch_seconds(since)
    if modified_secs is None or since_secs is None:
        return False
    return modified_secs > since_secs


def not_modified(
    etag: Optional[EntityTag],
    last_modified: Optional[datetime],
    conditionals: RequestConditionals,
) -> bool:
    """
    Whether the client's cached copy is still current.

    If-Modified-Since is consulted only when no If-None-Match header is present.
    ``If-None-Match: *`` counts as always stale and forces a full response.
    """
    if_none_match = conditionals.if_none_match
    # "*" means the client holds no usable copy: always send the full body,
    # never 304, even though none_match() is False here
    if if_none_match is not None and if_none_match.match_any:
        return False
    if not none_match(etag, conditionals):
        return True
    if conditionals.if_none_match_present:
        return False

    since = conditionals.if_modified_since
    if last_modified is None or since is None:
        return False

    modified_secs = epoch_seconds(last_modified)
    since_secs = epoch_seconds(since)
    if modified_secs is None or since_secs is None:
        return False
    return modified_secs <= since_secs


class FileResponseNegotiator:
    """
    Decide status, headers and byte window for serving one file.

    Attributes:
        descriptor: Metadata snapshot of the file
        config: Serving options
    """

    def __init__(self, descriptor: FileDescriptor, config: Optional[NegotiationConfig] = None):
        self.descriptor = descriptor
        self.config = config or NegotiationConfig()

    def etag(self) -> Optional[EntityTag]:
        """The entity tag, or None when disabled or unavailable."""
        if not self.config.use_etag:
            return None
        return derive_etag(self.descriptor)

    def last_modified(self) -> Optional[datetime]:
        """The Last-Modified validator, or None when disabled or unavailable."""
        if not self.config.use_last_modified:
            return None
        return derive_last_modified(self.descriptor)

    def _content_headers(self) -> dict:
        headers = {}
        content_type = self.config.content_type
        if self.config.prefer_utf8:
            content_type = equiv_utf8_text(content_type)
        headers["Content-Type"] = content_type

        if self.config.content_disposition_enabled and self.config.content_disposition is not None:
            headers["Content-Disposition"] = self.config.content_disposition.render()

        return headers

    def _encoding_header(self, headers: dict, encoding: Optional[str]) -> None:
        if encoding and encoding.lower() != IDENTITY_ENCODING:
            headers["Content-Encoding"] = encoding
        else:
            headers.pop("Content-Encoding", None)

    def negotiate(self, conditionals: RequestConditionals) -> NegotiationOutcome:
        """
        Negotiate the response for one request.

        Args:
            conditionals: Conditional and Range headers of the request

        Returns:
            NegotiationOutcome describing status, headers and byte window
        """
        size = self.descriptor.size

        if self.config.status_code != HTTP_200_OK:
            # Forced status: no conditional or range handling, whole file
            headers = self._content_headers()
            self._encoding_header(headers, self.config.content_encoding)
            return NegotiationOutcome(
                status_code=self.config.status_code,
                headers=headers,
                offset=0,
                length=size,
                has_body=True,
                total_size=size,
                content_encoding=self.config.content_encoding,
            )

        etag = self.etag()
        last_modified = self.last_modified()

        failed = precondition_failed(etag, last_modified, conditionals)
        fresh = not_modified(etag, last_modified, conditionals)

        headers = self._content_headers()
        encoding = self.config.content_encoding
        self._encoding_header(headers, encoding)
        if last_modified is not None:
            headers["Last-Modified"] = format_http_date(last_modified)
        if etag is not None:
            headers["ETag"] = str(etag)
        headers["Accept-Ranges"] = "bytes"

        offset = 0
        length = size

        if conditionals.range is not None:
            if not is_header_text(conditionals.range):
                logger.warning("Range header is not valid header text")
                return NegotiationOutcome(status_code=HTTP_400_BAD_REQUEST, total_size=size)

            try:
                ranges = parse_range_header(conditionals.range, size)
            except RangeParseError as e:
                logger.warning(f"Unsatisfiable range {conditionals.range!r}: {e}")
                return NegotiationOutcome(
                    status_code=HTTP_416_RANGE_NOT_SATISFIABLE,
                    headers={"Content-Range": f"bytes */{size}"},
                    total_size=size,
                )

            # Only the first range is honored; no multipart/byteranges
            byte_range = ranges[0]
            offset = byte_range.start
            length = byte_range.length
            encoding = IDENTITY_ENCODING
            self._encoding_header(headers, encoding)
            headers["Content-Range"] = byte_range.content_range(size)

        if failed:
            logger.debug("Precondition failed")
            return NegotiationOutcome(
                status_code=HTTP_412_PRECONDITION_FAILED,
                headers=headers,
                total_size=size,
                content_encoding=encoding,
            )
        if fresh:
            logger.debug("Not modified")
            return NegotiationOutcome(
                status_code=HTTP_304_NOT_MODIFIED,
                headers=headers,
                total_size=size,
                content_encoding=encoding,
            )

        status_code = self.config.status_code
        if offset != 0 or length != size:
            status_code = HTTP_206_PARTIAL_CONTENT

        logger.debug(f"Serving {length} of {size} bytes from offset {offset} with status {status_code}")
        return NegotiationOutcome(
            status_code=status_code,
            headers=headers,
            offset=offset,
            length=length,
            has_body=True,
            total_size=size,
            content_encoding=encoding,
        )
