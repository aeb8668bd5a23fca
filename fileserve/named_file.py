"""
NamedFile: an open file paired with the path used to name it.

The path determines the default Content-Type and Content-Disposition; the
metadata snapshot taken at construction feeds the negotiator. Converting a
NamedFile into a response streams the negotiated byte window.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional, Union

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from shared.http.conditionals import RequestConditionals
from shared.http.entity_tag import EntityTag
from shared.http.mime_types import default_disposition_type, guess_content_type
from shared.models.file_descriptor import FileDescriptor
from shared.models.negotiation import (
    ContentDisposition,
    DispositionType,
    NegotiationConfig,
    NegotiationOutcome,
)

from .chunked_reader import ChunkedReadFile, DEFAULT_CHUNK_SIZE
from .exceptions import InvalidInputError
from .negotiator import FileResponseNegotiator


logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def _filename_of(path: Path) -> str:
    filename = path.name
    if not filename or filename == "..":
        raise InvalidInputError(f"Provided path has no filename: {str(path)!r}")
    return filename


def default_content_disposition(filename: str, content_type: str) -> ContentDisposition:
    """
    Inline for image/text/video, attachment otherwise; non-ASCII filenames
    also get an extended UTF-8 ``filename*`` parameter.
    """
    return ContentDisposition(
        disposition=DispositionType(default_disposition_type(content_type)),
        filename=filename,
        filename_ext=None if filename.isascii() else filename,
    )


class NamedFile:
    """
    A file with an associated name, servable as an HTTP response.

    Setters return the instance so calls can be chained:

        NamedFile.open("static/report.pdf").use_etag(False).prefer_utf8(True)
    """

    def __init__(
        self,
        path: Path,
        file: BinaryIO,
        descriptor: FileDescriptor,
        config: NegotiationConfig,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        self._path = path
        self._file = file
        self.descriptor = descriptor
        self.config = config
        self.chunk_size = chunk_size

    @classmethod
    def from_file(cls, file: BinaryIO, path: PathLike, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "NamedFile":
        """
        Create an instance from a previously opened binary file.

        The given ``path`` need not exist; it only determines the Content-Type
        and Content-Disposition defaults.

        Args:
            file: File opened for binary reading
            path: Path whose final component names the file
            chunk_size: Read size used when streaming the body

        Returns:
            NamedFile wrapping ``file``

        Raises:
            InvalidInputError: If ``path`` has no final component
            OSError: If the file's metadata cannot be read
        """
        path = Path(path)
        filename = _filename_of(path)

        content_type = guess_content_type(path)
        descriptor = FileDescriptor.from_stat(os.fstat(file.fileno()))
        config = NegotiationConfig(
            content_type=content_type,
            content_disposition=default_content_disposition(filename, content_type),
        )

        logger.debug(f"NamedFile {path} ({descriptor.size} bytes, {content_type})")
        return cls(path, file, descriptor, config, chunk_size=chunk_size)

    @classmethod
    def open(cls, path: PathLike, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "NamedFile":
        """
        Open a file in read-only binary mode.

        Raises:
            InvalidInputError: If ``path`` has no final component
            OSError: If the file cannot be opened or inspected
        """
        _filename_of(Path(path))
        file = open(path, "rb")
        try:
            return cls.from_file(file, path, chunk_size=chunk_size)
        except BaseException:
            file.close()
            raise

    @property
    def path(self) -> Path:
        return self._path

    @property
    def file(self) -> BinaryIO:
        return self._file

    @property
    def modified(self) -> Optional[datetime]:
        return self.descriptor.modified

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "NamedFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _update(self, **changes) -> "NamedFile":
        self.config = self.config.model_copy(update=changes)
        return self

    def set_status_code(self, status_code: int) -> "NamedFile":
        """Set the response status; anything but 200 bypasses conditional and range handling."""
        return self._update(status_code=status_code)

    def set_content_type(self, content_type: str) -> "NamedFile":
        """Override the Content-Type inferred from the filename extension."""
        return self._update(content_type=content_type)

    def set_content_disposition(self, content_disposition: ContentDisposition) -> "NamedFile":
        """Override the Content-Disposition; also re-enables the header."""
        return self._update(content_disposition=content_disposition, content_disposition_enabled=True)

    def disable_content_disposition(self) -> "NamedFile":
        return self._update(content_disposition_enabled=False)

    def set_content_encoding(self, content_encoding: str) -> "NamedFile":
        """Declare the Content-Encoding of the stored bytes (e.g. a pre-compressed file)."""
        return self._update(content_encoding=content_encoding)

    def use_etag(self, value: bool) -> "NamedFile":
        return self._update(use_etag=value)

    def use_last_modified(self, value: bool) -> "NamedFile":
        return self._update(use_last_modified=value)

    def prefer_utf8(self, value: bool) -> "NamedFile":
        """Whether textual content types should declare ``charset=utf-8``."""
        return self._update(prefer_utf8=value)

    def negotiator(self) -> FileResponseNegotiator:
        return FileResponseNegotiator(self.descriptor, self.config)

    def etag(self) -> Optional[EntityTag]:
        return self.negotiator().etag()

    def last_modified(self) -> Optional[datetime]:
        return self.negotiator().last_modified()

    def negotiate(self, conditionals: RequestConditionals) -> NegotiationOutcome:
        return self.negotiator().negotiate(conditionals)

    def into_response(self, request: Request) -> Response:
        """
        Create a response for ``request`` with the file as a streaming body.

        The file is closed once the body has been sent, or immediately when
        the outcome carries no body.
        """
        try:
            outcome = self.negotiate(RequestConditionals.from_headers(request.headers))
            return self.build_response(outcome, method=request.method)
        except BaseException:
            self.close()
            raise

    def build_response(self, outcome: NegotiationOutcome, method: str = "GET") -> Response:
        """Turn a negotiation outcome into a Starlette response."""
        headers = dict(outcome.headers)

        if not outcome.has_body or method.upper() == "HEAD":
            if outcome.has_body:
                headers["Content-Length"] = str(outcome.length)
            self.close()
            return Response(status_code=outcome.status_code, headers=headers)

        headers["Content-Length"] = str(outcome.length)
        reader = ChunkedReadFile(self._file, outcome.offset, outcome.length, chunk_size=self.chunk_size)
        return StreamingResponse(
            self._stream_and_close(reader),
            status_code=outcome.status_code,
            headers=headers,
            background=BackgroundTask(self.close),
        )

    async def _stream_and_close(self, reader: ChunkedReadFile) -> AsyncIterator[bytes]:
        # The background task does not run when the body fails mid-stream
        try:
            async for chunk in reader:
                yield chunk
        finally:
            self.close()

    def __repr__(self) -> str:
        return f"NamedFile(path={str(self._path)!r}, size={self.descriptor.size})"
