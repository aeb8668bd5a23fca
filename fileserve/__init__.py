"""
File Serving Package

Conditional GET and byte-range negotiation for serving single files over
HTTP with FastAPI/Starlette.

Main Classes:
    NamedFile: Open file plus the name used for its response headers
    FileResponseNegotiator: Pure status/header/byte-window decision procedure
    ChunkedReadFile: Async chunked reader for the negotiated byte window
    NamedFileService: Route handler reopening its file on every request
"""

from .exceptions import (
    NamedFileError,
    InvalidInputError,
    ModificationTimeError,
    UnexpectedEndOfFile,
)
from .negotiator import (
    FileResponseNegotiator,
    derive_etag,
    derive_last_modified,
    any_match,
    none_match,
    precondition_failed,
    not_modified,
)
from .chunked_reader import ChunkedReadFile, DEFAULT_CHUNK_SIZE
from .named_file import NamedFile, default_content_disposition
from .service import NamedFileService, open_named_file, register_named_file

__all__ = [
    "NamedFileError",
    "InvalidInputError",
    "ModificationTimeError",
    "UnexpectedEndOfFile",
    "FileResponseNegotiator",
    "derive_etag",
    "derive_last_modified",
    "any_match",
    "none_match",
    "precondition_failed",
    "not_modified",
    "ChunkedReadFile",
    "DEFAULT_CHUNK_SIZE",
    "NamedFile",
    "default_content_disposition",
    "NamedFileService",
    "open_named_file",
    "register_named_file",
]

__version__ = "1.0.0"
