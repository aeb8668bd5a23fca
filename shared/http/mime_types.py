"""
MIME type helpers for file responses.
"""

import mimetypes
from pathlib import Path
from typing import Union

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Top-level types rendered inline by default; everything else is an attachment
INLINE_TOP_LEVEL_TYPES = ("image", "text", "video")

# Non-"text/*" types that are still textual
_TEXTUAL_APPLICATION_TYPES = ("application/javascript", "application/json")


def guess_content_type(path: Union[str, Path]) -> str:
    """Guess the Content-Type from the path's extension."""
    ctype, _ = mimetypes.guess_type(str(path))
    return ctype or DEFAULT_CONTENT_TYPE


def essence(content_type: str) -> str:
    """The ``type/subtype`` part of a media type, lower-cased."""
    return content_type.split(";", 1)[0].strip().lower()


def top_level_type(content_type: str) -> str:
    return essence(content_type).split("/", 1)[0]


def is_textual(content_type: str) -> bool:
    return top_level_type(content_type) == "text" or essence(content_type) in _TEXTUAL_APPLICATION_TYPES


def equiv_utf8_text(content_type: str) -> str:
    """
    Qualify a textual media type with ``charset=utf-8``.

    Non-textual types and types that already declare a charset are returned
    unchanged.
    """
    if not is_textual(content_type):
        return content_type

    params = [param.strip().lower() for param in content_type.split(";")[1:]]
    if any(param.startswith("charset=") for param in params):
        return content_type

    return f"{content_type}; charset=utf-8"


def default_disposition_type(content_type: str) -> str:
    """``inline`` for image, text and video content; ``attachment`` otherwise."""
    if top_level_type(content_type) in INLINE_TOP_LEVEL_TYPES:
        return "inline"
    return "attachment"
