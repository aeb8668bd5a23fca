"""HTTP header primitives used by file response negotiation."""

from .entity_tag import EntityTag, parse_entity_tag_items
from .http_date import format_http_date, parse_http_date, epoch_seconds
from .byte_range import RangeParseError, parse_range_header, is_header_text
from .conditionals import EntityTagList, RequestConditionals
from .mime_types import (
    DEFAULT_CONTENT_TYPE,
    guess_content_type,
    equiv_utf8_text,
    default_disposition_type,
)

__all__ = [
    'EntityTag',
    'parse_entity_tag_items',
    'format_http_date',
    'parse_http_date',
    'epoch_seconds',
    'RangeParseError',
    'parse_range_header',
    'is_header_text',
    'EntityTagList',
    'RequestConditionals',
    'DEFAULT_CONTENT_TYPE',
    'guess_content_type',
    'equiv_utf8_text',
    'default_disposition_type',
]
