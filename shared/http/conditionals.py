"""
Extraction of the request headers that drive conditional and range
negotiation.

Headers are read from any case-insensitive mapping with a ``get`` method,
which covers Starlette's ``Headers``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from .entity_tag import EntityTag, parse_entity_tag_items
from .http_date import parse_http_date


@dataclass(frozen=True)
class EntityTagList:
    """
    Parsed value of an If-Match or If-None-Match header.

    Attributes:
        match_any: True for the ``*`` form
        tags: Listed entity tags (empty for ``*``)
    """
    match_any: bool = False
    tags: Tuple[EntityTag, ...] = ()

    @classmethod
    def parse(cls, value: str) -> "EntityTagList":
        if value.strip() == "*":
            return cls(match_any=True)
        return cls(tags=tuple(parse_entity_tag_items(value)))


@dataclass(frozen=True)
class RequestConditionals:
    """
    Conditional and range headers of one request.

    Date headers that fail to parse are treated as absent. If-None-Match
    presence is tracked separately because it suppresses If-Modified-Since
    even when its value is unusable.
    """
    if_match: Optional[EntityTagList] = None
    if_none_match: Optional[EntityTagList] = None
    if_none_match_present: bool = False
    if_unmodified_since: Optional[datetime] = None
    if_modified_since: Optional[datetime] = None
    range: Optional[str] = None

    @classmethod
    def from_headers(cls, headers) -> "RequestConditionals":
        """
        Build conditionals from request headers.

        Args:
            headers: Case-insensitive header mapping (e.g., ``request.headers``)

        Returns:
            RequestConditionals for the request
        """
        if_match = headers.get("if-match")
        if_none_match = headers.get("if-none-match")

        return cls(
            if_match=EntityTagList.parse(if_match) if if_match is not None else None,
            if_none_match=EntityTagList.parse(if_none_match) if if_none_match is not None else None,
            if_none_match_present=if_none_match is not None,
            if_unmodified_since=parse_http_date(headers.get("if-unmodified-since")),
            if_modified_since=parse_http_date(headers.get("if-modified-since")),
            range=headers.get("range"),
        )
