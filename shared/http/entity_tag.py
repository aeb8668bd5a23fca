"""
Entity tag (ETag) value type.

Implements parsing, rendering and the two comparison functions defined by
RFC 7232 section 2.3.2 (strong and weak comparison).
"""

from typing import List


class EntityTag:
    """
    An entity tag with its opaque value and weakness marker.

    Attributes:
        tag: Opaque tag value without surrounding quotes
        weak: Whether the tag carries the ``W/`` prefix
    """

    def __init__(self, tag: str, weak: bool = False):
        if '"' in tag:
            raise ValueError(f"Entity tag value must not contain a double quote: {tag!r}")
        self.tag = tag
        self.weak = weak

    @classmethod
    def strong(cls, tag: str) -> "EntityTag":
        return cls(tag, weak=False)

    @classmethod
    def weak_tag(cls, tag: str) -> "EntityTag":
        return cls(tag, weak=True)

    @classmethod
    def parse(cls, value: str) -> "EntityTag":
        """
        Parse an entity tag from its header representation.

        Args:
            value: ``"xyz"`` or ``W/"xyz"``

        Returns:
            Parsed EntityTag

        Raises:
            ValueError: If the value is not a quoted entity tag
        """
        value = value.strip()
        weak = False
        if value.startswith("W/"):
            weak = True
            value = value[2:]

        if len(value) < 2 or not value.startswith('"') or not value.endswith('"'):
            raise ValueError(f"Invalid entity tag: {value!r}")

        opaque = value[1:-1]
        for char in opaque:
            # etagc = %x21 / %x23-7E / obs-text
            code = ord(char)
            if code == 0x21 or 0x23 <= code <= 0x7E or 0x80 <= code <= 0xFF:
                continue
            raise ValueError(f"Invalid character in entity tag: {value!r}")

        return cls(opaque, weak=weak)

    def strong_eq(self, other: "EntityTag") -> bool:
        """Both tags must be strong and their values identical."""
        return not self.weak and not other.weak and self.tag == other.tag

    def weak_eq(self, other: "EntityTag") -> bool:
        """Values must be identical; weakness is ignored."""
        return self.tag == other.tag

    def __eq__(self, other) -> bool:
        if not isinstance(other, EntityTag):
            return NotImplemented
        return self.tag == other.tag and self.weak == other.weak

    def __hash__(self) -> int:
        return hash((self.tag, self.weak))

    def __str__(self) -> str:
        prefix = "W/" if self.weak else ""
        return f'{prefix}"{self.tag}"'

    def __repr__(self) -> str:
        return f"EntityTag({self.tag!r}, weak={self.weak})"


def parse_entity_tag_items(value: str) -> List[EntityTag]:
    """
    Parse a comma separated list of entity tags.

    Items that fail to parse are dropped, so a header made only of garbage
    yields an empty list rather than an error.
    """
    tags = []
    for item in _split_tag_list(value):
        try:
            tags.append(EntityTag.parse(item))
        except ValueError:
            continue
    return tags


def _split_tag_list(value: str) -> List[str]:
    # Commas are legal inside quoted tag values, so split on commas outside quotes only
    items = []
    current = []
    in_quotes = False
    for char in value:
        if char == '"':
            in_quotes = not in_quotes
        if char == "," and not in_quotes:
            items.append("".join(current))
            current = []
            continue
        current.append(char)
    items.append("".join(current))
    return [item.strip() for item in items if item.strip()]
