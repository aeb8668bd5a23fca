"""
File metadata snapshot used for response negotiation.
"""

import os
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


NANOS_PER_SECOND = 1_000_000_000


class FileDescriptor(BaseModel):
    """
    Immutable metadata snapshot of a file.

    Attributes:
        size: Total length in bytes
        modified_ns: Modification time in nanoseconds since the Unix epoch,
            or None when the platform or file has no modification time
        inode: Platform inode-equivalent identifier, 0 when unavailable
    """

    model_config = ConfigDict(frozen=True)

    size: int = Field(..., ge=0)
    modified_ns: Optional[int] = None
    inode: int = Field(default=0, ge=0)

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileDescriptor":
        """
        Build a descriptor from an ``os.stat``/``os.fstat`` result.

        ``st_ino`` is meaningful on POSIX only; elsewhere the identifier is 0.
        """
        inode = st.st_ino if os.name == "posix" else 0
        return cls(
            size=st.st_size,
            modified_ns=getattr(st, "st_mtime_ns", None),
            inode=inode or 0,
        )

    @property
    def modified(self) -> Optional[datetime]:
        """Modification time as an aware UTC datetime (microsecond precision)."""
        if self.modified_ns is None:
            return None
        seconds, nanos = divmod(self.modified_ns, NANOS_PER_SECOND)
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=nanos // 1000)

    def to_dict(self):
        """Convert descriptor to dictionary."""
        return {
            "size": self.size,
            "modified_ns": self.modified_ns,
            "inode": self.inode,
        }
