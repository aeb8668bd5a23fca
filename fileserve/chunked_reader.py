"""
Chunked asynchronous reader for a byte window of an open file.

Blocking reads run in Starlette's threadpool so the event loop is never
blocked by disk I/O.
"""

import logging
import threading
from typing import AsyncIterator, BinaryIO

from starlette.concurrency import run_in_threadpool

from .exceptions import UnexpectedEndOfFile


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65_536


class ChunkedReadFile:
    """
    Async iterable yielding exactly ``size`` bytes of ``file`` from ``offset``.

    Each iteration starts again at ``offset``. Iteration stops once ``size``
    bytes have been produced; if the file ends early, UnexpectedEndOfFile is
    raised. Dropping the iterator stops further reads.
    """

    def __init__(self, file: BinaryIO, offset: int, size: int, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if offset < 0 or size < 0:
            raise ValueError("offset and size must be non-negative")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.file = file
        self.offset = offset
        self.size = size
        self.chunk_size = chunk_size
        self._lock = threading.Lock()

    def _read_at(self, position: int, count: int) -> bytes:
        # seek+read must not interleave with another iteration over the same handle
        with self._lock:
            self.file.seek(position)
            return self.file.read(count)

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._stream()

    async def _stream(self) -> AsyncIterator[bytes]:
        position = self.offset
        remaining = self.size

        while remaining > 0:
            count = min(remaining, self.chunk_size)
            data = await run_in_threadpool(self._read_at, position, count)
            if not data:
                logger.error(
                    f"File ended after {self.size - remaining} of {self.size} bytes "
                    f"(offset {self.offset})"
                )
                raise UnexpectedEndOfFile(
                    f"expected {remaining} more bytes at offset {position}"
                )

            position += len(data)
            remaining -= len(data)
            yield data
