"""
Per-request file service.

Registers a route that opens its file afresh for every request, so the
metadata snapshot and validators always reflect the file's current state.
"""

import logging
import os
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from .chunked_reader import DEFAULT_CHUNK_SIZE
from .named_file import NamedFile


logger = logging.getLogger(__name__)

Configure = Callable[[NamedFile], NamedFile]


def open_named_file(path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> NamedFile:
    """
    Open ``path`` for serving, mapping I/O failures to HTTP errors.

    Raises:
        HTTPException: 404 when the file is missing, 500 for other I/O errors
    """
    if os.path.isdir(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    try:
        return NamedFile.open(path, chunk_size=chunk_size)
    except FileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    except OSError as e:
        logger.warning(f"Failed to open {path}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to open file")


class NamedFileService:
    """
    Serves one file path, reopening it on every request.

    Attributes:
        path: Filesystem path of the served file
        configure: Optional hook applied to each freshly opened NamedFile
        chunk_size: Read size for streamed bodies
    """

    def __init__(self, path: str, configure: Optional[Configure] = None, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = path
        self.configure = configure
        self.chunk_size = chunk_size

    async def handle(self, request: Request) -> Response:
        named_file = await run_in_threadpool(open_named_file, self.path, chunk_size=self.chunk_size)
        try:
            if self.configure is not None:
                named_file = self.configure(named_file)
            return named_file.into_response(request)
        except BaseException:
            named_file.close()
            raise


def register_named_file(
    app: FastAPI,
    url_path: str,
    file_path: str,
    configure: Optional[Configure] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE
) -> NamedFileService:
    """
    Register GET and HEAD routes at ``url_path`` serving ``file_path``.

    Returns:
        The NamedFileService backing the routes
    """
    service = NamedFileService(file_path, configure=configure, chunk_size=chunk_size)

    async def serve_named_file(request: Request) -> Response:
        return await service.handle(request)

    app.add_api_route(
        url_path,
        serve_named_file,
        methods=["GET", "HEAD"],
        include_in_schema=False,
    )
    logger.info(f"Registered {file_path} at {url_path}")
    return service
