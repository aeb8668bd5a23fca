"""
File Service

FastAPI service that serves file blobs stored under FILES_ROOT with
conditional GET and single-range support:
- GET    /api/v1/files/{bucket}/{path}
- HEAD   /api/v1/files/{bucket}/{path}
- GET    /health
"""

import logging
import os
import re
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from shared.config.config_manager import ConfigManager

from .named_file import NamedFile
from .service import open_named_file


logger = logging.getLogger(__name__)


def _validate_bucket_name(bucket: str) -> bool:
    # Allow lowercase letters, digits, hyphens, and dots; must start/end alnum (S3-like)
    return bool(re.fullmatch(r"[a-z0-9](?:[a-z0-9\-\.]{1,61})[a-z0-9]", bucket))


def _validate_path(path: str) -> bool:
    if not path or path.startswith("/") or ".." in path or "\x00" in path:
        return False
    return True


def _safe_join(root: str, bucket: str, path: str) -> str:
    # Prevent directory traversal
    base = os.path.realpath(os.path.join(root, bucket))
    full = os.path.realpath(os.path.join(base, path))
    if os.path.commonpath([base, full]) != base:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid path")
    return full


class HealthResponse(BaseModel):
    service: str
    status: str
    environment: Dict[str, Any]
    files: Dict[str, Any]
    message: str


def create_app(config: Optional[ConfigManager] = None) -> FastAPI:
    """
    Build the file service application.

    Args:
        config: Configuration manager (defaults to one loaded from the environment)

    Returns:
        Configured FastAPI application
    """
    config = config or ConfigManager()
    files_root = config.files_root
    defaults = config.negotiation_defaults()
    chunk_size = config.chunk_size

    app = FastAPI(title="File Service", version="1.0.0")
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_cors,
        allow_credentials=True,
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Accept-Ranges", "ETag", "Last-Modified", "Content-Disposition"],
    )

    def apply_defaults(named_file: NamedFile) -> NamedFile:
        named_file = (
            named_file
            .use_etag(defaults['use_etag'])
            .use_last_modified(defaults['use_last_modified'])
            .prefer_utf8(defaults['prefer_utf8'])
        )
        if not defaults['content_disposition_enabled']:
            named_file = named_file.disable_content_disposition()
        return named_file

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(
            service="fileserve",
            status="ready",
            environment={
                "env": config.environment,
                "port": config.get_port(),
            },
            files={
                "root": files_root,
                "root_exists": os.path.isdir(files_root),
                "chunk_size": chunk_size,
                **defaults,
            },
            message="File service is ready and configured",
        )

    @app.api_route("/api/v1/files/{bucket}/{path:path}", methods=["GET", "HEAD"])
    async def serve_file(bucket: str, path: str, request: Request) -> Response:
        bucket = bucket.strip().lower()
        if not _validate_bucket_name(bucket) or not _validate_path(path):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid bucket or path")

        file_path = _safe_join(files_root, bucket, path)
        named_file = await run_in_threadpool(open_named_file, file_path, chunk_size=chunk_size)
        try:
            response = apply_defaults(named_file).into_response(request)
        except BaseException:
            named_file.close()
            raise

        logger.debug(f"{request.method} {bucket}/{path} -> {response.status_code}")
        return response

    logger.info(f"File service initialized, serving {files_root}")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _config = ConfigManager()
    logging.basicConfig(level=_config.log_level)
    uvicorn.run("fileserve.main:app", host="0.0.0.0", port=_config.get_port())
