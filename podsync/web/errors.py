"""Mapping of core errors onto HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from podsync.errors import StorageError, SyncError

logger = logging.getLogger(__name__)


async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
    """Render a SyncError as `{"error": kind, "detail": message}`."""
    if isinstance(exc, StorageError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    """Install the SyncError handler on an application."""
    app.add_exception_handler(SyncError, sync_error_handler)
