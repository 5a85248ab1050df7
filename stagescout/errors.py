"""
Domain errors raised by the service layer.

Routes let these propagate; ``main.py`` turns them into JSON responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StageScoutError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(StageScoutError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(StageScoutError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(StageScoutError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(StageScoutError):
    status_code = status.HTTP_404_NOT_FOUND


def register_exception_handlers(app: FastAPI) -> None:
    """Register StageScout's exception handlers on a FastAPI app"""

    @app.exception_handler(StageScoutError)
    async def _stagescout_exception_handler(_request: Request, exc: StageScoutError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Starlette raises a bare "Not Found" when no route matches
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return JSONResponse(status_code=exc.status_code, content={"message": "API route not found"})
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Server Error"},
        )
