"""Global error handlers — every error leaves as a JSON body."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from questboard.boards.errors import BoardError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(BoardError)
    async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
        """Domain errors carry their own status, code and category."""
        logger.info(
            "board_request_rejected",
            path=request.url.path,
            method=request.method,
            code=exc.code,
            status=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies (not JSON, wrong top-level shape)."""
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: log with traceback, answer a generic 500."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Validation errors without the non-serializable ``ctx``/``input`` members."""
    return [{k: v for k, v in error.items() if k in ("type", "loc", "msg")} for error in exc.errors()]
