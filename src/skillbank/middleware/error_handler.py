"""Global error handlers: every failure leaves as a JSON body with a ``detail`` key."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillbank.errors import InternalError, MalformedRequirementsError, SkillBankError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(SkillBankError)
    async def domain_exception_handler(request: Request, exc: SkillBankError) -> JSONResponse:
        """Map the core's error taxonomy onto HTTP status codes."""
        if isinstance(exc, InternalError):
            logger.error("internal_error", path=request.url.path, method=request.method, error=exc.message)
            return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})

        content: dict[str, object] = {"detail": exc.message}
        if isinstance(exc, MalformedRequirementsError) and exc.keys:
            content["keys"] = exc.keys
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
