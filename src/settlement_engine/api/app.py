"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from settlement_engine.api.routes import acts_of_completion_router, health_router
from settlement_engine.api.schemas import (
    ActOfCompletionResponse,
    ResponseErrorMessage,
    ResponseStatus,
)
from settlement_engine.calculators.act_of_completion import (
    invalid_date_from,
    invalid_date_to,
    invalid_merchant,
)
from settlement_engine.calculators.money import MoneyRounder, RoundingPolicyResolver
from settlement_engine.database import dispose_db, init_db

logger = logging.getLogger(__name__)

# Request fields whose shape errors map onto calculator validation codes
_FIELD_ERRORS = {
    "merchant_id": invalid_merchant,
    "date_from": invalid_date_from,
    "date_to": invalid_date_to,
}


def validation_error_message(exc: RequestValidationError) -> ResponseErrorMessage:
    """Translate the first request validation error into a stable code."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc", ())
    field = loc[-1] if loc else None
    details = first.get("msg")

    factory = _FIELD_ERRORS.get(field) if isinstance(field, str) else None
    if factory is None:
        return ResponseErrorMessage(
            code="INVALID_REQUEST", message="Malformed request body", details=details
        )

    error = factory()
    return ResponseErrorMessage(code=error.code, message=error.message, details=details)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app(rounder: MoneyRounder | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Settlement Engine API",
        description="Merchant settlement figures and acts of completion",
        version="0.1.0",
        lifespan=lifespan,
    )

    # One rounder per process so every request shares the same policies
    app.state.rounder = rounder or MoneyRounder(RoundingPolicyResolver())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed requests as bad data."""
        message = validation_error_message(exc)
        logger.info("Request to %s rejected: %s", request.url.path, message.code)
        body = ActOfCompletionResponse(status=ResponseStatus.BAD_DATA, message=message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": int(ResponseStatus.SYSTEM_ERROR),
                "message": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                },
            },
        )

    app.include_router(health_router)
    app.include_router(acts_of_completion_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
