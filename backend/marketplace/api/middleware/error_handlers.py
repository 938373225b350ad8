"""
Error Handlers

Every failure leaves the API as {"error": {"code", "message", "details",
"retryable"}}. Request validation failures and unexpected exceptions are
folded into DomainError first, so clients see one envelope whichever layer
rejected the call.
"""

from typing import Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.errors import AuthenticationError, DomainError, ValidationError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


class InternalError(DomainError):
    error_code = "INTERNAL_ERROR"
    http_status = 500


def _render(exc: DomainError) -> JSONResponse:
    headers: Dict[str, str] = {"X-Correlation-Id": get_correlation_id() or ""}
    if isinstance(exc, AuthenticationError):
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(exc.to_dict()),
        headers=headers
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Rejections raised by the engine, services and guards"""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{request.method} {request.url.path} rejected: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code}
    )
    return _render(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body or query did not match the route's schema; reported as 400"""
    problems = jsonable_encoder(exc.errors())
    logger.warning(
        f"{request.method} {request.url.path} failed validation: {problems}",
        extra={"error_code": ValidationError.error_code}
    )
    return _render(ValidationError("Request validation failed", details={"errors": problems}))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} crashed: {exc}", exc_info=True)
    return _render(InternalError(
        "An unexpected error occurred",
        details={"hint": "Check server logs for details"}
    ))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
