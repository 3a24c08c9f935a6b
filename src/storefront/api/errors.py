"""HTTP mapping of storefront errors, and the merchant identity dependency."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from storefront.shared.errors import BadRequestError, ConflictError, StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class MerchantNotAuthenticated(Exception):
    pass


def _error_response(exc: StorefrontError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    return _error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and parameters are bad requests, not business-rule failures."""
    first = exc.errors()[0] if exc.errors() else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or None
    message = first.get("msg", "Malformed request.")
    return _error_response(BadRequestError(f"{field}: {message}" if field else message, field=field))


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    """Another request saved the same aggregate first."""
    logger.info("version_conflict", path=request.url.path, reason=str(exc))
    return _error_response(ConflictError("This record was changed by another request. Please try again."))


async def unauthenticated_handler(request: Request, exc: MerchantNotAuthenticated) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": {"kind": "unauthenticated", "message": "Sign in to continue.", "field": None}},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"kind": "internal", "message": "Something went wrong. Please try again.", "field": None}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Protean's handlers (ValidationError -> 400, ObjectNotFoundError -> 404, ...)
    plus the storefront taxonomy."""
    register_protean_handlers(app)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(MerchantNotAuthenticated, unauthenticated_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)


def current_merchant_id(request: Request) -> str:
    """Merchant signed in on this request.

    The session layer in front of the API stores the authenticated merchant on
    ``request.state.merchant_id``. Merchant ids are never read from bodies or
    query strings.
    """
    merchant_id = getattr(request.state, "merchant_id", None)
    if not merchant_id:
        raise MerchantNotAuthenticated()
    return merchant_id
