"""Domain error taxonomy and handlers."""

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    code = "business_error"

    def __init__(self, detail: str, status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class _TaxonomyError(BusinessLogicError):
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail, status_code=self.default_status)


class Unauthenticated(_TaxonomyError):
    """No caller identity, or one that cannot be resolved."""

    code = "unauthenticated"
    default_status = status.HTTP_401_UNAUTHORIZED


class Forbidden(_TaxonomyError):
    """Authenticated, but role or ownership disallows the action."""

    code = "forbidden"
    default_status = status.HTTP_403_FORBIDDEN


class InvalidInput(_TaxonomyError):
    code = "invalid_input"
    default_status = status.HTTP_400_BAD_REQUEST


class NotFound(_TaxonomyError):
    code = "not_found"
    default_status = status.HTTP_404_NOT_FOUND


class SlotUnavailable(_TaxonomyError):
    """An active booking already holds the requested doctor/date/time."""

    code = "slot_unavailable"
    default_status = status.HTTP_409_CONFLICT


class InvalidTransition(_TaxonomyError):
    """The requested status change is not allowed from the current status."""

    code = "invalid_transition"
    default_status = status.HTTP_409_CONFLICT


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: FastAPI, exc: BusinessLogicError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return JSONResponse(
            {"success": False, "message": exc.detail, "code": exc.code},
            status_code=exc.status_code,
            headers=headers,
        )
