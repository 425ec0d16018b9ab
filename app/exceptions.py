# =============================================================================
# Domain Exceptions & Handlers
# =============================================================================
#
# Error taxonomy for the car service:
#
#   CarServiceError
#   ├── NotFoundError         404  absent OR owned by someone else
#   ├── ValidationError       400  malformed field data
#   │   └── LimitExceededError 400  image-count rule violated
#   └── StorageFailureError   500  database backend error
#
# Authentication failures never reach this layer; they are raised as
# HTTPException(401) by app.api.deps.
#
# DESIGN DECISION: NotFoundError deliberately does not say whether the car
# exists. A non-owner asking for an existing id gets the exact same response
# as anyone asking for a missing id.
#
# DESIGN DECISION: StorageFailureError carries the underlying error for
# logging, but to_dict() only ever returns the generic message.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CarServiceError(Exception):
    """
    Base exception for the car service.

    Carries an HTTP status and a machine-readable code so the API layer can
    translate any subclass into a JSON response without special-casing.
    """

    def __init__(
        self,
        message: str,
        code: str = "CAR_SERVICE_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {
            "detail": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(CarServiceError):
    """Raised when a car does not exist or is not owned by the caller."""

    def __init__(self, car_id: int | str):
        super().__init__(
            message="Car not found or unauthorized",
            code="CAR_NOT_FOUND",
            status_code=404,
            details={"car_id": car_id},
        )


class ValidationError(CarServiceError):
    """Raised when request or record data is malformed."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details,
        )


class LimitExceededError(ValidationError):
    """Raised when a request or record breaks the per-car image limit."""

    def __init__(self, limit: int, count: int):
        super().__init__(
            message=f"You can upload up to {limit} images only.",
            code="IMAGE_LIMIT_EXCEEDED",
            details={"limit": limit, "count": count},
        )
        self.limit = limit
        self.count = count


class StorageFailureError(CarServiceError):
    """Raised when the persistence backend fails unexpectedly."""

    def __init__(self, operation: str, error: Exception | None = None):
        super().__init__(
            message="Server error",
            code="STORAGE_FAILURE",
            status_code=500,
        )
        self.operation = operation
        self.error = error


# =============================================================================
# Exception Handlers
# =============================================================================


async def car_service_exception_handler(
    request: Request,
    exc: CarServiceError,
) -> JSONResponse:
    """
    Convert CarServiceError to a JSON response.

    Storage failures are logged with full context here; the client only sees
    the generic message.
    """
    if isinstance(exc, StorageFailureError):
        logger.error(
            "Storage failure during %s (%s %s): %r",
            exc.operation, request.method, request.url.path, exc.error,
        )
    else:
        logger.info(
            "%s %s rejected: %s (%s)",
            request.method, request.url.path, exc.code, exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )
