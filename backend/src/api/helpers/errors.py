"""Translation of service-layer exceptions into HTTP errors."""
from fastapi import HTTPException, status

from services.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    ShareExpiredError,
    ValidationError,
)

_STATUS_BY_ERROR: list[tuple[type[ServiceError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ShareExpiredError, status.HTTP_410_GONE),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
]


def http_error(exc: ServiceError) -> HTTPException:
    """
    Build the HTTPException for a service error.

    Unknown ServiceError subclasses map to 400.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
