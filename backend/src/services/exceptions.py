"""Shared exceptions for service layer operations."""


class ServiceError(Exception):
    """Base class for errors the API layer maps to a client-facing status."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input is well-formed JSON but semantically invalid (400)."""


class NotFoundError(ServiceError):
    """Raised when a referenced resource does not exist (404)."""

    def __init__(self, resource: str, resource_id: object | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ForbiddenError(ServiceError):
    """Raised when the caller may not act on an existing resource (403)."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ConflictError(ServiceError):
    """
    Raised on duplicate unique-key inserts (409).

    Clients can treat this as "already done".
    """


class InvalidShareTokenError(ValidationError):
    """Raised when a share token does not have the expected shape."""

    def __init__(self) -> None:
        super().__init__("Invalid token")


class ShareExpiredError(ServiceError):
    """Raised when a share token resolves but its expiry has passed (410)."""

    def __init__(self) -> None:
        super().__init__("This share link has expired")
