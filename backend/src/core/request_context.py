"""Request context types used for the audit trail."""
from dataclasses import dataclass
from uuid import UUID

from starlette.requests import Request


@dataclass(frozen=True)
class RequestOrigin:
    """Where a request came from (client IP and user agent)."""

    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestOrigin":
        """
        Extract origin metadata from request headers.

        The client IP is the first hop of X-Forwarded-For, then X-Real-IP,
        then the socket peer.
        """
        ip_address: str | None = None
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            ip_address = forwarded_for.split(",")[0].strip() or None
        if ip_address is None:
            ip_address = request.headers.get("x-real-ip") or None
        if ip_address is None and request.client is not None:
            ip_address = request.client.host
        return cls(
            ip_address=ip_address,
            user_agent=request.headers.get("user-agent") or None,
        )


@dataclass(frozen=True)
class AuditActor:
    """
    Snapshot of who performed an action, captured at the time of the action.

    user_id is a string so failed logins can record "unknown".
    """

    user_id: str
    name: str | None = None
    role: str | None = None

    @classmethod
    def from_user(cls, user_id: UUID | str, name: str | None, role: str | None) -> "AuditActor":
        return cls(user_id=str(user_id), name=name, role=role)


UNKNOWN_ACTOR = AuditActor(user_id="unknown")
