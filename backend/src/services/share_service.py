"""Service layer for the public share-link lifecycle of collections."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.share_token import generate_share_token, is_valid_share_token, slugify
from models.collection import Collection
from services.collection_service import collection_photo_options
from services.exceptions import InvalidShareTokenError, NotFoundError, ShareExpiredError

logger = logging.getLogger(__name__)


def build_share_url(app_url: str, user_slug: str, slug: str, token: str) -> str:
    """Human-readable public URL for a shared collection."""
    return f"{app_url.rstrip('/')}/{user_slug}/{slug}?token={token}"


async def create_share(
    db: AsyncSession,
    collection: Collection,
    owner_name: str | None,
    expires_in_days: int | None,
    now: datetime,
) -> Collection:
    """
    Share a collection under a fresh token.

    Slugs, token and expiry are written together. Any previous token is
    overwritten and stops resolving immediately.

    Args:
        db: Database session.
        collection: Collection owned by the caller.
        owner_name: Owner display name used for the user slug.
        expires_in_days: Days until the link expires, or None for never.
        now: Current time; the expiry is computed from it.
    """
    collection.slug = slugify(collection.name, fallback="collection")
    collection.user_slug = slugify(owner_name, fallback="user")
    collection.share_token = generate_share_token()
    collection.share_expires_at = (
        now + timedelta(days=expires_in_days) if expires_in_days else None
    )
    await db.flush()
    logger.info(
        "share_created collection_id=%s expires_at=%s",
        collection.id,
        collection.share_expires_at,
    )
    return collection


async def revoke_share(db: AsyncSession, collection: Collection) -> bool:
    """
    Stop sharing a collection. Revoking an unshared collection is a no-op.

    Returns:
        True if a token was active before the call.
    """
    was_shared = collection.is_shared
    collection.slug = None
    collection.user_slug = None
    collection.share_token = None
    collection.share_expires_at = None
    await db.flush()
    return was_shared


async def resolve_share(db: AsyncSession, token: str, now: datetime) -> Collection:
    """
    Resolve a public share token to its collection, with photos and tags loaded.

    An expiry that has passed is reported separately from an unknown token;
    expiry is evaluated at read time and never changes the stored row.

    Raises:
        InvalidShareTokenError: Malformed token (checked before any query).
        NotFoundError: No collection has this token.
        ShareExpiredError: now is at or past the expiry.
    """
    if not is_valid_share_token(token):
        raise InvalidShareTokenError()

    result = await db.execute(
        select(Collection)
        .options(*collection_photo_options())
        .where(Collection.share_token == token.lower())
        .execution_options(populate_existing=True),
    )
    collection = result.scalar_one_or_none()
    if collection is None:
        raise NotFoundError("Collection")

    if collection.share_expires_at is not None and not now < collection.share_expires_at:
        raise ShareExpiredError()
    return collection
