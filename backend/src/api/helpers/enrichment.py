"""Join identity-store user data into photo listings."""
from collections.abc import Iterable
from uuid import UUID

from core.user_cache import UserCache
from models.photo import Photo
from schemas.photo import PhotoResponse
from schemas.user import UploaderResponse
from schemas.user_info import UserInfo

UNKNOWN_USER_NAME = "Unknown"


def display_name(users: dict[UUID, UserInfo], user_id: UUID) -> str:
    """Name for a user id, or "Unknown" when the identity store has no such user."""
    user = users.get(user_id)
    return user.name if user is not None else UNKNOWN_USER_NAME


def to_photo_response(photo: Photo, users: dict[UUID, UserInfo]) -> PhotoResponse:
    """Serialize a photo with its uploader attached (None when unknown)."""
    uploader = users.get(photo.uploaded_by_id)
    return PhotoResponse.model_validate(photo).model_copy(
        update={
            "uploader": UploaderResponse.model_validate(uploader) if uploader else None,
        },
    )


async def enrich_photos(cache: UserCache, photos: Iterable[Photo]) -> list[PhotoResponse]:
    """
    Serialize photos with uploaders resolved through the user cache.

    All uploader ids are resolved in one cache call. A user missing from the
    identity store yields ``uploader: null`` rather than an error.
    """
    photos = list(photos)
    users = await cache.get_users(photo.uploaded_by_id for photo in photos)
    return [to_photo_response(photo, users) for photo in photos]
