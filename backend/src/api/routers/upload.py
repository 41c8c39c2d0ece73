"""Direct-to-storage upload endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import ObjectStorage, SessionUser, get_current_user, get_settings, get_storage
from core.config import Settings
from schemas.photo import SignedUploadRequest, SignedUploadResponse
from services import photo_service

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/signed-url", response_model=SignedUploadResponse)
async def create_signed_upload_url(
    data: SignedUploadRequest,
    _current_user: SessionUser = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> SignedUploadResponse:
    """
    Issue a signed URL the client uses to PUT a file straight into storage.

    Only image and video types are accepted (400 otherwise). After the
    upload, register the file with POST /photos using the returned
    storage_path.
    """
    if not photo_service.is_accepted_mime_type(data.content_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only images and videos are allowed.",
        )

    storage_path, filename = photo_service.build_storage_path(data.original_filename)
    ttl = settings.upload_url_ttl_seconds
    signed_url = await storage.issue_upload_url(storage_path, data.content_type, ttl)
    return SignedUploadResponse(
        signed_url=signed_url,
        storage_path=storage_path,
        filename=filename,
        expires_in=ttl,
    )
