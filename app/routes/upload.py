"""
Skenderaj Places Backend — Standalone Image Upload Routes
==========================================================

What:  POST /upload/image stores one image on the media host and returns its
       URL; DELETE /upload/image/{public_id} removes one.
Why:   Lets the admin frontend upload an image first and send the URL in a
       plain JSON create/update afterwards.

Public ids contain the folder ("skenderaj-places/abc123"), so the delete
route captures the rest of the path.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from app.exceptions import ValidationError
from app.schemas.place import ErrorResponse, MessageResponse, UploadResponse
from app.services.cloudinary_service import get_media_host
from app.services.image_service import image_service
from app.services.media_base import MediaHost

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"])


@router.post(
    "/image",
    response_model=UploadResponse,
    responses={
        400: {"description": "Missing, non-image or oversized file", "model": ErrorResponse},
        500: {"description": "Media host failure", "model": ErrorResponse},
    },
    summary="Upload a standalone image",
)
async def upload_image(
    image: Optional[UploadFile] = File(default=None, description="Image file (max 5MB)"),
    media: MediaHost = Depends(get_media_host),
) -> UploadResponse:
    if image is None:
        raise ValidationError(message="No image file provided", field="image")

    uploaded = await image_service.upload(media, await image_service.read(image))
    return UploadResponse(image_url=uploaded.url, public_id=uploaded.public_id)


@router.delete(
    "/image/{public_id:path}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Media host declined the deletion", "model": ErrorResponse},
        500: {"description": "Media host failure", "model": ErrorResponse},
    },
    summary="Delete a previously uploaded image",
)
async def delete_image(
    public_id: str,
    media: MediaHost = Depends(get_media_host),
) -> MessageResponse:
    if not await media.delete(public_id):
        raise ValidationError(
            message="Error deleting image",
            context={"public_id": public_id},
        )
    return MessageResponse()
