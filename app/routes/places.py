"""
Skenderaj Places Backend — Places Route Handlers
=================================================

What:  REST endpoints for place records.
How:   Handlers parse the request (JSON or multipart), delegate to
       PlaceService and return the entity. Errors are raised as domain
       exceptions and formatted by the global handlers in main.py.

Endpoints:
    GET    /places                               list, newest first
    GET    /places/{id}                          one place or 404
    GET    /places/slug/{slug}                   one place or 404
    POST   /places                               create (JSON)
    POST   /places/with-image                    create, multipart `image`
    POST   /places/with-multiple-images          create, any file fields
    PATCH  /places/{id}                          sparse update (JSON)
    PATCH  /places/{id}/with-image               sparse update + `image`
    PATCH  /places/{id}/with-multiple-images     sparse update + files
    DELETE /places/{id}                          remove

Multipart variants:
    Text fields carry the same names as the JSON body (camelCase).
    `images` may be a JSON list, a single URL string, or one URL per
    repeated `images` field.
    With several files, the first becomes imageUrl, the rest become images.
"""

import logging
from typing import Any, Dict, List, Tuple, Type, TypeVar

import pydantic
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.database import get_db_session
from app.exceptions import ValidationError, describe_validation_errors
from app.schemas.place import (
    ErrorResponse,
    MessageResponse,
    PlaceCreate,
    PlaceResponse,
    PlaceUpdate,
)
from app.services.cloudinary_service import get_media_host
from app.services.image_service import ImageUpload, image_service
from app.services.media_base import MediaHost
from app.services.place_service import place_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/places", tags=["Places"])

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

IMAGE_FIELD = "image"
IMAGES_FIELD = "images"

COMMON_ERRORS = {
    400: {"description": "Validation failure or duplicate name", "model": ErrorResponse},
    500: {"description": "Database or media host failure", "model": ErrorResponse},
}
NOT_FOUND = {404: {"description": "Place not found", "model": ErrorResponse}}


# ── Multipart Helpers ─────────────────────────────────────────────────────

async def read_multipart(request: Request) -> Tuple[Dict[str, Any], List[Tuple[str, ImageUpload]]]:
    """
    Split a multipart form into text fields and uploaded files.

    A text field sent more than once is kept as a list when it is `images`
    (one URL per part) and rejected otherwise. Files are read through
    ImageService.read, which stops at the size limit.

    Returns:
        (fields, files) where files keeps (field_name, ImageUpload) in
        submission order.

    Raises:
        ValidationError: repeated scalar field or oversized file (400)
    """
    form = await request.form()
    texts: Dict[str, List[str]] = {}
    files: List[Tuple[str, ImageUpload]] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            upload = await image_service.read(value, filename=key)
            if not value.filename and not upload.content:
                continue  # empty file input submitted by a browser form
            files.append((key, upload))
        else:
            texts.setdefault(key, []).append(value)

    fields: Dict[str, Any] = {}
    for key, values in texts.items():
        if len(values) == 1:
            fields[key] = values[0]
        elif key == IMAGES_FIELD:
            fields[key] = values
        else:
            raise ValidationError(
                message=f"Field '{key}' was sent more than once",
                field=key,
                context={"count": len(values)},
            )
    return fields, files


def parse_fields(model: Type[ModelT], fields: Dict[str, Any]) -> ModelT:
    """Validate multipart text fields with the same schema as the JSON body."""
    try:
        return model.model_validate(fields)
    except pydantic.ValidationError as e:
        raise ValidationError(
            message=describe_validation_errors(e.errors()),
            context={"errors": len(e.errors())},
        )


def image_field_uploads(files: List[Tuple[str, ImageUpload]]) -> List[ImageUpload]:
    """The single `image` file of a with-image request (extra files are ignored)."""
    return [upload for name, upload in files if name == IMAGE_FIELD][:1]


# ── Reads ─────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=List[PlaceResponse],
    summary="List all places, newest first",
)
async def list_places(db: AsyncSession = Depends(get_db_session)) -> List[PlaceResponse]:
    return await place_service.list_places(db)


@router.get(
    "/slug/{slug}",
    response_model=PlaceResponse,
    responses=NOT_FOUND,
    summary="Get a place by its slug",
)
async def get_place_by_slug(slug: str, db: AsyncSession = Depends(get_db_session)) -> PlaceResponse:
    return await place_service.get_place_by_slug(db, slug)


@router.get(
    "/{place_id}",
    response_model=PlaceResponse,
    responses=NOT_FOUND,
    summary="Get a place by id",
)
async def get_place(place_id: int, db: AsyncSession = Depends(get_db_session)) -> PlaceResponse:
    return await place_service.get_place(db, place_id)


# ── Create ────────────────────────────────────────────────────────────────

@router.post(
    "",
    status_code=201,
    response_model=PlaceResponse,
    responses=COMMON_ERRORS,
    summary="Create a place from a JSON body",
)
async def create_place(
    payload: PlaceCreate,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceResponse:
    return await place_service.create_place(db, payload)


@router.post(
    "/with-image",
    status_code=201,
    response_model=PlaceResponse,
    responses=COMMON_ERRORS,
    summary="Create a place and upload its primary image",
    description=(
        "Multipart form: an `image` file plus the place fields. The uploaded "
        "image's URL becomes imageUrl. Without a file, imageUrl must be sent."
    ),
)
async def create_place_with_image(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    media: MediaHost = Depends(get_media_host),
) -> PlaceResponse:
    fields, files = await read_multipart(request)
    payload = parse_fields(PlaceCreate, fields)
    return await place_service.create_place(db, payload, media, image_field_uploads(files))


@router.post(
    "/with-multiple-images",
    status_code=201,
    response_model=PlaceResponse,
    responses=COMMON_ERRORS,
    summary="Create a place and upload several images",
    description="Any file fields are accepted; the first file becomes imageUrl, the rest become images.",
)
async def create_place_with_multiple_images(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    media: MediaHost = Depends(get_media_host),
) -> PlaceResponse:
    fields, files = await read_multipart(request)
    payload = parse_fields(PlaceCreate, fields)
    uploads = [upload for _, upload in files]
    return await place_service.create_place(db, payload, media, uploads)


# ── Update ────────────────────────────────────────────────────────────────

@router.patch(
    "/{place_id}",
    response_model=PlaceResponse,
    responses={**COMMON_ERRORS, **NOT_FOUND},
    summary="Partially update a place",
)
async def update_place(
    place_id: int,
    payload: PlaceUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceResponse:
    return await place_service.update_place(db, place_id, payload)


@router.patch(
    "/{place_id}/with-image",
    response_model=PlaceResponse,
    responses={**COMMON_ERRORS, **NOT_FOUND},
    summary="Partially update a place and replace its primary image",
)
async def update_place_with_image(
    place_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    media: MediaHost = Depends(get_media_host),
) -> PlaceResponse:
    fields, files = await read_multipart(request)
    payload = parse_fields(PlaceUpdate, fields)
    return await place_service.update_place(
        db, place_id, payload, media, image_field_uploads(files)
    )


@router.patch(
    "/{place_id}/with-multiple-images",
    response_model=PlaceResponse,
    responses={**COMMON_ERRORS, **NOT_FOUND},
    summary="Partially update a place and replace its images",
)
async def update_place_with_multiple_images(
    place_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    media: MediaHost = Depends(get_media_host),
) -> PlaceResponse:
    fields, files = await read_multipart(request)
    payload = parse_fields(PlaceUpdate, fields)
    uploads = [upload for _, upload in files]
    return await place_service.update_place(db, place_id, payload, media, uploads)


# ── Delete ────────────────────────────────────────────────────────────────

@router.delete(
    "/{place_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Delete a place",
    description="Removes the record only; its images stay on the media host.",
)
async def delete_place(place_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await place_service.delete_place(db, place_id)
    return MessageResponse()
