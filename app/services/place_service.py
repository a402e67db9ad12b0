"""
Skenderaj Places Backend — Place Service (Business Logic)
==========================================================

What:  CRUD for place records, including the image-upload variants.
Why:   Keeps uniqueness rules, slug derivation, partial updates and
       upload compensation out of the HTTP layer.
Who:   Called by the /places route handlers.

Write Flow (create / update):
    ┌────────────┐   ┌──────────────┐   ┌──────────────┐   ┌───────────┐
    │  Validate  │──▶│ Upload to    │──▶│ Constrained  │──▶│ Response  │
    │  uploads   │   │ media host   │   │ commit (DB)  │   │ (entity)  │
    └────────────┘   └──────────────┘   └──────────────┘   └───────────┘

    Validation fails  → 400, nothing uploaded, nothing written
    Upload fails      → 500, nothing written
    Commit fails      → uploaded images are discarded, error propagates

Uniqueness:
    name and slug carry UNIQUE constraints. The write is attempted directly
    and an IntegrityError is translated into DuplicateNameError or
    DuplicateSlugError. There is no separate check-then-write step, so two
    racing requests cannot both insert the same name.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseError,
    DuplicateNameError,
    DuplicateSlugError,
    NotFoundError,
    PlacesError,
    ValidationError,
)
from app.models.place import Place, utcnow
from app.schemas.place import PlaceCreate, PlaceResponse, PlaceUpdate
from app.services.image_service import ImageUpload, image_service
from app.services.media_base import MediaHost, UploadedMedia
from app.services.slug import slugify

logger = logging.getLogger(__name__)

# Request fields that PATCH may overwrite, in column order. slug, id and the
# timestamps are absent: they are derived or server-owned.
UPDATABLE_FIELDS = (
    "name",
    "description",
    "location",
    "historical_significance",
    "image_url",
    "images",
    "latitude",
    "longitude",
)


def _slug_for(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationError(
            message="Name must contain at least one letter or digit",
            field="name",
            context={"name": name},
        )
    return slug


class PlaceService:
    """
    Stateless service; every method receives the request's session.

    Error Handling Strategy:
        Domain errors (NotFoundError, ValidationError subclasses,
        MediaHostError) propagate as-is. Unexpected SQLAlchemy errors are
        wrapped in DatabaseError so driver details never reach the client.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_places(self, db: AsyncSession) -> List[PlaceResponse]:
        """All places, newest first (id breaks ties between equal timestamps)."""
        try:
            result = await db.execute(
                select(Place).order_by(desc(Place.created_at), desc(Place.id))
            )
            places = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing places: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve places. Please try again.")

        return [PlaceResponse.model_validate(place) for place in places]

    async def get_place(self, db: AsyncSession, place_id: int) -> PlaceResponse:
        place = await self._load(db, Place.id == place_id, str(place_id))
        return PlaceResponse.model_validate(place)

    async def get_place_by_slug(self, db: AsyncSession, slug: str) -> PlaceResponse:
        place = await self._load(db, Place.slug == slug, slug)
        return PlaceResponse.model_validate(place)

    async def _load(self, db: AsyncSession, condition, key: str) -> Place:
        try:
            result = await db.execute(select(Place).where(condition))
            place = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching place %s: %s", key, e)
            raise DatabaseError(
                message="Could not retrieve the place. Please try again.",
                context={"key": key},
            )

        if place is None:
            raise NotFoundError(resource="place", resource_id=key)
        return place

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_place(
        self,
        db: AsyncSession,
        data: PlaceCreate,
        media: Optional[MediaHost] = None,
        uploads: Sequence[ImageUpload] = (),
    ) -> PlaceResponse:
        """
        Create a place, optionally uploading its images first.

        With uploads, the first file's URL replaces imageUrl and any further
        files replace images.

        Raises:
            ValidationError: bad upload, no image URL, empty slug
            DuplicateNameError / DuplicateSlugError: name already taken
            MediaHostError: upload failed (nothing written)
            DatabaseError: unexpected store failure
        """
        for upload in uploads:
            image_service.validate(upload)
        if not uploads and not data.image_url:
            raise ValidationError(message="imageUrl is required", field="imageUrl")

        fields = data.model_dump()
        fields["slug"] = _slug_for(data.name)

        uploaded = await self._upload(media, uploads)
        self._apply_uploaded(fields, uploaded)

        place = Place(**fields)
        db.add(place)
        try:
            await self._commit(db, name=place.name, slug=place.slug, on_update=False)
        except Exception:
            await self._discard(media, uploaded)
            raise

        logger.info("Place created: id=%s slug=%s", place.id, place.slug)
        return PlaceResponse.model_validate(place)

    async def update_place(
        self,
        db: AsyncSession,
        place_id: int,
        data: PlaceUpdate,
        media: Optional[MediaHost] = None,
        uploads: Sequence[ImageUpload] = (),
    ) -> PlaceResponse:
        """
        Apply a sparse update to an existing place.

        Only fields present in `data` are written. A new name brings a new
        slug. updated_at is refreshed even when no field changes. An uploaded
        image overrides a textual imageUrl sent in the same request.

        Raises:
            NotFoundError: no place with this id (nothing uploaded)
            ValidationError / DuplicateNameError / DuplicateSlugError
            MediaHostError, DatabaseError
        """
        for upload in uploads:
            image_service.validate(upload)

        place = await self._load(db, Place.id == place_id, str(place_id))

        changes = data.changes()
        new_slug = _slug_for(changes["name"]) if "name" in changes else None

        uploaded = await self._upload(media, uploads)
        self._apply_uploaded(changes, uploaded)

        for field in UPDATABLE_FIELDS:
            if field in changes:
                setattr(place, field, changes[field])
        if new_slug is not None:
            place.slug = new_slug
        place.updated_at = utcnow()

        try:
            await self._commit(
                db, name=place.name, slug=place.slug, on_update=True, exclude_id=place_id
            )
        except Exception:
            await self._discard(media, uploaded)
            raise

        logger.info("Place %s updated: %s", place_id, ", ".join(sorted(changes)) or "no fields")
        return PlaceResponse.model_validate(place)

    async def delete_place(self, db: AsyncSession, place_id: int) -> None:
        """
        Remove a place by id. Its uploaded media is left on the media host.

        Raises:
            NotFoundError: no row matched
        """
        try:
            result = await db.execute(delete(Place).where(Place.id == place_id))
            if result.rowcount == 0:
                raise NotFoundError(resource="place", resource_id=str(place_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting place %s: %s", place_id, e)
            raise DatabaseError(
                message="Could not delete the place. Please try again.",
                context={"place_id": place_id},
            )

        logger.info("Place %s deleted", place_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _upload(
        self, media: Optional[MediaHost], uploads: Sequence[ImageUpload]
    ) -> List[UploadedMedia]:
        if not uploads:
            return []
        if media is None:
            raise PlacesError(message="No media host available for image upload")
        return await image_service.upload_many(media, uploads)

    async def _discard(self, media: Optional[MediaHost], uploaded: List[UploadedMedia]) -> None:
        if media is not None and uploaded:
            logger.warning("Write failed after upload; discarding %d image(s)", len(uploaded))
            await image_service.discard(media, uploaded)

    @staticmethod
    def _apply_uploaded(fields: dict, uploaded: List[UploadedMedia]) -> None:
        if not uploaded:
            return
        fields["image_url"] = uploaded[0].url
        if len(uploaded) > 1:
            fields["images"] = [item.url for item in uploaded[1:]]

    async def _commit(
        self,
        db: AsyncSession,
        name: str,
        slug: str,
        on_update: bool,
        exclude_id: Optional[int] = None,
    ) -> None:
        """
        Flush and commit pending changes, translating constraint violations.

        The commit happens here rather than in get_db_session so that a
        failure at commit time still reaches the caller's upload
        compensation. name/slug are passed in because a rollback expires
        the ORM object.
        """
        try:
            await db.flush()
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise await self._constraint_error(db, name, slug, on_update, exclude_id) from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error writing place %s: %s", name, e, exc_info=True)
            raise DatabaseError(
                message="Could not save the place. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def _constraint_error(
        self,
        db: AsyncSession,
        name: str,
        slug: str,
        on_update: bool,
        exclude_id: Optional[int],
    ) -> PlacesError:
        """Work out which uniqueness rule the failed write broke."""
        others = select(Place.id)
        if exclude_id is not None:
            others = others.where(Place.id != exclude_id)

        try:
            if (await db.execute(others.where(Place.name == name))).first() is not None:
                return DuplicateNameError(name, on_update=on_update)
            if (await db.execute(others.where(Place.slug == slug))).first() is not None:
                return DuplicateSlugError(slug)
        except SQLAlchemyError as e:
            logger.error("Database error inspecting constraint violation: %s", e)

        logger.error("Unexpected integrity error writing place %s", name)
        return DatabaseError(message="Could not save the place. Please try again.")


# ── Singleton Instance ────────────────────────────────────────────────────
place_service = PlaceService()
