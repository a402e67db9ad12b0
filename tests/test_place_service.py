"""
Skenderaj Places Backend — Place Service Tests
===============================================

What:  PlaceService business rules against a real (SQLite) database.
How:   Each test gets fresh tables; FakeMediaHost records uploads/deletes.

What we test:
    ✅ Create derives the slug and returns the stored record
    ✅ Duplicate name / colliding slug rejected, first record untouched
    ✅ Partial update touches only the fields sent; slug follows name
    ✅ updated_at refreshed on every update, including an empty one
    ✅ Missing id behaves the same for get, update and delete
    ✅ Upload failure writes nothing; write or commit failure discards uploads
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import (
    DUPLICATE_NAME_MESSAGE,
    DUPLICATE_NAME_ON_UPDATE_MESSAGE,
    PLACE_NOT_FOUND_MESSAGE,
    DatabaseError,
    DuplicateNameError,
    DuplicateSlugError,
    MediaHostError,
    NotFoundError,
    ValidationError,
)
from app.models.place import Place
from app.schemas.place import PlaceCreate, PlaceUpdate
from app.services.image_service import ImageUpload
from app.services.place_service import PlaceService

LONG_AGO = datetime(2000, 1, 1, tzinfo=timezone.utc)


def png(name: str = "photo.png") -> ImageUpload:
    return ImageUpload(filename=name, content_type="image/png", content=b"\x89PNG-data")


class TestCreatePlace:

    def setup_method(self):
        self.service = PlaceService()

    @pytest.mark.asyncio
    async def test_create_derives_slug(self, db_session, place_data):
        created = await self.service.create_place(db_session, PlaceCreate(**place_data))
        await db_session.commit()

        assert created.id is not None
        assert created.slug == "kalaja-e-sk-nderajt"
        assert created.name == place_data["name"]
        assert created.latitude == pytest.approx(42.7467)
        assert created.images == []

        fetched = await self.service.get_place_by_slug(db_session, created.slug)
        assert fetched.id == created.id

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, db_session, place_data):
        first = await self.service.create_place(db_session, PlaceCreate(**place_data))
        await db_session.commit()

        place_data["description"] = "another description"
        with pytest.raises(DuplicateNameError) as exc_info:
            await self.service.create_place(db_session, PlaceCreate(**place_data))
        assert exc_info.value.message == DUPLICATE_NAME_MESSAGE

        places = await self.service.list_places(db_session)
        assert [p.id for p in places] == [first.id]
        assert places[0].description == "Fortesë mesjetare mbi kodër."

    @pytest.mark.asyncio
    async def test_colliding_slug_rejected(self, db_session, place_data):
        place_data["name"] = "Kalaja"
        await self.service.create_place(db_session, PlaceCreate(**place_data))
        await db_session.commit()

        place_data["name"] = "Kalaja!"
        with pytest.raises(DuplicateSlugError):
            await self.service.create_place(db_session, PlaceCreate(**place_data))

    @pytest.mark.asyncio
    async def test_name_without_letters_rejected(self, db_session, place_data):
        place_data["name"] = "!!!"
        with pytest.raises(ValidationError):
            await self.service.create_place(db_session, PlaceCreate(**place_data))

    @pytest.mark.asyncio
    async def test_image_url_required_without_upload(self, db_session, place_data):
        del place_data["image_url"]
        with pytest.raises(ValidationError, match="imageUrl"):
            await self.service.create_place(db_session, PlaceCreate(**place_data))

    @pytest.mark.asyncio
    async def test_uploads_fill_image_url_and_images(self, db_session, media, place_data):
        del place_data["image_url"]
        created = await self.service.create_place(
            db_session, PlaceCreate(**place_data), media, [png("a.png"), png("b.png"), png("c.png")]
        )
        assert created.image_url == "https://media.test/skenderaj-places/img1.png"
        assert created.images == [
            "https://media.test/skenderaj-places/img2.png",
            "https://media.test/skenderaj-places/img3.png",
        ]

    @pytest.mark.asyncio
    async def test_invalid_upload_rejected_before_upload(self, db_session, media, place_data):
        text_file = ImageUpload(filename="notes.txt", content_type="text/plain", content=b"hi")
        with pytest.raises(ValidationError, match="Only image files"):
            await self.service.create_place(
                db_session, PlaceCreate(**place_data), media, [png(), text_file]
            )
        assert media.upload_calls == 0
        assert await self.service.list_places(db_session) == []

    @pytest.mark.asyncio
    async def test_upload_failure_writes_nothing(self, db_session, failing_media, place_data):
        with pytest.raises(MediaHostError):
            await self.service.create_place(
                db_session, PlaceCreate(**place_data), failing_media, [png("a.png"), png("b.png")]
            )
        assert await self.service.list_places(db_session) == []
        # First image was uploaded, then discarded
        assert failing_media.deleted == ["skenderaj-places/img1"]

    @pytest.mark.asyncio
    async def test_write_failure_discards_uploads(self, db_session, media, place_data):
        await self.service.create_place(db_session, PlaceCreate(**place_data))
        await db_session.commit()

        with pytest.raises(DuplicateNameError):
            await self.service.create_place(
                db_session, PlaceCreate(**place_data), media, [png()]
            )
        assert media.deleted == ["skenderaj-places/img1"]
        assert media.stored == {}

    @pytest.mark.asyncio
    async def test_commit_failure_discards_uploads(
        self, db_session, media, place_data, monkeypatch
    ):
        async def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(db_session, "commit", broken_commit)

        with pytest.raises(DatabaseError):
            await self.service.create_place(
                db_session, PlaceCreate(**place_data), media, [png("a.png"), png("b.png")]
            )
        assert media.deleted == ["skenderaj-places/img1", "skenderaj-places/img2"]
        assert media.stored == {}
        monkeypatch.undo()
        assert await self.service.list_places(db_session) == []


class TestUpdatePlace:

    def setup_method(self):
        self.service = PlaceService()

    async def _create(self, db_session, data):
        created = await self.service.create_place(db_session, PlaceCreate(**data))
        place = await db_session.get(Place, created.id)
        place.updated_at = LONG_AGO
        await db_session.commit()
        return created

    @pytest.mark.asyncio
    async def test_partial_update_touches_only_sent_fields(self, db_session, place_data):
        created = await self._create(db_session, place_data)

        updated = await self.service.update_place(
            db_session, created.id, PlaceUpdate(description="Përshkrim i ri")
        )
        await db_session.commit()

        assert updated.description == "Përshkrim i ri"
        assert updated.name == created.name
        assert updated.slug == created.slug
        assert updated.location == created.location
        assert updated.historical_significance == created.historical_significance
        assert updated.image_url == created.image_url
        assert updated.latitude == pytest.approx(created.latitude)
        assert updated.longitude == pytest.approx(created.longitude)
        assert updated.updated_at.replace(tzinfo=None) > LONG_AGO.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_empty_update_refreshes_updated_at(self, db_session, place_data):
        created = await self._create(db_session, place_data)

        updated = await self.service.update_place(db_session, created.id, PlaceUpdate())

        assert updated.name == created.name
        assert updated.updated_at.replace(tzinfo=None) > LONG_AGO.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_rename_recomputes_slug(self, db_session, place_data):
        created = await self._create(db_session, place_data)

        updated = await self.service.update_place(
            db_session, created.id, PlaceUpdate(name="Ura e Gurit")
        )
        assert updated.slug == "ura-e-gurit"

    @pytest.mark.asyncio
    async def test_coordinates_can_be_cleared(self, db_session, place_data):
        created = await self._create(db_session, place_data)

        updated = await self.service.update_place(
            db_session, created.id, PlaceUpdate.model_validate({"latitude": None})
        )
        assert updated.latitude is None
        assert updated.longitude == pytest.approx(created.longitude)

    @pytest.mark.asyncio
    async def test_rename_to_existing_name_rejected(self, db_session, place_data):
        first = await self._create(db_session, place_data)
        place_data["name"] = "Ura e Gurit"
        second = await self._create(db_session, place_data)

        with pytest.raises(DuplicateNameError) as exc_info:
            await self.service.update_place(
                db_session, second.id, PlaceUpdate(name=first.name, description="changed")
            )
        assert exc_info.value.message == DUPLICATE_NAME_ON_UPDATE_MESSAGE

        unchanged = await self.service.get_place(db_session, second.id)
        assert unchanged.name == "Ura e Gurit"
        assert unchanged.description == place_data["description"]

    @pytest.mark.asyncio
    async def test_keeping_own_name_is_not_a_duplicate(self, db_session, place_data):
        created = await self._create(db_session, place_data)

        updated = await self.service.update_place(
            db_session, created.id, PlaceUpdate(name=created.name)
        )
        assert updated.slug == created.slug

    @pytest.mark.asyncio
    async def test_uploaded_image_overrides_image_url(self, db_session, media, place_data):
        created = await self._create(db_session, place_data)

        updated = await self.service.update_place(
            db_session,
            created.id,
            PlaceUpdate(image_url="https://elsewhere/x.png"),
            media,
            [png()],
        )
        assert updated.image_url == "https://media.test/skenderaj-places/img1.png"
        assert updated.images == created.images

    @pytest.mark.asyncio
    async def test_commit_failure_discards_uploads(
        self, db_session, media, place_data, monkeypatch
    ):
        created = await self._create(db_session, place_data)

        async def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(db_session, "commit", broken_commit)

        with pytest.raises(DatabaseError):
            await self.service.update_place(
                db_session, created.id, PlaceUpdate(description="x"), media, [png()]
            )
        assert media.deleted == ["skenderaj-places/img1"]
        monkeypatch.undo()
        assert (await self.service.get_place(db_session, created.id)).image_url == created.image_url


class TestMissingPlace:

    def setup_method(self):
        self.service = PlaceService()

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_place(db_session, 9999)
        assert exc_info.value.message == PLACE_NOT_FOUND_MESSAGE

    @pytest.mark.asyncio
    async def test_get_missing_slug(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_place_by_slug(db_session, "nowhere")

    @pytest.mark.asyncio
    async def test_update_missing_uploads_nothing(self, db_session, media):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_place(
                db_session, 9999, PlaceUpdate(name="x"), media, [png()]
            )
        assert exc_info.value.message == PLACE_NOT_FOUND_MESSAGE
        assert media.upload_calls == 0

    @pytest.mark.asyncio
    async def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.delete_place(db_session, 9999)
        assert exc_info.value.message == PLACE_NOT_FOUND_MESSAGE

    @pytest.mark.asyncio
    async def test_delete_then_get(self, db_session, place_data):
        created = await self.service.create_place(db_session, PlaceCreate(**place_data))
        await db_session.commit()

        await self.service.delete_place(db_session, created.id)
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await self.service.get_place(db_session, created.id)


class TestListPlaces:

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, place_data):
        service = PlaceService()
        ids = []
        for name in ("Kalaja", "Ura e Gurit", "Kulla"):
            place_data["name"] = name
            created = await service.create_place(db_session, PlaceCreate(**place_data))
            ids.append(created.id)
        await db_session.commit()

        places = await service.list_places(db_session)
        assert [p.id for p in places] == list(reversed(ids))
