"""
Skenderaj Places Backend — Image Upload Service
================================================

What:  Validates uploaded image files and hands them to the media host.
Why:   Centralizes the upload rules so the standalone upload endpoint and
       the place create/update variants reject the same files.
Who:   Called by PlaceService and by the /upload routes.

Validation Rules (checked before any store or media host interaction):
    1. Declared content type must be image/*
    2. File must not be empty
    3. File must not exceed settings.max_file_size (5MB by default)

Reading:
    read() pulls at most max_file_size + 1 bytes from a multipart part, so an
    oversized upload is rejected without being loaded into memory.

Upload Lifecycle (several files):
    validate all → upload in order → on failure, discard the ones already
    uploaded and re-raise. A request never leaves half its images behind.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from starlette.datastructures import UploadFile

from app.config import settings
from app.exceptions import MediaHostError, ValidationError
from app.services.media_base import MediaHost, UploadedMedia

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded file read into memory (bounded by max_file_size)."""
    filename: str
    content_type: str
    content: bytes


def too_large(filename: str, size: Optional[int]) -> ValidationError:
    max_mb = settings.max_file_size / (1024 * 1024)
    if size is None:
        message = f"File size exceeds maximum of {max_mb:.0f}MB."
    else:
        message = f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB."
    return ValidationError(
        message=message,
        field="image",
        context={"filename": filename, "actual_size": size, "max_size_mb": max_mb},
    )


class ImageService:
    """Stateless upload validation and media host orchestration."""

    def validate(self, upload: ImageUpload) -> None:
        """
        Raises:
            ValidationError: non-image content type, empty or oversized file
        """
        content_type = (upload.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise ValidationError(
                message="Only image files are allowed!",
                field="image",
                context={"filename": upload.filename, "content_type": content_type},
            )

        size = len(upload.content)
        if size == 0:
            raise ValidationError(
                message="Uploaded image is empty",
                field="image",
                context={"filename": upload.filename},
            )

        if size > settings.max_file_size:
            raise too_large(upload.filename, size)

    async def read(self, file: UploadFile, filename: Optional[str] = None) -> ImageUpload:
        """
        Read an uploaded file into memory, never more than max_file_size + 1 bytes.

        A part whose declared size is already over the limit is rejected
        without reading it at all. Otherwise one extra byte is enough to tell
        that the part is too large.

        Raises:
            ValidationError: the part exceeds settings.max_file_size
        """
        name = file.filename or filename or "image"
        limit = settings.max_file_size
        try:
            if file.size is not None and file.size > limit:
                raise too_large(name, file.size)
            content = await file.read(limit + 1)
        finally:
            await file.close()

        if len(content) > limit:
            raise too_large(name, file.size)
        return ImageUpload(filename=name, content_type=file.content_type or "", content=content)

    async def upload(self, media: MediaHost, upload: ImageUpload) -> UploadedMedia:
        self.validate(upload)
        uploaded = await media.upload(upload.content, upload.content_type)
        logger.info("Uploaded %s (%d bytes) as %s", upload.filename, len(upload.content), uploaded.public_id)
        return uploaded

    async def upload_many(
        self, media: MediaHost, uploads: Sequence[ImageUpload]
    ) -> List[UploadedMedia]:
        """
        Validate every file, then upload them in order.

        Returns:
            UploadedMedia per file, in the same order as `uploads`.
        """
        for upload in uploads:
            self.validate(upload)

        uploaded: List[UploadedMedia] = []
        try:
            for upload in uploads:
                uploaded.append(await media.upload(upload.content, upload.content_type))
        except Exception:
            await self.discard(media, uploaded)
            raise
        return uploaded

    async def discard(self, media: MediaHost, uploaded: Iterable[UploadedMedia]) -> None:
        """
        Best-effort deletion of media whose record was never written.

        Failures are logged, not raised: the caller is already handling
        the error that made the media orphaned.
        """
        for item in uploaded:
            try:
                deleted = await media.delete(item.public_id)
            except MediaHostError as e:
                logger.warning("Could not discard orphaned image %s: %s", item.public_id, e.message)
                continue
            if not deleted:
                logger.warning("Media host kept orphaned image %s", item.public_id)
            else:
                logger.info("Discarded orphaned image %s", item.public_id)


# ── Singleton Instance ────────────────────────────────────────────────────
image_service = ImageService()
