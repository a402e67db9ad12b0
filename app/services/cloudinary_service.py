"""
Skenderaj Places Backend — Cloudinary Media Host
=================================================

What:  MediaHost implementation backed by the official Cloudinary SDK.
How:   cloudinary.uploader / cloudinary.api are blocking (urllib3), so every
       call runs in a worker thread via anyio.to_thread.run_sync. The event loop
       keeps serving other requests while an upload is in flight.
Who:   The singleton `media_host` is injected into routes via get_media_host().

Credentials are passed on every call instead of through the global
cloudinary.config(), so several CloudinaryService instances (tests, other
accounts) never share state.

Resilience Strategy:
    - Transport failures (connection refused, reset, timeout) are retried
      by tenacity with exponential backoff and jitter. The SDK re-raises them
      as cloudinary.exceptions.Error, chained to the urllib3/socket error.
    - Errors Cloudinary answered with (bad signature, unknown image) are
      NOT retried
    - Any final failure becomes MediaHostError (500, generic message)
"""

import base64
import logging
from functools import partial
from typing import Any, Dict, Optional

import anyio
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from urllib3.exceptions import HTTPError as Urllib3Error

from app.config import settings
from app.exceptions import MediaHostError
from app.services.media_base import MediaHost, UploadedMedia

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (Urllib3Error, OSError)


def is_transport_error(error: BaseException) -> bool:
    """True for network failures, whether raised directly or wrapped by the SDK."""
    if isinstance(error, TRANSPORT_ERRORS):
        return True
    cause = error.__cause__ or error.__context__
    return isinstance(error, CloudinaryError) and isinstance(cause, TRANSPORT_ERRORS)


def backoff():
    """Exponential wait from retry_min_wait up to retry_max_wait, plus jitter."""
    return (
        wait_exponential(multiplier=settings.retry_min_wait, max=settings.retry_max_wait)
        + wait_random(0, settings.retry_min_wait)
    )


transport_retry = retry(
    retry=retry_if_exception(is_transport_error),
    stop=stop_after_attempt(settings.retry_max_attempts),
    wait=backoff(),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def data_uri(content: bytes, mime_type: str) -> str:
    """Inline upload payload accepted by cloudinary.uploader.upload."""
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


class CloudinaryService(MediaHost):
    """
    Cloudinary client for image upload and deletion.

    Every argument defaults to the matching CLOUDINARY_* setting.
    """

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        folder: Optional[str] = None,
        transformation: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else settings.cloudinary_cloud_name
        self.api_key = api_key if api_key is not None else settings.cloudinary_api_key
        self.api_secret = api_secret if api_secret is not None else settings.cloudinary_api_secret
        self.folder = folder if folder is not None else settings.cloudinary_folder
        self.transformation = transformation or settings.cloudinary_transformation
        self.timeout = timeout or settings.media_timeout

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def _options(self, **extra: Any) -> Dict[str, Any]:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "timeout": self.timeout,
            **extra,
        }

    def _require_configuration(self) -> None:
        if not self.configured:
            raise MediaHostError(
                message="Image storage is not configured",
                context={"cloud_name": self.cloud_name},
            )

    @transport_retry
    async def _upload(self, payload: str) -> Dict[str, Any]:
        fn = partial(
            cloudinary.uploader.upload,
            payload,
            **self._options(
                folder=self.folder,
                raw_transformation=self.transformation,
                resource_type="image",
            ),
        )
        return await anyio.to_thread.run_sync(fn)

    @transport_retry
    async def _destroy(self, public_id: str) -> Dict[str, Any]:
        fn = partial(cloudinary.uploader.destroy, public_id, **self._options(resource_type="image"))
        return await anyio.to_thread.run_sync(fn)

    async def upload(self, content: bytes, mime_type: str) -> UploadedMedia:
        self._require_configuration()

        try:
            body = await self._upload(data_uri(content, mime_type))
        except (CloudinaryError, *TRANSPORT_ERRORS) as e:
            logger.error("Cloudinary upload failed (%d bytes, %s): %s", len(content), mime_type, e)
            raise MediaHostError(
                message="Error uploading image",
                context={"error_type": type(e).__name__},
            ) from e

        try:
            uploaded = UploadedMedia(url=body["secure_url"], public_id=body["public_id"])
        except (KeyError, TypeError) as e:
            logger.error("Cloudinary upload returned an unexpected body: %s", body)
            raise MediaHostError(message="Error uploading image") from e

        logger.info("Image uploaded to Cloudinary: %s", uploaded.public_id)
        return uploaded

    async def delete(self, public_id: str) -> bool:
        self._require_configuration()

        try:
            body = await self._destroy(public_id)
        except (CloudinaryError, *TRANSPORT_ERRORS) as e:
            logger.error("Cloudinary destroy failed for %s: %s", public_id, e)
            raise MediaHostError(
                message="Error deleting image",
                context={"public_id": public_id, "error_type": type(e).__name__},
            ) from e

        deleted = isinstance(body, dict) and body.get("result") == "ok"
        if deleted:
            logger.info("Image deleted from Cloudinary: %s", public_id)
        else:
            logger.warning("Cloudinary declined to delete %s: %s", public_id, body)
        return deleted

    async def health_check(self) -> bool:
        """Pings the Cloudinary Admin API; each call counts against its rate limit."""
        if not self.configured:
            return False
        try:
            body = await anyio.to_thread.run_sync(partial(cloudinary.api.ping, **self._options()))
        except (CloudinaryError, *TRANSPORT_ERRORS) as e:
            logger.warning("Cloudinary health check failed: %s", e)
            return False
        return body.get("status") == "ok"


# ── Singleton Instance ────────────────────────────────────────────────────
media_host = CloudinaryService()


def get_media_host() -> MediaHost:
    """FastAPI dependency returning the process-wide media host."""
    return media_host
