"""
Skenderaj Places Backend — Abstract Media Host Interface
=========================================================

What:  Contract for the third-party service that stores image bytes.
Why:   PlaceService and the upload routes only need "bytes in, durable URL
       out". Keeping that behind an interface lets tests inject an
       in-memory host and leaves room for another provider (S3, etc.).
How:   Concrete implementations inherit from MediaHost.

Implementations:
    - CloudinaryService: official Cloudinary SDK (default)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UploadedMedia:
    """A stored image: its public URL and the host's identifier for it."""
    url: str
    public_id: str


class MediaHost(ABC):
    """
    Abstract interface for image storage.

    Contract:
        - upload() returns a durable URL and an id usable with delete()
        - Implementations handle their own retry policy
        - All provider-specific errors are wrapped in MediaHostError
    """

    @abstractmethod
    async def upload(self, content: bytes, mime_type: str) -> UploadedMedia:
        """
        Store image bytes on the media host.

        Args:
            content:   Raw image bytes (already validated for type and size)
            mime_type: Declared MIME type, e.g. "image/png"

        Raises:
            MediaHostError: the host rejected the upload or was unreachable
        """
        ...

    @abstractmethod
    async def delete(self, public_id: str) -> bool:
        """
        Remove a previously uploaded image.

        Returns:
            True if the host confirmed the deletion, False if it declined
            (e.g. unknown id).

        Raises:
            MediaHostError: the host was unreachable or returned an error
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the host is configured and reachable."""
        ...
