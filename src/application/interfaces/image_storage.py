from abc import ABC, abstractmethod


class ImageStorageError(Exception):
    """Upload or delete against object storage failed."""


class ImageStorage(ABC):
    """Port for listing images held in object storage. URLs are opaque to callers."""

    @abstractmethod
    async def upload(self, data: bytes, owner_id: str, content_type: str = "image/jpeg") -> str:
        """Store ``data`` under the owner's namespace and return its public URL."""
        ...

    @abstractmethod
    async def delete(self, public_url: str, owner_id: str) -> None:
        ...
