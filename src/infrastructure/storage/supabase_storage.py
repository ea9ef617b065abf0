"""HTTP client for the object-storage bucket holding listing images."""
import time
from uuid import uuid4

import httpx
import structlog

from src.application.interfaces.image_storage import ImageStorage, ImageStorageError
from src.config import settings

logger = structlog.get_logger(__name__)

_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


def object_path(owner_id: str, public_url: str) -> str | None:
    """Owner-namespaced object key for a public URL, or None if the URL has no file name."""
    name = public_url.rstrip("/").rsplit("/", 1)[-1]
    if not name or name == public_url:
        return None
    return f"{owner_id}/{name}"


class SupabaseImageStorage(ImageStorage):
    """Thin wrapper around a Supabase Storage compatible REST API."""

    def __init__(
        self,
        base_url: str = settings.storage_url,
        api_key: str = settings.storage_api_key,
        bucket: str = settings.storage_bucket,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "apikey": api_key,
        }

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/{path}"

    async def upload(self, data: bytes, owner_id: str, content_type: str = "image/jpeg") -> str:
        """
        POST /storage/v1/object/{bucket}/{owner}/{name} → public URL of the stored object
        """
        extension = _EXTENSIONS.get(content_type, "jpg")
        path = f"{owner_id}/{int(time.time() * 1000)}-{uuid4().hex[:13]}.{extension}"

        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self._base_url}/storage/v1/object/{self._bucket}/{path}",
                    content=data,
                    headers={**self._headers, "Content-Type": content_type, "x-upsert": "false"},
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "image_upload_failed",
                    owner_id=owner_id,
                    status_code=exc.response.status_code,
                    response=exc.response.text,
                )
                raise ImageStorageError(
                    f"Storage returned {exc.response.status_code}: {exc.response.text}"
                ) from exc
            except httpx.RequestError as exc:
                logger.error("image_storage_connection_failed", error=str(exc))
                raise ImageStorageError(f"Failed to reach storage: {exc}") from exc

        logger.info("image_uploaded", owner_id=owner_id, path=path)
        return self.public_url(path)

    async def delete(self, public_url: str, owner_id: str) -> None:
        """
        DELETE /storage/v1/object/{bucket} with {"prefixes": ["{owner}/{name}"]}
        """
        path = object_path(owner_id, public_url)
        if path is None:
            return

        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            try:
                response = await client.request(
                    "DELETE",
                    f"{self._base_url}/storage/v1/object/{self._bucket}",
                    json={"prefixes": [path]},
                    headers=self._headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise ImageStorageError(
                    f"Storage returned {exc.response.status_code} deleting {path}"
                ) from exc
            except httpx.RequestError as exc:
                raise ImageStorageError(f"Failed to reach storage: {exc}") from exc

        logger.info("image_deleted", owner_id=owner_id, path=path)
