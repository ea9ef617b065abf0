from uuid import uuid4

from src.application.interfaces.image_storage import ImageStorage

_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


class InMemoryImageStorage(ImageStorage):
    """Keeps uploaded bytes in a dict keyed by ``<owner>/<name>``."""

    def __init__(self, bucket: str = "post-images") -> None:
        self._bucket = bucket
        self.objects: dict[str, bytes] = {}

    async def upload(self, data: bytes, owner_id: str, content_type: str = "image/jpeg") -> str:
        name = f"{uuid4().hex}.{_EXTENSIONS.get(content_type, 'jpg')}"
        path = f"{owner_id}/{name}"
        self.objects[path] = data
        return f"memory://{self._bucket}/{path}"

    async def delete(self, public_url: str, owner_id: str) -> None:
        name = public_url.rstrip("/").rsplit("/", 1)[-1]
        self.objects.pop(f"{owner_id}/{name}", None)
