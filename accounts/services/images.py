"""Avatar image persistence from data-URI payloads."""

import base64
import binascii
import logging
import re
import uuid
from pathlib import Path
from typing import Protocol

from fastapi.concurrency import run_in_threadpool

from accounts.core.config import Settings

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/([A-Za-z0-9.+-]+);base64,(.+)$", re.DOTALL)

# Accepted image subtypes -> stored file extension.
IMAGE_EXTENSIONS = {
    "png": "png",
    "jpeg": "jpg",
    "jpg": "jpg",
    "gif": "gif",
    "webp": "webp",
}


class InvalidImage(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ImagePersister(Protocol):
    """Stores an image payload and returns the public locator for it."""

    async def persist(self, payload: str) -> str: ...

    async def discard(self, ref: str) -> None: ...


def decode_data_uri(payload: str, max_bytes: int) -> tuple[str, bytes]:
    """Return (extension, image bytes) for a base64 image data URI or raise InvalidImage."""
    match = DATA_URI_PATTERN.match(payload.strip())
    if match is None:
        raise InvalidImage("Avatar must be a base64 data:image URI.")
    subtype = match.group(1).lower()
    ext = IMAGE_EXTENSIONS.get(subtype)
    if ext is None:
        raise InvalidImage(f"Unsupported image type: {subtype}.")
    try:
        data = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImage("Avatar data is not valid base64.") from e
    if not data:
        raise InvalidImage("Avatar data is empty.")
    if len(data) > max_bytes:
        raise InvalidImage(
            f"Avatar must not exceed {max_bytes // 1024} KB."
        )
    return ext, data


class FileImagePersister:
    """Writes decoded images under a directory that is served at url_prefix."""

    def __init__(self, directory: str | Path, url_prefix: str, max_bytes: int) -> None:
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileImagePersister":
        return cls(
            directory=settings.UPLOAD_DIR,
            url_prefix=settings.UPLOAD_URL_PREFIX,
            max_bytes=settings.AVATAR_MAX_BYTES,
        )

    def _write(self, filename: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / filename).write_bytes(data)

    async def persist(self, payload: str) -> str:
        ext, data = decode_data_uri(payload, self.max_bytes)
        filename = f"avatar-{uuid.uuid4().hex}.{ext}"
        await run_in_threadpool(self._write, filename, data)
        logger.info("Avatar stored", extra={"avatar_file": filename, "size": len(data)})
        return f"{self.url_prefix}/{filename}"

    async def discard(self, ref: str) -> None:
        """Remove a file previously returned by persist; unknown refs are ignored."""
        prefix = f"{self.url_prefix}/"
        if not ref.startswith(prefix):
            return
        filename = ref[len(prefix):]
        if not filename or "/" in filename or filename.startswith("."):
            return
        path = self.directory / filename
        try:
            await run_in_threadpool(path.unlink, missing_ok=True)
        except OSError:
            logger.warning("Could not remove orphaned avatar", extra={"avatar_file": filename})
