"""Screenshot upload sink for payment submissions."""

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from paperify.core.errors import InvalidScreenshotError, PayloadTooLargeError, StorageError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredScreenshot:
    ref: str
    content_type: str
    size: int


def _safe_basename(filename: Optional[str]) -> str:
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    return name or "screenshot"


class ScreenshotStore:
    """Accepts one image per submission, capped at `max_bytes`."""

    def __init__(self, directory: str, max_bytes: int):
        self.directory = directory
        self.max_bytes = max_bytes

    async def save(self, upload: UploadFile) -> StoredScreenshot:
        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise InvalidScreenshotError("Only image files are allowed!")

        chunks = []
        size = 0
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > self.max_bytes:
                raise PayloadTooLargeError(f"Screenshot exceeds {self.max_bytes} bytes")
            chunks.append(chunk)

        ref = f"{int(time.time() * 1000)}-{_safe_basename(upload.filename)}"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(os.path.join(self.directory, ref), "wb") as fh:
                fh.write(b"".join(chunks))
        except OSError as exc:
            logger.error("upload.write_failed", exc_info=True, extra={"error_code": "storage_error"})
            raise StorageError("Could not store screenshot") from exc

        return StoredScreenshot(ref=ref, content_type=content_type, size=size)

    def discard(self, ref: str) -> None:
        """Remove a stored screenshot whose submission was rejected."""
        try:
            os.remove(os.path.join(self.directory, ref))
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("upload.discard_failed", exc_info=True)
