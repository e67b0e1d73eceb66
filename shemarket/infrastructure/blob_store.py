"""Local Blob Store — writes listing images to disk and returns their public URL.

Invariants:
    - put() never overwrites: every object gets a fresh uuid4 name
    - Only image content types are accepted; unknown types rejected before writing
    - Returned reference is `<url_prefix>/<name>`, served by StaticFiles in main.py

Design Decisions:
    - File write pushed to a worker thread (asyncio.to_thread): keeps the event loop free
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path

from shemarket.core.errors import MarketValidationError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class LocalBlobStore:
    """Filesystem-backed BlobStore (see core/repository_protocols.py)."""

    def __init__(self, root: str | Path, url_prefix: str, max_bytes: int):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    async def put(self, data: bytes, content_type: str) -> str:
        extension = _EXTENSIONS.get((content_type or "").lower())
        if extension is None:
            raise MarketValidationError(
                f"unsupported image type '{content_type}'", "image",
            )
        if not data:
            raise MarketValidationError("image is empty", "image")
        if len(data) > self.max_bytes:
            raise MarketValidationError(
                f"image exceeds {self.max_bytes} bytes", "image",
            )
        name = f"{uuid.uuid4().hex}{extension}"
        await asyncio.to_thread(self._write, name, data)
        logger.info(f"Stored blob {name} ({len(data)} bytes)")
        return f"{self.url_prefix}/{name}"

    async def ready(self) -> bool:
        """True when the root exists (created if missing) and is writable."""
        try:
            await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Blob root {self.root} unusable: {e}")
            return False
        return os.access(self.root, os.W_OK)

    def _write(self, name: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(data)
