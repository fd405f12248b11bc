"""
Screenshot storage.

The crawler never writes screenshots itself; callers hand the captured
buffers to a ScreenshotStore, which returns a URL for each stored image.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class ScreenshotStore(ABC):
    """Destination for captured screenshots."""

    @abstractmethod
    async def upload(self, data: bytes, site_id: str) -> str:
        """
        Store one PNG screenshot.

        Args:
            data: PNG bytes
            site_id: Identifier used to group the site's screenshots

        Returns:
            URL of the stored screenshot
        """

    async def upload_all(self, screenshots: Iterable[bytes], site_id: str) -> List[str]:
        """Store screenshots in order. Returns their URLs in the same order."""
        urls = []
        for data in screenshots:
            urls.append(await self.upload(data, site_id))
        return urls


class LocalScreenshotStore(ScreenshotStore):
    """
    Writes screenshots to <root>/<site_id>/<uuid>.png.

    Returned URLs are file:// URIs, or public_base_url/<site_id>/<uuid>.png
    when a base URL is configured (e.g. a directory served over HTTP).
    """

    def __init__(self, root: str = "screenshots", public_base_url: Optional[str] = None):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    async def upload(self, data: bytes, site_id: str) -> str:
        filename = f"{uuid.uuid4()}.png"
        path = self.root / site_id / filename

        logger.info(f"Uploading screenshot: {path}")
        await asyncio.to_thread(self._write, path, data)

        if self.public_base_url:
            url = f"{self.public_base_url}/{site_id}/{filename}"
        else:
            url = path.resolve().as_uri()
        logger.info(f"Screenshot uploaded: {url}")
        return url

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
