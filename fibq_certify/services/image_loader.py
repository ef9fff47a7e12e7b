"""
Image Loader
Fetches photos, logos and backgrounds referenced by a rendered canvas

Every source must be readable by this service: public http(s) URLs,
data URIs, or files under the local static directory. A source that cannot
be fetched fails the export instead of leaving a hole in the output.
"""

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, Iterable

import httpx
from PIL import Image, UnidentifiedImageError

from fibq_certify.config import settings
from fibq_certify.services.errors import ImageLoadError

logger = logging.getLogger(__name__)


class ImageLoader:
    """Loads image sources into RGBA PIL images"""

    def __init__(self, timeout: float = None, max_bytes: int = None, static_root: Path = None):
        self.timeout = timeout or settings.IMAGE_FETCH_TIMEOUT
        self.max_bytes = max_bytes or settings.MAX_IMAGE_BYTES
        self.static_root = Path(static_root or settings.STATIC_DIR)

    @staticmethod
    def _decode_data_uri(source: str) -> bytes:
        header, _, payload = source.partition(",")
        if ";base64" not in header:
            raise ImageLoadError("Only base64 data URIs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ImageLoadError("Invalid base64 image data")

    async def _fetch_remote(self, source: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(source)
        except httpx.HTTPError as e:
            logger.warning("Image fetch failed for %s: %s", source, e)
            raise ImageLoadError(f"Image could not be fetched: {source}")

        if response.status_code != 200:
            logger.warning("Image fetch for %s returned %s", source, response.status_code)
            raise ImageLoadError(f"Image could not be fetched: {source}")
        return response.content

    def _read_local(self, source: str) -> bytes:
        """Read a file under the static directory; /static/ URLs map onto it"""
        relative = source.lstrip("/")
        if relative.startswith("static/"):
            relative = relative[len("static/"):]
        root = self.static_root.resolve()
        local_path = (root / relative).resolve()
        if not local_path.is_relative_to(root):
            logger.warning("Refused image path outside %s: %s", root, source)
            raise ImageLoadError(f"Image file not found: {source}")
        try:
            return local_path.read_bytes()
        except OSError:
            raise ImageLoadError(f"Image file not found: {source}")

    async def fetch_bytes(self, source: str) -> bytes:
        if source.startswith("data:"):
            content = self._decode_data_uri(source)
        elif "://" in source:
            content = await self._fetch_remote(source)
        else:
            content = self._read_local(source)

        if len(content) > self.max_bytes:
            raise ImageLoadError("Image is larger than the allowed size")
        return content

    async def load(self, source: str) -> Image.Image:
        content = await self.fetch_bytes(source)
        try:
            image = Image.open(BytesIO(content))
            image.load()
        except (UnidentifiedImageError, OSError):
            raise ImageLoadError(f"Not a valid image: {source[:80]}")
        return image.convert("RGBA")

    async def load_all(self, sources: Iterable[str]) -> Dict[str, Image.Image]:
        """Load each distinct source once"""
        images = {}
        for source in sources:
            if source and source not in images:
                images[source] = await self.load(source)
        return images
