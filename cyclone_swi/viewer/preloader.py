import asyncio
import io
import logging
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError

from cyclone_swi.viewer.errors import ImagePreloadError

logger = logging.getLogger(__name__)


def _decode(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return img.size


class ImagePreloader:
    """
    Warms satellite images ahead of display.

    ``preload`` resolves once the image is downloaded and decoded, and raises
    ``ImagePreloadError`` on a network error, an undecodable payload or when
    ``timeout`` seconds pass first. Concurrent calls for one URL share a
    single download.
    """

    def __init__(
        self, client: httpx.AsyncClient, timeout: Optional[float] = 30.0
    ) -> None:
        self.client = client
        self.timeout = timeout
        self._sizes: dict[str, tuple[int, int]] = {}
        self._inflight: dict[str, asyncio.Future] = {}

    def is_preloaded(self, url: str) -> bool:
        return url in self._sizes

    def size_of(self, url: str) -> tuple[int, int] | None:
        return self._sizes.get(url)

    async def preload(self, url: str) -> None:
        if url in self._sizes:
            return

        # Snapshots of one run share their images; download each once
        future = self._inflight.get(url)
        if future is None:
            future = asyncio.ensure_future(self._preload(url))
            self._inflight[url] = future
            future.add_done_callback(lambda _: self._inflight.pop(url, None))

        await asyncio.shield(future)

    async def _preload(self, url: str) -> None:
        try:
            size = await asyncio.wait_for(self._load(url), self.timeout)
        except asyncio.TimeoutError as e:
            cause = TimeoutError(f"no image after {self.timeout}s")
            raise ImagePreloadError(url, cause) from e
        except (httpx.HTTPError, UnidentifiedImageError, OSError) as e:
            raise ImagePreloadError(url, e) from e

        self._sizes[url] = size
        logger.debug("Preloaded %s (%dx%d)", url, *size)

    async def _load(self, url: str) -> tuple[int, int]:
        response = await self.client.get(url)
        response.raise_for_status()
        return await asyncio.to_thread(_decode, response.content)
