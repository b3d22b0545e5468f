"""HTTP source clip fetcher"""

import asyncio
import logging
import os
from typing import Optional

import aiohttp

from core.errors import DownloadError
from .base import SourceFetcher, ProviderConfig, ProviderType

logger = logging.getLogger(__name__)

DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&confirm=t&id={source_id}"


class HttpSourceFetcher(SourceFetcher):
    """
    Streams source clips over HTTP.

    The URL is built from a template with a {source_id} placeholder; the
    default is the Google Drive direct-download link for publicly shared files.
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, url_template: str = DRIVE_DOWNLOAD_URL, timeout: float = 120.0):
        self.config = ProviderConfig(
            provider_type=ProviderType.HTTP,
            base_url=url_template,
            timeout=timeout,
        )
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    def url_for(self, source_id: str) -> str:
        if source_id.startswith(("http://", "https://")):
            return source_id
        return self.config.base_url.format(source_id=source_id)

    async def fetch(self, source_id: str, dest_path: str) -> str:
        url = self.url_for(source_id)
        session = await self._get_session()

        try:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                if response.status != 200:
                    raise DownloadError(
                        f"Download of {source_id} failed: HTTP {response.status}"
                    )

                with open(dest_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        f.write(chunk)

        except DownloadError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise DownloadError(f"Download of {source_id} failed: {e}") from e

        logger.debug(f"Fetched {source_id} -> {dest_path} ({os.path.getsize(dest_path)} bytes)")
        return dest_path

    async def close(self):
        """Close aiohttp session"""
        if self.session and not self.session.closed:
            await self.session.close()
