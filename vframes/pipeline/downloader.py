import asyncio
from typing import Optional
import aiofiles
import aiohttp
from loguru import logger
from ..exceptions import DownloadException, InvalidSegmentException


class SegmentDownloader:
    """Fetches a video segment over HTTP into a local file."""

    def __init__(self, timeout: float = 300.0, chunk_size: int = 1024 * 1024,
                 session: Optional[aiohttp.ClientSession] = None):
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._session = session

    @staticmethod
    def validate_response(uri: str, status: int, content_type: str):
        """
        Reject responses that cannot hold a video segment.

        Raises:
            InvalidSegmentException: status is not 200 or the content type is not ``video/*``
        """
        if status != 200:
            raise InvalidSegmentException(
                f"Invalid status code: {status} while downloading {uri}",
                error_code="INVALID_STATUS",
                details={"uri": uri, "status": status},
            )
        if not (content_type or "").startswith("video/"):
            raise InvalidSegmentException(
                f"Video file expected by URI: {uri}, but content type {content_type} received",
                error_code="INVALID_CONTENT_TYPE",
                details={"uri": uri, "content_type": content_type},
            )

    async def _fetch(self, session: aiohttp.ClientSession, uri: str, file_path: str):
        async with session.get(uri) as response:
            self.validate_response(uri, response.status, response.headers.get("Content-Type", ""))
            async with aiofiles.open(file_path, "wb") as f:
                async for chunk in response.content.iter_chunked(self.chunk_size):
                    await f.write(chunk)

    async def download(self, uri: str, file_path: str) -> str:
        logger.info(f"Downloading {uri} to {file_path}")
        try:
            if self._session is not None:
                await self._fetch(self._session, uri, file_path)
            else:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    await self._fetch(session, uri, file_path)
        except aiohttp.InvalidURL as e:
            raise InvalidSegmentException(f"Invalid segment URI: {uri}", details={"uri": uri}) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Downloading {uri} error: {e}")
            raise DownloadException(
                f"Error downloading {uri}: {e}",
                details={"uri": uri, "original_exception": type(e).__name__},
            ) from e
        logger.info(f"Downloading to file {file_path} completed.")
        return file_path
