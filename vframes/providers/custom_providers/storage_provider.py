import os
import aiofiles
from pathlib import Path
from loguru import logger
from typing import Dict, Any
from vframes.providers.base import StorageProvider
from vframes.utils.error_handler import convert_exceptions
from vframes.exceptions import ProviderException


class LocalStorageProvider(StorageProvider):
    """Local filesystem-based storage provider."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Local Storage Provider.

        Args:
            config: {
                        "base_path": str -> Root directory for local storage (default: ./local_storage)
                    }
        """
        self.config = config
        self.base_path = Path(config.get("base_path") or "./local_storage").resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalStorageProvider initialized at {self.base_path}")

    def _get_file_path(self, folder: str, file_name: str) -> Path:
        """Return full path to file, creating parent directories if needed."""
        file_path = self.base_path / folder / file_name
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return file_path

    async def get_file_url(self, file_name: str, **kwargs) -> str:
        """
        Generate file:// URL for a local file.
        Ensures consistent format across OS (handles Windows drive letters).
        """
        folder_name = kwargs.pop("folder_name")
        abs_path = (self.base_path / folder_name / file_name).resolve()

        if os.name == "nt":
            return f"file:///{abs_path.as_posix()}"
        return abs_path.as_uri()

    @convert_exceptions({Exception: ProviderException})
    async def save_bytes(self, file_name: str, data: bytes, content_type: str, **kwargs) -> str:
        folder_name = kwargs.pop("folder_name")
        dest_path = self._get_file_path(folder=folder_name, file_name=file_name)
        async with aiofiles.open(dest_path, "wb") as f:
            await f.write(data)
        logger.debug(f"Stored {content_type} object at {dest_path}")
        return await self.get_file_url(file_name=file_name, folder_name=folder_name)

    async def close(self):
        """No resources to release for local storage."""
        logger.info("LocalStorageProvider closed")
