from abc import ABC, abstractmethod


class StorageProvider(ABC):
    """Abstract base class for object storage providers."""

    @abstractmethod
    async def get_file_url(self, file_name: str, **kwargs) -> str:
        """Public URL of an object (``folder_name`` is the bucket/container)."""
        pass

    @abstractmethod
    async def save_bytes(self, file_name: str, data: bytes, content_type: str, **kwargs) -> str:
        """Write ``data`` as a publicly readable object and return its URL."""
        pass

    @abstractmethod
    async def close(self):
        """Close the underlying client and cleanup."""
        pass
