import asyncio
import boto3
from botocore.config import Config as BotoConfig
from loguru import logger
from typing import Dict, Any
from vframes.providers.base import StorageProvider
from vframes.utils.error_handler import convert_exceptions
from vframes.exceptions import ProviderException


class S3StorageProvider(StorageProvider):
    """
    Amazon S3 storage provider.

    Objects are written with a ``public-read`` ACL and addressed as
    ``https://{bucket}.{storage_domain}/{key}``. boto3 is blocking, so every
    call runs in a worker thread.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Args:
            config: {
                        "region": AWS region (optional, boto3 default chain otherwise),
                        "storage_domain": public host suffix (default: s3.amazonaws.com)
                    }
        """
        self.config = config
        self.storage_domain = config.get("storage_domain") or "s3.amazonaws.com"
        self.client = None

    def _initialize(self):
        if self.client is None:
            self.client = boto3.client(
                "s3",
                region_name=self.config.get("region"),
                config=BotoConfig(retries={"max_attempts": 3, "mode": "standard"}),
            )
            logger.info("Successfully initialized S3 client")

    async def get_file_url(self, file_name: str, **kwargs) -> str:
        folder_name = kwargs.pop("folder_name")
        return f"https://{folder_name}.{self.storage_domain}/{file_name}"

    @convert_exceptions({Exception: ProviderException})
    async def save_bytes(self, file_name: str, data: bytes, content_type: str, **kwargs) -> str:
        self._initialize()
        folder_name = kwargs.pop("folder_name")
        logger.debug(f"Uploading video frame to the bucket: {folder_name}/{file_name}")
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=folder_name,
            Key=file_name,
            ACL="public-read",
            Body=data,
            ContentType=content_type,
        )
        return await self.get_file_url(file_name, folder_name=folder_name)

    async def close(self):
        if self.client is not None:
            logger.info("Closing S3 client")
            self.client.close()
            self.client = None
