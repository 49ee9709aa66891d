from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient
from loguru import logger
from typing import Dict, Any
from vframes.providers.base import StorageProvider
from vframes.providers.credentials import AzureCredentials
from vframes.utils.error_handler import convert_exceptions, ErrorHandler
from vframes.exceptions import ProviderException, ConfigurationException


class AzureStorageProvider(StorageProvider):
    """
    Azure Blob Storage provider implementation.

    The bucket maps to a blob container; objects are readable anonymously when
    the container has blob-level public access, which is how frames are served.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Azure Storage Provider.

        Args:
            config: Configuration dictionary with:
                - account_url: Azure Storage account URL
                - connection_string: used instead of account_url when set
                - use_managed_identity: Whether to use Azure AD credentials (default: True)
        """
        self.config = config
        self.credential = None
        self.service_client = None

    def _initialize(self):
        """Initialize credential and service client."""
        if self.service_client is not None:
            return
        try:
            connection_string = self.config.get("connection_string")
            if connection_string:
                self.service_client = BlobServiceClient.from_connection_string(connection_string)
            else:
                account_url = self.config.get("account_url")
                if not account_url:
                    raise ConfigurationException("Azure Storage account_url or connection_string is required")
                if not self.config.get("use_managed_identity", True):
                    raise ConfigurationException(
                        "Azure Storage without managed identity requires a connection_string"
                    )
                self.credential = AzureCredentials.get_async_credentials()
                self.service_client = BlobServiceClient(account_url=account_url, credential=self.credential)
            logger.info("Successfully initialized Azure Blob Storage client")
        except ConfigurationException:
            raise
        except Exception as e:
            raise ErrorHandler.handle_provider_error(e, "azure_blob_storage")

    async def get_file_url(self, file_name: str, **kwargs) -> str:
        self._initialize()
        folder_name = kwargs.pop("folder_name")
        return f"{self.service_client.url.rstrip('/')}/{folder_name}/{file_name}"

    @convert_exceptions({Exception: ProviderException})
    async def save_bytes(self, file_name: str, data: bytes, content_type: str, **kwargs) -> str:
        """Upload raw bytes to blob storage."""
        self._initialize()

        folder_name = kwargs.pop("folder_name")
        logger.debug(f"Uploading blob {folder_name}/{file_name}")
        async with self.service_client.get_blob_client(container=folder_name, blob=file_name) as client:
            await client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        return await self.get_file_url(file_name, folder_name=folder_name)

    async def close(self):
        """Close the underlying service client and cleanup."""
        if self.service_client:
            logger.info("Closing Azure Blob Storage client")
            await self.service_client.close()
            self.service_client = None
        if self.credential:
            await self.credential.close()
            self.credential = None
