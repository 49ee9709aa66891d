from .storage_provider import S3StorageProvider

__all__ = ["S3StorageProvider"]
