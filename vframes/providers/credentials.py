"""
Azure credentials shared by the Blob Storage, Service Bus and Event Hubs providers.
"""

from azure.identity.aio import (
    DefaultAzureCredential as AsyncDefaultAzureCredential,
    AzureCliCredential as AsyncAzureCliCredential,
    ChainedTokenCredential as AsyncChainedTokenCredential
)


class AzureCredentials:
    """Centralized credential management for all Azure services."""

    @staticmethod
    def get_async_credentials():
        """
        Get credentials for Azure services.
        Uses ChainedTokenCredential to try CLI first, then fallback to DefaultAzureCredential
        (managed identity, environment, workload identity).

        Returns:
            AsyncChainedTokenCredential with CLI and DefaultAzureCredential
        """
        return AsyncChainedTokenCredential(
            AsyncAzureCliCredential(),
            AsyncDefaultAzureCredential()
        )
