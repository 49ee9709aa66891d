from .storage_provider import AzureStorageProvider
from .service_bus_provider import ServiceBusQueueProvider, ServiceBusSegmentMessage
from .event_hub_provider import EventHubPublisherProvider

__all__ = [
    "AzureStorageProvider",
    "ServiceBusQueueProvider",
    "ServiceBusSegmentMessage",
    "EventHubPublisherProvider",
]
