import json
from typing import Any, Dict
from azure.eventhub import EventData
from azure.eventhub.aio import EventHubProducerClient
from loguru import logger
from vframes.providers.base import EventPublisherProvider
from vframes.providers.credentials import AzureCredentials
from vframes.exceptions import ConfigurationException, PublishException


class EventHubPublisherProvider(EventPublisherProvider):
    """Publishes JSON events to Azure Event Hubs; each topic is an event hub."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.credential = None
        self.producers: Dict[str, EventHubProducerClient] = {}

    def _get_producer(self, topic: str) -> EventHubProducerClient:
        if not topic:
            raise ConfigurationException("Invalid event hub name. Cannot be empty!")
        producer = self.producers.get(topic)
        if producer is not None:
            return producer

        connection_string = self.config.get("connection_string")
        if connection_string:
            producer = EventHubProducerClient.from_connection_string(connection_string, eventhub_name=topic)
        else:
            namespace = self.config.get("namespace")
            if not namespace:
                raise ConfigurationException("Event Hubs namespace or connection_string is required")
            if not self.config.get("use_managed_identity", True):
                raise ConfigurationException("Event Hubs without managed identity requires a connection_string")
            if self.credential is None:
                self.credential = AzureCredentials.get_async_credentials()
            producer = EventHubProducerClient(
                fully_qualified_namespace=namespace,
                eventhub_name=topic,
                credential=self.credential,
            )
        logger.info(f"Created Event Hub producer for {topic}")
        self.producers[topic] = producer
        return producer

    async def publish(self, topic: str, payload: Dict):
        producer = self._get_producer(topic)
        try:
            await producer.send_event(EventData(json.dumps(payload)))
        except Exception as e:
            raise PublishException(
                f"Failed to publish event to {topic}: {e}",
                error_code="PUBLISH_ERROR",
                details={"topic": topic, "original_exception": type(e).__name__},
            ) from e

    async def close(self):
        for topic, producer in self.producers.items():
            logger.info(f"Closing Event Hub producer for {topic}")
            await producer.close()
        self.producers = {}
        if self.credential:
            await self.credential.close()
            self.credential = None
