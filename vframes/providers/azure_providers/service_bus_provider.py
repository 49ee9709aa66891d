import asyncio
from datetime import datetime, timezone
from typing import Any, Dict
from azure.servicebus import ServiceBusReceivedMessage, ServiceBusReceiveMode
from azure.servicebus.aio import ServiceBusClient, ServiceBusReceiver
from loguru import logger
from vframes.providers.base import SegmentMessage, QueueProvider, MessageHandler
from vframes.providers.credentials import AzureCredentials
from vframes.exceptions import ConfigurationException


class ServiceBusSegmentMessage(SegmentMessage):
    """A peek-locked Service Bus message; the message lock is the lease."""

    def __init__(self, receiver: ServiceBusReceiver, message: ServiceBusReceivedMessage):
        self._receiver = receiver
        self._message = message
        self._responded = False

    @property
    def id(self) -> str:
        return str(self._message.message_id)

    @property
    def body(self) -> str:
        """Message body as text; raises UnicodeDecodeError when it is not UTF-8."""
        return str(self._message)

    @property
    def has_responded(self) -> bool:
        return self._responded

    def time_until_timeout(self) -> float:
        locked_until = self._message.locked_until_utc
        if locked_until is None:
            return 0.0
        if locked_until.tzinfo is None:
            locked_until = locked_until.replace(tzinfo=timezone.utc)
        return (locked_until - datetime.now(timezone.utc)).total_seconds()

    async def touch(self):
        await self._receiver.renew_message_lock(self._message)

    async def finish(self):
        await self._receiver.complete_message(self._message)
        self._responded = True


class ServiceBusQueueProvider(QueueProvider):
    """
    Receives segment jobs from an Azure Service Bus topic subscription (or queue)
    in peek-lock mode. Messages left unsettled are redelivered by the broker when
    their lock expires.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.credential = None
        self.client = None
        self._closed = False

    def _initialize(self):
        if self.client is not None:
            return
        connection_string = self.config.get("connection_string")
        if connection_string:
            self.client = ServiceBusClient.from_connection_string(connection_string)
        else:
            namespace = self.config.get("namespace")
            if not namespace:
                raise ConfigurationException("Service Bus namespace or connection_string is required")
            if not self.config.get("use_managed_identity", True):
                raise ConfigurationException("Service Bus without managed identity requires a connection_string")
            self.credential = AzureCredentials.get_async_credentials()
            self.client = ServiceBusClient(fully_qualified_namespace=namespace, credential=self.credential)
        logger.info("Successfully initialized Azure Service Bus client")

    def _get_receiver(self) -> ServiceBusReceiver:
        queue_name = self.config.get("segments_queue")
        if queue_name:
            logger.info(f"Receiving segment jobs from queue {queue_name}")
            return self.client.get_queue_receiver(
                queue_name=queue_name,
                receive_mode=ServiceBusReceiveMode.PEEK_LOCK,
            )
        topic = self.config.get("segments_topic")
        subscription = self.config.get("segments_subscription")
        logger.info(f"Receiving segment jobs from {topic}/{subscription}")
        return self.client.get_subscription_receiver(
            topic_name=topic,
            subscription_name=subscription,
            receive_mode=ServiceBusReceiveMode.PEEK_LOCK,
        )

    async def _dispatch(self, handler: MessageHandler, message: SegmentMessage):
        try:
            await handler(message)
        except Exception as e:
            # left unsettled, the broker redelivers it after the lock expires
            logger.exception(f"Unhandled error for message {message.id}: {e}")

    async def receive(self, handler: MessageHandler):
        self._initialize()
        max_in_flight = self.config.get("max_in_flight", 1)
        max_wait_time = self.config.get("max_wait_time", 5.0)

        async with self._get_receiver() as receiver:
            while not self._closed:
                messages = await receiver.receive_messages(
                    max_message_count=max_in_flight,
                    max_wait_time=max_wait_time,
                )
                if not messages:
                    continue
                logger.debug(f"Received {len(messages)} segment message(s)")
                await asyncio.gather(*(
                    self._dispatch(handler, ServiceBusSegmentMessage(receiver, message))
                    for message in messages
                ))

    async def close(self):
        self._closed = True
        if self.client:
            logger.info("Closing Azure Service Bus client")
            await self.client.close()
            self.client = None
        if self.credential:
            await self.credential.close()
            self.credential = None
