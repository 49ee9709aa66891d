"""
In-process queue and publisher, for local runs and tests.

Messages carry a lease like a real broker: a message whose handler returns
without calling ``finish()`` is put back on the queue once its lease expires.
"""

import asyncio
import json
import time
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional, Union
from loguru import logger
from vframes.providers.base import SegmentMessage, QueueProvider, EventPublisherProvider, MessageHandler
from vframes.exceptions import ProviderException


class InMemorySegmentMessage(SegmentMessage):

    def __init__(self, body: str, lease_seconds: float, message_id: Optional[str] = None, attempts: int = 1):
        self._id = message_id or uuid.uuid4().hex
        self._body = body
        self.lease_seconds = lease_seconds
        self.attempts = attempts
        self.touch_count = 0
        self._deadline = time.monotonic() + lease_seconds
        self._responded = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def body(self) -> str:
        return self._body

    @property
    def has_responded(self) -> bool:
        return self._responded

    def time_until_timeout(self) -> float:
        return max(0.0, self._deadline - time.monotonic())

    async def touch(self):
        if self._responded:
            raise ProviderException(f"Message {self._id} already responded")
        self.touch_count += 1
        self._deadline = time.monotonic() + self.lease_seconds

    async def finish(self):
        if self._responded:
            raise ProviderException(f"Message {self._id} already responded")
        self._responded = True


class InMemoryQueueProvider(QueueProvider):

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.lease_seconds = config.get("memory_lease_seconds", 60.0)
        self.max_in_flight = config.get("max_in_flight", 1)
        self.finished: List[InMemorySegmentMessage] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._redeliveries: Dict[str, asyncio.TimerHandle] = {}
        self._closed = False

    def put(self, body: Union[str, Dict]) -> InMemorySegmentMessage:
        """Enqueue a segment job (a JSON string or a dict to serialize)."""
        if not isinstance(body, str):
            body = json.dumps(body)
        message = InMemorySegmentMessage(body, self.lease_seconds)
        self._queue.put_nowait(message)
        return message

    def pending(self) -> int:
        return self._queue.qsize()

    def _redeliver(self, message: InMemorySegmentMessage):
        self._redeliveries.pop(message.id, None)
        if self._closed:
            return
        logger.info(f"Lease expired, redelivering message {message.id}")
        self._queue.put_nowait(InMemorySegmentMessage(
            message.body, self.lease_seconds, message_id=message.id, attempts=message.attempts + 1
        ))

    async def _dispatch(self, handler: MessageHandler, message: InMemorySegmentMessage, slots: asyncio.Semaphore):
        try:
            await handler(message)
        except Exception as e:
            logger.exception(f"Unhandled error for message {message.id}: {e}")
        finally:
            slots.release()

        if message.has_responded:
            self.finished.append(message)
        elif not self._closed:
            loop = asyncio.get_running_loop()
            self._redeliveries[message.id] = loop.call_later(
                message.time_until_timeout(), self._redeliver, message
            )

    async def receive(self, handler: MessageHandler):
        slots = asyncio.Semaphore(self.max_in_flight)
        in_flight = set()
        while not self._closed:
            message = await self._queue.get()
            if message is None:
                break
            await slots.acquire()
            task = asyncio.create_task(self._dispatch(handler, message, slots))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)

    async def close(self):
        self._closed = True
        for handle in self._redeliveries.values():
            handle.cancel()
        self._redeliveries = {}
        # wakes a receive loop waiting for the next message
        self._queue.put_nowait(None)


class InMemoryEventPublisherProvider(EventPublisherProvider):

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.published: Dict[str, List[Dict]] = defaultdict(list)

    async def publish(self, topic: str, payload: Dict):
        # round-trip through JSON so payloads match what a broker would carry
        self.published[topic].append(json.loads(json.dumps(payload)))
        logger.debug(f"Published event to {topic}")

    async def close(self):
        pass
