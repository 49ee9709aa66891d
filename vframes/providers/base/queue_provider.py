from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict


class SegmentMessage(ABC):
    """
    A leased queue message.

    The lease expires after ``time_until_timeout()`` seconds unless it is
    renewed with ``touch()``. ``finish()`` acknowledges the message; a message
    that is never finished is redelivered once its lease expires.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        pass

    @property
    @abstractmethod
    def body(self) -> str:
        pass

    @property
    @abstractmethod
    def has_responded(self) -> bool:
        pass

    @abstractmethod
    def time_until_timeout(self) -> float:
        """Seconds left before the lease expires."""
        pass

    @abstractmethod
    async def touch(self):
        """Renew the lease."""
        pass

    @abstractmethod
    async def finish(self):
        """Acknowledge and remove the message from the queue."""
        pass


MessageHandler = Callable[[SegmentMessage], Awaitable[object]]


class QueueProvider(ABC):
    """Abstract base class for segment job queues."""

    @abstractmethod
    async def receive(self, handler: MessageHandler):
        """Deliver messages to ``handler`` until ``close()`` is called."""
        pass

    @abstractmethod
    async def close(self):
        pass


class EventPublisherProvider(ABC):
    """Abstract base class for event publication."""

    @abstractmethod
    async def publish(self, topic: str, payload: Dict):
        """Publish ``payload`` as JSON to ``topic``."""
        pass

    @abstractmethod
    async def close(self):
        pass
