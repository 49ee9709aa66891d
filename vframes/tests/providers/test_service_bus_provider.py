import json
from datetime import datetime, timedelta, timezone

import pytest
from azure.servicebus import ServiceBusMessage

from vframes.exceptions import ConfigurationException
from vframes.models import SegmentOutcome
from vframes.providers.azure_providers import ServiceBusQueueProvider, ServiceBusSegmentMessage


class StubReceiver:
    def __init__(self):
        self.completed = []
        self.renewed = []

    async def complete_message(self, message):
        self.completed.append(message)

    async def renew_message_lock(self, message):
        self.renewed.append(message)


class LockedMessage:
    """Stands in for a received message: only what the wrapper reads."""

    def __init__(self, locked_until_utc, body="{}", message_id="m-1"):
        self.locked_until_utc = locked_until_utc
        self.message_id = message_id
        self._body = body

    def __str__(self):
        return self._body


def test_time_until_timeout_with_aware_lock():
    locked_until = datetime.now(timezone.utc) + timedelta(seconds=30)
    message = ServiceBusSegmentMessage(StubReceiver(), LockedMessage(locked_until))

    assert 28 < message.time_until_timeout() <= 30


def test_time_until_timeout_with_naive_lock_is_utc():
    locked_until = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(seconds=30)
    message = ServiceBusSegmentMessage(StubReceiver(), LockedMessage(locked_until))

    assert 28 < message.time_until_timeout() <= 30


def test_time_until_timeout_without_lock():
    message = ServiceBusSegmentMessage(StubReceiver(), LockedMessage(None))

    assert message.time_until_timeout() == 0.0


def test_body_is_decoded_text():
    job = json.dumps({"videoId": "abc"})
    message = ServiceBusSegmentMessage(StubReceiver(), ServiceBusMessage(job))

    assert message.body == job


def test_non_utf8_body_raises_decode_error():
    message = ServiceBusSegmentMessage(StubReceiver(), ServiceBusMessage(b"\xff\xfe{not utf8"))

    with pytest.raises(UnicodeDecodeError):
        message.body


async def test_finish_completes_and_marks_responded():
    receiver = StubReceiver()
    raw = LockedMessage(None)
    message = ServiceBusSegmentMessage(receiver, raw)

    await message.touch()
    assert not message.has_responded
    await message.finish()

    assert message.has_responded
    assert receiver.renewed == [raw]
    assert receiver.completed == [raw]


async def test_non_utf8_job_is_dropped(consumer):
    receiver = StubReceiver()
    raw = ServiceBusMessage(b"\xff\xfe{not utf8")
    message = ServiceBusSegmentMessage(receiver, raw)

    assert await consumer.handle_message(message) is SegmentOutcome.FATAL_FAILURE
    assert message.has_responded
    assert receiver.completed == [raw]


def test_namespace_without_managed_identity_is_rejected():
    provider = ServiceBusQueueProvider({"namespace": "bus.servicebus.windows.net", "use_managed_identity": False})

    with pytest.raises(ConfigurationException):
        provider._initialize()


def test_missing_namespace_is_rejected():
    with pytest.raises(ConfigurationException):
        ServiceBusQueueProvider({})._initialize()
