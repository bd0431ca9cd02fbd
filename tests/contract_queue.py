from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator
import uuid

import pytest

from lazyq.queue import (
    InvalidReceiptHandle,
    QueueDoesNotExist,
    QueueService,
)


class QueueServiceContract(ABC):
    account: str

    @abstractmethod
    @asynccontextmanager
    async def with_service(self) -> AsyncIterator[QueueService]:
        """
        A context manager which yields a queue service.  Queues created by the
        tests are cleaned up by the tests themselves.
        """
        ...

    @asynccontextmanager
    async def with_queue(self) -> AsyncIterator[tuple[QueueService, str]]:
        async with self.with_service() as service:
            url = await service.create_queue(f"lazyq_test_{uuid.uuid4().hex}", {})
            try:
                yield service, url
            finally:
                await service.delete_queue(url)

    async def test_get_queue_url_missing(self):
        async with self.with_service() as service:
            with pytest.raises(QueueDoesNotExist):
                await service.get_queue_url(f"lazyq_missing_{uuid.uuid4().hex}", self.account, {})

    async def test_create_is_idempotent(self):
        async with self.with_service() as service:
            name = f"lazyq_test_{uuid.uuid4().hex}"
            url = await service.create_queue(name, {})
            try:
                assert await service.create_queue(name, {}) == url
                assert await service.get_queue_url(name, self.account, {}) == url
            finally:
                await service.delete_queue(url)

    async def test_send_receive_delete(self):
        async with self.with_queue() as (service, url):
            message_id = await service.send_message(url, "message-1", {})
            assert message_id

            messages = await service.receive_message(url, {"MaxNumberOfMessages": 10})
            assert [m.body for m in messages] == ["message-1"]
            assert messages[0].message_id == message_id

            await service.delete_message(url, messages[0].receipt_handle)
            assert await service.receive_message(url, {}) == []

    async def test_receive_empty(self):
        async with self.with_queue() as (service, url):
            assert await service.receive_message(url, {}) == []

    async def test_received_message_is_invisible(self):
        async with self.with_queue() as (service, url):
            await service.send_message(url, "message-1", {})
            first = await service.receive_message(url, {"VisibilityTimeout": 30})
            assert len(first) == 1
            assert await service.receive_message(url, {}) == []

    async def test_purge(self):
        async with self.with_queue() as (service, url):
            await service.send_message(url, "message-1", {})
            await service.send_message(url, "message-2", {})
            await service.purge_queue(url)
            assert await service.receive_message(url, {"MaxNumberOfMessages": 10}) == []

    async def test_attributes(self):
        async with self.with_queue() as (service, url):
            attributes = await service.get_queue_attributes(url, ["All"])
            assert "QueueArn" in attributes
            assert "ApproximateNumberOfMessages" in attributes

            attributes = await service.get_queue_attributes(url, ["QueueArn"])
            assert list(attributes) == ["QueueArn"]


class ReceiptHandleContract:
    """Only for services which reliably reject a consumed receipt handle.

    SQS itself accepts deleting an already deleted message for a while, so
    this is not part of the general contract.

    """

    async def test_receipt_handle_consumed(self):
        async with self.with_queue() as (service, url):
            await service.send_message(url, "message-1", {})
            [message] = await service.receive_message(url, {})
            await service.delete_message(url, message.receipt_handle)
            with pytest.raises(InvalidReceiptHandle):
                await service.delete_message(url, message.receipt_handle)
