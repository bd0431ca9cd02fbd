from __future__ import annotations

from dataclasses import dataclass, field
import time
import typing
from uuid import uuid4

from ..queue import (
    IdentityService,
    InvalidReceiptHandle,
    Message,
    ProviderError,
    QueueDeletedRecently,
    QueueDoesNotExist,
    QueueService,
)

if typing.TYPE_CHECKING:
    from typing import Any


DEFAULT_ACCOUNT = "000000000000"


@dataclass
class _Stored:
    message_id: str
    body: str
    message_attributes: dict[str, Any]
    sent_at: float
    visible_at: float = 0.0
    receipt_handle: str | None = None
    receive_count: int = 0


@dataclass
class _Queue:
    name: str
    url: str
    created_at: float
    attributes: dict[str, str]
    messages: list[_Stored] = field(default_factory=list)


def _select(attributes: dict[str, Any], names: list[str]) -> dict[str, Any]:
    # Like SQS: nothing unless asked for, "All" or ".*" for everything, and
    # "Prefix.*" for a family.
    if "All" in names or ".*" in names:
        return dict(attributes)
    selected = {}
    for key, value in attributes.items():
        for name in names:
            if key == name or (name.endswith(".*") and key.startswith(name[:-1])):
                selected[key] = value
                break
    return selected


class InMemoryQueueService(QueueService):
    """
    A single process imitation of SQS, one account, one region.

    Receipt handles change on every delivery and stop working once a message
    is deleted or redelivered.  Received messages stay invisible for the
    queue's visibility timeout.  Recreating a deleted queue name fails with
    QueueDeletedRecently for ``deletion_cooldown`` seconds, which defaults to
    zero so tests don't have to wait for it.
    """

    queues: dict[str, _Queue]

    def __init__(
        self,
        account: str = DEFAULT_ACCOUNT,
        region: str = "us-east-1",
        deletion_cooldown: float = 0.0,
    ):
        self.account = account
        self.region = region
        self.deletion_cooldown = deletion_cooldown
        self.queues = {}
        self.deleted_at = {}

    def _url(self, name: str) -> str:
        return f"https://sqs.{self.region}.amazonaws.com/{self.account}/{name}"

    def _by_url(self, url: str) -> _Queue:
        for queue in self.queues.values():
            if queue.url == url:
                return queue
        raise QueueDoesNotExist(
            "AWS.SimpleQueueService.NonExistentQueue",
            "The specified queue does not exist for this wsdl version.",
        )

    async def create_queue(self, name: str, options: dict) -> str:
        deleted_at = self.deleted_at.get(name)
        if deleted_at is not None and time.monotonic() - deleted_at < self.deletion_cooldown:
            raise QueueDeletedRecently(
                "AWS.SimpleQueueService.QueueDeletedRecently",
                "You must wait 60 seconds after deleting a queue before you can "
                "create another with the same name.",
            )
        attributes = {k: str(v) for k, v in options.get("Attributes", {}).items()}
        if name in self.queues:
            # Like SQS: idempotent, unless the attributes differ
            if attributes and attributes != self.queues[name].attributes:
                raise ProviderError(
                    "QueueAlreadyExists",
                    "A queue already exists with the same name and a different value for attribute(s)",
                )
            return self.queues[name].url
        self.queues[name] = _Queue(name, self._url(name), time.time(), attributes)
        return self.queues[name].url

    async def get_queue_url(self, name: str, owner_account: str, options: dict) -> str:
        if owner_account != self.account or name not in self.queues:
            raise QueueDoesNotExist(
                "AWS.SimpleQueueService.NonExistentQueue",
                "The specified queue does not exist for this wsdl version.",
            )
        return self.queues[name].url

    async def delete_queue(self, url: str):
        queue = self._by_url(url)
        del self.queues[queue.name]
        self.deleted_at[queue.name] = time.monotonic()

    async def purge_queue(self, url: str):
        self._by_url(url).messages.clear()

    async def get_queue_attributes(self, url: str, names: list[str]) -> dict[str, str]:
        queue = self._by_url(url)
        now = time.monotonic()
        visible = sum(1 for m in queue.messages if m.visible_at <= now)
        attributes = {
            "VisibilityTimeout": "30",
            "MaximumMessageSize": "262144",
            "MessageRetentionPeriod": "345600",
            "DelaySeconds": "0",
            "ReceiveMessageWaitTimeSeconds": "0",
            **queue.attributes,
            "QueueArn": f"arn:aws:sqs:{self.region}:{self.account}:{queue.name}",
            "CreatedTimestamp": str(int(queue.created_at)),
            "ApproximateNumberOfMessages": str(visible),
            "ApproximateNumberOfMessagesNotVisible": str(len(queue.messages) - visible),
        }
        if not names or "All" in names:
            return attributes
        return {k: v for k, v in attributes.items() if k in names}

    async def send_message(self, url: str, body: str, options: dict) -> str:
        queue = self._by_url(url)
        now = time.monotonic()
        delay = int(options.get("DelaySeconds", queue.attributes.get("DelaySeconds", 0)))
        stored = _Stored(
            message_id=str(uuid4()),
            body=body,
            message_attributes=dict(options.get("MessageAttributes", {})),
            sent_at=time.time(),
            visible_at=now + delay,
        )
        queue.messages.append(stored)
        return stored.message_id

    async def receive_message(self, url: str, options: dict) -> list[Message]:
        queue = self._by_url(url)
        max_messages = int(options.get("MaxNumberOfMessages", 1))
        if not 1 <= max_messages <= 10:
            raise ProviderError(
                "InvalidParameterValue",
                f"Value {max_messages} for parameter MaxNumberOfMessages is invalid.",
            )
        timeout = int(options.get("VisibilityTimeout", queue.attributes.get("VisibilityTimeout", 30)))
        # WaitTimeSeconds is ignored: an empty in-memory queue stays empty
        # while we wait, there is nobody else to fill it.
        now = time.monotonic()
        received = []
        for stored in queue.messages:
            if len(received) == max_messages:
                break
            if stored.visible_at > now:
                continue
            stored.visible_at = now + timeout
            stored.receipt_handle = uuid4().hex
            stored.receive_count += 1
            received.append(
                Message(
                    body=stored.body,
                    receipt_handle=stored.receipt_handle,
                    attributes={
                        "ApproximateReceiveCount": str(stored.receive_count),
                        "SentTimestamp": str(int(stored.sent_at * 1000)),
                    },
                    message_id=stored.message_id,
                    message_attributes=_select(
                        stored.message_attributes, options.get("MessageAttributeNames", [])
                    ),
                )
            )
        return received

    async def delete_message(self, url: str, receipt_handle: str):
        queue = self._by_url(url)
        for i, stored in enumerate(queue.messages):
            if stored.receipt_handle == receipt_handle:
                del queue.messages[i]
                return
        raise InvalidReceiptHandle(
            "ReceiptHandleIsInvalid",
            f"The input receipt handle \"{receipt_handle}\" is not a valid receipt handle.",
        )


class InMemoryIdentityService(IdentityService):
    def __init__(self, account: str = DEFAULT_ACCOUNT):
        self.account = account

    async def get_caller_identity(self) -> str:
        return self.account
