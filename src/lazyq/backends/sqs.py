from __future__ import annotations

import functools
import logging
import typing

from botocore.exceptions import ClientError

from ..queue import (
    InvalidReceiptHandle,
    Message,
    ProviderError,
    QueueDeletedRecently,
    QueueDoesNotExist,
    QueueService,
)

if typing.TYPE_CHECKING:
    from types_aiobotocore_sqs import SQSClient


logger = logging.getLogger(__name__)

# Depending on the protocol (query vs JSON) and the SDK version SQS reports the
# same condition under different codes.
_ERROR_MAP: dict[str, type[ProviderError]] = {
    "AWS.SimpleQueueService.NonExistentQueue": QueueDoesNotExist,
    "QueueDoesNotExist": QueueDoesNotExist,
    "AWS.SimpleQueueService.QueueDeletedRecently": QueueDeletedRecently,
    "QueueDeletedRecently": QueueDeletedRecently,
    "ReceiptHandleIsInvalid": InvalidReceiptHandle,
}


def translate_client_error(e: ClientError) -> ProviderError:
    error = e.response.get("Error", {})
    code = error.get("Code", "Unknown")
    return _ERROR_MAP.get(code, ProviderError)(code, error.get("Message", ""))


def provider_errors(method):
    """Re-raise botocore ClientErrors as ProviderErrors."""

    @functools.wraps(method)
    async def wrapper(*args, **kwargs):
        try:
            return await method(*args, **kwargs)
        except ClientError as e:
            raise translate_client_error(e) from e

    return wrapper


class SqsQueueService(QueueService):
    client: SQSClient

    def __init__(self, client: SQSClient):
        self.client = client

    @provider_errors
    async def create_queue(self, name: str, options: dict) -> str:
        response = await self.client.create_queue(QueueName=name, **options)
        return response["QueueUrl"]

    @provider_errors
    async def get_queue_url(self, name: str, owner_account: str, options: dict) -> str:
        response = await self.client.get_queue_url(
            QueueName=name, QueueOwnerAWSAccountId=owner_account, **options
        )
        return response["QueueUrl"]

    @provider_errors
    async def delete_queue(self, url: str):
        await self.client.delete_queue(QueueUrl=url)

    @provider_errors
    async def purge_queue(self, url: str):
        await self.client.purge_queue(QueueUrl=url)

    @provider_errors
    async def get_queue_attributes(self, url: str, names: list[str]) -> dict[str, str]:
        response = await self.client.get_queue_attributes(QueueUrl=url, AttributeNames=names)
        return response.get("Attributes", {})

    @provider_errors
    async def send_message(self, url: str, body: str, options: dict) -> str:
        response = await self.client.send_message(QueueUrl=url, MessageBody=body, **options)
        return response["MessageId"]

    @provider_errors
    async def receive_message(self, url: str, options: dict) -> list[Message]:
        response = await self.client.receive_message(QueueUrl=url, **options)
        # No "Messages" key at all when the queue is empty
        return [
            Message(
                body=m["Body"],
                receipt_handle=m["ReceiptHandle"],
                attributes=m.get("Attributes", {}),
                message_id=m.get("MessageId"),
                message_attributes=m.get("MessageAttributes", {}),
            )
            for m in response.get("Messages", [])
        ]

    @provider_errors
    async def delete_message(self, url: str, receipt_handle: str):
        logger.debug(f"Deleting message from {url}")
        await self.client.delete_message(QueueUrl=url, ReceiptHandle=receipt_handle)
