from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aioboto3

from .backends.sqs import SqsQueueService
from .backends.sts import StsIdentityService
from .client import QueueClient
from .config import ClientConfig


@asynccontextmanager
async def connect(
    config: ClientConfig | None = None, client: QueueClient | None = None
) -> AsyncIterator[QueueClient]:
    """Open SQS and STS clients for this config and set up a QueueClient.

    Pass ``client`` to set up an existing instance, e.g. the module level one.
    The client is stopped when the block exits.

    """
    config = config or ClientConfig.from_env()
    client = client or QueueClient()
    session = aioboto3.Session(**config.session_kwargs())
    async with session.client("sqs") as sqs, session.client("sts") as sts:
        client.setup(SqsQueueService(sqs), StsIdentityService(sts), config)
        try:
            yield client
        finally:
            client.stop()
