from __future__ import annotations

import typing

from ..queue import IdentityService
from .sqs import provider_errors

if typing.TYPE_CHECKING:
    from types_aiobotocore_sts import STSClient


class StsIdentityService(IdentityService):
    client: STSClient

    def __init__(self, client: STSClient):
        self.client = client

    @provider_errors
    async def get_caller_identity(self) -> str:
        response = await self.client.get_caller_identity()
        return response["Account"]
