from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ProviderError(Exception):
    """A failure reported by the queue or identity service.

    ``code`` is the provider's own error code, e.g.
    ``AWS.SimpleQueueService.NonExistentQueue``.  Anything this library has no
    specific handling for surfaces as a plain ProviderError.
    """

    code: str
    message: str

    def __init__(self, code: str, message: str = ""):
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message


class QueueDoesNotExist(ProviderError):
    pass


class QueueDeletedRecently(ProviderError):
    """
    SQS refuses to create a queue under a name that was deleted less than 60
    seconds ago.
    """


class InvalidReceiptHandle(ProviderError):
    pass


@dataclass
class Message:
    """A single delivery of a message.

    The receipt handle identifies this delivery, not the message: it is what
    you need to delete the message, and it stops working once the message is
    deleted or redelivered.

    """

    body: Any
    receipt_handle: str
    attributes: dict[str, str] = field(default_factory=dict)
    message_id: str | None = None
    message_attributes: dict[str, Any] = field(default_factory=dict)


# Infra abstractions


class QueueService(ABC):
    """Everything we need from a queue backend, modelled on SQS.

    All methods except create_queue and get_queue_url take a queue URL.
    Failures MUST be raised as ProviderError, using the specific subclasses
    where they apply.  ``options`` are extra provider request fields and are
    passed through untouched.

    """

    @abstractmethod
    async def create_queue(self, name: str, options: dict) -> str: ...
    @abstractmethod
    async def get_queue_url(self, name: str, owner_account: str, options: dict) -> str: ...
    @abstractmethod
    async def delete_queue(self, url: str): ...
    @abstractmethod
    async def purge_queue(self, url: str): ...
    @abstractmethod
    async def get_queue_attributes(self, url: str, names: list[str]) -> dict[str, str]: ...
    @abstractmethod
    async def send_message(self, url: str, body: str, options: dict) -> str: ...
    @abstractmethod
    async def receive_message(self, url: str, options: dict) -> list[Message]: ...
    @abstractmethod
    async def delete_message(self, url: str, receipt_handle: str): ...


class IdentityService(ABC):
    @abstractmethod
    async def get_caller_identity(self) -> str:
        """Return the account id of the credentials in use."""
        ...
