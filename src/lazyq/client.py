from __future__ import annotations

import asyncio
from collections.abc import Callable
import dataclasses
import functools
import inspect
import logging
from typing import Any

from .arguments import InvalidArguments, OperationRequest
from .codec import CONTENT_TYPE_ATTRIBUTE, Codec, JsonCodec, MalformedBody
from .config import ClientConfig
from .queue import (
    IdentityService,
    Message,
    ProviderError,
    QueueDeletedRecently,
    QueueDoesNotExist,
    QueueService,
)

logger = logging.getLogger(__name__)

# Receives one decoded message.  Returning normally acknowledges it, raising or
# returning False leaves it on the queue.
Handler = Callable[[Message], Any]


class MissingPayload(ValueError):
    pass


class ResolutionFailed(ProviderError):
    """Resolving a queue name to its URL failed for a reason other than the
    queue not existing."""


class PullLoopAborted(Exception):
    pass


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


def requires_setup(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.queues is None or self.identity is None:
            raise Exception("QueueClient not set up")
        return method(self, *args, **kwargs)

    return wrapper


def with_callback(method):
    """Support the completion-callback calling style.

    The wrapped operation returns (or raises) as usual.  If the request
    carries a callback it is additionally called node-style: ``callback(None,
    result)`` on success, ``callback(error)`` on failure.

    """

    @functools.wraps(method)
    async def wrapper(self, request: OperationRequest):
        try:
            result = await method(self, request)
        except Exception as e:
            if request.callback is not None:
                try:
                    await _maybe_await(request.callback(e))
                except Exception:
                    # The operation's own error is what the caller gets
                    logger.exception(f"Completion callback failed while handling {e!r}")
            raise
        if request.callback is not None:
            await _maybe_await(request.callback(None, result))
        return result

    return wrapper


class QueueClient:
    """
    A queue service, an identity service and the configuration to use them,
    wrapped in a container.
    """

    queues: QueueService | None
    identity: IdentityService | None
    config: ClientConfig
    codec: Codec

    def __init__(self):
        self.queues = None
        self.identity = None
        self.config = ClientConfig()
        self.codec = JsonCodec()
        self._stopping = asyncio.Event()

    def setup(
        self,
        queues: QueueService,
        identity: IdentityService,
        config: ClientConfig | None = None,
        codec: Codec | None = None,
    ):
        """Initialize the backends used by this client."""
        self.queues = queues
        self.identity = identity
        self.config = config or ClientConfig()
        self.codec = codec or JsonCodec()
        self._stopping = asyncio.Event()

    def stop(self):
        """Stop all long running operations of this client.

        Pull loops return before their next cycle and create_queue stops
        waiting out the deleted-recently cooldown.  In-flight requests are not
        interrupted; cancel the task running them for that.

        """
        logger.info("Stopping queue client")
        self._stopping.set()

    @property
    def stopped(self) -> bool:
        return self._stopping.is_set()

    async def _suspend(self, seconds: float) -> bool:
        """Sleep, waking up early when stopped.  Returns True if stopped."""
        if self.stopped:
            return True
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def effective_name(self, name: str) -> str:
        prefix = self.config.queue_name_prefix
        if name.startswith(prefix):
            return name
        return prefix + name

    # Public API.  Every method takes the variadic shapes documented on
    # OperationRequest.from_args.

    @requires_setup
    async def get_queue_owner_account_id(self, callback: Callable | None = None) -> str:
        return await self._get_queue_owner_account_id(OperationRequest(callback=callback))

    @with_callback
    async def _get_queue_owner_account_id(self, request: OperationRequest) -> str:
        return await self.identity.get_caller_identity()

    @requires_setup
    async def get_queue_url(self, *args) -> str:
        return await self._get_queue_url(OperationRequest.from_args(*args))

    @with_callback
    async def _get_queue_url(self, request: OperationRequest) -> str:
        return await self._resolve(request, request.options)

    @requires_setup
    async def create_queue(self, *args) -> str:
        return await self._create_queue(OperationRequest.from_args(*args))

    @with_callback
    async def _create_queue(self, request: OperationRequest) -> str:
        if request.queue_name is None:
            raise InvalidArguments("create_queue needs a queue name")
        name = self.effective_name(request.queue_name)
        while True:
            try:
                url = await self.queues.create_queue(name, request.options)
            except QueueDeletedRecently:
                # Check before sleeping so a stopped client fails fast instead
                # of hanging on to the cooldown.
                if self.stopped:
                    raise
                logger.warning(
                    "Queue %s was deleted recently, retrying in %ss",
                    name,
                    self.config.recreate_delay,
                )
                if await self._suspend(self.config.recreate_delay):
                    raise
                continue
            logger.info(f"Created queue {name}: {url}")
            return url

    @requires_setup
    async def delete_queue(self, *args) -> bool:
        return await self._delete_queue(OperationRequest.from_args(*args))

    @with_callback
    async def _delete_queue(self, request: OperationRequest) -> bool:
        url = await self._resolve(request)
        await self.queues.delete_queue(url)
        logger.info(f"Deleted queue {url}")
        return True

    @requires_setup
    async def purge_queue(self, *args) -> bool:
        return await self._purge_queue(OperationRequest.from_args(*args))

    @with_callback
    async def _purge_queue(self, request: OperationRequest) -> bool:
        url = await self._resolve(request)
        await self.queues.purge_queue(url)
        logger.info(f"Purged queue {url}")
        return True

    @requires_setup
    async def get_queue_attributes(self, *args) -> dict[str, str]:
        return await self._get_queue_attributes(OperationRequest.from_args(*args))

    @with_callback
    async def _get_queue_attributes(self, request: OperationRequest) -> dict[str, str]:
        url = await self._resolve(request)
        names = request.options.get("AttributeNames") or ["All"]
        return await self.queues.get_queue_attributes(url, list(names))

    @requires_setup
    async def push(self, *args) -> str:
        """Send one message, creating the queue if it doesn't exist yet.

        Returns the message id assigned by the queue service.

        """
        return await self._push(OperationRequest.from_args(*args, payload_bearing=True))

    @with_callback
    async def _push(self, request: OperationRequest) -> str:
        if request.payload is None:
            raise MissingPayload("A payload is required")
        options = request.options
        if isinstance(request.payload, str):
            body = request.payload
        else:
            body = self.codec.encode(request.payload)
            options = {
                **options,
                "MessageAttributes": {
                    **options.get("MessageAttributes", {}),
                    CONTENT_TYPE_ATTRIBUTE: {
                        "DataType": "String",
                        "StringValue": self.codec.content_type,
                    },
                },
            }

        url = request.queue_url
        if url is None:
            try:
                url = await self._resolve(request)
            except ProviderError as e:
                logger.warning(
                    f"Could not resolve queue {request.queue_name} ({e.code}), creating it"
                )
                url = await self._create_queue(dataclasses.replace(request, options={}, callback=None))

        message_id = await self.queues.send_message(url, body, options)
        logger.debug(f"Sent message {message_id} to {url}")
        return message_id

    @requires_setup
    async def delete_message(self, queue: str | dict, *args) -> bool:
        """Delete a message by receipt handle.

            delete_message(name | options[, receipt_handle][, callback])

        The handle may also be given as ``ReceiptHandle`` in the options.

        """
        args = list(args)
        callback = args.pop() if args and callable(args[-1]) else None
        if len(args) > 1:
            raise InvalidArguments(f"Too many arguments for delete_message: {args!r}")
        request = OperationRequest.from_args(queue)
        options = dict(request.options)
        receipt_handle = options.pop("ReceiptHandle", None)
        if args and args[0] is not None:
            receipt_handle = args[0]
        return await self._delete_message(
            dataclasses.replace(request, payload=receipt_handle, options=options, callback=callback)
        )

    @with_callback
    async def _delete_message(self, request: OperationRequest) -> bool:
        if not request.payload:
            raise InvalidArguments("delete_message needs a receipt handle")
        url = await self._resolve(request)
        await self.queues.delete_message(url, request.payload)
        return True

    @requires_setup
    async def receive_message(self, *args) -> int:
        """Receive a single batch and hand every message to the handler.

        Only returns once all handlers have finished.  Returns the number of
        messages which were acknowledged, and thus deleted.

        """
        request = OperationRequest.from_args(*args)
        if request.callback is None:
            raise InvalidArguments("receive_message needs a message handler")
        url = await self._resolve(request)
        return await self._receive_batch(url, request.options, request.callback)

    @requires_setup
    async def pull(self, *args):
        """Receive messages in a loop until the client is stopped.

        URL resolution is repeated every cycle, so a queue that disappears
        is recreated on the next cycle.  Any failure to resolve or receive
        ends the loop with PullLoopAborted, unless the client was stopped in
        the meantime: then the loop just returns.

        """
        request = OperationRequest.from_args(*args)
        if request.callback is None:
            raise InvalidArguments("pull needs a message handler")
        logger.info(f"Pulling from {request.queue_name or request.queue_url}")
        while not self.stopped:
            try:
                url = await self._resolve(request)
                await self._receive_batch(url, request.options, request.callback)
            except Exception as e:
                if self.stopped:
                    # e.g. a recreate cooldown cut short by stop()
                    logger.info(f"Pull cycle interrupted by stop: {e!r}")
                    break
                logger.error(f"Pull loop for {request.queue_name or request.queue_url} aborted: {e!r}")
                raise PullLoopAborted(str(e)) from e
            if await self._suspend(self.config.poll_interval):
                break
        logger.info(f"Stopped pulling from {request.queue_name or request.queue_url}")

    # Internals

    async def _resolve(self, request: OperationRequest, options: dict | None = None) -> str:
        """Return the URL for a request, creating the queue if necessary.

        ``options`` are extra GetQueueUrl fields.  They are separate from the
        request options, which belong to whatever call the URL is for.

        """
        if request.queue_url is not None:
            return request.queue_url
        if request.queue_name is None:
            raise InvalidArguments("Request has neither a queue name nor a queue URL")
        name = self.effective_name(request.queue_name)
        try:
            owner = request.owner_account
            if owner is None:
                owner = await self.identity.get_caller_identity()
            return await self.queues.get_queue_url(name, owner, options or {})
        except QueueDoesNotExist:
            pass
        except ProviderError as e:
            raise ResolutionFailed(e.code, e.message) from e

        logger.info(f"Queue {name} does not exist, creating it")
        try:
            return await self._create_queue(OperationRequest(queue_name=name))
        except ProviderError as e:
            raise ResolutionFailed(e.code, e.message) from e

    async def _receive_batch(self, url: str, options: dict, handler: Handler) -> int:
        names = list(options.get("MessageAttributeNames", []))
        if not {"All", ".*", CONTENT_TYPE_ATTRIBUTE} & set(names):
            names.append(CONTENT_TYPE_ATTRIBUTE)
        messages = await self.queues.receive_message(
            url, {**options, "MessageAttributeNames": names}
        )
        if not messages:
            logger.debug(f"No messages on {url}")
            return 0
        logger.debug(f"Received {len(messages)} messages from {url}")
        # Let every handler settle before reporting any failure
        results = await asyncio.gather(
            *(self._handle_message(url, message, handler) for message in messages),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return sum(results)

    async def _handle_message(self, url: str, message: Message, handler: Handler) -> bool:
        body = message.body
        content_type = message.message_attributes.get(CONTENT_TYPE_ATTRIBUTE, {})
        if content_type.get("StringValue") == self.codec.content_type:
            try:
                body = self.codec.decode(message.body)
            except MalformedBody:
                logger.exception(f"Leaving undecodable message {message.message_id} on {url}")
                return False

        try:
            result = await _maybe_await(handler(dataclasses.replace(message, body=body)))
        except Exception:
            logger.exception(f"Handler failed for message {message.message_id} on {url}")
            return False
        if result is False:
            logger.debug(f"Handler rejected message {message.message_id} on {url}")
            return False

        try:
            await self.queues.delete_message(url, message.receipt_handle)
        except ProviderError as e:
            # The message will just be redelivered
            logger.error(f"Could not delete message {message.message_id} from {url}: {e}")
            return False
        return True
