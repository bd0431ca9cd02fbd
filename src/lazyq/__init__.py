import functools

from .arguments import InvalidArguments, OperationRequest
from .client import MissingPayload, PullLoopAborted, QueueClient, ResolutionFailed
from .codec import MalformedBody
from .config import ClientConfig, Credentials
from . import aws
from .queue import (
    InvalidReceiptHandle,
    Message,
    ProviderError,
    QueueDeletedRecently,
    QueueDoesNotExist,
)

# Export only.  Silence linter.
assert InvalidArguments and OperationRequest
assert MissingPayload and PullLoopAborted and ResolutionFailed and MalformedBody
assert ClientConfig and Credentials
assert InvalidReceiptHandle and Message and ProviderError
assert QueueDeletedRecently and QueueDoesNotExist

# For ergonomics, we provide a singleton and a bunch of proxies as the module interface.
_client = QueueClient()

setup = _client.setup
stop = _client.stop
get_queue_owner_account_id = _client.get_queue_owner_account_id
get_queue_url = _client.get_queue_url
get_queue_attributes = _client.get_queue_attributes
create_queue = _client.create_queue
delete_queue = _client.delete_queue
purge_queue = _client.purge_queue
push = _client.push
receive_message = _client.receive_message
delete_message = _client.delete_message
pull = _client.pull
# lazyq.aws.connect for a client of your own
connect = functools.partial(aws.connect, client=_client)
