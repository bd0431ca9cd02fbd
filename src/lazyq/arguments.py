from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any


class InvalidArguments(ValueError):
    """The shape of a call could not be interpreted."""


@dataclass(frozen=True)
class OperationRequest:
    """Everything a client operation was asked to do, in one place.

    Queue identity lives in ``queue_name`` / ``queue_url`` / ``owner_account``
    and never in ``options``: when callers pass ``QueueName``, ``QueueUrl`` or
    ``QueueOwnerAWSAccountId`` inside their options they are lifted out here, and the resolved URL is added back when
    the provider request is built.

    """

    queue_name: str | None = None
    queue_url: str | None = None
    # Only used to resolve the URL, never sent along with other requests
    owner_account: str | None = None
    payload: Any = None
    options: dict[str, Any] = field(default_factory=dict)
    callback: Callable | None = None

    @classmethod
    def from_args(cls, *args, payload_bearing: bool = False) -> OperationRequest:
        """Interpret a variadic call.

        Accepted shapes, where ``cb`` is any trailing callable:

            name[, cb]
            name, options[, cb]
            options[, cb]

        and for payload-bearing operations (push):

            name, payload[, cb]
            name, payload, options[, cb]
            payload, options[, cb]
            options[, cb]          (payload taken from options["MessageBody"])

        A list or tuple where options are expected is shorthand for
        ``{"AttributeNames": [...]}``.

        """
        if len(args) in (1, 2) and isinstance(args[0], OperationRequest):
            request = args[0]
            if len(args) == 2:
                if not callable(args[1]):
                    raise InvalidArguments("Only a callback may follow an OperationRequest")
                request = replace(request, callback=args[1])
            return request

        if not args or len(args) > 4:
            raise InvalidArguments(f"Expected between 1 and 4 arguments, got {len(args)}")
        if len(args) == 1 and callable(args[0]):
            raise InvalidArguments(
                'You must either specify "name" (string) with separate parameters, '
                "or a single parameters object as first argument"
            )
        if len(args) == 4 and not isinstance(args[0], str):
            raise InvalidArguments(
                'The first parameter should be of type "string" if 4 parameters are provided'
            )

        rest = list(args)
        name = rest.pop(0) if isinstance(rest[0], str) else None
        callback = rest.pop() if rest and callable(rest[-1]) else None
        if any(callable(arg) for arg in rest):
            raise InvalidArguments("A callback is only accepted as the last argument")

        payload = None
        options: Any = None
        if name is None and len(rest) == 1:
            # Options-only call: identity has to come from the options
            options = rest[0]
        elif payload_bearing and len(rest) <= 2:
            if rest:
                payload = rest[0]
            if len(rest) == 2:
                options = rest[1]
        elif not payload_bearing and len(rest) <= 1:
            if rest:
                options = rest[0]
        else:
            raise InvalidArguments(f"Too many arguments: {args!r}")

        options = _to_options(options)
        queue_url = options.pop("QueueUrl", None)
        option_name = options.pop("QueueName", None)
        owner_account = options.pop("QueueOwnerAWSAccountId", None)
        if name is not None and option_name is not None and option_name != name:
            raise InvalidArguments(
                f"Queue name {name!r} conflicts with QueueName {option_name!r} in options"
            )
        name = name if name is not None else option_name
        if payload_bearing and payload is None:
            payload = options.pop("MessageBody", None)
        else:
            options.pop("MessageBody", None)

        if name is None and queue_url is None:
            raise InvalidArguments("No queue name given and no QueueUrl in options")

        return cls(
            queue_name=name,
            queue_url=queue_url,
            owner_account=owner_account,
            payload=payload,
            options=options,
            callback=callback,
        )


def _to_options(options: Any) -> dict[str, Any]:
    if options is None:
        return {}
    if isinstance(options, Mapping):
        # Never mutate what the caller handed us
        return dict(options)
    if isinstance(options, (list, tuple)):
        return {"AttributeNames": list(options)}
    raise InvalidArguments(f"Options must be a mapping, got {type(options).__name__}")
