import pytest

from lazyq.arguments import InvalidArguments, OperationRequest


def cb(*args):
    pass


def other_cb(*args):
    pass


URL = "https://sqs.us-east-1.amazonaws.com/000000000000/q"


@pytest.mark.parametrize(
    "args,expected",
    [
        # name
        (("q",), OperationRequest(queue_name="q")),
        # name, callback
        (("q", cb), OperationRequest(queue_name="q", callback=cb)),
        # name, options
        (
            ("q", {"WaitTimeSeconds": 20}),
            OperationRequest(queue_name="q", options={"WaitTimeSeconds": 20}),
        ),
        # name, options, callback
        (
            ("q", {"WaitTimeSeconds": 20}, cb),
            OperationRequest(queue_name="q", options={"WaitTimeSeconds": 20}, callback=cb),
        ),
        # options
        (({"QueueUrl": URL},), OperationRequest(queue_url=URL)),
        # options, callback
        (
            ({"QueueUrl": URL, "MaxNumberOfMessages": 10}, cb),
            OperationRequest(queue_url=URL, options={"MaxNumberOfMessages": 10}, callback=cb),
        ),
        # name in options
        (({"QueueName": "q"},), OperationRequest(queue_name="q")),
        # list shorthand
        (
            ("q", ["QueueArn"]),
            OperationRequest(queue_name="q", options={"AttributeNames": ["QueueArn"]}),
        ),
        (
            ("q", ("QueueArn", "DelaySeconds"), cb),
            OperationRequest(
                queue_name="q",
                options={"AttributeNames": ["QueueArn", "DelaySeconds"]},
                callback=cb,
            ),
        ),
        # owner account is lifted out of the options
        (
            ("q", {"QueueOwnerAWSAccountId": "123"}),
            OperationRequest(queue_name="q", owner_account="123"),
        ),
        # non-callable trailing value is not a callback
        (("q", None), OperationRequest(queue_name="q")),
    ],
)
def test_plain_shapes(args, expected):
    assert OperationRequest.from_args(*args) == expected


@pytest.mark.parametrize(
    "args,expected",
    [
        # name, payload
        (("q", {"id": 1}), OperationRequest(queue_name="q", payload={"id": 1})),
        (("q", "hello"), OperationRequest(queue_name="q", payload="hello")),
        # name, payload, callback
        (("q", [1, 2], cb), OperationRequest(queue_name="q", payload=[1, 2], callback=cb)),
        # name, payload, options
        (
            ("q", "hello", {"DelaySeconds": 5}),
            OperationRequest(queue_name="q", payload="hello", options={"DelaySeconds": 5}),
        ),
        # name, payload, options, callback
        (
            ("q", "hello", {"DelaySeconds": 5}, cb),
            OperationRequest(
                queue_name="q", payload="hello", options={"DelaySeconds": 5}, callback=cb
            ),
        ),
        # payload, options
        (
            ({"id": 1}, {"QueueUrl": URL}),
            OperationRequest(queue_url=URL, payload={"id": 1}),
        ),
        # payload, options, callback
        (
            ({"id": 1}, {"QueueName": "q", "DelaySeconds": 1}, cb),
            OperationRequest(
                queue_name="q", payload={"id": 1}, options={"DelaySeconds": 1}, callback=cb
            ),
        ),
        # options only, body inside
        (
            ({"QueueUrl": URL, "MessageBody": "hello"},),
            OperationRequest(queue_url=URL, payload="hello"),
        ),
        (
            ({"QueueUrl": URL, "MessageBody": "hello"}, cb),
            OperationRequest(queue_url=URL, payload="hello", callback=cb),
        ),
        # name only: payload is checked later
        (("q",), OperationRequest(queue_name="q")),
        (("q", cb), OperationRequest(queue_name="q", callback=cb)),
        # falsy payloads are payloads
        (("q", 0), OperationRequest(queue_name="q", payload=0)),
        (("q", ""), OperationRequest(queue_name="q", payload="")),
    ],
)
def test_payload_shapes(args, expected):
    assert OperationRequest.from_args(*args, payload_bearing=True) == expected


@pytest.mark.parametrize(
    "args",
    [
        (),
        (cb,),
        ({"QueueUrl": URL}, "payload", {}, cb),
        (1, 2, 3, 4),
        ("q", "a", "b", "c", cb),
        ("q", {}, {}),
        ("q", {}, {}, cb),
        ({"QueueUrl": URL}, {"QueueUrl": URL}),
        ("q", cb, {}),
        ("q", 42),
        ({},),
        ({"WaitTimeSeconds": 20}, cb),
        ("q", {"QueueName": "other"}),
    ],
)
def test_invalid_shapes(args):
    with pytest.raises(InvalidArguments):
        OperationRequest.from_args(*args)


@pytest.mark.parametrize(
    "args",
    [
        (cb,),
        ({"QueueUrl": URL}, "payload", {}, cb),
        ("q", "payload", {}, {}),
        ("q", "a", {}, {}, cb),
        ({"id": 1},),
        ({"id": 1}, {"DelaySeconds": 1}),
        ("q", "payload", 42),
        ("q", cb, "payload"),
    ],
)
def test_invalid_payload_shapes(args):
    with pytest.raises(InvalidArguments):
        OperationRequest.from_args(*args, payload_bearing=True)


def test_options_are_copied():
    options = {"QueueUrl": URL, "WaitTimeSeconds": 20}
    request = OperationRequest.from_args(options)
    assert request.options == {"WaitTimeSeconds": 20}
    assert options == {"QueueUrl": URL, "WaitTimeSeconds": 20}


def test_matching_name_in_options():
    request = OperationRequest.from_args("q", {"QueueName": "q", "Attributes": {}})
    assert request.queue_name == "q"
    assert request.options == {"Attributes": {}}


def test_message_body_dropped_without_payload_slot():
    request = OperationRequest.from_args({"QueueUrl": URL, "MessageBody": "x"})
    assert request.payload is None
    assert request.options == {}


def test_prebuilt_request():
    request = OperationRequest(queue_name="q", options={"WaitTimeSeconds": 1})
    assert OperationRequest.from_args(request) is request
    assert OperationRequest.from_args(request, other_cb).callback is other_cb
    with pytest.raises(InvalidArguments):
        OperationRequest.from_args(request, {})
