#!/usr/bin/env python3

import asyncio
import json
import logging
import os
from pprint import pprint
import sys
from typing import Iterable

from aiohttp import web

import lazyq
from lazyq import ClientConfig

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()


def response(status: int, content: dict):
    return web.Response(status=status, text=json.dumps(content))


@routes.post("/{queue_name}")
async def push_message(request: web.BaseRequest):
    queue_name = request.match_info["queue_name"]
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        payload = await request.text()
    if not payload:
        return response(400, {"error": "Empty message"})

    # Query parameters become SendMessage fields, e.g. ?DelaySeconds=10
    options = {k: int(v) if v.isdigit() else v for k, v in request.query.items()}
    message_id = await lazyq.push(queue_name, payload, options)
    return response(202, {"status": "accepted", "message_id": message_id})


@routes.get("/{queue_name}")
async def queue_attributes(request: web.BaseRequest):
    queue_name = request.match_info["queue_name"]
    return response(200, await lazyq.get_queue_attributes(queue_name))


def args2dict(args: Iterable[str]) -> dict[str, str]:
    """
    Extremely rudimentary arbitrary argparser.

    args2dict(["--foo", "bar", "--zim", "zom"])
    => {"foo": "bar", "zim": "zom"}

    """
    it = iter(args)
    return {k.lstrip("-"): v for k, v in zip(it, it)}


cmds = {}


def cmd(f):
    cmds[f.__name__] = f
    return f


@cmd
async def push(queue: str, *args: str):
    """
    Put a single message onto the queue, e.g. push orders --id 1 --item fish
    """
    async with lazyq.connect(ClientConfig.from_env()):
        message_id = await lazyq.push(queue, args2dict(args))
        print(message_id)


@cmd
async def pull(queue: str):
    async def handler(message: lazyq.Message):
        print(f"{message.message_id}: {message.body!r}", flush=True)

    async with lazyq.connect(ClientConfig.from_env()):
        await lazyq.pull(queue, {"WaitTimeSeconds": 20, "MaxNumberOfMessages": 10}, handler)


@cmd
async def attributes(queue: str):
    async with lazyq.connect(ClientConfig.from_env()):
        pprint(await lazyq.get_queue_attributes(queue))


@cmd
async def purge(queue: str):
    async with lazyq.connect(ClientConfig.from_env()):
        await lazyq.purge_queue(queue)


@cmd
async def delete(queue: str):
    async with lazyq.connect(ClientConfig.from_env()):
        await lazyq.delete_queue(queue)


@cmd
async def server():
    bind_addr = os.environ.get("LAZYQ_DEMO_LISTEN_HOST", "127.0.0.1")
    bind_port = int(os.environ.get("LAZYQ_DEMO_LISTEN_PORT", "8080"))
    async with lazyq.connect(ClientConfig.from_env()):
        app = web.Application()
        app.add_routes(routes)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, bind_addr, bind_port)
        await site.start()
        logger.info(f"Listening on http://{bind_addr}:{bind_port}")
        await asyncio.Event().wait()


async def amain():
    # To log _all_ messages at DEBUG level (very noisy)
    # logging.basicConfig(level=logging.DEBUG)
    logging.basicConfig()
    logger.setLevel(logging.DEBUG)
    # To log all lazyq messages at DEBUG level (quite noisy)
    # logging.getLogger('lazyq').setLevel(logging.DEBUG)
    f = cmds.get(sys.argv[1]) if len(sys.argv) > 1 else None
    if f:
        await f(*sys.argv[2:])
    else:
        print(f"Usage: lazyq_demo.py <{' | '.join(cmds.keys())}>")
        sys.exit(1)


def main():
    try:
        asyncio.run(amain())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
