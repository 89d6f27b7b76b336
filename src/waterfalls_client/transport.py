"""
Transport bindings that drive the request pipeline.

BlockingTransport runs a flow on the calling thread with httpx.Client and a
blocking sleep. AsyncTransport runs it as a coroutine with httpx.AsyncClient
and an awaitable sleeper. Both close the flow when they stop driving it, so
an exception or a cancelled task never leaves a retry loop behind.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from waterfalls_client.errors import TransportError
from waterfalls_client.pipeline import Effect, Flow, Request, Sleep

T = TypeVar("T")

BlockingSleeper = Callable[[float], None]
Sleeper = Callable[[float], Awaitable[None]]


def _transport_error(request: Request, error: httpx.RequestError) -> TransportError:
    return TransportError(f"{request.method} {request.path} failed: {type(error).__name__}: {error}")


class BlockingTransport:
    def __init__(self, url: str, client: httpx.Client, sleeper: BlockingSleeper = time.sleep):
        self.url = url
        self.client = client
        self.sleeper = sleeper

    def send(self, request: Request) -> httpx.Response:
        http_request = self.client.build_request(
            request.method,
            f"{self.url}{request.path}",
            params=list(request.params) or None,
            content=request.content,
        )
        try:
            return self.client.send(http_request)
        except httpx.RequestError as e:
            raise _transport_error(request, e) from e

    def perform(self, effect: Effect) -> httpx.Response | None:
        if isinstance(effect, Sleep):
            self.sleeper(effect.seconds)
            return None
        return self.send(effect.request)

    def run(self, flow: Flow[T]) -> T:
        reply: httpx.Response | None = None
        try:
            while True:
                try:
                    effect = flow.send(reply)
                except StopIteration as done:
                    return done.value
                reply = self.perform(effect)
        finally:
            flow.close()

    def close(self) -> None:
        self.client.close()


class AsyncTransport:
    def __init__(self, url: str, client: httpx.AsyncClient, sleeper: Sleeper = asyncio.sleep):
        self.url = url
        self.client = client
        self.sleeper = sleeper

    async def send(self, request: Request) -> httpx.Response:
        http_request = self.client.build_request(
            request.method,
            f"{self.url}{request.path}",
            params=list(request.params) or None,
            content=request.content,
        )
        try:
            return await self.client.send(http_request)
        except httpx.RequestError as e:
            raise _transport_error(request, e) from e

    async def perform(self, effect: Effect) -> httpx.Response | None:
        if isinstance(effect, Sleep):
            await self.sleeper(effect.seconds)
            return None
        return await self.send(effect.request)

    async def run(self, flow: Flow[T]) -> T:
        reply: httpx.Response | None = None
        try:
            while True:
                try:
                    effect = flow.send(reply)
                except StopIteration as done:
                    return done.value
                reply = await self.perform(effect)
        finally:
            flow.close()

    async def aclose(self) -> None:
        await self.client.aclose()
