"""
Shared fixtures: a scripted Waterfalls server double and sample payloads.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from waterfalls_client.async_client import AsyncClient
from waterfalls_client.blocking import BlockingClient

BASE_URL = "http://waterfalls.test"

TXID = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"
BLOCK_HASH = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
DESCRIPTOR = "wpkh(tpubD6NzVbkrYhZ4XgiXtGrdW5XDAPFCL9h7we1vwNCpn8tGbBcgfVYjXyhWo4E1xkh56hjod1RhGjxbaTLV3X4FyWuejifB9jusQ46QzG87VKp/0/*)"


def build_raw_tx(value: int = 50_000) -> bytes:
    """A minimal legacy transaction: one input, one P2WPKH output."""
    prev_txid = bytes(range(32))
    script_pubkey = bytes.fromhex("0014") + bytes(20)
    return (
        (2).to_bytes(4, "little")
        + b"\x01"
        + prev_txid
        + (0).to_bytes(4, "little")
        + b"\x00"
        + b"\xff\xff\xff\xff"
        + b"\x01"
        + value.to_bytes(8, "little")
        + bytes([len(script_pubkey)])
        + script_pubkey
        + (0).to_bytes(4, "little")
    )


def build_raw_header() -> bytes:
    return (
        (0x20000000).to_bytes(4, "little")
        + bytes.fromhex(BLOCK_HASH)[::-1]
        + bytes(range(32))
        + (1_700_000_000).to_bytes(4, "little")
        + bytes.fromhex("1d00ffff")[::-1]
        + (42).to_bytes(4, "little")
    )


def waterfalls_payload() -> dict:
    return {
        "txs_seen": {
            "wpkh-external": [
                [
                    {
                        "txid": TXID,
                        "height": 100,
                        "block_hash": BLOCK_HASH,
                        "block_timestamp": 1_700_000_000,
                        "v": 1,
                    },
                    {"txid": "11" * 32, "height": 0, "v": -1},
                ],
                [],
            ],
            "wpkh-change": [[]],
        },
        "page": 0,
        "tip_meta": {"b": BLOCK_HASH, "t": 1_700_000_000, "h": 100},
    }


class FakeServer:
    """
    Scripted stand-in for a Waterfalls server.

    Routes map (method, path) to a list of (status, body) replies that are
    consumed in order; the last reply repeats. Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list[tuple[int, bytes]]] = {}
        self.error: Exception | None = None

    def reply(self, method: str, path: str, *replies: tuple[int, bytes | str]) -> None:
        self.routes[(method, path)] = [
            (status, body.encode() if isinstance(body, str) else body) for status, body in replies
        ]

    def reply_json(self, method: str, path: str, payload: dict) -> None:
        self.reply(method, path, (200, json.dumps(payload)))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        replies = self.routes.get((request.method, request.url.path))
        if not replies:
            return httpx.Response(404, content=b"Not Found")
        status, body = replies.pop(0) if len(replies) > 1 else replies[0]
        return httpx.Response(status, content=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class AsyncRecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def async_sleeper() -> AsyncRecordingSleeper:
    return AsyncRecordingSleeper()


@pytest.fixture
def make_blocking(
    server: FakeServer, sleeper: RecordingSleeper
) -> Callable[..., BlockingClient]:
    def factory(max_retries: int = 6, url: str = BASE_URL) -> BlockingClient:
        client = httpx.Client(transport=server.transport())
        return BlockingClient.from_client(url, client, max_retries=max_retries, sleeper=sleeper)

    return factory


@pytest.fixture
def make_async(
    server: FakeServer, async_sleeper: AsyncRecordingSleeper
) -> Callable[..., AsyncClient]:
    def factory(max_retries: int = 6, url: str = BASE_URL) -> AsyncClient:
        client = httpx.AsyncClient(transport=server.transport())
        return AsyncClient.from_client(
            url, client, max_retries=max_retries, sleeper=async_sleeper
        )

    return factory
