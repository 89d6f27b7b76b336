"""
Waterfalls client for asyncio callers, built on httpx.AsyncClient.

Calls suspend instead of blocking, both while waiting on the network and
while backing off. The backoff timer is pluggable: pass any
``async def sleeper(seconds: float) -> None`` to run under a scheduler
other than asyncio's default timer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import httpx

from waterfalls_client.config import ClientConfig
from waterfalls_client.constants import DEFAULT_MAX_RETRIES
from waterfalls_client.models import WaterfallResponse
from waterfalls_client.pipeline import RequestPipeline
from waterfalls_client.transport import AsyncTransport, Sleeper


class AsyncClient:
    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleeper: Sleeper | None = None,
    ):
        self._transport = AsyncTransport(url.rstrip("/"), client, sleeper or asyncio.sleep)
        self._pipeline = RequestPipeline(max_retries=max_retries)

    @classmethod
    def from_config(cls, config: ClientConfig, sleeper: Sleeper | None = None) -> AsyncClient:
        """
        Build a client and its httpx.AsyncClient from configuration.

        Raises:
            InvalidConfigError: If the proxy or a header is invalid
        """
        client = httpx.AsyncClient(**config.httpx_options())
        return cls(config.base_url, client, max_retries=config.max_retries, sleeper=sleeper)

    @classmethod
    def from_client(
        cls,
        url: str,
        client: httpx.AsyncClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleeper: Sleeper | None = None,
    ) -> AsyncClient:
        """Wrap an httpx.AsyncClient the caller already configured."""
        return cls(url, client, max_retries=max_retries, sleeper=sleeper)

    @property
    def url(self) -> str:
        return self._transport.url

    @property
    def client(self) -> httpx.AsyncClient:
        return self._transport.client

    @property
    def max_retries(self) -> int:
        return self._pipeline.max_retries

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def get_tx(self, txid: str) -> Any | None:
        """Get a transaction by txid, or None if the server does not know it."""
        return await self._transport.run(self._pipeline.get_tx(txid))

    async def get_tx_no_opt(self, txid: str) -> Any:
        """Get a transaction by txid, raising NotFoundError if it does not exist."""
        return await self._transport.run(self._pipeline.get_tx_no_opt(txid))

    async def get_header_by_hash(self, block_hash: str) -> Any:
        return await self._transport.run(self._pipeline.get_header_by_hash(block_hash))

    async def get_tip_hash(self) -> str:
        return await self._transport.run(self._pipeline.get_tip_hash())

    async def get_tip_height(self) -> int:
        return await self._transport.run(self._pipeline.get_tip_height())

    async def get_block_hash(self, block_height: int) -> str:
        return await self._transport.run(self._pipeline.get_block_hash(block_height))

    async def get_address_txs(self, address: str) -> str:
        return await self._transport.run(self._pipeline.get_address_txs(address))

    async def waterfalls(self, descriptor: str) -> WaterfallResponse:
        return await self._transport.run(self._pipeline.waterfalls(descriptor))

    async def waterfalls_addresses(self, addresses: Sequence[str]) -> WaterfallResponse:
        return await self._transport.run(self._pipeline.waterfalls_addresses(addresses))

    async def waterfalls_version(
        self,
        descriptor: str,
        version: int,
        page: int | None = None,
        to_index: int | None = None,
        utxo_only: bool = False,
    ) -> WaterfallResponse:
        return await self._transport.run(
            self._pipeline.waterfalls_version(descriptor, version, page, to_index, utxo_only)
        )

    async def server_recipient(self) -> str:
        return await self._transport.run(self._pipeline.server_recipient())

    async def server_address(self) -> str:
        return await self._transport.run(self._pipeline.server_address())

    async def time_since_last_block(self) -> str:
        return await self._transport.run(self._pipeline.time_since_last_block())

    async def broadcast(self, transaction: Any) -> None:
        await self._transport.run(self._pipeline.broadcast(transaction))
