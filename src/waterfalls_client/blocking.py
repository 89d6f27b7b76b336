"""
Waterfalls client for synchronous callers, built on httpx.Client.

Every call occupies the calling thread until it resolves, including the
backoff sleeps between retries.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

import httpx

from waterfalls_client.config import ClientConfig
from waterfalls_client.constants import DEFAULT_MAX_RETRIES
from waterfalls_client.models import WaterfallResponse
from waterfalls_client.pipeline import RequestPipeline
from waterfalls_client.transport import BlockingSleeper, BlockingTransport


class BlockingClient:
    """
    Blocking Waterfalls client.

    Example:
        >>> client = ClientConfig(base_url="https://waterfalls.example.com/api").build_blocking()
        >>> with client:
        ...     tip = client.get_tip_hash()
    """

    def __init__(
        self,
        url: str,
        client: httpx.Client,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleeper: BlockingSleeper | None = None,
    ):
        self._transport = BlockingTransport(url.rstrip("/"), client, sleeper or time.sleep)
        self._pipeline = RequestPipeline(max_retries=max_retries)

    @classmethod
    def from_config(
        cls, config: ClientConfig, sleeper: BlockingSleeper | None = None
    ) -> BlockingClient:
        """
        Build a client and its httpx.Client from configuration.

        Raises:
            InvalidConfigError: If the proxy or a header is invalid
        """
        client = httpx.Client(**config.httpx_options())
        return cls(config.base_url, client, max_retries=config.max_retries, sleeper=sleeper)

    @classmethod
    def from_client(
        cls,
        url: str,
        client: httpx.Client,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleeper: BlockingSleeper | None = None,
    ) -> BlockingClient:
        """Wrap an httpx.Client the caller already configured."""
        return cls(url, client, max_retries=max_retries, sleeper=sleeper)

    @property
    def url(self) -> str:
        return self._transport.url

    @property
    def client(self) -> httpx.Client:
        return self._transport.client

    @property
    def max_retries(self) -> int:
        return self._pipeline.max_retries

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> BlockingClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_tx(self, txid: str) -> Any | None:
        return self._transport.run(self._pipeline.get_tx(txid))

    def get_tx_no_opt(self, txid: str) -> Any:
        return self._transport.run(self._pipeline.get_tx_no_opt(txid))

    def get_header_by_hash(self, block_hash: str) -> Any:
        return self._transport.run(self._pipeline.get_header_by_hash(block_hash))

    def get_tip_hash(self) -> str:
        return self._transport.run(self._pipeline.get_tip_hash())

    def get_tip_height(self) -> int:
        return self._transport.run(self._pipeline.get_tip_height())

    def get_block_hash(self, block_height: int) -> str:
        return self._transport.run(self._pipeline.get_block_hash(block_height))

    def get_address_txs(self, address: str) -> str:
        return self._transport.run(self._pipeline.get_address_txs(address))

    def waterfalls(self, descriptor: str) -> WaterfallResponse:
        return self._transport.run(self._pipeline.waterfalls(descriptor))

    def waterfalls_addresses(self, addresses: Sequence[str]) -> WaterfallResponse:
        return self._transport.run(self._pipeline.waterfalls_addresses(addresses))

    def waterfalls_version(
        self,
        descriptor: str,
        version: int,
        page: int | None = None,
        to_index: int | None = None,
        utxo_only: bool = False,
    ) -> WaterfallResponse:
        return self._transport.run(
            self._pipeline.waterfalls_version(descriptor, version, page, to_index, utxo_only)
        )

    def server_recipient(self) -> str:
        return self._transport.run(self._pipeline.server_recipient())

    def server_address(self) -> str:
        return self._transport.run(self._pipeline.server_address())

    def time_since_last_block(self) -> str:
        return self._transport.run(self._pipeline.time_since_last_block())

    def broadcast(self, transaction: Any) -> None:
        self._transport.run(self._pipeline.broadcast(transaction))
