"""
Request pipeline shared by the blocking and async clients.

Every operation is written once, as a generator that yields transport
effects and receives their results:

- SendRequest(request) is answered with the httpx.Response
- Sleep(seconds) is answered with None once the delay has elapsed

The generator's return value is the decoded result. The clients in
blocking.py and async_client.py only differ in how they perform the
effects (see transport.py), so retry, decoding and error mapping behave
identically under both.

Per call the flow is:
    built -> sent -> (retryable status -> sleep -> sent)*
          -> non-2xx -> HttpResponseError
          -> 2xx -> decoded value, or a decode error
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from embit.transaction import Transaction
from loguru import logger

from waterfalls_client.backoff import RetryState, should_retry
from waterfalls_client.constants import DEFAULT_MAX_RETRIES, MAX_U32
from waterfalls_client.decoding import (
    check_status,
    decode_hex,
    decode_json,
    decode_optional_binary,
    decode_text,
    parse_block_hash,
    parse_height,
)
from waterfalls_client.errors import NotFoundError
from waterfalls_client.header import BlockHeader
from waterfalls_client.models import WaterfallResponse

T = TypeVar("T")


@dataclass(frozen=True)
class Request:
    method: str
    path: str
    params: tuple[tuple[str, str], ...] = ()
    content: bytes | None = None

    @property
    def idempotent(self) -> bool:
        return self.method == "GET"


@dataclass(frozen=True)
class SendRequest:
    request: Request


@dataclass(frozen=True)
class Sleep:
    seconds: float


Effect = SendRequest | Sleep
Flow = Generator[Effect, Any, T]


def _check_u32(name: str, value: int) -> int:
    if not 0 <= value <= MAX_U32:
        raise ValueError(f"{name} out of range: {value}")
    return value


class RequestPipeline:
    """
    Protocol logic for every Waterfalls endpoint.

    Holds only configuration, so one instance can serve any number of
    concurrent calls.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transaction_type: Any = Transaction,
        header_type: Any = BlockHeader,
    ):
        """
        Args:
            max_retries: Retries allowed per GET for retryable statuses
            transaction_type: Consensus type for raw transactions
            header_type: Consensus type for block headers
        """
        self.max_retries = max_retries
        self.transaction_type = transaction_type
        self.header_type = header_type

    def execute(self, request: Request) -> Flow[httpx.Response]:
        """
        Send a request, retrying idempotent ones on retryable statuses.

        The response of the last attempt is returned whatever its status;
        callers decide how to treat it.
        """
        state = RetryState()
        while True:
            logger.debug(f"{request.method} {request.path} (attempt {state.attempts + 1})")
            response = yield SendRequest(request)
            if not request.idempotent or not should_retry(
                state.attempts, self.max_retries, response.status_code
            ):
                return response

            logger.warning(
                f"{request.method} {request.path} returned {response.status_code}, "
                f"retrying in {state.delay:.3f}s ({state.attempts + 1}/{self.max_retries})"
            )
            yield Sleep(state.delay)
            state = state.advance()

    def get_tx(self, txid: str) -> Flow[Any | None]:
        """Get a transaction by txid, or None if the server does not know it."""
        txid = parse_block_hash(txid)
        response = yield from self.execute(Request("GET", f"/tx/{txid}/raw"))
        return decode_optional_binary(response, self.transaction_type)

    def get_tx_no_opt(self, txid: str) -> Flow[Any]:
        """Get a transaction by txid, raising NotFoundError if it does not exist."""
        tx = yield from self.get_tx(txid)
        if tx is None:
            raise NotFoundError(txid)
        return tx

    def get_header_by_hash(self, block_hash: str) -> Flow[Any]:
        block_hash = parse_block_hash(block_hash)
        response = yield from self.execute(Request("GET", f"/block/{block_hash}/header"))
        return decode_hex(response, self.header_type)

    def get_tip_hash(self) -> Flow[str]:
        response = yield from self.execute(Request("GET", "/blocks/tip/hash"))
        return parse_block_hash(decode_text(response))

    def get_tip_height(self) -> Flow[int]:
        response = yield from self.execute(Request("GET", "/blocks/tip/height"))
        return parse_height(decode_text(response))

    def get_block_hash(self, block_height: int) -> Flow[str]:
        _check_u32("Block height", block_height)
        response = yield from self.execute(Request("GET", f"/block-height/{block_height}"))
        return parse_block_hash(decode_text(response))

    def get_address_txs(self, address: str) -> Flow[str]:
        """Transaction history of an address, as the server's Esplora-style JSON text."""
        response = yield from self.execute(Request("GET", f"/address/{address}/txs"))
        return decode_text(response)

    def waterfalls(self, descriptor: str) -> Flow[WaterfallResponse]:
        """Query the waterfalls endpoint with a descriptor."""
        return (yield from self._waterfalls("/v2/waterfalls", (("descriptor", descriptor),)))

    def waterfalls_addresses(self, addresses: Sequence[str]) -> Flow[WaterfallResponse]:
        """Query the waterfalls endpoint with a list of addresses."""
        if not addresses:
            raise ValueError("At least one address is required")
        joined = ",".join(str(address) for address in addresses)
        return (yield from self._waterfalls("/v2/waterfalls", (("addresses", joined),)))

    def waterfalls_version(
        self,
        descriptor: str,
        version: int,
        page: int | None = None,
        to_index: int | None = None,
        utxo_only: bool = False,
    ) -> Flow[WaterfallResponse]:
        """
        Query a specific version of the waterfalls endpoint.

        Args:
            descriptor: Wallet descriptor to resolve
            version: Protocol version, selects /v{version}/waterfalls
            page: Page to fetch, omitted from the query when None
            to_index: Highest derivation index to scan, omitted when None
            utxo_only: Only report transactions with unspent outputs
        """
        if not 0 <= version <= 255:
            raise ValueError(f"Invalid waterfalls version: {version}")

        params = [
            ("descriptor", descriptor),
            ("utxo_only", "true" if utxo_only else "false"),
        ]
        if page is not None:
            params.append(("page", str(_check_u32("Page", page))))
        if to_index is not None:
            params.append(("to_index", str(_check_u32("to_index", to_index))))

        return (yield from self._waterfalls(f"/v{version}/waterfalls", tuple(params)))

    def _waterfalls(
        self, path: str, params: tuple[tuple[str, str], ...]
    ) -> Flow[WaterfallResponse]:
        response = yield from self.execute(Request("GET", path, params=params))
        result = decode_json(response, WaterfallResponse)
        logger.debug(
            f"Waterfalls page {result.page}: {len(result.txs_seen)} keys, "
            f"empty={result.is_empty()}"
        )
        return result

    def server_recipient(self) -> Flow[str]:
        """The server's public key for encryption."""
        response = yield from self.execute(Request("GET", "/v1/server_recipient"))
        return decode_text(response)

    def server_address(self) -> Flow[str]:
        """The server's address for message signing verification."""
        response = yield from self.execute(Request("GET", "/v1/server_address"))
        return decode_text(response)

    def time_since_last_block(self) -> Flow[str]:
        """Human readable time since the last block, with a freshness indicator."""
        response = yield from self.execute(Request("GET", "/v1/time_since_last_block"))
        return decode_text(response)

    def broadcast(self, transaction: Any) -> Flow[None]:
        """
        Broadcast a transaction as hex.

        Sent exactly once: a POST is never retried.
        """
        body = transaction.serialize().hex().encode()
        response = yield from self.execute(Request("POST", "/tx", content=body))
        check_status(response)
        logger.debug("Transaction broadcast accepted")
