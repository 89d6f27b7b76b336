"""
waterfalls_client - Blocking and async client for the Waterfalls index server

Resolves descriptors and addresses to the transactions touching them,
fetches raw transactions and headers, and broadcasts transactions.
"""

__version__ = "0.1.0"

from waterfalls_client.async_client import AsyncClient
from waterfalls_client.blocking import BlockingClient
from waterfalls_client.config import ClientConfig
from waterfalls_client.constants import (
    BASE_BACKOFF,
    DEFAULT_MAX_RETRIES,
    RETRYABLE_ERROR_CODES,
)
from waterfalls_client.errors import (
    CodecError,
    DecodeError,
    HexError,
    HttpResponseError,
    InvalidConfigError,
    NotFoundError,
    ParseError,
    TransportError,
    WaterfallsError,
)
from waterfalls_client.esplora import (
    AddressStats,
    AddressTxsSummary,
    BlockStatus,
    BlockSummary,
    BlockTime,
    MerkleProof,
    OutputStatus,
    PrevOut,
    Tx,
    TxStatus,
    Vin,
    Vout,
    parse_address_txs,
)
from waterfalls_client.header import BlockHeader
from waterfalls_client.models import (
    BlockMeta,
    OutputReference,
    ReferenceKind,
    TxSeen,
    WaterfallResponse,
)
from waterfalls_client.transport import BlockingSleeper, Sleeper

__all__ = [
    "AddressStats",
    "AddressTxsSummary",
    "AsyncClient",
    "BASE_BACKOFF",
    "BlockHeader",
    "BlockingClient",
    "BlockingSleeper",
    "BlockMeta",
    "BlockStatus",
    "BlockSummary",
    "BlockTime",
    "ClientConfig",
    "CodecError",
    "DecodeError",
    "DEFAULT_MAX_RETRIES",
    "HexError",
    "HttpResponseError",
    "InvalidConfigError",
    "MerkleProof",
    "NotFoundError",
    "OutputReference",
    "OutputStatus",
    "parse_address_txs",
    "ParseError",
    "PrevOut",
    "ReferenceKind",
    "RETRYABLE_ERROR_CODES",
    "Sleeper",
    "TransportError",
    "Tx",
    "TxSeen",
    "TxStatus",
    "Vin",
    "Vout",
    "WaterfallResponse",
    "WaterfallsError",
]
