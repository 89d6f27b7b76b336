"""
Esplora-format models for the address history endpoint.

get_address_txs() hands back the server's JSON text untouched. The models
here give it a typed shape when a caller wants one, e.g.::

    txs = parse_address_txs(client.get_address_txs(address))
    confirmed = [tx for tx in txs if tx.confirmation_time() is not None]
"""

from __future__ import annotations

from typing import Annotated, Any

from embit.script import Script, Witness
from embit.transaction import Transaction, TransactionInput, TransactionOutput
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    TypeAdapter,
    ValidationError,
)

from waterfalls_client.constants import MAX_I32, MAX_U32, MIN_I32
from waterfalls_client.errors import DecodeError
from waterfalls_client.models import U32, HexHash


def _hex_to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected hex string, got {value!r}")
    return bytes.fromhex(value)


HexBytes = Annotated[
    bytes,
    PlainValidator(_hex_to_bytes),
    PlainSerializer(lambda value: value.hex(), return_type=str),
]
Satoshis = Annotated[int, Field(ge=0)]


class EsploraModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class PrevOut(EsploraModel):
    value: Satoshis
    scriptpubkey: HexBytes

    def to_output(self) -> TransactionOutput:
        return TransactionOutput(self.value, Script(self.scriptpubkey))


class Vin(EsploraModel):
    txid: HexHash
    vout: U32
    # None for coinbase inputs
    prevout: PrevOut | None = None
    scriptsig: HexBytes
    witness: list[HexBytes] = Field(default_factory=list)
    sequence: U32
    is_coinbase: bool


class Vout(EsploraModel):
    value: Satoshis
    scriptpubkey: HexBytes


class TxStatus(EsploraModel):
    confirmed: bool
    block_height: U32 | None = None
    block_hash: HexHash | None = None
    block_time: int | None = None


class BlockTime(EsploraModel):
    timestamp: int
    height: U32


class Tx(EsploraModel):
    txid: HexHash
    version: int = Field(ge=MIN_I32, le=MAX_I32)
    locktime: U32
    vin: list[Vin]
    vout: list[Vout]
    # Raw size in bytes, not virtual bytes
    size: int
    # Weight units
    weight: int
    status: TxStatus
    # Satoshis
    fee: Satoshis

    def to_tx(self) -> Transaction:
        """Rebuild the transaction as an embit Transaction."""
        vin = [
            TransactionInput(
                bytes.fromhex(txin.txid),
                txin.vout,
                Script(txin.scriptsig),
                txin.sequence,
                Witness(list(txin.witness)),
            )
            for txin in self.vin
        ]
        vout = [TransactionOutput(txout.value, Script(txout.scriptpubkey)) for txout in self.vout]
        return Transaction(
            version=self.version & MAX_U32, vin=vin, vout=vout, locktime=self.locktime
        )

    def confirmation_time(self) -> BlockTime | None:
        status = self.status
        if status.confirmed and status.block_height is not None and status.block_time is not None:
            return BlockTime(timestamp=status.block_time, height=status.block_height)
        return None

    def previous_outputs(self) -> list[TransactionOutput | None]:
        """Spent outputs in input order, None for coinbase inputs."""
        return [txin.prevout.to_output() if txin.prevout else None for txin in self.vin]


class MerkleProof(EsploraModel):
    block_height: U32
    merkle: list[HexHash]
    pos: int = Field(ge=0)


class OutputStatus(EsploraModel):
    spent: bool
    txid: HexHash | None = None
    vin: int | None = None
    status: TxStatus | None = None


class BlockStatus(EsploraModel):
    in_best_chain: bool
    height: U32 | None = None
    next_best: HexHash | None = None


class BlockSummary(EsploraModel):
    id: HexHash
    timestamp: int
    height: U32
    # None for the genesis block
    previousblockhash: HexHash | None = None
    merkle_root: HexHash

    @property
    def time(self) -> BlockTime:
        return BlockTime(timestamp=self.timestamp, height=self.height)


class AddressTxsSummary(EsploraModel):
    funded_txo_count: U32
    funded_txo_sum: Satoshis
    spent_txo_count: U32
    spent_txo_sum: Satoshis
    tx_count: U32


class AddressStats(EsploraModel):
    address: str
    chain_stats: AddressTxsSummary
    mempool_stats: AddressTxsSummary


_TX_LIST = TypeAdapter(list[Tx])


def parse_address_txs(text: str) -> list[Tx]:
    """
    Parse the JSON returned by get_address_txs().

    Raises:
        DecodeError: If the text is not a JSON list of Esplora transactions
    """
    try:
        return _TX_LIST.validate_json(text)
    except ValidationError as e:
        raise DecodeError(f"Invalid address transactions JSON: {e}") from e
