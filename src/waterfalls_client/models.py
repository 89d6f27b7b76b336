"""
Data models for the waterfalls endpoint using Pydantic for validation and serialization.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    SerializerFunctionWrapHandler,
    model_serializer,
)

from waterfalls_client.constants import MAX_I32, MAX_U16, MAX_U32, MIN_I32


class ReferenceKind(str, Enum):
    UNDEFINED = "undefined"
    VOUT = "vout"
    VIN = "vin"


@dataclass(frozen=True)
class OutputReference:
    """
    How a seen transaction touches the queried script.

    The server packs this into one signed 32-bit integer:
    0 is undefined, n > 0 is output index n and n < 0 is input index -n - 1.
    Output index 0 therefore encodes as 0 and reads back as undefined.
    """

    kind: ReferenceKind = ReferenceKind.UNDEFINED
    index: int = 0

    def __post_init__(self) -> None:
        if self.kind == ReferenceKind.UNDEFINED and self.index != 0:
            raise ValueError("Undefined output reference cannot carry an index")
        if not 0 <= self.index <= MAX_I32:
            raise ValueError(f"Output reference index out of range: {self.index}")

    @classmethod
    def undefined(cls) -> OutputReference:
        return cls()

    @classmethod
    def vout(cls, index: int) -> OutputReference:
        return cls(ReferenceKind.VOUT, index)

    @classmethod
    def vin(cls, index: int) -> OutputReference:
        return cls(ReferenceKind.VIN, index)

    @property
    def is_undefined(self) -> bool:
        return self.kind == ReferenceKind.UNDEFINED

    @property
    def raw(self) -> int:
        if self.kind == ReferenceKind.VOUT:
            return self.index
        if self.kind == ReferenceKind.VIN:
            return -self.index - 1
        return 0

    @classmethod
    def from_raw(cls, raw: int) -> OutputReference:
        if not MIN_I32 <= raw <= MAX_I32:
            raise ValueError(f"Raw output reference does not fit in 32 bits: {raw}")
        if raw == 0:
            return cls.undefined()
        if raw > 0:
            return cls.vout(raw)
        return cls.vin(-raw - 1)


def _validate_reference(value: Any) -> OutputReference:
    if isinstance(value, OutputReference):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Output reference must be an integer, got {value!r}")
    return OutputReference.from_raw(value)


def _serialize_reference(value: OutputReference) -> int:
    return value.raw


OutputReferenceField = Annotated[
    OutputReference,
    PlainValidator(_validate_reference),
    PlainSerializer(_serialize_reference, return_type=int),
]

HexHash = Annotated[str, Field(pattern=r"^[0-9a-fA-F]{64}$")]
U32 = Annotated[int, Field(ge=0, le=MAX_U32)]


class WireModel(BaseModel):
    """Frozen model whose absent optional fields are left out of the wire form."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_serializer(mode="wrap")
    def serialize_wire(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {key: value for key, value in handler(self).items() if value is not None}


class BlockMeta(WireModel):
    """Hash, timestamp and height of the chain tip when the response was built."""

    block_hash: HexHash = Field(alias="b")
    timestamp: U32 = Field(alias="t")
    height: U32 = Field(alias="h")

    def _key(self) -> tuple[str, int, int]:
        return (self.block_hash, self.timestamp, self.height)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BlockMeta):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, BlockMeta):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, BlockMeta):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, BlockMeta):
            return NotImplemented
        return self._key() >= other._key()


class TxSeen(WireModel):
    """A transaction seen in the blockchain for a specific script."""

    txid: HexHash
    height: U32
    block_hash: HexHash | None = None
    block_timestamp: U32 | None = None
    v: OutputReferenceField = Field(default_factory=OutputReference.undefined)

    @model_serializer(mode="wrap")
    def serialize_wire(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = {key: value for key, value in handler(self).items() if value is not None}
        if self.v.is_undefined:
            data.pop("v", None)
        return data


class WaterfallResponse(WireModel):
    """
    Response from the waterfalls endpoint.

    txs_seen maps each derivation key to its pages of seen transactions.
    Keys and pages keep the order the server sent them in.
    """

    txs_seen: dict[str, list[list[TxSeen]]]
    page: int = Field(ge=0, le=MAX_U16)
    tip: HexHash | None = None
    tip_meta: BlockMeta | None = None

    def is_empty(self) -> bool:
        return all(not seen for pages in self.txs_seen.values() for seen in pages)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
