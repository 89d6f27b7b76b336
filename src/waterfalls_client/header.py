"""
Bitcoin block header, in the same stream codec shape as embit's Transaction.
"""

from __future__ import annotations

from typing import BinaryIO

from embit.base import EmbitBase, EmbitError
from embit.hashes import double_sha256

HEADER_SIZE = 80


class BlockHeaderError(EmbitError):
    pass


class BlockHeader(EmbitBase):
    """
    80-byte block header.

    prev_block and merkle_root are held in display order (as shown by
    explorers), like embit's TransactionInput.txid, and reversed on the wire.
    """

    def __init__(
        self,
        version: int,
        prev_block: bytes,
        merkle_root: bytes,
        timestamp: int,
        bits: int,
        nonce: int,
    ):
        if len(prev_block) != 32 or len(merkle_root) != 32:
            raise BlockHeaderError("Block and merkle hashes must be 32 bytes")
        self.version = version
        self.prev_block = prev_block
        self.merkle_root = merkle_root
        self.timestamp = timestamp
        self.bits = bits
        self.nonce = nonce

    def write_to(self, stream: BinaryIO) -> int:
        res = stream.write(self.version.to_bytes(4, "little"))
        res += stream.write(bytes(reversed(self.prev_block)))
        res += stream.write(bytes(reversed(self.merkle_root)))
        res += stream.write(self.timestamp.to_bytes(4, "little"))
        res += stream.write(self.bits.to_bytes(4, "little"))
        res += stream.write(self.nonce.to_bytes(4, "little"))
        return res

    @classmethod
    def read_from(cls, stream: BinaryIO) -> BlockHeader:
        data = stream.read(HEADER_SIZE)
        if len(data) != HEADER_SIZE:
            raise BlockHeaderError(f"Block header must be {HEADER_SIZE} bytes, got {len(data)}")
        return cls(
            version=int.from_bytes(data[0:4], "little"),
            prev_block=bytes(reversed(data[4:36])),
            merkle_root=bytes(reversed(data[36:68])),
            timestamp=int.from_bytes(data[68:72], "little"),
            bits=int.from_bytes(data[72:76], "little"),
            nonce=int.from_bytes(data[76:80], "little"),
        )

    def hash(self) -> bytes:
        return double_sha256(self.serialize())

    def block_hash(self) -> str:
        return bytes(reversed(self.hash())).hex()
