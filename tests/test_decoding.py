"""
Tests for the response decoders.
"""

from __future__ import annotations

import json

import httpx
import pytest
from conftest import BLOCK_HASH, build_raw_header, build_raw_tx, waterfalls_payload
from embit.transaction import Transaction

from waterfalls_client.decoding import (
    check_status,
    decode_binary,
    decode_consensus,
    decode_hex,
    decode_json,
    decode_optional_binary,
    decode_text,
    parse_block_hash,
    parse_height,
)
from waterfalls_client.errors import (
    CodecError,
    DecodeError,
    HexError,
    HttpResponseError,
    ParseError,
)
from waterfalls_client.header import BlockHeader
from waterfalls_client.models import WaterfallResponse


class TestConsensus:
    def test_transaction(self) -> None:
        raw = build_raw_tx()
        tx = decode_consensus(raw, Transaction)
        assert tx.serialize() == raw
        assert len(tx.vin) == 1
        assert tx.vout[0].value == 50_000

    def test_header(self) -> None:
        raw = build_raw_header()
        header = decode_consensus(raw, BlockHeader)
        assert header.serialize() == raw

    def test_trailing_bytes(self) -> None:
        with pytest.raises(CodecError, match="1 trailing bytes"):
            decode_consensus(build_raw_tx() + b"\x00", Transaction)

    def test_truncated(self) -> None:
        with pytest.raises(CodecError, match="Unexpected end of data"):
            decode_consensus(build_raw_tx()[:-2], Transaction)

    def test_empty(self) -> None:
        with pytest.raises(CodecError):
            decode_consensus(b"", BlockHeader)


class TestEnvelopes:
    def test_binary(self) -> None:
        raw = build_raw_tx()
        tx = decode_binary(httpx.Response(200, content=raw), Transaction)
        assert tx.serialize() == raw

    def test_binary_error_status(self) -> None:
        with pytest.raises(HttpResponseError) as exc_info:
            decode_binary(httpx.Response(500, content=b"boom"), Transaction)
        assert exc_info.value.status == 500
        assert exc_info.value.message == "boom"

    def test_optional_binary_not_found(self) -> None:
        response = httpx.Response(404, content=b"Transaction not found")
        assert decode_optional_binary(response, Transaction) is None

    def test_optional_binary_other_error(self) -> None:
        with pytest.raises(HttpResponseError) as exc_info:
            decode_optional_binary(httpx.Response(400, content=b"bad txid"), Transaction)
        assert exc_info.value.status == 400

    def test_hex(self) -> None:
        raw = build_raw_header()
        header = decode_hex(httpx.Response(200, content=raw.hex().encode()), BlockHeader)
        assert header.serialize() == raw

    def test_hex_invalid(self) -> None:
        with pytest.raises(HexError):
            decode_hex(httpx.Response(200, content=b"zz"), BlockHeader)

    def test_hex_valid_but_malformed_payload(self) -> None:
        with pytest.raises(CodecError):
            decode_hex(httpx.Response(200, content=b"00ff"), BlockHeader)

    def test_text(self) -> None:
        assert decode_text(httpx.Response(200, content=b"fresh: 3 minutes")) == "fresh: 3 minutes"

    def test_text_not_utf8(self) -> None:
        with pytest.raises(DecodeError, match="UTF-8"):
            decode_text(httpx.Response(200, content=b"\xff\xfe"))

    def test_json(self) -> None:
        response = httpx.Response(200, content=json.dumps(waterfalls_payload()).encode())
        result = decode_json(response, WaterfallResponse)
        assert result.page == 0
        assert not result.is_empty()

    @pytest.mark.parametrize(
        "body",
        [b"not json", b'{"page": 0}', b'{"txs_seen": {}, "page": "first"}', b"[]"],
    )
    def test_json_invalid(self, body: bytes) -> None:
        with pytest.raises(DecodeError):
            decode_json(httpx.Response(200, content=body), WaterfallResponse)

    def test_json_error_status_skips_decoding(self) -> None:
        with pytest.raises(HttpResponseError) as exc_info:
            decode_json(httpx.Response(422, content=b"invalid descriptor"), WaterfallResponse)
        assert exc_info.value.message == "invalid descriptor"

    def test_check_status_accepts_2xx(self) -> None:
        check_status(httpx.Response(200))
        check_status(httpx.Response(204))


class TestTypedText:
    def test_block_hash(self) -> None:
        assert parse_block_hash(BLOCK_HASH) == BLOCK_HASH
        assert parse_block_hash(BLOCK_HASH.upper() + "\n") == BLOCK_HASH

    @pytest.mark.parametrize("text", ["", "abcd", "g" * 64, BLOCK_HASH + "00", "ab " * 21 + "a"])
    def test_block_hash_invalid(self, text: str) -> None:
        with pytest.raises(HexError):
            parse_block_hash(text)

    def test_height(self) -> None:
        assert parse_height("840000") == 840_000
        assert parse_height("0\n") == 0

    @pytest.mark.parametrize("text", ["", "-1", "12a", "1.5", str(2**32)])
    def test_height_invalid(self, text: str) -> None:
        with pytest.raises(ParseError):
            parse_height(text)


class TestHexEnvelope:
    def test_non_ascii_body_is_a_hex_error(self) -> None:
        with pytest.raises(HexError, match="not ASCII"):
            decode_hex(httpx.Response(200, content=b"\xff\xfe00"), BlockHeader)

    def test_error_status_checked_first(self) -> None:
        with pytest.raises(HttpResponseError):
            decode_hex(httpx.Response(404, content=b"\xff"), BlockHeader)
