"""
Response decoders.

Each endpoint answers in one of a few envelopes:

- binary: the body is the exact consensus serialization of the object
- hex: the body is that serialization as hex text
- text: the body is a plain UTF-8 string
- JSON: the body is a structured document such as a waterfalls response

Decoders only ever see successful responses. Anything outside the 2xx range
is turned into an HttpResponseError by check_status() first.
"""

from __future__ import annotations

import io
import re
from typing import Any, TypeVar

import httpx
from embit.base import EmbitError
from pydantic import BaseModel, ValidationError

from waterfalls_client.constants import HTTP_NOT_FOUND, MAX_U32
from waterfalls_client.errors import (
    CodecError,
    DecodeError,
    HexError,
    HttpResponseError,
    ParseError,
)

M = TypeVar("M", bound=BaseModel)

_HASH_RE = re.compile(r"[0-9a-fA-F]{64}")


class _ExactReader(io.BytesIO):
    """Byte stream that fails instead of returning a short read."""

    def read(self, size: int | None = -1) -> bytes:
        data = super().read(size)
        if size is not None and size >= 0 and len(data) < size:
            raise CodecError(f"Unexpected end of data: wanted {size} bytes, got {len(data)}")
        return data


def is_success(status: int) -> bool:
    return 200 <= status < 300


def check_status(response: httpx.Response) -> None:
    if not is_success(response.status_code):
        raise HttpResponseError(response.status_code, response.text)


def decode_consensus(data: bytes, decodable: Any) -> Any:
    """
    Decode a consensus-serialized object.

    Args:
        data: Serialized bytes, which must be consumed exactly
        decodable: Type exposing ``read_from(stream)``, e.g. embit's Transaction

    Raises:
        CodecError: If the bytes are malformed, truncated, or followed by extra data
    """
    name = getattr(decodable, "__name__", repr(decodable))
    stream = _ExactReader(data)
    try:
        value = decodable.read_from(stream)
    except (EmbitError, ValueError, RuntimeError) as e:
        raise CodecError(f"Invalid {name} encoding: {e}") from e

    leftover = len(data) - stream.tell()
    if leftover:
        raise CodecError(f"{leftover} trailing bytes after {name}")
    return value


def decode_hex_bytes(text: str) -> bytes:
    try:
        return bytes.fromhex(text.strip())
    except ValueError as e:
        raise HexError(f"Invalid hex: {e}") from e


def decode_binary(response: httpx.Response, decodable: Any) -> Any:
    check_status(response)
    return decode_consensus(response.content, decodable)


def decode_optional_binary(response: httpx.Response, decodable: Any) -> Any | None:
    """Like decode_binary(), but a 404 means the object does not exist."""
    if response.status_code == HTTP_NOT_FOUND:
        return None
    return decode_binary(response, decodable)


def decode_text(response: httpx.Response) -> str:
    check_status(response)
    try:
        return response.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Response body is not valid UTF-8: {e}") from e


def decode_hex(response: httpx.Response, decodable: Any) -> Any:
    check_status(response)
    try:
        text = response.content.decode("ascii")
    except UnicodeDecodeError as e:
        raise HexError(f"Hex body is not ASCII: {e}") from e
    return decode_consensus(decode_hex_bytes(text), decodable)


def decode_json(response: httpx.Response, model: type[M]) -> M:
    check_status(response)
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(f"Invalid {model.__name__} JSON: {e}") from e


def parse_block_hash(text: str) -> str:
    """Validate a 32-byte hash in hex and return it lowercased."""
    candidate = text.strip()
    if not _HASH_RE.fullmatch(candidate):
        raise HexError(f"Invalid 32-byte hex hash: {text!r}")
    return candidate.lower()


def parse_height(text: str) -> int:
    candidate = text.strip()
    if not (candidate.isascii() and candidate.isdigit()):
        raise ParseError(f"Invalid block height: {text!r}")
    height = int(candidate)
    if height > MAX_U32:
        raise ParseError(f"Block height out of range: {height}")
    return height
