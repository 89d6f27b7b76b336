"""
Client configuration.

Settings can be passed directly or read from WATERFALLS_* environment
variables (and a .env file), e.g.::

    WATERFALLS_BASE_URL=https://waterfalls.example.com/api
    WATERFALLS_PROXY=socks5h://127.0.0.1:9050
    WATERFALLS_HEADERS='{"User-Agent": "my-wallet"}'
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import httpx
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from waterfalls_client.constants import DEFAULT_MAX_RETRIES
from waterfalls_client.errors import InvalidConfigError

if TYPE_CHECKING:
    from waterfalls_client.async_client import AsyncClient
    from waterfalls_client.blocking import BlockingClient
    from waterfalls_client.transport import BlockingSleeper, Sleeper

PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")

# RFC 9110 token characters
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_HEADER_VALUE_FORBIDDEN = ("\r", "\n", "\x00")


class ClientConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WATERFALLS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str
    # <protocol>://<user>:<password>@host:<port>
    proxy: str | None = None
    # Socket timeout in seconds, None means no timeout
    timeout: int | None = Field(default=None, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def validate_transport(self) -> None:
        """
        Check the proxy URL and headers.

        Raises:
            InvalidConfigError: If the proxy URL or a header cannot be used
        """
        if self.proxy is not None:
            validate_proxy(self.proxy)
        for name, value in self.headers.items():
            validate_header(name, value)

    def httpx_options(self) -> dict[str, object]:
        """Keyword arguments for constructing an httpx client from this config."""
        self.validate_transport()
        return {
            "proxy": self.proxy,
            "timeout": float(self.timeout) if self.timeout is not None else None,
            "headers": self.headers,
        }

    def build_blocking(self, sleeper: BlockingSleeper | None = None) -> BlockingClient:
        from waterfalls_client.blocking import BlockingClient

        return BlockingClient.from_config(self, sleeper=sleeper)

    def build_async(self, sleeper: Sleeper | None = None) -> AsyncClient:
        from waterfalls_client.async_client import AsyncClient

        return AsyncClient.from_config(self, sleeper=sleeper)


def validate_proxy(proxy: str) -> None:
    try:
        url = httpx.URL(proxy)
    except httpx.InvalidURL as e:
        raise InvalidConfigError(f"Invalid proxy URL {proxy!r}: {e}") from e
    if url.scheme not in PROXY_SCHEMES:
        raise InvalidConfigError(
            f"Unsupported proxy scheme {url.scheme!r}, expected one of {', '.join(PROXY_SCHEMES)}"
        )
    if not url.host:
        raise InvalidConfigError(f"Proxy URL has no host: {proxy!r}")


def validate_header(name: str, value: str) -> None:
    if not _HEADER_NAME_RE.fullmatch(name):
        raise InvalidConfigError(f"Invalid HTTP header name: {name!r}")
    if any(char in value for char in _HEADER_VALUE_FORBIDDEN) or not value.isascii():
        raise InvalidConfigError(f"Invalid HTTP header value: {value!r}")
