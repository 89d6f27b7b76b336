"""
Errors raised by the Waterfalls clients.

Every failure surfaces as a subclass of WaterfallsError so callers can
catch the whole family at once, or branch on the cause:

- TransportError: the request never produced an HTTP response
- HttpResponseError: the server answered with a non-success status
- CodecError / HexError / DecodeError / ParseError: the body was malformed
- NotFoundError: a lookup that requires a result found nothing
- InvalidConfigError: the client could not be built from its configuration
"""

from __future__ import annotations


class WaterfallsError(Exception):
    """Base class for all client errors."""


class TransportError(WaterfallsError):
    """Network or connection failure raised by the HTTP transport."""


class HttpResponseError(WaterfallsError):
    """The server returned a status outside the success range."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message


class CodecError(WaterfallsError):
    """Malformed consensus-encoded payload."""


class HexError(WaterfallsError):
    """Malformed hex text."""


class DecodeError(WaterfallsError):
    """Malformed or unexpected JSON, or a body that is not valid UTF-8."""


class ParseError(WaterfallsError):
    """Malformed numeric text."""


class NotFoundError(WaterfallsError):
    """A required object does not exist on the server."""

    def __init__(self, id: str) -> None:
        super().__init__(f"Not found: {id}")
        self.id = id


class InvalidConfigError(WaterfallsError):
    """Bad proxy URL, header name or header value."""
