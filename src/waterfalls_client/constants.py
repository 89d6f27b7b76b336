"""
HTTP and retry constants shared by the blocking and async clients.
"""

from __future__ import annotations

# Response status codes for which a GET request may be retried
RETRYABLE_ERROR_CODES: frozenset[int] = frozenset(
    {
        429,  # TOO_MANY_REQUESTS
        500,  # INTERNAL_SERVER_ERROR
        503,  # SERVICE_UNAVAILABLE
    }
)

# First backoff delay in seconds; doubled after every retry
BASE_BACKOFF = 0.256

DEFAULT_MAX_RETRIES = 6

HTTP_NOT_FOUND = 404

# Largest value that fits the signed 32-bit wire encoding of an output reference
MAX_I32 = 2**31 - 1
MIN_I32 = -(2**31)

MAX_U32 = 2**32 - 1
MAX_U16 = 2**16 - 1
