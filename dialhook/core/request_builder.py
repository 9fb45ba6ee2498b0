"""Build the backend GET URL from a decoded ParameterSet."""

from typing import Mapping
from urllib.parse import quote

from dialhook.core.codec import FIELD_ENCODING, RESPONSE_KEY
from dialhook.core.configs import RequestConfig

# Letters and digits are always kept by quote(); these are the other unreserved characters.
UNRESERVED_MARKS = "-_.~"

# Keys keep every printable ASCII character, space included; only control and high bytes are escaped.
KEY_SAFE = "".join(chr(c) for c in range(0x20, 0x7F))


def percent_encode(value: str) -> str:
    """
    Escape a query value byte by byte.

    Only ``A-Z a-z 0-9 - _ . ~`` pass through; space becomes ``%20``.
    Values come out of the codec as latin-1 text, so each character is
    escaped as the single byte it was on the wire.
    """
    return quote(value, safe=UNRESERVED_MARKS, encoding=FIELD_ENCODING)


def escape_key(key: str) -> str:
    """Escape the bytes of a key that cannot travel raw, leaving printable ASCII untouched."""
    return quote(key, safe=KEY_SAFE, encoding=FIELD_ENCODING)


def build_url(params: Mapping[str, str], config: RequestConfig) -> str:
    """
    Assemble ``base_url?k1=v1&k2=v2`` in ascending key order.

    The ``CFResp`` control parameter is never forwarded. Values are fully
    escaped. Keys keep printable ASCII as-is, so ``&``, ``=`` and spaces in
    a key reach the backend raw; their high bytes are escaped so the HTTP
    client cannot re-encode them as UTF-8.
    """
    query = "&".join(
        f"{escape_key(key)}={percent_encode(params[key])}"
        for key in sorted(params)
        if key != RESPONSE_KEY
    )
    return f"{config.base_url}?{query}"
