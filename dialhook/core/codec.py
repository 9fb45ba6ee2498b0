"""Fixed-width binary parameter codec.

Inbound layout::

    [2-byte ASCII count][count x (32-byte key field, 128-byte value field)]

Outbound layout (162 bytes)::

    ["01"][32-byte key "CFResp"][128-byte value, always zero-terminated]

A field holds the bytes up to its first zero byte, or the whole field when
no zero byte occurs. Field bytes are mapped to text with latin-1 so that
each byte is one character and the original bytes survive a round trip.
"""

import logging
from typing import Dict, Mapping, Optional, Union

from dialhook.core.errors import (
    InvalidInputError,
    OutputBufferTooSmallError,
    TooManyParametersError,
    TruncatedBufferError,
)

logger = logging.getLogger(__name__)

HEADER_SIZE = 2
KEY_SIZE = 32
VALUE_SIZE = 128
PAIR_SIZE = KEY_SIZE + VALUE_SIZE
OUTBOUND_SIZE = HEADER_SIZE + PAIR_SIZE

MAX_PARAMETERS = 100
RESPONSE_KEY = "CFResp"
FIELD_ENCODING = "latin-1"

# C `unsigned int` width; a negative atoi() result wraps around it.
_UINT_MODULUS = 2 ** 32

BytesLike = Union[bytes, bytearray, memoryview]
ParameterSet = Dict[str, str]


def read_fixed_field(field: BytesLike) -> str:
    """Return the text of a fixed-width field, stopping at the first zero byte."""
    raw = bytes(field)
    end = raw.find(b"\0")
    if end != -1:
        raw = raw[:end]
    return raw.decode(FIELD_ENCODING)


def write_fixed_field(value: Union[str, bytes], size: int) -> bytes:
    """Zero-pad ``value`` to ``size`` bytes, truncating anything longer.

    A value of exactly ``size`` bytes is stored without a terminator, like
    the original ``memcpy`` based writer.
    """
    if isinstance(value, str):
        value = value.encode(FIELD_ENCODING)
    return value[:size].ljust(size, b"\0")


def parse_count(header: BytesLike) -> int:
    """Parse the 2-byte parameter count the way C ``atoi`` does.

    Leading whitespace and one sign are accepted, then as many digits as
    follow. Anything else yields 0, so a header of ``b"AB"`` means "no
    parameters" rather than an error. A negative result is returned as
    the unsigned value the original stored it in, which is always larger
    than ``MAX_PARAMETERS``.
    """
    text = bytes(header[:HEADER_SIZE]).split(b"\0", 1)[0].decode(FIELD_ENCODING)
    text = text.lstrip(" \t\n\v\f\r")
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    digits = ""
    for char in text:
        if not "0" <= char <= "9":
            break
        digits += char

    value = sign * int(digits) if digits else 0
    return value % _UINT_MODULUS


def read_records(buffer: BytesLike, count: int) -> ParameterSet:
    """Read ``count`` key/value records that follow the 2-byte header.

    Raises:
        TooManyParametersError: if ``count`` exceeds ``MAX_PARAMETERS``
        TruncatedBufferError: if a record extends beyond the buffer
    """
    if count > MAX_PARAMETERS:
        raise TooManyParametersError(
            f"Too many parameters: {count} (maximum {MAX_PARAMETERS})"
        )

    view = memoryview(buffer)
    params: ParameterSet = {}
    for i in range(count):
        key_offset = HEADER_SIZE + i * PAIR_SIZE
        value_offset = key_offset + KEY_SIZE
        if value_offset + VALUE_SIZE > len(view):
            raise TruncatedBufferError(
                f"Parameter {i + 1} of {count} needs {value_offset + VALUE_SIZE} "
                f"bytes but the buffer holds {len(view)}"
            )

        key = read_fixed_field(view[key_offset:value_offset])
        value = read_fixed_field(view[value_offset:value_offset + VALUE_SIZE])
        params[key] = value

    return params


def decode(buffer: Optional[BytesLike]) -> ParameterSet:
    """
    Decode an inbound buffer into a ParameterSet.

    Args:
        buffer: Raw bytes supplied by the host application

    Returns:
        Mapping of parameter name to value; duplicate keys keep the last value

    Raises:
        InvalidInputError: if the buffer is missing or shorter than the header
        TooManyParametersError: if the header declares more than 100 records
        TruncatedBufferError: if a declared record does not fit in the buffer
    """
    if buffer is None or len(buffer) < HEADER_SIZE:
        raise InvalidInputError("Input buffer is empty or shorter than its header")

    count = parse_count(buffer[:HEADER_SIZE])
    params = read_records(buffer, count)
    logger.debug(f"Decoded {count} parameter record(s): {sorted(params)}")
    return params


def control_flag(params: Mapping[str, str]) -> bool:
    """True only when ``CFResp`` is exactly ``"yes"``."""
    return params.get(RESPONSE_KEY) == "yes"


def encode_response(body: bytes) -> bytes:
    """
    Build the 162-byte outbound buffer carrying ``body`` under ``CFResp``.

    The value field mirrors ``strncpy(dst, body, 127)`` into a zeroed
    128-byte field: copying stops at the first zero byte in ``body``, at
    most 127 bytes are kept and the last byte is always zero.
    """
    content = bytes(body).split(b"\0", 1)[0][:VALUE_SIZE - 1]
    return (
        b"01"
        + write_fixed_field(RESPONSE_KEY[:KEY_SIZE - 1], KEY_SIZE)
        + write_fixed_field(content, VALUE_SIZE)
    )


def write_response(body: bytes, out_buffer: Union[bytearray, memoryview]) -> None:
    """Write the outbound record into the first 162 bytes of ``out_buffer``."""
    if len(out_buffer) < OUTBOUND_SIZE:
        raise OutputBufferTooSmallError(
            f"Output buffer holds {len(out_buffer)} bytes, {OUTBOUND_SIZE} required"
        )
    out_buffer[:OUTBOUND_SIZE] = encode_response(body)


def encode_parameters(
    params: Mapping[str, Union[str, bytes]], encoding: str = "utf-8"
) -> bytes:
    """
    Build an inbound buffer from a mapping, as the host application does.

    Keys and values given as text are encoded with ``encoding`` and then
    truncated to their field widths.

    Raises:
        TooManyParametersError: if the count does not fit the 2-digit header
    """
    if len(params) > 99:
        raise TooManyParametersError(
            f"{len(params)} parameters cannot be written in a 2-digit header"
        )

    chunks = [f"{len(params):02d}".encode("ascii")]
    for key, value in params.items():
        if isinstance(key, str):
            key = key.encode(encoding)
        if isinstance(value, str):
            value = value.encode(encoding)
        chunks.append(write_fixed_field(key, KEY_SIZE))
        chunks.append(write_fixed_field(value, VALUE_SIZE))
    return b"".join(chunks)
