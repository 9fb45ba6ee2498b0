"""Decide whether the backend response goes back to the host, and write it."""

import logging
from typing import Optional, Union

from dialhook.core.codec import write_response

logger = logging.getLogger(__name__)


def map_response(
    control_flag: bool,
    body: bytes,
    out_buffer: Optional[Union[bytearray, memoryview]] = None,
) -> bool:
    """
    Echo ``body`` into ``out_buffer`` when the caller asked for it.

    Args:
        control_flag: Whether ``CFResp=yes`` was present in the request
        body: Response body returned by the backend
        out_buffer: Caller-owned mutable buffer, or None

    Returns:
        True if the outbound buffer was written, False if left untouched

    Raises:
        OutputBufferTooSmallError: if the buffer cannot hold 162 bytes
    """
    if not control_flag or out_buffer is None:
        return False

    write_response(body, out_buffer)
    logger.debug(f"Echoed {len(body)}-byte response body into the output buffer")
    return True
