"""Entry point the host application calls once per dialer event.

Flow (linear, no retries):
    decode -> build_url -> transport.get -> status check -> map_response

Every call returns 0 on success and 1 on any failure. The failure detail
goes to a per-thread last-error slot, cleared at the start of each call,
so concurrent calls on different threads never see each other's message.
"""

import logging
import threading
from typing import Optional, Tuple, Union

from dialhook.core.codec import BytesLike, control_flag, decode
from dialhook.core.configs import RequestConfig, get_request_config
from dialhook.core.errors import (
    ConfigError,
    DialhookError,
    HttpStatusError,
    RequestFailedError,
    UnexpectedError,
)
from dialhook.core.request_builder import build_url
from dialhook.core.response_mapper import map_response
from dialhook.core.transport import RequestsTransport, Transport, TransportError

logger = logging.getLogger(__name__)

SUCCESS = 0
FAILURE = 1

_last_error = threading.local()


def _set_last_error(message: str) -> None:
    _last_error.message = message


def get_last_error_message() -> str:
    """Return the most recent failure message for the calling thread, or ''."""
    return getattr(_last_error, "message", "")


def _handle(
    in_buffer: Optional[BytesLike],
    out_buffer: Optional[Union[bytearray, memoryview]],
    config: Optional[RequestConfig],
    transport: Optional[Transport],
) -> None:
    params = decode(in_buffer)
    echo = control_flag(params)

    if config is None:
        try:
            config = get_request_config()
        except ConfigError as e:
            raise RequestFailedError(f"Invalid configuration: {e}") from e
    if transport is None:
        transport = RequestsTransport()

    url = build_url(params, config)
    logger.debug(f"GET {url}")

    try:
        result = transport.get(
            url,
            timeout=config.timeout,
            connect_timeout=config.connect_timeout,
            verify_ssl=config.verify_ssl,
            ca_file=config.ssl_cert_file or None,
        )
    except TransportError as e:
        raise RequestFailedError(f"{e} ({e.reason})") from e

    logger.info(f"Backend answered {result.status} ({len(result.body)} bytes)")
    if not 200 <= result.status < 300:
        raise HttpStatusError(result.status)

    map_response(echo, result.body, out_buffer)


def process(
    in_buffer: Optional[BytesLike],
    out_buffer: Optional[Union[bytearray, memoryview]] = None,
    config: Optional[RequestConfig] = None,
    transport: Optional[Transport] = None,
) -> Tuple[int, Optional[str]]:
    """
    Translate one inbound buffer into a backend GET.

    Args:
        in_buffer: Inbound parameter buffer from the host
        out_buffer: Mutable buffer of at least 162 bytes, or None
        config: Settings for this call; loaded from the config file when None
        transport: HTTP transport; RequestsTransport when None

    Returns:
        (result_code, error_message): (0, None) on success, (1, message) on failure

    Never raises: unexpected exceptions are reported as request failures.
    """
    _set_last_error("")
    try:
        _handle(in_buffer, out_buffer, config, transport)
    except DialhookError as e:
        message = str(e)
        logger.warning(f"Call failed: {message}")
        _set_last_error(message)
        return FAILURE, message
    except Exception as e:
        logger.exception(f"Unexpected error while processing call: {e}")
        message = str(UnexpectedError(f"{type(e).__name__}: {e}"))
        _set_last_error(message)
        return FAILURE, message

    return SUCCESS, None


def custom_function(
    data_in: Optional[BytesLike],
    data_out: Optional[Union[bytearray, memoryview]] = None,
) -> int:
    """Result-code-only form of process(); read details with get_last_error_message()."""
    code, _ = process(data_in, data_out)
    return code
