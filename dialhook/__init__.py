"""dialhook: turn fixed-width dialer parameter buffers into backend GET requests.

Host lifecycle:
- attach(): call once when the host loads the module (process attach)
- detach(): call when the host unloads it (process detach)

Per call:
- process(in_buffer, out_buffer) -> (result_code, error_message)
- get_last_error_message() -> str
"""

from dialhook.core.configs import RequestConfig, get_request_config, load_raw_config
from dialhook.core.entry import custom_function, get_last_error_message, process
from dialhook.core.transport import library as _transport_library


def attach() -> None:
    """Initialize the process-wide transport; safe to call more than once."""
    _transport_library.init()


def detach() -> None:
    """Undo one attach(); the transport shuts down after the last one."""
    _transport_library.shutdown()


__all__ = [
    "RequestConfig",
    "attach",
    "custom_function",
    "detach",
    "get_last_error_message",
    "get_request_config",
    "load_raw_config",
    "process",
]
