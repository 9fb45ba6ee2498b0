"""Error taxonomy for the dialhook entry point.

Every failure is terminal for the call and collapses to result code 1 at
the entry boundary. The ``code`` attribute is the stable name the host-side
tooling prints next to the detail message.
"""


class DialhookError(Exception):
    """Base class for failures reported through the last-error slot."""

    code = "UNKNOWN_ERROR"

    def __str__(self) -> str:
        detail = super().__str__()
        return f"[{self.code}] {detail}" if detail else f"[{self.code}]"


class InvalidInputError(DialhookError):
    code = "INVALID_INPUT"


class TooManyParametersError(DialhookError):
    code = "TOO_MANY_PARAMETERS"


class TruncatedBufferError(DialhookError):
    code = "TRUNCATED_BUFFER"


class TransportInitError(DialhookError):
    code = "TRANSPORT_INIT_FAILED"


class RequestFailedError(DialhookError):
    """Transport failure or non-2xx status; the cause lives in the message."""

    code = "REQUEST_FAILED"


class HttpStatusError(RequestFailedError):
    code = "HTTP_ERROR"

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"HTTP request failed with status code {status}")


class UnexpectedError(RequestFailedError):
    code = "UNEXPECTED_EXCEPTION"


class OutputBufferTooSmallError(DialhookError):
    code = "OUTPUT_BUFFER_TOO_SMALL"


class ConfigError(ValueError):
    """Raised when a configuration value cannot be parsed."""
