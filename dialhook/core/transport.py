"""HTTP transport used by the entry point.

Architectural role:
    Performs the single GET a call needs and reports either the completed
    exchange (status + body) or a TransportError. Status codes are not
    interpreted here; the entry point decides what counts as success.

Lifecycle:
    TransportLibrary is the process-wide init/shutdown pair the host drives
    from its attach/detach hooks (see dialhook.attach / dialhook.detach).
    It is reference counted and guarded by a lock. RequestsTransport will
    not send anything while the library is down.

Per-call resources:
    Each get() builds its own requests.Session and closes it afterwards,
    so concurrent calls on different threads share no connection state.
    The body is streamed against a monotonic deadline, so `timeout` caps
    the whole exchange even when the server trickles bytes in slowly.
"""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import requests
from requests import certs
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection

from dialhook.core.errors import TransportInitError

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 3
READ_CHUNK_SIZE = 8192


@dataclass(frozen=True)
class TransportResponse:
    status: int
    body: bytes


class TransportError(Exception):
    """A GET that did not complete; ``reason`` is connect, timeout, tls, redirect or other."""

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)


class Transport(Protocol):
    def get(
        self,
        url: str,
        timeout: float,
        connect_timeout: float,
        verify_ssl: bool = True,
        ca_file: Optional[str] = None,
    ) -> TransportResponse:
        ...


class TransportLibrary:
    """
    Reference-counted process-wide transport initialization.

    init() and shutdown() may be called from any thread, any number of
    times; only the first init and the matching last shutdown do work.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._refcount = 0
        self.default_ca_bundle: Optional[str] = None

    @property
    def initialized(self) -> bool:
        return self._refcount > 0

    def init(self) -> None:
        with self._lock:
            if self._refcount == 0:
                try:
                    self.default_ca_bundle = certs.where()
                except Exception as e:
                    raise TransportInitError(f"Cannot locate the CA bundle: {e}") from e
                # urllib3 reports unverified HTTPS through warnings
                logging.captureWarnings(True)
                logger.debug(f"Transport initialized (CA bundle: {self.default_ca_bundle})")
            self._refcount += 1

    def shutdown(self) -> None:
        with self._lock:
            if self._refcount == 0:
                return
            self._refcount -= 1
            if self._refcount == 0:
                logging.captureWarnings(False)
                self.default_ca_bundle = None
                logger.debug("Transport shut down")


library = TransportLibrary()


class KeepAliveAdapter(HTTPAdapter):
    """HTTPAdapter that turns on TCP keep-alive for every pooled socket."""

    socket_options = HTTPConnection.default_socket_options + [
        (socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1),
    ]

    def init_poolmanager(self, *args, **kwargs):
        kwargs["socket_options"] = self.socket_options
        super().init_poolmanager(*args, **kwargs)


class RequestsTransport:
    """Transport backed by ``requests``."""

    def __init__(self, lib: Optional[TransportLibrary] = None):
        self.lib = lib or library

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        session.max_redirects = MAX_REDIRECTS
        adapter = KeepAliveAdapter()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def get(
        self,
        url: str,
        timeout: float,
        connect_timeout: float,
        verify_ssl: bool = True,
        ca_file: Optional[str] = None,
    ) -> TransportResponse:
        """
        Perform one GET.

        Args:
            url: Fully assembled request URL
            timeout: Seconds allowed for the whole exchange, body included
            connect_timeout: Seconds to wait for the TCP/TLS connection
            verify_ssl: Verify the server certificate
            ca_file: CA bundle to verify against instead of the default

        Returns:
            TransportResponse with the final status code and raw body

        Raises:
            TransportInitError: if the transport library is not initialized
            TransportError: if no response was received
        """
        if not self.lib.initialized:
            raise TransportInitError("Transport library is not initialized")

        verify = (ca_file or True) if verify_ssl else False

        try:
            session = self._new_session()
        except Exception as e:
            raise TransportInitError(f"Cannot create HTTP session: {e}") from e

        # timeout bounds the whole exchange, not each read
        deadline = time.monotonic() + timeout
        response = None
        try:
            response = session.get(
                url,
                timeout=(connect_timeout, timeout),
                verify=verify,
                allow_redirects=True,
                stream=True,
            )
            chunks = []
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise TransportError("timeout", f"No complete response within {timeout}s")
                chunks.append(chunk)
            return TransportResponse(status=response.status_code, body=b"".join(chunks))
        except requests.exceptions.SSLError as e:
            raise TransportError("tls", f"TLS error: {e}") from e
        except requests.exceptions.Timeout as e:
            raise TransportError("timeout", f"Request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError("connect", f"Connection failed: {e}") from e
        except requests.exceptions.TooManyRedirects as e:
            raise TransportError("redirect", f"More than {MAX_REDIRECTS} redirects") from e
        except (requests.exceptions.RequestException, OSError) as e:
            raise TransportError("other", f"Request failed: {e}") from e
        finally:
            if response is not None:
                response.close()
            session.close()
