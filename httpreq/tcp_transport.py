import errno
import logging
import os
import selectors
import socket
import sys
from typing import Any, Callable, TypeVar

from .errors import (
    RequestTimedOut,
    SocketConnectError,
    SocketCreateError,
    SocketReadError,
    SocketSelectError,
    SocketWriteError,
    TransportError,
)
from .http_protocol import Deadline
from .transport import AddressFamily, Transport, address_family_constant

logger = logging.getLogger(__name__)

T = TypeVar("T")

# An interrupted connect() keeps going asynchronously, so EINTR is waited on like EINPROGRESS.
_CONNECT_PENDING = {
    errno.EINPROGRESS,
    errno.EWOULDBLOCK,
    errno.EALREADY,
    errno.EINTR,
    getattr(errno, "WSAEWOULDBLOCK", errno.EWOULDBLOCK),
}
_SEND_FLAGS = getattr(socket, "MSG_NOSIGNAL", 0)
_SO_NOSIGPIPE = getattr(socket, "SO_NOSIGPIPE", 0x1022 if sys.platform == "darwin" else None)


def _retry_on_interrupt(func: Callable[..., T], *args: Any) -> T:
    while True:
        try:
            return func(*args)
        except InterruptedError:
            continue


class TcpTransport(Transport):
    """A non-blocking TCP socket whose operations are bounded by a timeout.

    Every timeout is the remaining budget in seconds. ``None`` (or a negative
    value) waits forever; an exhausted budget raises ``RequestTimedOut``.
    """

    def __init__(self, family: AddressFamily = AddressFamily.V4) -> None:
        af = address_family_constant(family)

        try:
            sock = socket.socket(af, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        except OSError as e:
            raise SocketCreateError(f"Failed to create socket: {e}", e.errno) from e

        try:
            sock.setblocking(False)
            if _SO_NOSIGPIPE is not None:
                sock.setsockopt(socket.SOL_SOCKET, _SO_NOSIGPIPE, 1)
        except OSError as e:
            sock.close()
            raise SocketCreateError(f"Failed to configure socket: {e}", e.errno) from e

        self._sock: socket.socket | None = sock

    @classmethod
    def _adopt(cls, sock: socket.socket) -> "TcpTransport":
        transport = cls.__new__(cls)
        transport._sock = sock
        return transport

    @property
    def closed(self) -> bool:
        return self._sock is None

    def detach(self) -> "TcpTransport":
        """Move the socket into a new transport, leaving this one closed."""
        sock = self._require_socket("Cannot detach a closed transport.")
        self._sock = None
        return TcpTransport._adopt(sock)

    def connect(self, address: Any, timeout: float | None) -> None:
        sock = self._require_socket("Cannot connect a closed transport.")

        try:
            result = _retry_on_interrupt(sock.connect_ex, address)
        except OSError as e:
            raise SocketConnectError(f"Failed to connect: {e}", e.errno) from e

        if result in (0, errno.EISCONN):
            logger.debug(f"Connected to {address}")
            return
        if result not in _CONNECT_PENDING:
            raise SocketConnectError(f"Failed to connect: {os.strerror(result)}", result)

        self._wait(selectors.EVENT_WRITE, timeout)

        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as e:
            raise SocketConnectError(f"Failed to get socket option: {e}", e.errno) from e

        if socket_error != 0:
            raise SocketConnectError(f"Failed to connect: {os.strerror(socket_error)}", socket_error)

        logger.debug(f"Connected to {address}")

    def write(self, data: bytes | memoryview, timeout: float | None) -> int:
        sock = self._require_socket("Cannot write on a closed transport.")

        self._wait(selectors.EVENT_WRITE, timeout)
        try:
            return _retry_on_interrupt(sock.send, data, _SEND_FLAGS)
        except BlockingIOError:
            # spurious readiness; the caller retries with its remaining budget
            return 0
        except OSError as e:
            raise SocketWriteError(f"Socket write failed: {e}", e.errno) from e

    def read_into(self, buffer: bytearray | memoryview, timeout: float | None) -> int:
        sock = self._require_socket("Cannot read from a closed transport.")

        # A zero-byte read means the peer closed, so a spurious wakeup waits again,
        # but only for what is left of the budget this call was given.
        deadline = Deadline(timeout)
        while True:
            self._wait(selectors.EVENT_READ, deadline.remaining() if deadline.bounded else timeout)
            try:
                return _retry_on_interrupt(sock.recv_into, buffer)
            except BlockingIOError:
                continue
            except OSError as e:
                raise SocketReadError(f"Socket read failed: {e}", e.errno) from e

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None

    def __enter__(self) -> "TcpTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _require_socket(self, message: str) -> socket.socket:
        if self._sock is None:
            raise TransportError(message)
        return self._sock

    def _wait(self, events: int, timeout: float | None) -> None:
        if timeout is not None and timeout < 0:
            timeout = None
        if timeout is not None and timeout == 0:
            raise RequestTimedOut("Request timed out")

        with selectors.DefaultSelector() as selector:
            selector.register(self._sock, events)
            try:
                ready = _retry_on_interrupt(selector.select, timeout)
            except OSError as e:
                raise SocketSelectError(f"Failed to select socket: {e}", e.errno) from e

        if not ready:
            raise RequestTimedOut("Request timed out")
