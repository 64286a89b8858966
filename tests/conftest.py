"""
pytest configuration and fixtures.
"""

import socket
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable

import pytest


@dataclass
class ServerDetails:
    host: str = ""
    port: int = 0

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


def _read_request(sock: socket.socket) -> bytes:
    """Read one request (head plus Content-Length body) from ``sock``."""
    data = b""
    while b"\r\n\r\n" not in data:
        chunk = sock.recv(4096)
        if not chunk:
            return data
        data += chunk

    head, _, body = data.partition(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n")[1:]:
        name, _, value = line.partition(b":")
        if name.strip().lower() == b"content-length":
            length = int(value.strip())

    while len(body) < length:
        chunk = sock.recv(4096)
        if not chunk:
            break
        body += chunk

    return head + b"\r\n\r\n" + body


@pytest.fixture
def read_request() -> Callable[[socket.socket], bytes]:
    return _read_request


@pytest.fixture
def server_factory():
    """Start a single-connection loopback server running ``handler(client_sock)``."""

    @contextmanager
    def _factory(handler: Callable[[socket.socket], None], family: int = socket.AF_INET):
        host = "127.0.0.1" if family == socket.AF_INET else "::1"
        listener_sock = socket.socket(family, socket.SOCK_STREAM)
        listener_sock.bind((host, 0))
        details = ServerDetails(host=host, port=listener_sock.getsockname()[1])

        def server_loop():
            try:
                client_sock, _ = listener_sock.accept()
                with client_sock:
                    client_sock.settimeout(5.0)
                    handler(client_sock)
            except (socket.timeout, OSError):
                pass

        listener_sock.settimeout(2.0)
        listener_sock.listen()
        server_thread = threading.Thread(target=server_loop, daemon=True)
        server_thread.start()

        try:
            yield details
        finally:
            # Connect to unblock accept() if the client never did
            try:
                with socket.create_connection((details.host, details.port), timeout=0.1):
                    pass
            except OSError:
                pass
            server_thread.join(timeout=2.0)
            listener_sock.close()

    return _factory
