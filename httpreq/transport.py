import socket
from enum import Enum
from typing import Any, Protocol

from .errors import DnsFailureError, UnsupportedAddressFamilyError


class AddressFamily(Enum):
    V4 = socket.AF_INET
    V6 = socket.AF_INET6


def address_family_constant(family: AddressFamily) -> int:
    if not isinstance(family, AddressFamily):
        raise UnsupportedAddressFamilyError(f"Unsupported address family: {family!r}")
    return family.value


def resolve(host: str, port: str | int, family: AddressFamily) -> Any:
    """Resolve ``host``/``port`` and return the first stream sockaddr.

    Later candidates are never tried; a host whose first address is
    unreachable fails even if another address would work.
    """
    af = address_family_constant(family)
    try:
        infos = socket.getaddrinfo(host, port, af, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise DnsFailureError(f"DNS Failure for host '{host}': {e}", e.errno) from e
    except ValueError as e:
        # bad IDNA labels or embedded NUL bytes
        raise DnsFailureError(f"DNS Failure for host {host!r}: {e}") from e

    if not infos:
        raise DnsFailureError(f"DNS Failure for host '{host}': no addresses returned")

    return infos[0][4]


class Transport(Protocol):
    def connect(self, address: Any, timeout: float | None) -> None:
        ...

    def write(self, data: bytes | memoryview, timeout: float | None) -> int:
        ...

    def read_into(self, buffer: bytearray | memoryview, timeout: float | None) -> int:
        ...

    def close(self) -> None:
        ...
