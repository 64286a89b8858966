"""URL decomposition and form percent-encoding.

Both helpers are pure string/byte manipulation: nothing here validates the
URL or touches the network. A malformed URL simply decomposes into whatever
the splitting rules produce, and the problem surfaces later at the scheme
check or during address resolution.
"""
from dataclasses import dataclass
from typing import Mapping

DEFAULT_SCHEME = "http"
DEFAULT_PORT = "80"

_HEX_DIGITS = b"0123456789ABCDEF"
_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    b"abcdefghijklmnopqrstuvwxyz"
    b"0123456789"
    b"-._"
)


@dataclass(frozen=True)
class Url:
    scheme: str
    host: str
    port: str
    path: str


def parse_url(url: str) -> Url:
    scheme_end = url.find("://")
    if scheme_end != -1:
        scheme = url[:scheme_end]
        rest = url[scheme_end + 3:]
    else:
        scheme = DEFAULT_SCHEME
        rest = url

    fragment_pos = rest.find("#")
    if fragment_pos != -1:
        rest = rest[:fragment_pos]

    path_pos = rest.find("/")
    if path_pos == -1:
        host, path = rest, "/"
    else:
        host, path = rest[:path_pos], rest[path_pos:]

    port_pos = host.find(":")
    if port_pos != -1:
        host, port = host[:port_pos], host[port_pos + 1:]
    else:
        port = DEFAULT_PORT

    return Url(scheme=scheme, host=host, port=port, path=path)


def _sequence_length(lead: int) -> int:
    if lead >> 5 == 0b110:
        return 2
    if lead >> 4 == 0b1110:
        return 3
    if lead >> 3 == 0b11110:
        return 4
    return 1


def _escape(byte: int, out: bytearray) -> None:
    out += b"%"
    out.append(_HEX_DIGITS[byte >> 4])
    out.append(_HEX_DIGITS[byte & 0x0F])


def url_encode(value: str | bytes | bytearray | memoryview) -> str:
    """Percent-encode ``value`` for use in an ``x-www-form-urlencoded`` body.

    ``[A-Za-z0-9-._]`` pass through; everything else becomes ``%XX``. A
    multi-byte UTF-8 sequence is escaped as a unit, and one cut short at the
    end of the input is escaped as far as it goes.
    """
    data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    out = bytearray()

    i = 0
    while i < len(data):
        lead = data[i]
        if lead in _UNRESERVED:
            out.append(lead)
            i += 1
            continue

        end = min(i + _sequence_length(lead), len(data))
        for byte in data[i:end]:
            _escape(byte, out)
        i = end

    return out.decode("ascii")


def encode_form(parameters: Mapping[str, str]) -> str:
    return "&".join(
        f"{url_encode(key)}={url_encode(value)}" for key, value in parameters.items()
    )
