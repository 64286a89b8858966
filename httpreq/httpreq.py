import logging
from contextlib import closing
from typing import Callable, Mapping, Sequence, Union

from .config import ClientConfig
from .errors import UnsupportedSchemeError
from .http1_protocol import Http1Protocol
from .http_protocol import Deadline, Header, HttpMethod, HttpRequest, HttpResponse
from .tcp_transport import TcpTransport
from .transport import AddressFamily, Transport, address_family_constant, resolve
from .url import DEFAULT_SCHEME, Url, encode_form, parse_url

logger = logging.getLogger(__name__)

Body = Union[bytes, bytearray, memoryview, str, Mapping[str, str]]


def _encode_body(body: Body) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, Mapping):
        return encode_form(body).encode("ascii")
    return bytes(body)


class HttpClient:
    """Issues one-shot HTTP/1.1 requests to the endpoint named by ``url``.

    Each ``send`` opens its own connection and shares nothing with other
    calls, so one client can be used from several threads.
    """

    def __init__(
        self,
        url: str,
        family: AddressFamily | None = None,
        config: ClientConfig | None = None,
        transport_factory: Callable[[AddressFamily], Transport] = TcpTransport,
    ) -> None:
        self._config = config if config is not None else ClientConfig()
        self._family = family if family is not None else self._config.address_family
        address_family_constant(self._family)
        self._url = parse_url(url)
        self._transport_factory = transport_factory

    @property
    def url(self) -> Url:
        return self._url

    @property
    def family(self) -> AddressFamily:
        return self._family

    def send(
        self,
        method: HttpMethod | str = HttpMethod.GET,
        body: Body = b"",
        headers: Sequence[Header] = (),
        timeout: float | None = None,
    ) -> HttpResponse:
        """Send one request and return the complete response.

        ``body`` may be bytes, text (sent as UTF-8) or a mapping, which is sent
        form-encoded. ``timeout`` bounds the whole call in seconds; ``None``
        falls back to the configured default and a negative value waits forever.
        """
        if timeout is None:
            timeout = self._config.default_timeout
        deadline = Deadline(timeout)

        if self._url.scheme != DEFAULT_SCHEME:
            raise UnsupportedSchemeError(f"Only HTTP scheme is supported, got '{self._url.scheme}'")

        request = HttpRequest(
            method=method,
            path=self._url.path,
            body=_encode_body(body),
            headers=list(headers),
        )

        address = resolve(self._url.host, self._url.port, self._family)
        logger.debug(f"Resolved {self._url.host}:{self._url.port} to {address}")

        with closing(self._transport_factory(self._family)) as transport:
            protocol = Http1Protocol(transport, self._config.read_chunk_size)
            protocol.connect(address, deadline)
            response = protocol.perform_request(request, self._url.host, deadline)

        logger.debug(f"{request.method_name} {self._url.path} -> {response.status}")
        return response

    def get(self, headers: Sequence[Header] = (), timeout: float | None = None) -> HttpResponse:
        return self.send(HttpMethod.GET, b"", headers, timeout)

    def post(
        self,
        body: Body,
        headers: Sequence[Header] = (),
        timeout: float | None = None,
    ) -> HttpResponse:
        return self.send(HttpMethod.POST, body, headers, timeout)
