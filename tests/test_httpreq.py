import socket
import threading
from queue import Queue
from unittest.mock import patch

import pytest

from httpreq.config import ClientConfig
from httpreq.errors import (
    DnsFailureError,
    RequestTimedOut,
    SocketConnectError,
    UnsupportedAddressFamilyError,
    UnsupportedSchemeError,
)
from httpreq.http_protocol import HttpMethod, HttpResponse, HttpStatusCode
from httpreq.httpreq import HttpClient
from httpreq.tcp_transport import TcpTransport
from httpreq.transport import AddressFamily


def serve_once(canned_response: bytes, request_queue: Queue, read_request):
    def handler(client_sock: socket.socket):
        request_queue.put(read_request(client_sock))
        client_sock.sendall(canned_response)
    return handler


def test_get_request_succeeds(server_factory, read_request):
    request_queue = Queue()
    handler = serve_once(b"HTTP/1.1 200 OK\r\nContent-Length: 7\r\n\r\nsuccess", request_queue, read_request)

    with server_factory(handler) as details:
        client = HttpClient(f"{details.url}/test?x=1#ignored")
        res = client.get(timeout=2.0)

    assert isinstance(res, HttpResponse)
    assert res.status == HttpStatusCode.OK
    assert res.body == b"success"
    assert request_queue.get(timeout=1.0) == (
        b"GET /test?x=1 HTTP/1.1\r\n"
        b"Host: 127.0.0.1\r\n"
        b"Content-Length: 0\r\n"
        b"\r\n"
    )


def test_post_text_body(server_factory, read_request):
    request_queue = Queue()
    handler = serve_once(b"HTTP/1.1 201 Created\r\nContent-Length: 0\r\n\r\n", request_queue, read_request)

    with server_factory(handler) as details:
        res = HttpClient(f"{details.url}/submit").post("héllo", ["Content-Type: text/plain"], timeout=2.0)

    assert res.status == HttpStatusCode.CREATED
    captured_request = request_queue.get(timeout=1.0)
    assert captured_request.startswith(b"POST /submit HTTP/1.1\r\nContent-Type: text/plain\r\n")
    assert b"Content-Length: 6\r\n" in captured_request
    assert captured_request.endswith("héllo".encode("utf-8"))


def test_send_form_parameters(server_factory, read_request):
    request_queue = Queue()
    handler = serve_once(b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nok", request_queue, read_request)

    with server_factory(handler) as details:
        client = HttpClient(details.url)
        client.send("POST", {"first name": "Ada", "lang": "C++"}, [("Content-Type", "application/x-www-form-urlencoded")], 2.0)

    captured_request = request_queue.get(timeout=1.0)
    head, _, body = captured_request.partition(b"\r\n\r\n")
    assert b"Content-Type: application/x-www-form-urlencoded" in head
    assert sorted(body.split(b"&")) == [b"first%20name=Ada", b"lang=C%2B%2B"]


def test_send_accepts_method_enum_and_bytes(server_factory, read_request):
    request_queue = Queue()
    handler = serve_once(b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n", request_queue, read_request)

    with server_factory(handler) as details:
        HttpClient(details.url).send(HttpMethod.PUT, b"\x00\x01", timeout=2.0)

    assert request_queue.get(timeout=1.0).startswith(b"PUT / HTTP/1.1\r\n")


def test_not_found_is_returned_not_raised(server_factory, read_request):
    handler = serve_once(b"HTTP/1.1 404 Not Found\r\nContent-Length: 9\r\n\r\nnot found", Queue(), read_request)

    with server_factory(handler) as details:
        res = HttpClient(details.url).get(timeout=2.0)

    assert res.status == 404
    assert res.status == HttpStatusCode.NOT_FOUND
    assert res.body == b"not found"


def test_head_request_returns_without_body(server_factory, read_request):
    release = threading.Event()

    def handler(client_sock: socket.socket):
        read_request(client_sock)
        client_sock.sendall(b"HTTP/1.1 200 OK\r\nContent-Length: 1234\r\n\r\n")
        release.wait(timeout=2)

    with server_factory(handler) as details:
        res = HttpClient(details.url).send("HEAD", timeout=1.0)
        release.set()

    assert res.get_header("Content-Length") == "1234"
    assert res.body == b""


def test_unsupported_scheme_fails_before_any_network_call():
    created = []

    def factory(family):
        created.append(family)
        return TcpTransport(family)

    client = HttpClient("ftp://host/", transport_factory=factory)

    with patch("socket.getaddrinfo") as mock_getaddrinfo:
        with pytest.raises(UnsupportedSchemeError):
            client.send()

    mock_getaddrinfo.assert_not_called()
    assert created == []


def test_https_is_rejected():
    with pytest.raises(UnsupportedSchemeError, match="Only HTTP scheme is supported"):
        HttpClient("https://example.com/").get()


def test_unsupported_family_rejected_at_construction():
    with pytest.raises(UnsupportedAddressFamilyError):
        HttpClient("http://example.com/", family="V5")


def test_transport_is_closed_after_failure(server_factory, read_request):
    transports = []

    def factory(family):
        transport = TcpTransport(family)
        transports.append(transport)
        return transport

    release = threading.Event()

    def handler(client_sock: socket.socket):
        read_request(client_sock)
        release.wait(timeout=2)

    with server_factory(handler) as details:
        client = HttpClient(details.url, transport_factory=factory)
        with pytest.raises(RequestTimedOut):
            client.get(timeout=0.2)
        release.set()

    assert len(transports) == 1
    assert transports[0].closed


def test_default_timeout_comes_from_config(server_factory, read_request):
    release = threading.Event()

    def handler(client_sock: socket.socket):
        read_request(client_sock)
        release.wait(timeout=2)

    with server_factory(handler) as details:
        client = HttpClient(details.url, config=ClientConfig(default_timeout=0.2))
        with pytest.raises(RequestTimedOut):
            client.get()
        release.set()


def test_connection_refused_raises_connect_error():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    with pytest.raises(SocketConnectError):
        HttpClient(f"http://127.0.0.1:{port}/").get(timeout=1.0)


def test_dns_failure_raises():
    with pytest.raises(DnsFailureError):
        HttpClient("http://a-hostname-that-will-not-resolve.invalid/").get(timeout=1.0)


def test_family_defaults_to_config():
    client = HttpClient("http://example.com/", config=ClientConfig(address_family=AddressFamily.V6))
    assert client.family is AddressFamily.V6

    client = HttpClient("http://example.com/", family=AddressFamily.V4, config=ClientConfig(address_family=AddressFamily.V6))
    assert client.family is AddressFamily.V4


def test_url_is_decomposed_once():
    client = HttpClient("example.com:8080/a/b#frag")

    assert (client.url.scheme, client.url.host, client.url.port, client.url.path) == ("http", "example.com", "8080", "/a/b")
