import logging
import re
from enum import Enum
from typing import Any

from .errors import HttpParseError, IncompleteResponseError, RequestError
from .http_protocol import Deadline, HttpProtocol, HttpRequest, HttpResponse
from .transport import Transport

logger = logging.getLogger(__name__)

_CRLF = b"\r\n"
_DECIMAL = re.compile(r"[0-9]+")
_HEXADECIMAL = re.compile(r"[0-9A-Fa-f]+")


def build_request(request: HttpRequest, host: str) -> bytes:
    lines = [f"{request.method_name} {request.path} HTTP/1.1"]

    for header in request.headers:
        if isinstance(header, tuple):
            key, value = header
            lines.append(f"{key}: {value}")
        else:
            lines.append(header)

    lines.append(f"Host: {host}")
    lines.append(f"Content-Length: {len(request.body)}")

    head = "\r\n".join(lines) + "\r\n\r\n"
    try:
        return head.encode("iso-8859-1") + bytes(request.body)
    except UnicodeEncodeError as e:
        raise RequestError(f"Request line or headers contain unencodable characters: {e}") from e


class DecoderState(Enum):
    STATUS_LINE = "status_line"
    HEADERS = "headers"
    BODY = "body"
    COMPLETE = "complete"


class BodyMode(Enum):
    CONTENT_LENGTH = "content_length"
    CHUNKED = "chunked"
    UNTIL_CLOSE = "until_close"


class ResponseDecoder:
    """Incremental HTTP/1.1 response parser.

    Feed it whatever the socket returns, in pieces of any size. States move
    forward: status line, headers, body, complete. The one exception is an
    interim 1xx response, which is dropped so the final response can be read.
    The body is framed by ``Transfer-Encoding: chunked`` when present
    (overriding any ``Content-Length``), otherwise by ``Content-Length``,
    otherwise by the peer closing the connection.
    """

    def __init__(self, method: str = "GET") -> None:
        self._method = method.upper()
        self._buffer = bytearray()
        self._state = DecoderState.STATUS_LINE
        self._mode: BodyMode | None = None

        self._status = 0
        self._headers: list[str] = []
        self._body = bytearray()

        self._content_length: int | None = None
        self._chunked = False
        self._chunk_remaining = 0
        self._strip_chunk_crlf = False

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def mode(self) -> BodyMode | None:
        return self._mode

    @property
    def complete(self) -> bool:
        return self._state is DecoderState.COMPLETE

    @property
    def response(self) -> HttpResponse:
        if not self.complete:
            raise HttpParseError("Response is not complete.")
        return HttpResponse(status=self._status, headers=list(self._headers), body=bytes(self._body))

    def feed(self, data: bytes | bytearray | memoryview) -> bool:
        """Consume ``data``; return True once the response is complete.

        Bytes arriving after completion are ignored.
        """
        if self.complete:
            return True

        self._buffer += data

        if self._state in (DecoderState.STATUS_LINE, DecoderState.HEADERS):
            self._parse_head()

        if self._state is DecoderState.BODY:
            if self._mode is BodyMode.CHUNKED:
                self._parse_chunks()
            else:
                self._take_body()

        return self.complete

    def close(self) -> HttpResponse:
        """The peer closed the connection. Return the response if it is complete."""
        if self._state is DecoderState.BODY and self._mode is BodyMode.UNTIL_CLOSE:
            self._state = DecoderState.COMPLETE

        if not self.complete:
            if self._state is not DecoderState.BODY:
                raise IncompleteResponseError("Connection closed before the response headers were received.")
            if self._mode is BodyMode.CHUNKED:
                raise IncompleteResponseError("Connection closed before the terminal chunk was received.")
            raise IncompleteResponseError("Connection closed before full content length was received.")

        return self.response

    def _next_line(self) -> str | None:
        line_end = self._buffer.find(_CRLF)
        if line_end == -1:
            return None

        line = self._buffer[:line_end].decode("iso-8859-1")
        del self._buffer[:line_end + len(_CRLF)]
        return line

    def _parse_head(self) -> None:
        while self._state in (DecoderState.STATUS_LINE, DecoderState.HEADERS):
            line = self._next_line()
            if line is None:
                return

            if self._state is DecoderState.STATUS_LINE:
                self._parse_status_line(line)
                self._state = DecoderState.HEADERS
            elif not line:
                self._end_headers()
            else:
                self._parse_header(line)

    def _parse_status_line(self, line: str) -> None:
        parts = line.split(" ")
        if not line or len(parts) < 2:
            raise HttpParseError(f"Invalid status line: {line!r}")

        if not _DECIMAL.fullmatch(parts[1]):
            raise HttpParseError(f"Invalid status code in status line: {line!r}")

        self._status = int(parts[1])

    def _parse_header(self, line: str) -> None:
        colon_pos = line.find(":")
        if colon_pos == -1:
            raise HttpParseError(f"Invalid header: {line}")

        self._headers.append(line)

        # Field names are case-insensitive on the wire.
        name = line[:colon_pos].lower()
        value = line[colon_pos + 1:].strip(" \t")

        if name == "content-length":
            if not _DECIMAL.fullmatch(value):
                raise HttpParseError(f"Invalid Content-Length value: {value!r}")
            self._content_length = int(value)
        elif name == "transfer-encoding":
            if value.lower() != "chunked":
                raise HttpParseError(f"Unsupported transfer encoding: {value}")
            self._chunked = True

    def _end_headers(self) -> None:
        if 100 <= self._status < 200 and self._status != 101:
            # interim response; the final one follows on the same connection
            self._status = 0
            self._headers.clear()
            self._content_length = None
            self._chunked = False
            self._state = DecoderState.STATUS_LINE
            return

        if self._method == "HEAD" or self._status == 101 or self._status in (204, 304):
            self._state = DecoderState.COMPLETE
            return

        if self._chunked:
            self._mode = BodyMode.CHUNKED
        elif self._content_length is not None:
            self._mode = BodyMode.CONTENT_LENGTH
        else:
            self._mode = BodyMode.UNTIL_CLOSE

        if self._mode is BodyMode.CONTENT_LENGTH and self._content_length == 0:
            self._state = DecoderState.COMPLETE
        else:
            self._state = DecoderState.BODY

    def _take_body(self) -> None:
        self._body += self._buffer
        self._buffer.clear()

        if self._mode is BodyMode.CONTENT_LENGTH and len(self._body) >= self._content_length:
            del self._body[self._content_length:]
            self._state = DecoderState.COMPLETE

    def _parse_chunks(self) -> None:
        while True:
            if self._chunk_remaining > 0:
                to_take = min(self._chunk_remaining, len(self._buffer))
                self._body += self._buffer[:to_take]
                del self._buffer[:to_take]
                self._chunk_remaining -= to_take

                if self._chunk_remaining == 0:
                    self._strip_chunk_crlf = True
                if not self._buffer:
                    return
                continue

            if self._strip_chunk_crlf:
                if len(self._buffer) < len(_CRLF):
                    return
                if self._buffer[:2] != _CRLF:
                    raise HttpParseError("Chunk data is not followed by CRLF.")
                del self._buffer[:2]
                self._strip_chunk_crlf = False

            line = self._next_line()
            if line is None:
                return

            chunk_size = self._parse_chunk_size(line)
            if chunk_size == 0:
                self._state = DecoderState.COMPLETE
                return
            self._chunk_remaining = chunk_size

    @staticmethod
    def _parse_chunk_size(line: str) -> int:
        # chunk extensions are ignored
        size_text = line.split(";", 1)[0].strip(" \t")
        if not _HEXADECIMAL.fullmatch(size_text):
            raise HttpParseError(f"Invalid chunk size: {line!r}")
        return int(size_text, 16)


class Http1Protocol(HttpProtocol):
    def __init__(self, transport: Transport, read_chunk_size: int = 4096) -> None:
        self._transport: Transport = transport
        self._buffer: bytearray = bytearray(read_chunk_size)

    def connect(self, address: Any, deadline: Deadline) -> None:
        self._transport.connect(address, deadline.remaining())

    def disconnect(self) -> None:
        self._transport.close()

    def perform_request(self, request: HttpRequest, host: str, deadline: Deadline) -> HttpResponse:
        payload = build_request(request, host)
        self._write_all(payload, deadline)
        logger.debug(f"Sent {len(payload)} bytes")

        response = self._read_response(ResponseDecoder(request.method_name), deadline)
        logger.debug(f"Received status {response.status} with {len(response.body)} body bytes")
        return response

    def _write_all(self, payload: bytes, deadline: Deadline) -> None:
        view = memoryview(payload)
        while view:
            bytes_written = self._transport.write(view, deadline.remaining())
            view = view[bytes_written:]

    def _read_response(self, decoder: ResponseDecoder, deadline: Deadline) -> HttpResponse:
        read_view = memoryview(self._buffer)

        while True:
            bytes_read = self._transport.read_into(read_view, deadline.remaining())

            if bytes_read == 0:
                try:
                    return decoder.close()
                except IncompleteResponseError as e:
                    logger.warning(f"Incomplete response: {e}")
                    raise

            if decoder.feed(read_view[:bytes_read]):
                return decoder.response
