from .config import ClientConfig
from .errors import (
    HttpParseError,
    HttpReqError,
    IncompleteResponseError,
    RequestError,
    RequestTimedOut,
    ResponseError,
    TransportError,
    UnsupportedSchemeError,
)
from .http_protocol import HttpMethod, HttpResponse, HttpStatusCode
from .httpreq import HttpClient
from .transport import AddressFamily
from .url import parse_url, url_encode

__all__ = [
    "AddressFamily",
    "ClientConfig",
    "HttpClient",
    "HttpMethod",
    "HttpParseError",
    "HttpReqError",
    "HttpResponse",
    "HttpStatusCode",
    "IncompleteResponseError",
    "RequestError",
    "RequestTimedOut",
    "ResponseError",
    "TransportError",
    "UnsupportedSchemeError",
    "parse_url",
    "url_encode",
]
