class HttpReqError(Exception):
    """Base exception for the httpreq library."""
    pass

# --- Request (configuration) Errors ---

class RequestError(HttpReqError):
    """The request cannot be issued as configured. Raised before any network I/O."""
    pass

class UnsupportedSchemeError(RequestError): pass
class UnsupportedAddressFamilyError(RequestError): pass

# --- Transport Errors ---

class TransportError(HttpReqError):
    """A generic error occurred in the transport layer."""

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.errno = errno

class DnsFailureError(TransportError): pass
class SocketCreateError(TransportError): pass
class SocketConnectError(TransportError): pass
class SocketWriteError(TransportError): pass
class SocketReadError(TransportError): pass
class SocketSelectError(TransportError): pass

# --- Response Errors ---

class ResponseError(HttpReqError):
    """The response could not be obtained or understood."""
    pass

class RequestTimedOut(ResponseError):
    """The request deadline expired while waiting on the socket."""
    pass

class HttpParseError(ResponseError): pass
class IncompleteResponseError(HttpParseError): pass
