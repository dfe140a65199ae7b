import base64
import enum
import hashlib
import urllib.parse
from typing import NamedTuple, Tuple

from hotsocket.logs import Logger
from hotsocket.ws.entropy import RandomSource
from hotsocket.ws.exception import ConfigurationError, ProtocolError
from hotsocket.ws.http11 import Headers


class State(enum.IntEnum):
    """A WebSocket client connection is in one of these four states."""

    DISCONNECTED, CONNECTING, CONNECTED, DISCONNECTING = range(4)


GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

SUBPROTOCOL = "chat"

DEFAULT_WS_PORT = 80
DEFAULT_WSS_PORT = 443


logger = Logger.get_logger('hotsocket.client')


class WebSocketURI(NamedTuple):
    """
    The parts of a ``ws://`` or ``wss://`` URI needed to open a connection.

    Attributes:
        uri: the URI as given, sent back as the ``Origin`` header.
        secure: :obj:`True` for ``wss``.
        host: host name, without brackets for IPv6 literals.
        port: explicit port or the default of the scheme.
        path: request target, including the query string.

    """

    uri: str
    secure: bool
    host: str
    port: int
    path: str


def parse_uri(uri: str) -> WebSocketURI:
    """
    Parse and validate a WebSocket URI.

    Raises:
        ConfigurationError: if the scheme isn't ``ws`` or ``wss`` or the URI
            has no host.

    """
    parsed = urllib.parse.urlsplit(uri)
    if parsed.scheme == "wss":
        secure = True
    elif parsed.scheme == "ws":
        secure = False
    else:
        raise ConfigurationError(f"InvalidURI: unknown scheme {parsed.scheme!r} in {uri}")
    if not parsed.hostname:
        raise ConfigurationError(f"InvalidURI: no host in {uri}")
    try:
        port = parsed.port
    except ValueError as exc:
        raise ConfigurationError(f"InvalidURI: {exc} in {uri}") from exc
    if port is None:
        port = DEFAULT_WSS_PORT if secure else DEFAULT_WS_PORT
    path = parsed.path or "/"
    if parsed.query:
        path += "?" + parsed.query
    return WebSocketURI(uri, secure, parsed.hostname, port, path)


def accept_key(key: str) -> str:
    """
    Compute the value of the Sec-WebSocket-Accept header.

    Args:
        key: value of the Sec-WebSocket-Key header.

    """
    sha1 = hashlib.sha1((key + GUID).encode("ascii")).digest()
    return base64.b64encode(sha1).decode()


def verify_accept(key: str, value: str) -> bool:
    """
    Tell whether ``value`` is the Sec-WebSocket-Accept matching ``key``.

    When the interpreter can't compute SHA-1 (FIPS builds may refuse it) the
    value can't be checked and it is assumed correct.

    """
    try:
        expected = accept_key(key)
    except ValueError as exc:
        logger.warning(f"! SHA-1 unavailable, Sec-WebSocket-Accept not verified: {exc}")
        return True
    return expected == value


def generate_key(random_source: RandomSource) -> str:
    """
    Generate a Sec-WebSocket-Key value: 16 random bytes encoded with base64.

    """
    return base64.b64encode(random_source.nonce(16)).decode()


def build_request(wsuri: WebSocketURI, key: str) -> Tuple[str, Headers]:
    """
    Build a handshake request to send to the server.

    Args:
        wsuri: parsed URI of the server.
        key: returned by :func:`generate_key`.

    Returns:
        the request target and the request headers.

    """
    host = f"[{wsuri.host}]" if ":" in wsuri.host else wsuri.host
    headers = Headers()
    headers["Upgrade"] = "websocket"
    headers["Connection"] = "Upgrade"
    headers["Host"] = host
    headers["Origin"] = wsuri.uri
    headers["Sec-WebSocket-Key"] = key
    headers["Sec-WebSocket-Protocol"] = SUBPROTOCOL
    headers["Sec-WebSocket-Version"] = "13"
    return wsuri.path, headers


def check_response(status_code: int, headers: Headers, key: str) -> None:
    """
    Check a handshake response received from the server.

    This function doesn't check the ``Upgrade`` and ``Connection`` headers;
    the accept value already proves that the server speaks WebSocket.

    Args:
        status_code: status code of the response.
        headers: headers of the response.
        key: the Sec-WebSocket-Key sent in the request.

    Raises:
        ProtocolError: if the handshake response is invalid.

    """
    if status_code != 101:
        raise ProtocolError(f"WrongStatus: wrong HTTP response status {status_code}")

    accept = headers.get_all("Sec-WebSocket-Accept")
    if len(accept) > 1:
        raise ProtocolError("DuplicateHeader: Sec-WebSocket-Accept should appear once")
    if not accept:
        raise ProtocolError("MissingHeader: Sec-WebSocket-Accept did not appear")
    if not verify_accept(key, accept[0]):
        raise ProtocolError(f"BadAccept: Sec-WebSocket-Accept is wrong {accept[0]}")

    # The server may only pick a subprotocol the client offered.
    for protocol in headers.get_all("Sec-WebSocket-Protocol"):
        if protocol != SUBPROTOCOL:
            raise ProtocolError(f"BadProtocol: only {SUBPROTOCOL} is supported, got {protocol}")
