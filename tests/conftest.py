import socket
import threading
from typing import List, Optional, Tuple

import pytest

from hotsocket.ws.frames import Frame
from hotsocket.ws.http11 import Headers, read_headers
from hotsocket.ws.misc import accept_key
from hotsocket.ws.streams import StreamReader, StreamWriter
from hotsocket.ws.transport import Transport


TIMEOUT = 5


class PairTransport(Transport):
    """A transport whose socket is one end of a :func:`socket.socketpair`."""

    def __init__(self, sock: socket.socket, host: str, port: int, secure: bool = False, ssl_context=None):
        super().__init__(host, port, secure, ssl_context)
        self.pair_sock = sock

    def _create_socket(self) -> socket.socket:
        return self.pair_sock


class Peer:
    """
    The server end of a socketpair, speaking just enough WebSocket for the tests.
    """

    def __init__(self):
        self.sock, self.client_sock = socket.socketpair()
        self.sock.settimeout(TIMEOUT)
        self.reader = StreamReader(self.sock.recv)
        self.writer = StreamWriter(self.sock.sendall)
        self.transports: List[PairTransport] = []
        self.request_line: Optional[str] = None
        self.request_headers: Optional[Headers] = None

    def factory(self, host, port, secure, ssl_context=None) -> PairTransport:
        transport = PairTransport(self.client_sock, host, port, secure, ssl_context)
        self.transports.append(transport)
        return transport

    def read_request(self) -> Tuple[str, Headers]:
        self.request_line = self.reader.read_line()
        self.request_headers = read_headers(self.reader)
        return self.request_line, self.request_headers

    def respond(self, status: str = "101 Switching Protocols", headers=None) -> None:
        self.writer.write_line(f"HTTP/1.1 {status}")
        for name, value in headers or []:
            self.writer.write_line(f"{name}: {value}")
        self.writer.write_line()
        self.writer.flush()

    def accept(self, extra_headers=()) -> None:
        self.read_request()
        key = self.request_headers["Sec-WebSocket-Key"]
        self.respond(headers=[
            ("Upgrade", "websocket"),
            ("Connection", "Upgrade"),
            ("Sec-WebSocket-Accept", accept_key(key)),
            *extra_headers,
        ])

    def send_frame(self, opcode, data: bytes = b"", fin: bool = True, mask: Optional[bytes] = None) -> None:
        Frame(opcode, data, fin).write(self.writer, mask=mask)
        self.writer.flush()

    def send_raw(self, data: bytes) -> None:
        self.sock.sendall(data)

    def read_frame(self) -> Frame:
        return Frame.read(self.reader)

    def close(self) -> None:
        self.sock.close()
        self.client_sock.close()


class RecordingListener:
    """Record every event of a connection, in order."""

    def __init__(self):
        self.events: List[Tuple[str, object]] = []
        self.condition = threading.Condition()

    def _record(self, name, data=None):
        with self.condition:
            self.events.append((name, data))
            self.condition.notify_all()

    def wait_for(self, count: int, timeout: float = TIMEOUT) -> List[Tuple[str, object]]:
        with self.condition:
            assert self.condition.wait_for(lambda: len(self.events) >= count, timeout), self.events
            return list(self.events)

    def on_connected(self):
        self._record('connected')

    def on_string_message(self, message):
        self._record('text', message)

    def on_binary_message(self, data):
        self._record('binary', data)

    def on_server_requested_close(self, data):
        self._record('close', data)

    def on_ping(self, data):
        self._record('ping', data)

    def on_pong(self, data):
        self._record('pong', data)

    def on_unknown_message(self, data):
        self._record('unknown', data)


class ClientThread(threading.Thread):
    """Run :meth:`WebSocket.connect` and keep what it raised."""

    def __init__(self, ws, uri: str = "ws://example.com/chat"):
        super().__init__(daemon=True)
        self.ws = ws
        self.uri = uri
        self.error: Optional[BaseException] = None

    def run(self):
        try:
            self.ws.connect(self.uri)
        except BaseException as exc:
            self.error = exc

    def result(self, timeout: float = TIMEOUT) -> BaseException:
        self.join(timeout)
        assert not self.is_alive(), "connect() didn't return"
        return self.error


@pytest.fixture
def peer():
    peer = Peer()
    yield peer
    peer.close()


@pytest.fixture
def listener():
    return RecordingListener()
