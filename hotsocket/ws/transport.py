import socket
import ssl
import threading
from typing import Optional


class Transport:
    """
    A blocking plaintext or TLS socket owned by one connection.

    :meth:`close` may be called from any thread and any number of times. It
    shuts the socket down first so that a thread blocked in :meth:`read` or
    :meth:`write` wakes up with EOF or an :exc:`OSError`.

    Args:
        host: host to connect to.
        port: port to connect to.
        secure: wrap the socket with TLS.
        ssl_context: TLS settings; :func:`ssl.create_default_context` if not
            provided.

    """

    def __init__(self,
                 host: str,
                 port: int,
                 secure: bool = False,
                 ssl_context: Optional[ssl.SSLContext] = None):
        self.host = host
        self.port = port
        self.secure = secure
        self.ssl_context = ssl_context
        self.sock: Optional[socket.socket] = None
        self.closed = False
        self._lock = threading.Lock()

    def _create_socket(self) -> socket.socket:
        sock = socket.create_connection((self.host, self.port))
        if self.secure:
            context = self.ssl_context or ssl.create_default_context()
            try:
                sock = context.wrap_socket(sock, server_hostname=self.host)
            except BaseException:
                sock.close()
                raise
        return sock

    def open(self) -> None:
        """
        Connect the socket.

        Raises:
            OSError: if the connection fails or :meth:`close` was called first.

        """
        sock = self._create_socket()
        with self._lock:
            if not self.closed:
                self.sock = sock
                return
        sock.close()
        raise ConnectionAbortedError("transport closed while connecting")

    def read(self, n: int) -> bytes:
        if self.sock is None:
            raise ConnectionAbortedError("transport isn't open")
        return self.sock.recv(n)

    def write(self, data: bytes) -> None:
        if self.sock is None:
            raise ConnectionAbortedError("transport isn't open")
        self.sock.sendall(data)

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
            sock = self.sock
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected by the peer.
            pass
        sock.close()


def open_transport(host: str,
                   port: int,
                   secure: bool,
                   ssl_context: Optional[ssl.SSLContext] = None) -> Transport:
    """
    The default transport factory of :class:`~hotsocket.ws.protocol.WebSocket`.

    The transport isn't connected yet; the connection calls :meth:`Transport.open`.
    """
    return Transport(host, port, secure, ssl_context)
