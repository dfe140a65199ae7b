import ssl
import threading
from typing import Callable, Optional, Union

from hotsocket.logs import Logger
from hotsocket.typings import TListener
from hotsocket.ws.entropy import RandomSource
from hotsocket.ws.exception import Cancelled, NotConnected, ProtocolError, TransportError, WebsocketException
from hotsocket.ws.frames import MAX_PAYLOAD, Close, Frame, Opcode, OP_BINARY, OP_CLOSE, OP_CONT, OP_PING, OP_PONG, OP_TEXT
from hotsocket.ws.http11 import read_response, write_request
from hotsocket.ws.misc import State, WebSocketURI, build_request, check_response, generate_key, parse_uri
from hotsocket.ws.streams import StreamReader, StreamWriter
from hotsocket.ws.transport import Transport, open_transport


class WebSocket:
    """
    WebSocket client connection.

    :meth:`connect` runs the whole connection on the calling thread: it opens
    the socket, performs the opening handshake, then reads frames and reports
    them to ``listener`` until the connection fails or :meth:`interrupt` is
    called. It never returns normally::

        ws = WebSocket(listener)
        threading.Thread(target=ws.connect, args=("ws://localhost:8765/",)).start()
        ...
        ws.send_text("hello")   # from any thread, once on_connected() was called
        ...
        ws.interrupt()          # connect() raises Cancelled

    Two locks protect the connection. The state condition guards
    :attr:`state` and the number of sends in flight; every transition wakes
    all its waiters. The write lock keeps concurrent sends from interleaving
    their bytes. Neither lock is acquired while holding the other.

    Args:
        listener: receives the events of the connection, see
            :class:`~hotsocket.typings.TListener`.
        logger: logger for this connection.
        debug: log every frame and handshake line at debug level.
        ssl_context: TLS settings for ``wss`` URIs.
        transport_factory: ``(host, port, secure, ssl_context) -> Transport``.
        random_source: randomness for masks and handshake keys.

    """

    def __init__(
            self,
            listener: TListener,
            *,
            logger: Optional[Logger] = None,
            debug: bool = False,
            ssl_context: Optional[ssl.SSLContext] = None,
            transport_factory: Optional[Callable[..., Transport]] = None,
            random_source: Optional[RandomSource] = None,
    ):
        if listener is None:
            raise ValueError("listener cannot be None")
        if logger is None:
            logger = Logger.get_logger('hotsocket.client')
        self.listener = listener
        self.logger = logger
        self.debug = debug
        self.ssl_context = ssl_context
        self.transport_factory = transport_factory or open_transport
        self.random_source = random_source or RandomSource.system()
        if not self.random_source.is_available:
            self.logger.warning("! no secure randomness, frames will be sent unmasked")

        self._condition = threading.Condition()
        self._write_lock = threading.Lock()

        # Guarded by _condition.
        self._state = State.DISCONNECTED
        self._writing = 0
        self._disconnects = 0
        # Value of _disconnects once the last interrupted connection is gone.
        self._interrupted = -1
        self.transport: Optional[Transport] = None
        self.reader: Optional[StreamReader] = None
        self.writer: Optional[StreamWriter] = None

    @property
    def state(self) -> State:
        return self._state

    @property
    def connected(self) -> bool:
        """
        :obj:`True` between ``on_connected()`` and the end of the connection.

        """
        return self._state is State.CONNECTED

    def _set_state(self, state: State) -> None:
        # Caller holds _condition.
        if self.debug:
            self.logger.debug(f"= connection is {state.name}")
        self._state = state
        if state is State.DISCONNECTED:
            self._disconnects += 1
        self._condition.notify_all()

    def _release(self) -> None:
        # Caller holds _condition.
        transport, self.transport = self.transport, None
        self.reader = self.writer = None
        if transport is not None:
            transport.close()
        self._set_state(State.DISCONNECTED)

    def _failure(self, exc: Exception) -> Exception:
        # Caller holds _condition.
        if self._state is State.DISCONNECTING:
            return Cancelled("Cancelled: connection interrupted")
        if isinstance(exc, OSError):
            return TransportError(f"TransportError: {exc}")
        return exc

    def connect(self, uri: str) -> None:
        """
        Connect to ``uri`` and process incoming frames until the connection ends.

        Must not be called concurrently on the same object. The object may be
        reused once :meth:`connect` has raised.

        Args:
            uri: ``ws://`` or ``wss://`` URI of the server.

        Raises:
            ConfigurationError: if the URI is unusable.
            Cancelled: when :meth:`interrupt` ended the connection.
            TransportError: when the socket failed.
            ProtocolError: when the server broke the protocol or closed the
                stream.

        """
        with self._condition:
            if self._state is not State.DISCONNECTED:
                raise WebsocketException(
                    f"InvalidState: connect could be called only if disconnected, not {self._state.name}"
                )
            wsuri = parse_uri(uri)
            self.transport = self.transport_factory(wsuri.host, wsuri.port, wsuri.secure, self.ssl_context)
            self._set_state(State.CONNECTING)

        try:
            self._handshake(wsuri)
        except (OSError, WebsocketException) as exc:
            with self._condition:
                failure = self._failure(exc)
                self._release()
            self.logger.info(f"opening handshake failed: {failure}")
            if failure is exc:
                raise
            raise failure from exc
        except BaseException:
            with self._condition:
                self._release()
            raise

        with self._condition:
            if self._state is State.DISCONNECTING:
                self._release()
                raise Cancelled("Cancelled: connection interrupted during the opening handshake")
            self._set_state(State.CONNECTED)
        self.logger.info("connection open")

        try:
            self.listener.on_connected()
            while True:
                self._read_frame()
        except (OSError, WebsocketException) as exc:
            with self._condition:
                failure = self._failure(exc)
            if self.debug:
                self.logger.debug(f"! connection failed: {failure}")
            if failure is exc:
                raise
            raise failure from exc
        finally:
            with self._condition:
                if self._state is State.CONNECTED:
                    self._set_state(State.DISCONNECTING)
                # Wakes up senders blocked on the socket.
                self.transport.close()
                while self._writing:
                    self._condition.wait()
                self._release()
            self.logger.info("connection closed")

    def _handshake(self, wsuri: WebSocketURI) -> None:
        self.transport.open()
        self.reader = StreamReader(self.transport.read)
        self.writer = StreamWriter(self.transport.write)

        key = generate_key(self.random_source)
        path, headers = build_request(wsuri, key)
        if self.debug:
            self.logger.debug(f"> GET {path} HTTP/1.1")
            for name, value in headers.raw_items():
                self.logger.debug(f"> {name}: {value}")
        write_request(self.writer, path, headers)

        status_code, reason, response_headers = read_response(self.reader)
        if self.debug:
            self.logger.debug(f"< HTTP/1.1 {status_code} {reason}")
            for name, value in response_headers.raw_items():
                self.logger.debug(f"< {name}: {value}")
        check_response(status_code, response_headers, key)

    def _read_frame(self) -> None:
        frame = Frame.read(self.reader)
        if self.debug:
            self.logger.debug(f"< {frame}")

        opcode = frame.opcode
        if opcode is OP_CONT:
            raise ProtocolError("Unsupported: continuation frames aren't supported")
        elif opcode is OP_TEXT:
            try:
                message = frame.data.decode()
            except UnicodeDecodeError as exc:
                raise ProtocolError(f"InvalidData: {exc.reason} at position {exc.start}") from exc
            self.listener.on_string_message(message)
        elif opcode is OP_BINARY:
            self.listener.on_binary_message(frame.data)
        elif opcode is OP_CLOSE:
            self.listener.on_server_requested_close(frame.data)
        elif opcode is OP_PING:
            # 5.5.2. Ping: "Upon receipt of a Ping frame, an endpoint MUST
            # send a Pong frame in response"
            self.listener.on_ping(frame.data)
            self.send(OP_PONG, frame.data)
        elif opcode is OP_PONG:
            # 5.5.3 Pong: "A response to an unsolicited Pong frame is not
            # expected."
            self.listener.on_pong(frame.data)
        else:
            self.listener.on_unknown_message(frame.data)

    def send(self, opcode: Union[Opcode, int], payload: bytes) -> None:
        """
        Send one frame with ``payload``. Thread safe; blocks until it is written.

        The payload is masked unless no secure randomness is available.

        Args:
            opcode: opcode of the frame, ``0x00`` to ``0x0f``.
            payload: data of the frame.

        Raises:
            ValueError: if ``payload`` is larger than 1 MiB; nothing is written.
            NotConnected: if the connection isn't ``CONNECTED``; nothing is written.
            Cancelled: if :meth:`interrupt` closed the socket meanwhile.
            TransportError: if the socket failed.

        """
        if len(payload) > MAX_PAYLOAD:
            raise ValueError(f"payload larger than {MAX_PAYLOAD} bytes, fragmentation isn't supported")
        with self._condition:
            if self._state is not State.CONNECTED:
                raise NotConnected(f"NotConnected: cannot write to a WebSocket in the {self._state.name} state")
            self._writing += 1
            writer = self.writer

        try:
            frame = Frame(opcode, bytes(payload))
            mask = self.random_source.mask()
            with self._write_lock:
                if self.debug:
                    self.logger.debug(f"> {frame}")
                frame.write(writer, mask=mask)
                writer.flush()
        except OSError as exc:
            with self._condition:
                failure = self._failure(exc)
            raise failure from exc
        finally:
            with self._condition:
                self._writing -= 1
                self._condition.notify_all()

    def send_text(self, message: str) -> None:
        self.send(OP_TEXT, message.encode())

    def send_bytes(self, data: bytes) -> None:
        self.send(OP_BINARY, data)

    def send_ping(self, data: bytes = b"") -> None:
        self.send(OP_PING, data)

    def send_close(self, code: int = 1000, reason: str = "") -> None:
        """
        Ask the server to close the connection.

        The server answers with its own close frame, reported by
        ``on_server_requested_close()``; the connection ends when it closes the
        socket or when :meth:`interrupt` is called.

        """
        self.send(OP_CLOSE, Close(code, reason).serialize())

    def interrupt(self) -> None:
        """
        End the connection and wait until :meth:`connect` has unwound.

        Thread safe. If no connection attempt started yet, it waits for one.
        Once it returns, the state is ``DISCONNECTED`` and the socket is closed.

        Only the first of concurrent or repeated calls closes the connection.
        The others wait for the same teardown, or return at once if it is
        over and no new connection attempt has started.

        """
        with self._condition:
            if self._state is State.DISCONNECTED and self._interrupted == self._disconnects:
                return
            self._condition.wait_for(lambda: self._state is not State.DISCONNECTED)
            disconnects = self._disconnects
            if self._state in (State.CONNECTING, State.CONNECTED):
                if self.debug:
                    self.logger.debug("x closing TCP connection")
                self.transport.close()
                self._set_state(State.DISCONNECTING)
                self._interrupted = disconnects + 1
            self._condition.wait_for(lambda: self._disconnects != disconnects)
