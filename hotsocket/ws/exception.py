class WebsocketException(RuntimeError):
    """
    the root exception for ws

    To keep the package simple, every failure is a :class:`WebsocketException`
    whose message starts with its type, e.g. ``"BadAccept: Sec-WebSocket-Accept is wrong"``.
    The subclasses below only classify the failure so that callers can decide
    their retry policy with ``except`` clauses instead of matching messages.
    """

    def __init__(self, msg: str):
        super().__init__(msg)
        self._msg = msg
        self._type = msg.split(':', 1)[0] if ':' in msg else self.__class__.__name__

    def __str__(self):
        return self._msg

    @property
    def msg(self):
        """
        the message of the Exception
        """
        return self._msg

    @msg.setter
    def msg(self, msg: str):
        self._msg = msg

    @property
    def type(self):
        """
        the type of the exception

        For :class:`ProtocolError` it tells what went wrong on the wire, for example
        ``ConnectionClosed`` when the peer closed the stream or ``WrongStatus``
        when the handshake was not answered with ``101 Switching Protocols``.
        """
        return self._type

    @type.setter
    def type(self, type_: str):
        self._type = type_


class ConfigurationError(WebsocketException, ValueError):
    """The caller passed something unusable, e.g. an URI with an unknown scheme."""


class TransportError(WebsocketException):
    """The underlying socket failed; the :class:`OSError` is chained as ``__cause__``."""


class ProtocolError(WebsocketException):
    """
    The peer violated the protocol or closed the stream.

    It is always fatal to the connection and never retried by the client.
    """


class NotConnected(WebsocketException):
    """A message was sent while the connection was not ``CONNECTED``."""


class Cancelled(WebsocketException):
    """The connection was torn down by :meth:`~hotsocket.ws.protocol.WebSocket.interrupt`."""
