from hotsocket.logs import Logger
from hotsocket.ws import (
    Cancelled,
    ConfigurationError,
    NotConnected,
    ProtocolError,
    State,
    TransportError,
    WebSocket,
    WebsocketException,
)


__all__ = ['Logger', 'WebSocket', 'State', 'WebsocketException', 'ConfigurationError',
           'TransportError', 'ProtocolError', 'NotConnected', 'Cancelled']
