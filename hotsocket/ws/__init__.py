"""
This package implements a small blocking websocket client according to `RFC 6455`_.

The wire format follows the famous Python project `websockets`_ by Aymeric
Augustin and other contributors, but a lot of details and features are left
out: extensions, fragmented messages, the server role and the closing
handshake state machine. A frame carries at most 1 MiB.

One thread runs :meth:`WebSocket.connect` for the whole life of the connection
and receives the events through a listener; any other thread may send::

    from hotsocket.ws import WebSocket


    class Echo:

        def on_connected(self):
            ws.send_text("hello")

        def on_string_message(self, message):
            print(message)

        ...

    ws = WebSocket(Echo())
    ws.connect("ws://localhost:8765/")


.. _`RFC 6455`: https://datatracker.ietf.org/doc/html/rfc6455.html
.. _`websockets`: https://github.com/python-websockets/websockets
"""

from hotsocket.ws.exception import (
    Cancelled,
    ConfigurationError,
    NotConnected,
    ProtocolError,
    TransportError,
    WebsocketException,
)
from hotsocket.ws.frames import Close, Frame, Opcode
from hotsocket.ws.misc import State
from hotsocket.ws.protocol import WebSocket


__all__ = ['WebSocket', 'State', 'Frame', 'Opcode', 'Close',
           'WebsocketException', 'ConfigurationError', 'TransportError',
           'ProtocolError', 'NotConnected', 'Cancelled']
