from typing import Callable, Iterable, Mapping, Protocol, Tuple, Union


HeadersLike = Union[
    Mapping[str, str],
    Iterable[Tuple[str, str]]
]


T_read = Callable[[int], bytes]


T_write = Callable[[bytes], None]


class TListener(Protocol):
    """
    The callbacks a :class:`~hotsocket.ws.protocol.WebSocket` reports to.

    All of them run on the thread blocked in
    :meth:`~hotsocket.ws.protocol.WebSocket.connect`, in the order the frames
    arrived on the wire.
    """

    def on_connected(self) -> None:
        pass

    def on_string_message(self, message: str) -> None:
        pass

    def on_binary_message(self, data: bytes) -> None:
        pass

    def on_server_requested_close(self, data: bytes) -> None:
        pass

    def on_ping(self, data: bytes) -> None:
        pass

    def on_pong(self, data: bytes) -> None:
        pass

    def on_unknown_message(self, data: bytes) -> None:
        pass
