"""End-to-end tests against a server built with the websockets library."""

import threading

import pytest
from websockets.sync.server import serve

from conftest import TIMEOUT, ClientThread, RecordingListener
from hotsocket.cmds import Cmd
from hotsocket.ws import Cancelled, Close, ProtocolError, State, WebSocket


def echo(websocket):
    for message in websocket:
        websocket.send(message)


def ping_then_greet(websocket):
    websocket.ping(b"abc").wait(TIMEOUT)
    websocket.send("pong received")
    for _ in websocket:
        pass


def close_immediately(websocket):
    websocket.close(1001, "bye")


def echo_once(websocket):
    websocket.send(websocket.recv())
    websocket.close()


@pytest.fixture
def server(request):
    handler = getattr(request, 'param', echo)
    with serve(handler, "127.0.0.1", 0, subprotocols=["chat"], ping_interval=None) as server:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        yield f"ws://127.0.0.1:{server.socket.getsockname()[1]}/"
        server.shutdown()
    thread.join(TIMEOUT)


def test_echo(server) -> None:
    listener = RecordingListener()
    ws = WebSocket(listener)
    client = ClientThread(ws, server)
    client.start()
    listener.wait_for(1)

    ws.send_text("hello")
    ws.send_bytes(b"\x00\x01\x02")
    ws.send_text("x" * 70000)
    events = listener.wait_for(4)
    assert events[1:] == [('text', "hello"), ('binary', b"\x00\x01\x02"), ('text', "x" * 70000)]

    ws.interrupt()
    assert isinstance(client.result(), Cancelled)
    assert ws.state is State.DISCONNECTED


@pytest.mark.parametrize("server", [ping_then_greet], indirect=True)
def test_server_ping(server) -> None:
    listener = RecordingListener()
    ws = WebSocket(listener)
    client = ClientThread(ws, server)
    client.start()
    events = listener.wait_for(3)
    assert events == [('connected', None), ('ping', b"abc"), ('text', "pong received")]
    ws.interrupt()
    assert isinstance(client.result(), Cancelled)


@pytest.mark.parametrize("server", [close_immediately], indirect=True)
def test_server_close(server) -> None:
    class Echo(RecordingListener):
        def on_server_requested_close(self, data):
            super().on_server_requested_close(data)
            ws.send(0x8, data)

    listener = Echo()
    ws = WebSocket(listener)
    client = ClientThread(ws, server)
    client.start()
    events = listener.wait_for(2)
    assert Close.parse(events[1][1]) == Close(1001, "bye")

    error = client.result()
    assert isinstance(error, ProtocolError)
    assert error.type == "ConnectionClosed"
    assert ws.state is State.DISCONNECTED


@pytest.mark.parametrize("server", [echo_once], indirect=True)
def test_cmd(server, capsys) -> None:
    assert Cmd().parse(['-u', server, '-s', 'hello']) == 0
    assert capsys.readouterr().out == "hello\n"
