import sys

from websockets.sync.server import serve


def echo(websocket):
    for message in websocket:
        websocket.send(message)


def main(host="localhost", port=8765):
    with serve(echo, host, port, subprotocols=["chat"], ping_interval=None) as server:
        print(f"echo server on ws://{host}:{port}/")
        server.serve_forever()


if __name__ == '__main__':
    main(*sys.argv[1:2], *map(int, sys.argv[2:3]))
