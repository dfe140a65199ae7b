import getopt
import logging
import sys
import threading
from typing import List, Optional

from hotsocket.logs import Logger
from hotsocket.ws import Cancelled, Close, ProtocolError, WebSocket, WebsocketException
from hotsocket.ws.frames import OP_CLOSE


class ConsoleListener:
    """
    Print what the server sends and send the ``--send`` messages once connected.
    """

    def __init__(self, messages: List[str], logger: Logger, out=None):
        self.messages = messages
        self.logger = logger
        self.out = out or sys.stdout
        self.ws: Optional[WebSocket] = None
        self.close_requested = False

    def on_connected(self):
        for message in self.messages:
            self.ws.send_text(message)

    def on_string_message(self, message: str):
        print(message, file=self.out, flush=True)

    def on_binary_message(self, data: bytes):
        print(data.hex(), file=self.out, flush=True)

    def on_server_requested_close(self, data: bytes):
        self.close_requested = True
        try:
            close = Close.parse(data)
        except (ProtocolError, UnicodeDecodeError):
            close = data.hex()
        self.logger.info(f"server requested close: {close}")
        # Echo the close frame so the server drops the TCP connection.
        self.ws.send(OP_CLOSE, data)

    def on_ping(self, data: bytes):
        pass

    def on_pong(self, data: bytes):
        self.logger.info(f"pong {data.hex()}")

    def on_unknown_message(self, data: bytes):
        self.logger.warning(f"unknown message {data.hex()}")


class Cmd:

    usage = '''
    Usages: hot-socket [OPTIONS] [OPTION_ARGS]

    Options:

        -u --uri:    The ws:// or wss:// URI to connect to.
        -s --send:   A text message to send once connected. It can be repeated.
        -o --output: The path to a file the logs are appended to.
        -d --debug:  Log every frame and handshake line.
        -h --help:   The help message.

    The client prints the messages received from the server until the server
    closes the connection or Ctrl-C is pressed.
    '''

    def parse(self, argv: Optional[List[str]] = None) -> int:
        if argv is None:
            argv = sys.argv[1:]
        opts, args = getopt.getopt(argv,
                                   'u:s:o:dh',
                                   ['uri=', 'send=', 'output=', 'debug', 'help'])

        if any(opt in ['-h', '--help'] for opt, optarg in opts):
            print(self.usage)
            return 0

        uri = [optarg for opt, optarg in opts if opt in ['-u', '--uri']]
        if len(uri) != 1:
            print(self.usage)
            return 2
        uri = uri[0]

        logger = Logger.get_logger('hotsocket')

        if any(opt in ['-o', '--output'] for opt, optarg in opts):
            output = [optarg for opt, optarg in opts if opt in ['-o', '--output']]
            if len(output) > 1:
                raise RuntimeError("Cannot support multiple redirect output")
            Logger.redirect_to_file(output[0], logger=logger)
        else:
            logging.basicConfig()

        debug = any(opt in ['-d', '--debug'] for opt, optarg in opts)
        logger.setLevel(logging.DEBUG if debug else logging.INFO)

        messages = [optarg for opt, optarg in opts if opt in ['-s', '--send']]
        listener = ConsoleListener(messages, logger)
        ws = WebSocket(listener, logger=logger, debug=debug)
        listener.ws = ws
        return self.run(ws, uri, listener, logger)

    def run(self, ws: WebSocket, uri: str, listener: ConsoleListener, logger: Logger) -> int:
        errors: List[WebsocketException] = []

        def _connect():
            try:
                ws.connect(uri)
            except WebsocketException as exc:
                errors.append(exc)

        thread = threading.Thread(target=_connect, name='hotsocket-connect', daemon=True)
        thread.start()
        try:
            while thread.is_alive():
                thread.join(0.5)
        except KeyboardInterrupt:
            # interrupt() waits for a connection attempt, which may be over already.
            threading.Thread(target=ws.interrupt, daemon=True).start()
            thread.join()

        if not errors:
            return 0
        error = errors[0]
        if isinstance(error, Cancelled):
            return 0
        if listener.close_requested and isinstance(error, ProtocolError) and error.type == 'ConnectionClosed':
            return 0
        logger.error(f"{error}")
        return 1


def main():
    sys.exit(Cmd().parse())
