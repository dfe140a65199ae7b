import struct

from hotsocket.typings import T_read, T_write
from hotsocket.ws.exception import ProtocolError


class StreamReader:
    """
    Read primitive wire values from a blocking byte stream.

    Args:
        read: blocking callable returning at most ``n`` bytes, or ``b""`` at
            the end of the stream.

    """

    def __init__(self, read: T_read, chunk_size: int = 2 ** 14):
        self.read = read
        self.chunk_size = chunk_size
        self.buffer = bytearray()

    def _fill(self) -> bool:
        data = self.read(self.chunk_size)
        if not data:
            return False
        self.buffer += data
        return True

    def read_byte(self) -> int:
        if not self.buffer and not self._fill():
            raise ProtocolError("ConnectionClosed: socket closed")
        byte = self.buffer[0]
        del self.buffer[:1]
        return byte

    def read_exact(self, n: int) -> bytes:
        """
        Read exactly ``n`` bytes.

        Raises:
            ProtocolError: if the stream ends first (type ``ConnectionClosed``).

        """
        if n < 0:
            raise ValueError("n must be non-negative")
        while len(self.buffer) < n:
            if not self._fill():
                raise ProtocolError(
                    f"ConnectionClosed: socket closed after {len(self.buffer)} of {n} bytes"
                )
        data = bytes(self.buffer[:n])
        del self.buffer[:n]
        return data

    def read16(self) -> int:
        return struct.unpack("!H", self.read_exact(2))[0]

    def read64(self) -> int:
        return struct.unpack("!Q", self.read_exact(8))[0]

    def read_line(self) -> str:
        """
        Read a line terminated by ``\\n``.

        A ``\\r`` right before the ``\\n`` is stripped. The length isn't limited;
        callers bound the number of lines they read instead.

        Raises:
            ProtocolError: if the stream ends before the newline (type
                ``EmptyResponse``).

        """
        start = 0
        while True:
            end = self.buffer.find(b"\n", start)
            if end != -1:
                break
            start = len(self.buffer)
            if not self._fill():
                raise ProtocolError("EmptyResponse: empty response from server")
        line = bytes(self.buffer[:end])
        del self.buffer[:end + 1]
        if line.endswith(b"\r"):
            line = line[:-1]
        return line.decode("latin-1")


class StreamWriter:
    """
    Buffer primitive wire values and hand them to a blocking ``write`` on :meth:`flush`.
    """

    def __init__(self, write: T_write):
        self.write = write
        self.buffer = bytearray()

    def write_byte(self, byte: int) -> None:
        self.buffer.append(byte & 0xff)

    def write_bytes(self, data: bytes) -> None:
        self.buffer += data

    def write_int16(self, value: int) -> None:
        self.buffer += struct.pack("!H", value)

    def write_long64(self, value: int) -> None:
        self.buffer += struct.pack("!Q", value)

    def write_line(self, line: str = "") -> None:
        self.buffer += line.encode("latin-1") + b"\r\n"

    def flush(self) -> None:
        data = bytes(self.buffer)
        self.buffer.clear()
        if data:
            self.write(data)
