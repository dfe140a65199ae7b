"""Tests for the byte codec."""

import io

import pytest

from hotsocket.ws.exception import ProtocolError
from hotsocket.ws.streams import StreamReader, StreamWriter


def trickle(data: bytes):
    """A read callable returning one byte at a time."""
    stream = io.BytesIO(data)
    return lambda n: stream.read(1)


class TestStreamReader:

    def test_read_byte(self) -> None:
        reader = StreamReader(io.BytesIO(b"\x81\x00").read)
        assert reader.read_byte() == 0x81
        assert reader.read_byte() == 0x00

    def test_read_byte_at_eof(self) -> None:
        reader = StreamReader(io.BytesIO(b"").read)
        with pytest.raises(ProtocolError) as exc_info:
            reader.read_byte()
        assert exc_info.value.type == "ConnectionClosed"

    def test_read_exact_accumulates_partial_reads(self) -> None:
        reader = StreamReader(trickle(b"abcdef"))
        assert reader.read_exact(4) == b"abcd"
        assert reader.read_exact(2) == b"ef"

    def test_read_exact_zero(self) -> None:
        reader = StreamReader(io.BytesIO(b"").read)
        assert reader.read_exact(0) == b""

    def test_read_exact_negative(self) -> None:
        reader = StreamReader(io.BytesIO(b"abc").read)
        with pytest.raises(ValueError):
            reader.read_exact(-1)

    def test_read_exact_closed_early(self) -> None:
        reader = StreamReader(trickle(b"abc"))
        with pytest.raises(ProtocolError) as exc_info:
            reader.read_exact(4)
        assert exc_info.value.type == "ConnectionClosed"

    def test_read16_big_endian(self) -> None:
        reader = StreamReader(io.BytesIO(b"\x01\x02\xff\xff").read)
        assert reader.read16() == 0x0102
        assert reader.read16() == 0xffff

    def test_read64_big_endian_unsigned(self) -> None:
        reader = StreamReader(io.BytesIO(b"\x00\x00\x00\x00\x00\x01\x00\x00" + b"\xff" * 8).read)
        assert reader.read64() == 65536
        assert reader.read64() == 2 ** 64 - 1

    def test_read_line_strips_crlf(self) -> None:
        reader = StreamReader(trickle(b"HTTP/1.1 101 Switching Protocols\r\nUpgrade: websocket\n\r\n"))
        assert reader.read_line() == "HTTP/1.1 101 Switching Protocols"
        assert reader.read_line() == "Upgrade: websocket"
        assert reader.read_line() == ""

    def test_read_line_keeps_inner_cr(self) -> None:
        reader = StreamReader(io.BytesIO(b"a\rb\r\n").read)
        assert reader.read_line() == "a\rb"

    def test_read_line_at_eof(self) -> None:
        reader = StreamReader(io.BytesIO(b"no newline").read)
        with pytest.raises(ProtocolError) as exc_info:
            reader.read_line()
        assert exc_info.value.type == "EmptyResponse"

    def test_line_then_bytes_share_the_buffer(self) -> None:
        reader = StreamReader(io.BytesIO(b"\r\n\x81\x02hi").read)
        assert reader.read_line() == ""
        assert reader.read_byte() == 0x81
        assert reader.read_exact(3) == b"\x02hi"

    def test_io_errors_propagate(self) -> None:
        def read(n):
            raise ConnectionResetError("reset")

        reader = StreamReader(read)
        with pytest.raises(ConnectionResetError):
            reader.read_byte()


class TestStreamWriter:

    def test_nothing_written_before_flush(self) -> None:
        writes = []
        writer = StreamWriter(writes.append)
        writer.write_byte(0x81)
        writer.write_bytes(b"ab")
        assert writes == []
        writer.flush()
        assert writes == [b"\x81ab"]

    def test_flush_empty_buffer_writes_nothing(self) -> None:
        writes = []
        StreamWriter(writes.append).flush()
        assert writes == []

    def test_fixed_width_values(self) -> None:
        writes = []
        writer = StreamWriter(writes.append)
        writer.write_int16(0x0102)
        writer.write_long64(65536)
        writer.flush()
        assert writes == [b"\x01\x02\x00\x00\x00\x00\x00\x01\x00\x00"]

    def test_write_line(self) -> None:
        writes = []
        writer = StreamWriter(writes.append)
        writer.write_line("GET / HTTP/1.1")
        writer.write_line()
        writer.flush()
        assert writes == [b"GET / HTTP/1.1\r\n\r\n"]

    def test_failed_flush_drops_the_buffer(self) -> None:
        def write(data):
            raise BrokenPipeError("broken")

        writer = StreamWriter(write)
        writer.write_bytes(b"frame")
        with pytest.raises(BrokenPipeError):
            writer.flush()
        assert writer.buffer == bytearray()
