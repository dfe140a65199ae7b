"""
Read and write WebSocket frames, see `RFC 6455 section 5.2`_.

.. _`RFC 6455 section 5.2`: https://datatracker.ietf.org/doc/html/rfc6455#section-5.2
"""

import dataclasses
import enum
import struct
from typing import Optional, Union

from hotsocket.ws.exception import ProtocolError
from hotsocket.ws.streams import StreamReader, StreamWriter


class Opcode(enum.IntEnum):
    """Opcode values for WebSocket frames."""

    CONT, TEXT, BINARY = 0x00, 0x01, 0x02
    CLOSE, PING, PONG = 0x08, 0x09, 0x0A


OP_CONT = Opcode.CONT
OP_TEXT = Opcode.TEXT
OP_BINARY = Opcode.BINARY
OP_CLOSE = Opcode.CLOSE
OP_PING = Opcode.PING
OP_PONG = Opcode.PONG

FIN = 0x80
RESERVED = 0x70
OPCODE = 0x0f
PAYLOAD_MASK = 0x80
PAYLOAD_LEN = 0x7f

# Frames are never fragmented, so this is also the largest message.
MAX_PAYLOAD = 2 ** 20


class CloseCode(enum.IntEnum):
    """Close code values for WebSocket close frames."""

    NORMAL_CLOSURE = 1000
    GOING_AWAY = 1001
    PROTOCOL_ERROR = 1002
    UNSUPPORTED_DATA = 1003
    NO_STATUS_RCVD = 1005
    ABNORMAL_CLOSURE = 1006
    INVALID_DATA = 1007
    POLICY_VIOLATION = 1008
    MESSAGE_TOO_BIG = 1009
    INTERNAL_ERROR = 1011


def apply_mask(data: bytes, mask: bytes) -> bytes:
    """
    Apply masking to the data of a WebSocket message.

    Masking is an involution: applying the same mask twice returns ``data``.

    Args:
        data: data to mask.
        mask: 4-bytes mask.

    """
    if len(mask) != 4:
        raise ValueError("mask must contain 4 bytes")

    data_int = int.from_bytes(data, "big")
    mask_repeated = mask * (len(data) // 4) + mask[: len(data) % 4]
    mask_int = int.from_bytes(mask_repeated, "big")
    return (data_int ^ mask_int).to_bytes(len(data), "big")


def _opcode(value: int) -> Union[Opcode, int]:
    try:
        return Opcode(value)
    except ValueError:
        return value


@dataclasses.dataclass
class Frame:
    """
    WebSocket frame.

    Attributes:
        opcode: Opcode, or the raw value when it isn't one defined by RFC 6455.
        data: Payload data, already unmasked.
        fin: FIN bit.
        masking_key: 4-bytes key the payload was masked with on the wire, if any.

    """

    opcode: Union[Opcode, int]
    data: bytes
    fin: bool = True
    masking_key: Optional[bytes] = None

    def __str__(self) -> str:
        name = self.opcode.name if isinstance(self.opcode, Opcode) else f"0x{self.opcode:02x}"
        if self.opcode is OP_TEXT:
            data = repr(self.data.decode(errors="backslashreplace"))
        elif self.opcode is OP_CLOSE:
            try:
                data = str(Close.parse(self.data))
            except (ProtocolError, UnicodeDecodeError):
                data = self.data.hex()
        else:
            data = self.data.hex()
        if len(data) > 75:
            data = data[:48] + "..." + data[-24:]
        return f"{name} {data} [{len(self.data)} bytes]"

    @classmethod
    def read(cls, reader: StreamReader) -> 'Frame':
        """
        Read a WebSocket frame.

        The declared length is checked before any payload byte is read, so an
        oversized frame never causes a large allocation.

        Args:
            reader: stream the frame is read from.

        Raises:
            ProtocolError: if the frame is invalid or unsupported, or the
                stream ends in the middle of it.

        """
        first = reader.read_byte()
        if first & RESERVED:
            raise ProtocolError("Unsupported: unsupported negotiation")
        fin = bool(first & FIN)
        opcode = _opcode(first & OPCODE)

        second = reader.read_byte()
        masked = bool(second & PAYLOAD_MASK)
        length = second & PAYLOAD_LEN
        if length == 127:
            length = reader.read64()
        elif length == 126:
            length = reader.read16()

        # A 64-bit length with the top bit set is negative for a signed reader.
        if length >= 2 ** 63 or length > MAX_PAYLOAD:
            raise ProtocolError(f"Unsupported: too large payload ({length} bytes)")
        if not fin:
            raise ProtocolError("Unsupported: fragmented messages aren't supported")

        masking_key = reader.read_exact(4) if masked else None
        data = reader.read_exact(length)
        if masking_key is not None:
            data = apply_mask(data, masking_key)

        return cls(opcode, data, fin, masking_key)

    def write(self, writer: StreamWriter, mask: Optional[bytes] = None) -> None:
        """
        Write this frame to ``writer``; the caller flushes.

        Args:
            writer: stream the frame is written to.
            mask: 4-bytes masking key, or :obj:`None` to send the payload as is.

        Raises:
            ValueError: if the opcode, the mask or the payload size is invalid.

        """
        if not 0x00 <= self.opcode <= 0x0f:
            raise ValueError("opcode value should be between 0x00 and 0x0f")
        if mask is not None and len(mask) != 4:
            raise ValueError("mask must contain 4 bytes")
        if len(self.data) > MAX_PAYLOAD:
            raise ValueError(f"payload larger than {MAX_PAYLOAD} bytes")

        writer.write_byte(self.opcode | (FIN if self.fin else 0))

        mask_bit = PAYLOAD_MASK if mask is not None else 0
        length = len(self.data)
        if length > 0xffff:
            writer.write_byte(127 | mask_bit)
            writer.write_long64(length)
        elif length >= 126:
            writer.write_byte(126 | mask_bit)
            writer.write_int16(length)
        else:
            writer.write_byte(length | mask_bit)

        if mask is not None:
            writer.write_bytes(mask)
            writer.write_bytes(apply_mask(self.data, mask))
        else:
            writer.write_bytes(self.data)


@dataclasses.dataclass
class Close:
    """
    Code and reason carried by a WebSocket close frame.

    Attributes:
        code: Close code.
        reason: Close reason.

    """

    code: int
    reason: str = ""

    def __str__(self) -> str:
        try:
            explanation = CloseCode(self.code).name.replace("_", " ").lower()
        except ValueError:
            explanation = "unknown"
        result = f"{self.code} ({explanation})"
        if self.reason:
            result = f"{result} {self.reason}"
        return result

    @classmethod
    def parse(cls, data: bytes) -> 'Close':
        """
        Parse the payload of a close frame.

        An empty payload means no code was sent; it parses as ``1005``.

        Raises:
            ProtocolError: if the payload is a single byte.
            UnicodeDecodeError: if the reason isn't valid UTF-8.

        """
        if len(data) >= 2:
            (code,) = struct.unpack("!H", data[:2])
            reason = data[2:].decode()
            return cls(code, reason)
        elif len(data) == 0:
            return cls(CloseCode.NO_STATUS_RCVD, "")
        else:
            raise ProtocolError("Unsupported: close frame too short")

    def serialize(self) -> bytes:
        return struct.pack("!H", self.code) + self.reason.encode()
