"""
Wire framing shared by the TCP client and server.

The server opens every connection with a single magic byte. The client
answers with the same byte followed by the frame size as a little-endian
u32, after which both sides exchange frames of exactly that size.
"""

import socket
import struct

from ..core.errors import HandshakeError, ProbeIOError
from ..core.models import MAX_FRAME_SIZE, MIN_FRAME_SIZE

MAGIC = 0xEE
HELLO = struct.Struct("<BI")
HELLO_SIZE = HELLO.size


def encode_hello(frame_size: int) -> bytes:
    """Build the client reply: magic byte plus frame size."""
    return HELLO.pack(MAGIC, frame_size)


def decode_hello(data: bytes) -> int:
    """Validate a client reply and return the negotiated frame size."""
    if len(data) != HELLO_SIZE:
        raise HandshakeError(f"invalid hello length: {len(data)}")
    magic, frame_size = HELLO.unpack(data)
    if magic != MAGIC:
        raise HandshakeError("invalid hello")
    if frame_size < MIN_FRAME_SIZE or frame_size > MAX_FRAME_SIZE:
        raise HandshakeError(f"invalid frame size: {frame_size}")
    return frame_size


def check_magic(data: bytes) -> None:
    """Validate the server greeting."""
    if data != bytes([MAGIC]):
        raise HandshakeError("invalid hello")


def recv_exact(sock: socket.socket, size: int, allow_eof: bool = False) -> bytes:
    """Read exactly ``size`` bytes from ``sock``.

    Returns ``b""`` when the peer closes the stream before the first byte and
    ``allow_eof`` is set. A close in the middle of the read is an error.
    """
    buf = bytearray(size)
    view = memoryview(buf)
    received = 0
    while received < size:
        n = sock.recv_into(view[received:], size - received)
        if n == 0:
            if received == 0 and allow_eof:
                return b""
            raise ProbeIOError(
                f"connection closed by peer ({received} of {size} bytes received)"
            )
        received += n
    return bytes(buf)
