"""Unit tests for TCP framing helpers."""

import socket
import struct

import pytest

from latprobe.core.errors import HandshakeError, ProbeIOError
from latprobe.protocol.framing import (
    HELLO_SIZE,
    MAGIC,
    check_magic,
    decode_hello,
    encode_hello,
    recv_exact,
)


class TestHello:
    """Test the client handshake reply."""

    def test_encode_layout(self):
        """Magic byte followed by little-endian u32 frame size."""
        data = encode_hello(1500)
        assert len(data) == HELLO_SIZE == 5
        assert data[0] == MAGIC == 0xEE
        assert data[1:] == struct.pack("<I", 1500)
        assert data == b"\xee\xdc\x05\x00\x00"

    def test_decode_valid(self):
        assert decode_hello(encode_hello(1)) == 1
        assert decode_hello(encode_hello(65535)) == 65535

    def test_decode_bad_magic(self):
        with pytest.raises(HandshakeError, match="invalid hello"):
            decode_hello(b"\x00" + struct.pack("<I", 1500))

    def test_decode_zero_frame_size(self):
        with pytest.raises(HandshakeError, match="invalid frame size"):
            decode_hello(encode_hello(0))

    def test_decode_oversized_frame(self):
        with pytest.raises(HandshakeError, match="invalid frame size"):
            decode_hello(encode_hello(0xFFFFFFFF))

    def test_decode_short_data(self):
        with pytest.raises(HandshakeError):
            decode_hello(b"\xee\x01")

    def test_check_magic(self):
        check_magic(b"\xee")
        with pytest.raises(HandshakeError):
            check_magic(b"\x01")
        with pytest.raises(HandshakeError):
            check_magic(b"")


class TestRecvExact:
    """Test exact reads over a socket pair."""

    def setup_method(self):
        self.left, self.right = socket.socketpair()
        self.left.settimeout(2.0)

    def teardown_method(self):
        self.left.close()
        self.right.close()

    def test_reads_across_segments(self):
        self.right.sendall(b"abc")
        self.right.sendall(b"defg")
        assert recv_exact(self.left, 7) == b"abcdefg"

    def test_leaves_extra_bytes(self):
        self.right.sendall(b"abcdef")
        assert recv_exact(self.left, 2) == b"ab"
        assert recv_exact(self.left, 4) == b"cdef"

    def test_clean_eof_allowed(self):
        self.right.close()
        assert recv_exact(self.left, 4, allow_eof=True) == b""

    def test_clean_eof_not_allowed(self):
        self.right.close()
        with pytest.raises(ProbeIOError):
            recv_exact(self.left, 4)

    def test_eof_mid_read(self):
        self.right.sendall(b"ab")
        self.right.close()
        with pytest.raises(ProbeIOError, match="2 of 4"):
            recv_exact(self.left, 4, allow_eof=True)
