import pytest

from protopeek.cursor import Cursor
from protopeek.errors import DecodeError, TruncatedInputError, VarintTooLongError


def test_read_varint_single_and_multi_byte():
    c = Cursor(bytes([0x01, 0x96, 0x01, 0xAC, 0x02]))
    assert c.read_varint() == 1
    assert c.pos == 1
    assert c.read_varint() == 150
    assert c.pos == 3
    assert c.read_varint() == 300
    assert c.eof()


def test_read_varint_max_uint64():
    c = Cursor(b"\xff" * 9 + b"\x01")
    assert c.read_varint() == 2 ** 64 - 1
    assert c.pos == 10


def test_read_varint_longer_than_ten_bytes_is_rejected():
    c = Cursor(b"\x08" + b"\xff" * 10 + b"\x01")
    c.read_varint()
    with pytest.raises(VarintTooLongError) as exc:
        c.read_varint()
    assert exc.value.offset == 1
    assert c.pos == 1


def test_unterminated_ten_byte_varint_is_too_long():
    with pytest.raises(VarintTooLongError):
        Cursor(b"\xff" * 10).read_varint()


def test_huge_varint_fails_fast():
    # only the first ten bytes are ever looked at
    with pytest.raises(DecodeError):
        Cursor(b"\xff" * 4_000_000 + b"\x01").read_varint()


def test_read_varint_truncated_keeps_position():
    c = Cursor(bytes([0x08, 0x80, 0x80]))
    c.read_varint()
    with pytest.raises(TruncatedInputError) as exc:
        c.read_varint()
    assert exc.value.offset == 1
    assert c.pos == 1


def test_read_varint_on_empty_buffer():
    with pytest.raises(TruncatedInputError):
        Cursor(b"").read_varint()


def test_read_bytes_advances_and_copies():
    source = bytearray(b"abcdef")
    c = Cursor(source)
    assert c.read_bytes(2) == b"ab"
    assert c.read_bytes(0) == b""
    out = c.read_bytes(3)
    source[2:5] = b"XYZ"
    assert out == b"cde"
    assert c.pos == 5
    assert c.remaining() == 1


def test_read_bytes_past_end_fails_without_advancing():
    c = Cursor(b"abc")
    c.read_bytes(1)
    with pytest.raises(TruncatedInputError):
        c.read_bytes(3)
    assert c.pos == 1


def test_truncated_is_a_decode_error_and_eof_error():
    with pytest.raises(DecodeError):
        Cursor(b"").read_bytes(1)
    with pytest.raises(EOFError):
        Cursor(b"").read_bytes(1)


def test_read_bytes_negative():
    with pytest.raises(ValueError):
        Cursor(b"abc").read_bytes(-1)


def test_length_is_constant():
    c = Cursor(memoryview(b"\x08\x01"))
    assert c.length == 2
    assert len(c) == 2
    c.read_varint()
    c.read_varint()
    assert c.length == 2
    assert c.eof()
