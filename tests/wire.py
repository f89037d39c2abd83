"""Byte-building helpers for tests. The package itself has no encoder."""


def encode_varint(value):
    out = bytearray()
    while True:
        b = value & 0x7F
        value >>= 7
        if value:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)


def tag(number, wire_type):
    return encode_varint((number << 3) | wire_type)


def assert_tiles(records, data):
    """Records cover [0, len(data)) exactly, in offset order."""
    pos = 0
    for r in records:
        assert r.offset == pos
        assert r.length > 0
        pos = r.offset + r.length
    assert pos == len(data)


def len_field(number, payload):
    return tag(number, 2) + encode_varint(len(payload)) + payload


def nested_chain(depth):
    """`depth` levels of field 1 wrapping field 1, innermost payload empty."""
    payload = b""
    for _ in range(depth):
        payload = len_field(1, payload)
    return payload
