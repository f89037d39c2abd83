"""
Schema-less protobuf wire-format decoder.

Turns a message buffer into an ordered list of records, one per field
occurrence. Payloads are left raw: VARINT as an int, everything else as the
exact bytes that followed the tag. A LEN payload can be fed back into
decode_message() when the caller knows it holds a sub-message.

https://protobuf.dev/programming-guides/encoding/#structure
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Union

from protopeek.cursor import Cursor
from protopeek.errors import (
    LengthMismatchError,
    UnknownWireTypeError,
    UnsupportedWireTypeError,
)


class WireType(IntEnum):
    VARINT = 0
    I64 = 1
    LEN = 2
    SGROUP = 3
    EGROUP = 4
    I32 = 5


# byte widths of the fixed-size wire types
FIXED_SIZES = {
    WireType.I64: 8,
    WireType.I32: 4,
}

# how deep callers expand LEN payloads into sub-messages
MAX_NESTING = 64


@dataclass(frozen=True)
class Record:
    type: WireType
    number: int
    offset: int
    length: int
    payload: Union[int, bytes]

    @property
    def end(self) -> int:
        return self.offset + self.length

    def to_dict(self):
        return {
            "type": int(self.type),
            "number": self.number,
            "offset": self.offset,
            "length": self.length,
            "payload": self.payload,
        }


def read_tag(cursor: Cursor):
    """Return (field_number, wire_type_code) of the next tag."""
    tag = cursor.read_varint()
    return tag >> 3, tag & 0b111


def read_payload(cursor: Cursor, code: int, offset: int):
    if code == WireType.VARINT:
        return WireType.VARINT, cursor.read_varint()
    if code == WireType.I64:
        return WireType.I64, cursor.read_bytes(FIXED_SIZES[WireType.I64])
    if code == WireType.LEN:
        return WireType.LEN, cursor.read_bytes(cursor.read_varint())
    if code in (WireType.SGROUP, WireType.EGROUP):
        raise UnsupportedWireTypeError(WireType(code), offset)
    if code == WireType.I32:
        return WireType.I32, cursor.read_bytes(FIXED_SIZES[WireType.I32])
    raise UnknownWireTypeError(code, offset)


def iter_records(data) -> Iterator[Record]:
    """Yield records lazily. Errors surface at the record that caused them."""
    cursor = data if isinstance(data, Cursor) else Cursor(data)
    while cursor.pos < cursor.length:
        offset = cursor.pos
        number, code = read_tag(cursor)
        wire_type, payload = read_payload(cursor, code, offset)
        yield Record(wire_type, number, offset, cursor.pos - offset, payload)

    if cursor.pos != cursor.length:
        raise LengthMismatchError(cursor.pos, cursor.length)


def decode_message(data) -> List[Record]:
    """Decode a whole buffer. Either every byte is accounted for or it raises."""
    records = list(iter_records(data))
    logging.debug(f"Decoded {len(records)} records from {len(data)} bytes")
    return records
