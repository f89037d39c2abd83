"""
Attach names from a parsed .proto definition to decoded records.

The decoder knows nothing about field names or about which LEN payloads are
sub-messages; hydrate() takes that knowledge from a Definitions object and
turns a record list into a plain dict.
"""

import logging
import re
import struct

from protopeek.cursor import Cursor
from protopeek.decoder import FIXED_SIZES, MAX_NESTING, WireType, decode_message
from protopeek.errors import DecodeError, HydrationError
from protopeek.schema import FieldDef

VARINT_TYPES = {"int32", "int64", "uint32", "uint64", "sint32", "sint64", "bool"}
# struct format per fixed-width type, little endian
FIXED_FORMATS = {
    "fixed32": "<I",
    "sfixed32": "<i",
    "float": "<f",
    "fixed64": "<Q",
    "sfixed64": "<q",
    "double": "<d",
}
FIXED_WIRE_TYPES = {
    "fixed32": WireType.I32,
    "sfixed32": WireType.I32,
    "float": WireType.I32,
    "fixed64": WireType.I64,
    "sfixed64": WireType.I64,
    "double": WireType.I64,
}

_MAP_TYPE = re.compile(r'^map\s*<\s*([\w.]+)\s*,\s*([\w.]+)\s*>$')


def to_signed(value: int, bits: int) -> int:
    """Two's complement view of the low `bits` bits."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def zigzag_decode(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def convert_varint(type_name: str, value: int):
    if type_name == "int32":
        return to_signed(value, 32)
    if type_name == "int64":
        return to_signed(value, 64)
    if type_name == "uint32":
        return value & 0xFFFFFFFF
    if type_name == "uint64":
        return value & 0xFFFFFFFFFFFFFFFF
    if type_name == "sint32":
        return zigzag_decode(value & 0xFFFFFFFF)
    if type_name == "sint64":
        return zigzag_decode(value & 0xFFFFFFFFFFFFFFFF)
    if type_name == "bool":
        return value != 0
    raise HydrationError(f"{type_name} is not a varint type")


def convert_fixed(type_name: str, raw: bytes):
    return struct.unpack(FIXED_FORMATS[type_name], raw)[0]


def unpack_packed(type_name: str, raw: bytes, definitions):
    """Split a packed repeated scalar payload into its elements."""
    if type_name in FIXED_FORMATS:
        size = FIXED_SIZES[FIXED_WIRE_TYPES[type_name]]
        if len(raw) % size:
            raise HydrationError(
                f"packed {type_name} payload of {len(raw)} bytes is not a multiple of {size}"
            )
        return [convert_fixed(type_name, raw[i:i + size]) for i in range(0, len(raw), size)]

    cursor = Cursor(raw)
    values = []
    try:
        while not cursor.eof():
            values.append(_scalar_from_varint(type_name, cursor.read_varint(), definitions))
    except DecodeError as e:
        raise HydrationError(f"malformed packed {type_name} payload: {e}") from e
    return values


def _scalar_from_varint(type_name, value, definitions):
    enum_values = definitions.find_enum(type_name)
    if enum_values is not None:
        # open enums keep unknown numbers as plain ints
        return enum_values.get(to_signed(value, 32), to_signed(value, 32))
    return convert_varint(type_name, value)


def _is_packable(type_name, definitions):
    return (
        type_name in VARINT_TYPES
        or type_name in FIXED_FORMATS
        or definitions.find_enum(type_name) is not None
    )


def convert_value(field: FieldDef, record, definitions, depth=0):
    """Interpret one non-packed record as the field's declared type."""
    type_name = field.base_type

    if type_name in VARINT_TYPES or definitions.find_enum(type_name) is not None:
        _expect(field, record, WireType.VARINT)
        return _scalar_from_varint(type_name, record.payload, definitions)

    if type_name in FIXED_FORMATS:
        _expect(field, record, FIXED_WIRE_TYPES[type_name])
        return convert_fixed(type_name, record.payload)

    if type_name == "string":
        _expect(field, record, WireType.LEN)
        try:
            return record.payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HydrationError(f"field {field.name} is not valid UTF-8: {e}") from e

    if type_name == "bytes":
        _expect(field, record, WireType.LEN)
        return record.payload

    map_match = _MAP_TYPE.match(type_name)
    if map_match:
        _expect(field, record, WireType.LEN)
        entry_fields = {
            1: FieldDef(type=map_match.group(1), name="key"),
            2: FieldDef(type=map_match.group(2), name="value"),
        }
        entry_records = _decode_nested(field, record.payload, depth)
        entry = _hydrate_fields(entry_records, entry_fields, definitions, depth + 1)
        return entry.get("key"), entry.get("value")

    nested = definitions.find_message(type_name)
    if nested is not None:
        _expect(field, record, WireType.LEN)
        nested_records = _decode_nested(field, record.payload, depth)
        return _hydrate_fields(nested_records, nested, definitions, depth + 1)

    # unknown declared type; nothing better than the raw payload
    logging.debug(f"No interpretation for type {type_name!r} of field {field.name}")
    return record.payload


def _decode_nested(field, payload, depth):
    if depth >= MAX_NESTING:
        raise HydrationError(f"field {field.name} nests deeper than {MAX_NESTING} messages")
    try:
        return decode_message(payload)
    except DecodeError as e:
        raise HydrationError(f"field {field.name} does not hold a valid message: {e}") from e


def _expect(field, record, wire_type):
    if record.type != wire_type:
        raise HydrationError(
            f"field {field.name} ({field.type}) expects wire type {wire_type.name}, "
            f"got {record.type.name} at offset {record.offset}"
        )


def _hydrate_fields(records, fields, definitions, depth=0):
    result = {}
    for record in records:
        field = fields.get(record.number)
        if field is None:
            # unknown field numbers keep every raw payload in order
            result.setdefault(str(record.number), []).append(record.payload)
            continue

        base = field.base_type
        if _MAP_TYPE.match(base):
            key, value = convert_value(field, record, definitions, depth)
            result.setdefault(field.name, {})[key] = value
        elif field.repeated:
            values = result.setdefault(field.name, [])
            if record.type == WireType.LEN and _is_packable(base, definitions):
                values.extend(unpack_packed(base, record.payload, definitions))
            else:
                values.append(convert_value(field, record, definitions, depth))
        else:
            # last occurrence wins for singular fields
            result[field.name] = convert_value(field, record, definitions, depth)
    return result


def hydrate(data, definitions, message_name: str):
    """
    Build a dict for `message_name` from raw bytes or already decoded records.

    Raises KeyError for an unknown message name, DecodeError for bad bytes
    and HydrationError when a record does not fit its declared type.
    """
    fields = definitions.find_message(message_name)
    if fields is None:
        raise KeyError(message_name)
    records = decode_message(data) if isinstance(data, (bytes, bytearray, memoryview)) else data
    return _hydrate_fields(records, fields, definitions)
