"""Schema-less protobuf wire-format decoding, plus best-effort .proto hydration."""

from protopeek.cursor import Cursor
from protopeek.decoder import Record, WireType, decode_message, iter_records
from protopeek.errors import (
    DecodeError,
    HydrationError,
    LengthMismatchError,
    TruncatedInputError,
    UnknownWireTypeError,
    UnsupportedWireTypeError,
    VarintTooLongError,
)
from protopeek.hydrate import hydrate
from protopeek.schema import Definitions, FieldDef, parse_definition, parse_file

__all__ = [
    "Cursor",
    "Record",
    "WireType",
    "decode_message",
    "iter_records",
    "DecodeError",
    "HydrationError",
    "LengthMismatchError",
    "TruncatedInputError",
    "UnknownWireTypeError",
    "UnsupportedWireTypeError",
    "VarintTooLongError",
    "hydrate",
    "Definitions",
    "FieldDef",
    "parse_definition",
    "parse_file",
]
