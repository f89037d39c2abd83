"""
protopeek-dump: print the records of a protobuf message.

Usage: protopeek-dump [--hex | --base64] [--nested] [--schema FILE --message NAME]
                      [--csv PATH] [--json] [--save NAME] <file | ->
"""

import argparse
import base64
import binascii
import json
import logging
import sys

from protopeek import config
from protopeek.decoder import MAX_NESTING, WireType, decode_message
from protopeek.errors import DecodeError, HydrationError
from protopeek.export import json_default, records_to_rows, save_csv, save_json
from protopeek.hydrate import hydrate
from protopeek.schema import parse_file

INDENT = "  "


def read_input(path, encoding=None) -> bytes:
    if path == "-":
        data = sys.stdin.buffer.read()
    else:
        with open(path, "rb") as f:
            data = f.read()

    if encoding == "hex":
        return bytes.fromhex(data.decode("ascii"))
    if encoding == "base64":
        return base64.b64decode(b"".join(data.split()), validate=True)
    return data


def describe_bytes(raw: bytes) -> str:
    try:
        s = raw.decode("utf-8")
        if s.isprintable():
            return f'string "{s}"'
    except UnicodeDecodeError:
        pass
    return f"bytes {raw.hex()} (len={len(raw)})"


def try_nested(raw: bytes):
    """Records of `raw` if it parses as a non-empty message, else None."""
    if not raw:
        return None
    try:
        return decode_message(raw)
    except DecodeError:
        return None


def format_records(records, nested=False, depth=0):
    lines = []
    pad = INDENT * depth
    for r in records:
        head = f"{pad}Field {r.number}, wire {r.type.name} @{r.offset}+{r.length}: "
        if r.type == WireType.VARINT:
            lines.append(head + f"varint {r.payload}")
        elif r.type == WireType.I32:
            lines.append(head + f"fixed32 {int.from_bytes(r.payload, 'little')}")
        elif r.type == WireType.I64:
            lines.append(head + f"fixed64 {int.from_bytes(r.payload, 'little')}")
        else:
            children = try_nested(r.payload) if nested and depth < MAX_NESTING else None
            if children is None:
                lines.append(head + describe_bytes(r.payload))
            else:
                lines.append(head + f"message (len={len(r.payload)})")
                lines.extend(format_records(children, nested, depth + 1))
    return lines


def build_parser():
    parser = argparse.ArgumentParser(description="Dump the fields of a protobuf message")
    parser.add_argument("input", help="message file, or - for stdin")
    enc = parser.add_mutually_exclusive_group()
    enc.add_argument("--hex", dest="encoding", action="store_const", const="hex",
                     help="input is hex text")
    enc.add_argument("--base64", dest="encoding", action="store_const", const="base64",
                     help="input is base64 text")
    parser.add_argument("--nested", action="store_true",
                        help="try to decode LEN payloads as sub-messages")
    parser.add_argument("--schema", help=".proto file used to name fields")
    parser.add_argument("--message", help="message type to hydrate with --schema")
    parser.add_argument("--csv", help="also write the records to this CSV file")
    parser.add_argument("--json", action="store_true", help="print records as JSON rows")
    parser.add_argument("--save", metavar="NAME",
                        help="also save the JSON output as NAME under PROTOPEEK_OUTPUT_DIR")
    parser.add_argument("--log-level", default=None, help="overrides PROTOPEEK_LOG_LEVEL")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if bool(args.schema) != bool(args.message):
        parser.error("--schema and --message must be used together")

    config.setup_logging(args.log_level)

    try:
        data = read_input(args.input, args.encoding)
    except OSError as e:
        print(f"Error: could not read '{args.input}': {e}", file=sys.stderr)
        return 1
    except (ValueError, binascii.Error) as e:
        print(f"Error: input is not valid {args.encoding}: {e}", file=sys.stderr)
        return 1

    logging.info(f"Decoding {len(data)} bytes from {args.input}")
    try:
        records = decode_message(data)
    except DecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.schema:
        try:
            definitions = parse_file(args.schema)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: could not read schema '{args.schema}': {e}", file=sys.stderr)
            return 1
        try:
            output = hydrate(records, definitions, args.message)
        except KeyError:
            print(f"Error: message '{args.message}' not found in {args.schema}", file=sys.stderr)
            return 1
        except HydrationError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(output, indent=2, default=json_default))
    else:
        output = records_to_rows(records)
        if args.json:
            print(json.dumps(output, indent=2))
        else:
            for line in format_records(records, nested=args.nested):
                print(line)

    if args.save:
        save_json(output, args.save)

    if args.csv:
        save_csv(records, args.csv)
    return 0


if __name__ == "__main__":
    sys.exit(main())
