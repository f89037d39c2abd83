"""Tabular and JSON output for decoded records."""

import json
import logging
import os

import pandas as pd

from protopeek import config
from protopeek.decoder import WireType

COLUMNS = ["number", "type", "wire_type", "offset", "length", "value"]


def record_value(record):
    """VARINT stays an int, raw payloads become hex text."""
    if record.type == WireType.VARINT:
        return record.payload
    return record.payload.hex()


def records_to_rows(records):
    return [
        {
            "number": r.number,
            "type": int(r.type),
            "wire_type": r.type.name,
            "offset": r.offset,
            "length": r.length,
            "value": record_value(r),
        }
        for r in records
    ]


def records_to_frame(records) -> pd.DataFrame:
    # object dtype keeps varints above 2**63 exact
    df = pd.DataFrame(records_to_rows(records), columns=COLUMNS)
    return df.astype({"value": object})


def save_csv(records, path):
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)
    records_to_frame(records).to_csv(path, index=False)
    logging.info(f"Wrote {len(records)} records to {path}")
    return path


def save_json(data, filename, output_dir=None):
    output_dir = output_dir or config.OUTPUT_DIR
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    filepath = os.path.join(output_dir, filename)
    with open(filepath, "w") as f:
        json.dump(data, f, separators=(',', ':'), default=json_default)
    logging.info(f"Saved {filepath}")
    return filepath


def json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
