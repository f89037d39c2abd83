import json

import pandas as pd

from protopeek.decoder import decode_message
from protopeek.export import records_to_frame, records_to_rows, save_csv, save_json
from wire import tag

SIMPLE = bytes([10, 4, 116, 101, 115, 116, 18, 2, 255, 15, 24, 2, 34, 2, 2, 4])


def test_rows():
    rows = records_to_rows(decode_message(SIMPLE))
    assert rows[0] == {
        "number": 1, "type": 2, "wire_type": "LEN", "offset": 0, "length": 6, "value": "74657374",
    }
    assert rows[2]["value"] == 2
    assert rows[2]["wire_type"] == "VARINT"


def test_frame_keeps_big_varints_exact():
    data = tag(1, 0) + b"\xff" * 9 + b"\x01" + SIMPLE
    df = records_to_frame(decode_message(data))
    assert list(df.columns) == ["number", "type", "wire_type", "offset", "length", "value"]
    assert len(df) == 5
    assert df["value"].iloc[0] == 2 ** 64 - 1
    assert df["offset"].tolist() == [0, 11, 17, 21, 23]


def test_empty_frame():
    df = records_to_frame([])
    assert df.empty
    assert "value" in df.columns


def test_save_csv_creates_directory(tmp_path):
    path = tmp_path / "out" / "records.csv"
    save_csv(decode_message(SIMPLE), str(path))
    df = pd.read_csv(path)
    assert df["number"].tolist() == [1, 2, 3, 4]
    assert df["wire_type"].tolist() == ["LEN", "LEN", "VARINT", "LEN"]


def test_save_json(tmp_path):
    out_dir = tmp_path / "json"
    path = save_json({"raw": b"\x01\x02", "n": 3}, "x.json", output_dir=str(out_dir))
    with open(path) as f:
        assert json.load(f) == {"raw": "0102", "n": 3}
