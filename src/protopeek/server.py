import base64
import binascii
import logging
import math
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from protopeek import config
from protopeek.decoder import MAX_NESTING, WireType, decode_message
from protopeek.errors import DecodeError, HydrationError
from protopeek.hydrate import hydrate
from protopeek.schema import parse_definition

app = FastAPI(title="protopeek")


class DecodeRequest(BaseModel):
    data: str  # base64
    nested: bool = False


class DefinitionRequest(BaseModel):
    text: str


class HydrateRequest(BaseModel):
    data: str  # base64
    definition: str
    message: str


class RecordOut(BaseModel):
    type: int
    wire_type: str
    number: int
    offset: int
    length: int
    value: Optional[str] = None  # VARINT as decimal text, others base64
    fields: Optional[list["RecordOut"]] = None  # set when a LEN payload decoded as a message


RecordOut.model_rebuild()


def decode_base64(data: str) -> bytes:
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"data is not valid base64: {e}")
    if len(raw) > config.MAX_MESSAGE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"message of {len(raw)} bytes exceeds limit of {config.MAX_MESSAGE_BYTES}",
        )
    return raw


def decode_or_422(raw: bytes):
    try:
        return decode_message(raw)
    except DecodeError as e:
        logging.info(f"Rejected message: {e}")
        raise HTTPException(status_code=422, detail=str(e))


def to_record_out(record, nested=False, depth=0) -> RecordOut:
    out = RecordOut(
        type=int(record.type),
        wire_type=record.type.name,
        number=record.number,
        offset=record.offset,
        length=record.length,
    )
    if record.type == WireType.VARINT:
        # decimal text so 64-bit values survive JSON clients
        out.value = str(record.payload)
        return out

    out.value = base64.b64encode(record.payload).decode("ascii")
    # past MAX_NESTING the payload is left as plain bytes
    if nested and depth < MAX_NESTING and record.type == WireType.LEN and record.payload:
        try:
            children = decode_message(record.payload)
        except DecodeError:
            children = None
        if children:
            out.fields = [to_record_out(c, nested, depth + 1) for c in children]
    return out


# routes

@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/decode")
def decode(req: DecodeRequest):
    """Decode a base64 message into its records."""
    records = decode_or_422(decode_base64(req.data))
    return {"records": [to_record_out(r, req.nested) for r in records]}


@app.post("/definitions")
def definitions(req: DefinitionRequest):
    """Parse .proto text into message fields and enum values."""
    return parse_definition(req.text).to_dict()


@app.post("/hydrate")
def hydrate_message(req: HydrateRequest):
    """Decode a message and name its fields from the given definition."""
    records = decode_or_422(decode_base64(req.data))
    defs = parse_definition(req.definition)
    try:
        obj = hydrate(records, defs, req.message)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"message '{req.message}' not in definition")
    except HydrationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"message": req.message, "fields": _jsonable(obj)}


def _jsonable(value):
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        # proto3 JSON spelling; plain JSON has no NaN or Infinity
        if math.isnan(value):
            return "NaN"
        return "Infinity" if value > 0 else "-Infinity"
    return value


def main():
    config.setup_logging()
    logging.info(f"Starting protopeek service on {config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
