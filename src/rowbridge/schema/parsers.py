"""
Format Schema Parsers.

Parses the per-stream description of the binary layout into a reusable handle:

- `parse_avro_schema`: the Avro record schema (JSON text) the rows are written with.
- `parse_arrow_schema`: the serialized Arrow IPC schema message of the record batches.

Parsing happens once at stream setup; the handle is then shared, read-only, by
every iterator of the stream. A failure is fatal for the whole stream.
"""

import json
from dataclasses import dataclass
from typing import Tuple, Union

import avro.errors
import avro.schema
import pyarrow as pa

from ..errors import SchemaParseError


@dataclass(frozen=True)
class AvroSchemaHandle:
    """
    Parsed Avro record schema.

    Attributes:
        schema (avro.schema.RecordSchema): The parsed writer schema.
        field_names (Tuple[str, ...]): Top-level field names, in record order.
    """

    schema: avro.schema.RecordSchema
    field_names: Tuple[str, ...]


@dataclass(frozen=True)
class ArrowSchemaHandle:
    """
    Parsed Arrow schema.

    Attributes:
        schema (pa.Schema): The schema every record batch of the stream is written with.
    """

    schema: pa.Schema

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(self.schema.names)


def parse_avro_schema(raw_schema: Union[str, bytes]) -> AvroSchemaHandle:
    """
    Parses a serialized Avro schema.

    Args:
        raw_schema (Union[str, bytes]): The JSON text of the schema.

    Returns:
        AvroSchemaHandle: The parsed schema.

    Raises:
        SchemaParseError: If the text is not a valid Avro record schema.
    """
    try:
        if isinstance(raw_schema, bytes):
            raw_schema = raw_schema.decode("utf-8")
        schema = avro.schema.parse(raw_schema)
    except (
        avro.errors.AvroException,
        json.JSONDecodeError,
        UnicodeDecodeError,
        TypeError,
    ) as e:
        raise SchemaParseError(f"Malformed Avro schema: {e}") from e

    if not isinstance(schema, avro.schema.RecordSchema):
        raise SchemaParseError(
            f"Expected an Avro record schema, got a '{schema.type}' schema"
        )
    return AvroSchemaHandle(
        schema=schema,
        field_names=tuple(fld.name for fld in schema.fields),
    )


def parse_arrow_schema(raw_schema: bytes) -> ArrowSchemaHandle:
    """
    Parses a serialized Arrow IPC schema message.

    Args:
        raw_schema (bytes): The IPC-encapsulated schema (as produced by `pa.Schema.serialize()`).

    Returns:
        ArrowSchemaHandle: The parsed schema.

    Raises:
        SchemaParseError: If the bytes are not a valid IPC schema message.
    """
    try:
        schema = pa.ipc.read_schema(pa.py_buffer(raw_schema))
    except (pa.ArrowException, OSError, ValueError, TypeError) as e:
        raise SchemaParseError(f"Malformed Arrow schema: {e}") from e
    return ArrowSchemaHandle(schema=schema)
