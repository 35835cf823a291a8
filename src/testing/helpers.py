"""
Test helpers: payload builders and a recording tracer.

Payloads are produced the way the storage-read service produces them:
Avro rows as concatenated binary datums, Arrow batches as IPC messages.
"""

import io
import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import avro.io
import avro.schema
import pyarrow as pa

from rowbridge.tracing import ReadRowsTracer


def avro_schema_json(name: str, fields: List[Dict[str, Any]]) -> str:
    return json.dumps({"type": "record", "name": name, "fields": fields})


def avro_payload(schema_json: str, records: Iterable[Dict[str, Any]]) -> bytes:
    """Encodes `records` as concatenated Avro binary datums (no container header)."""
    schema = avro.schema.parse(schema_json)
    writer = avro.io.DatumWriter(schema)
    buffer = io.BytesIO()
    encoder = avro.io.BinaryEncoder(buffer)
    for record in records:
        writer.write(record, encoder)
    return buffer.getvalue()


def arrow_schema_bytes(schema: pa.Schema) -> bytes:
    return schema.serialize().to_pybytes()


def arrow_batch_bytes(batch: pa.RecordBatch) -> bytes:
    return batch.serialize().to_pybytes()


class RecordingTracer(ReadRowsTracer):
    """Tracer keeping every notification, in order, as `(hook, args)` tuples."""

    def __init__(self):
        self.events: List[Tuple[str, Tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any):
        self.events.append((name, args))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def count(self, name: str) -> int:
        return self.names().count(name)

    def args_of(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for hook, args in self.events if hook == name]

    def start_stream(self) -> None:
        self._record("start_stream")

    def read_rows_response_requested(self) -> None:
        self._record("read_rows_response_requested")

    def read_rows_response_obtained(self, num_bytes: int) -> None:
        self._record("read_rows_response_obtained", num_bytes)

    def rows_parse_started(self, num_bytes: int) -> None:
        self._record("rows_parse_started", num_bytes)

    def rows_parse_finished(self, rows: int) -> None:
        self._record("rows_parse_finished", rows)

    def next_batch_needed(self) -> None:
        self._record("next_batch_needed")

    def finished(self) -> None:
        self._record("finished")

    def unknown_fields_observed(
        self, batch_id: Optional[str], fields: Mapping[int, bytes]
    ) -> None:
        self._record("unknown_fields_observed", batch_id, dict(fields))
