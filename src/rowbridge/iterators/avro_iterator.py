"""
Avro Binary Iterator Module.

Decodes a row-oriented payload: a plain concatenation of Avro binary datums,
one per row, written with the stream's Avro record schema. Records are decoded
one at a time from a forward-only cursor, so that a consumer stopping early
never pays for the rest of the batch.
"""

import io
import struct
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import avro.errors
import avro.io
import pyarrow as pa

from ..errors import CorruptRecord, SchemaMismatch, TruncatedRecord
from ..models.row import Row
from ..models.warehouse import WarehouseSchema
from ..schema.config import SchemaConvertersConfig
from ..schema.parsers import AvroSchemaHandle
from ..schema.reconcile import reconcile
from ..schema.values import ValueConverter, build_avro_column_converter
from ..tracing import ReadRowsTracer
from .base import RowIterator


class _ShortRead(Exception):
    """Raised by `_PayloadReader` when fewer bytes than requested are left."""


class _PayloadReader(io.BytesIO):
    """
    In-memory payload cursor that refuses short reads.

    The Avro decoder reads fixed-size chunks (varints byte per byte, doubles as
    8 bytes, strings as their declared length); a chunk cut by the end of the
    payload means the last record is truncated.
    """

    def read(self, size: Optional[int] = -1) -> bytes:
        chunk = super().read(size)
        if size is not None and size > 0 and len(chunk) < size:
            raise _ShortRead(f"requested {size} bytes, {len(chunk)} left")
        return chunk


@dataclass(frozen=True)
class AvroDecodePlan:
    """
    Everything an Avro iterator needs that does not depend on the batch.

    Built once per stream and shared, read-only, by all the iterators of the stream.

    Attributes:
        output_schema (pa.Schema): The reconciled output schema.
        avro_schema (AvroSchemaHandle): The parsed writer schema.
        projection (Tuple[Tuple[str, Optional[ValueConverter]], ...]): For each output
            column, the Avro field to read and the converter of its raw value.
    """

    output_schema: pa.Schema
    avro_schema: AvroSchemaHandle
    projection: Tuple[Tuple[str, Optional[ValueConverter]], ...]

    @classmethod
    def build(
        cls,
        warehouse_schema: WarehouseSchema,
        columns_in_order: Sequence[str],
        avro_schema: AvroSchemaHandle,
        user_schema: Optional[pa.Schema] = None,
        config: Optional[SchemaConvertersConfig] = None,
    ) -> "AvroDecodePlan":
        """
        Reconciles the output schema and prepares the per-column converters.

        Raises:
            SchemaMismatch: If a requested column is missing from the warehouse or
                the Avro schema, or a user type is not a safe conversion.
        """
        output_schema = reconcile(warehouse_schema, columns_in_order, user_schema, config)

        missing = [c for c in columns_in_order if c not in avro_schema.field_names]
        if missing:
            raise SchemaMismatch(
                f"Requested columns {missing} are not in the Avro schema. "
                f"Available fields: {list(avro_schema.field_names)}"
            )

        projection = tuple(
            (
                name,
                build_avro_column_converter(
                    warehouse_schema.field(name),
                    output_schema.field(name).type,
                    config,
                ),
            )
            for name in columns_in_order
        )
        return cls(output_schema=output_schema, avro_schema=avro_schema, projection=projection)


class AvroBinaryIterator(RowIterator):
    """
    Lazily decodes the rows of one Avro payload.

    Each pull decodes exactly one record, projects and reorders its fields as the
    output schema, and converts each value to the output type.

    Example:
        >>> it = AvroBinaryIterator(plan, response.rows.serialized_binary_rows)
        >>> for row in it:
        ...     print(row.as_dict())
    """

    def __init__(
        self,
        plan: AvroDecodePlan,
        serialized_rows: bytes,
        tracer: Optional[ReadRowsTracer] = None,
        batch_id: Optional[str] = None,
    ):
        super().__init__(plan.output_schema, len(serialized_rows), tracer, batch_id)
        self._plan = plan
        self._size = len(serialized_rows)
        self._reader: _PayloadReader = _PayloadReader(serialized_rows)
        self._decoder = avro.io.BinaryDecoder(self._reader)
        self._datum_reader = avro.io.DatumReader(plan.avro_schema.schema)

    @classmethod
    def from_schema(
        cls,
        warehouse_schema: WarehouseSchema,
        columns_in_order: Sequence[str],
        avro_schema: AvroSchemaHandle,
        serialized_rows: bytes,
        user_schema: Optional[pa.Schema] = None,
        tracer: Optional[ReadRowsTracer] = None,
        config: Optional[SchemaConvertersConfig] = None,
        batch_id: Optional[str] = None,
    ) -> "AvroBinaryIterator":
        """Builds a one-off iterator, reconciling the schema for this batch only."""
        plan = AvroDecodePlan.build(
            warehouse_schema, columns_in_order, avro_schema, user_schema, config
        )
        return cls(plan, serialized_rows, tracer, batch_id)

    @property
    def position(self) -> int:
        """Byte offset of the next record in the payload."""
        return self._size if self._reader.closed else self._reader.tell()

    def _has_more(self) -> bool:
        return self._reader.tell() < self._size

    def _decode_next(self) -> Row:
        start = self._reader.tell()
        try:
            record = self._datum_reader.read(self._decoder)
            values = tuple(
                record.get(name) if convert is None else convert(record.get(name))
                for name, convert in self._plan.projection
            )
        except (_ShortRead, StopIteration) as e:
            raise TruncatedRecord(
                "Payload ends in the middle of a record",
                batch_id=self._batch_id,
                offset=start,
            ) from e
        except (
            avro.errors.AvroException,
            struct.error,
            UnicodeDecodeError,
            ValueError,
            IndexError,
        ) as e:
            raise CorruptRecord(
                f"Cannot decode record: {e}",
                batch_id=self._batch_id,
                offset=start,
            ) from e
        return Row(self._output_schema, values)

    def _release(self):
        self._reader.close()
