"""
Read-Rows Converter Module.

This module provides `ReadRowsConverter`, the object a consumer holds for the
lifetime of one read stream. It binds the immutable per-stream configuration
(output schema, parsed format schema, projection, tracer), computed once at
setup, and turns every `ReadRowsResponse` of the stream into a `RowIterator`.

Dispatch is on the closed set of wire formats (`DataFormat`): each format has
exactly one decode function, selected per response by its payload tag.
"""

import logging as log
from typing import Callable, Dict, List, Optional, Sequence, Union

import pyarrow as pa

from .enum import DataFormat
from .errors import BatchFormatMismatch
from .iterators import (
    ArrowBinaryIterator,
    ArrowDecodePlan,
    AvroBinaryIterator,
    AvroDecodePlan,
    RowIterator,
)
from .models.response import ReadRowsResponse
from .models.warehouse import WarehouseSchema
from .schema.config import SchemaConvertersConfig
from .schema.parsers import parse_arrow_schema, parse_avro_schema
from .schema.reconcile import reconcile
from .tracing import NO_OP_TRACER, ReadRowsTracer

DecodePlan = Union[AvroDecodePlan, ArrowDecodePlan]


def _avro_rows(
    plan: AvroDecodePlan, response: ReadRowsResponse, tracer: ReadRowsTracer
) -> RowIterator:
    return AvroBinaryIterator(
        plan,
        response.rows.serialized_binary_rows,
        tracer=tracer,
        batch_id=response.batch_id,
    )


def _arrow_rows(
    plan: ArrowDecodePlan, response: ReadRowsResponse, tracer: ReadRowsTracer
) -> RowIterator:
    return ArrowBinaryIterator(
        plan,
        response.rows.serialized_record_batch,
        row_count=response.row_count,
        tracer=tracer,
        batch_id=response.batch_id,
    )


_DECODERS: Dict[DataFormat, Callable[..., RowIterator]] = {
    DataFormat.Avro: _avro_rows,
    DataFormat.Arrow: _arrow_rows,
}


class ReadRowsConverter:
    """
    Converts the responses of one read stream into row iterators.

    Users build an instance with the `avro()` or `arrow()` factory, matching the
    format the read session was created with.

    Example:
        >>> converter = ReadRowsConverter.avro(
        ...     warehouse_schema, ["name", "id"], raw_avro_schema
        ... )
        >>> for response in responses:
        ...     for row in converter.convert(response):
        ...         consume(row)
    """

    # -------------------- Class attributes --------------------
    _format: DataFormat
    _plan: DecodePlan
    _columns: List[str]
    _tracer: ReadRowsTracer

    def __init__(
        self,
        data_format: DataFormat,
        plan: DecodePlan,
        columns_in_order: Sequence[str],
        tracer: Optional[ReadRowsTracer] = None,
    ):
        """
        Internal constructor.
        Users can retrieve an instance by using the `avro()` or `arrow()` factories instead.
        """
        self._format = data_format
        self._plan = plan
        self._columns = list(columns_in_order)
        self._tracer = tracer or NO_OP_TRACER
        self._closed = False

        self._tracer.start_stream()

    @classmethod
    def avro(
        cls,
        warehouse_schema: WarehouseSchema,
        columns_in_order: Sequence[str],
        raw_avro_schema: Union[str, bytes],
        user_schema: Optional[pa.Schema] = None,
        tracer: Optional[ReadRowsTracer] = None,
        config: Optional[SchemaConvertersConfig] = None,
    ) -> "ReadRowsConverter":
        """
        Factory method for a stream of Avro rows.

        Args:
            warehouse_schema (WarehouseSchema): The table schema from the catalog.
            columns_in_order (Sequence[str]): Requested columns, in output order.
            raw_avro_schema (Union[str, bytes]): The Avro schema JSON of the stream.
            user_schema (Optional[pa.Schema]): Caller-declared output types.
            tracer (Optional[ReadRowsTracer]): Observer of byte/row counts.
            config (Optional[SchemaConvertersConfig]): Warehouse type mapping options.

        Returns:
            ReadRowsConverter: A converter bound to the stream.

        Raises:
            SchemaParseError: If the Avro schema is malformed.
            SchemaMismatch: If the projection cannot be served.
        """
        avro_schema = parse_avro_schema(raw_avro_schema)
        plan = AvroDecodePlan.build(
            warehouse_schema, columns_in_order, avro_schema, user_schema, config
        )
        log.debug(
            f"Avro read stream set up with {len(plan.output_schema)} output columns: "
            f"{plan.output_schema.names}"
        )
        return cls(DataFormat.Avro, plan, columns_in_order, tracer)

    @classmethod
    def arrow(
        cls,
        warehouse_schema: WarehouseSchema,
        columns_in_order: Sequence[str],
        raw_arrow_schema: bytes,
        user_schema: Optional[pa.Schema] = None,
        tracer: Optional[ReadRowsTracer] = None,
        config: Optional[SchemaConvertersConfig] = None,
    ) -> "ReadRowsConverter":
        """
        Factory method for a stream of Arrow record batches.

        Args:
            warehouse_schema (WarehouseSchema): The table schema from the catalog.
            columns_in_order (Sequence[str]): Requested columns, in output order.
            raw_arrow_schema (bytes): The serialized Arrow IPC schema of the stream.
            user_schema (Optional[pa.Schema]): Caller-declared output types.
            tracer (Optional[ReadRowsTracer]): Observer of byte/row counts.
            config (Optional[SchemaConvertersConfig]): Warehouse type mapping options.

        Returns:
            ReadRowsConverter: A converter bound to the stream.

        Raises:
            SchemaParseError: If the Arrow schema is malformed.
            SchemaMismatch: If the projection cannot be served.
        """
        arrow_schema = parse_arrow_schema(raw_arrow_schema)
        output_schema = reconcile(warehouse_schema, columns_in_order, user_schema, config)
        plan = ArrowDecodePlan.build(columns_in_order, arrow_schema, output_schema)
        log.debug(
            f"Arrow read stream set up with {len(output_schema)} output columns: "
            f"{output_schema.names}"
        )
        return cls(DataFormat.Arrow, plan, columns_in_order, tracer)

    @property
    def format(self) -> DataFormat:
        """The wire format of the stream."""
        return self._format

    @property
    def output_schema(self) -> pa.Schema:
        """The reconciled output schema shared by every row of the stream."""
        return self._plan.output_schema

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def tracer(self) -> ReadRowsTracer:
        return self._tracer

    def convert(self, response: ReadRowsResponse) -> RowIterator:
        """
        Returns the iterator over the rows of a response.

        No row is decoded here; Arrow batches are decoded as a whole when their
        iterator is built, so a malformed batch raises from this call.

        Raises:
            BatchFormatMismatch: If the response payload is not in the stream format.
            MalformedRecordBatch: If an Arrow batch cannot be decoded.
        """
        if response.format is not self._format:
            raise BatchFormatMismatch(
                f"Received a {response.format} payload on a {self._format} stream",
                batch_id=response.batch_id,
            )
        if response.unknown_fields:
            self._tracer.unknown_fields_observed(response.batch_id, response.unknown_fields)

        return _DECODERS[self._format](self._plan, response, self._tracer)

    def get_batch_size_in_bytes(self, response: ReadRowsResponse) -> int:
        """
        Returns the serialized size of the response payload, without decoding it.
        """
        return len(response.payload)

    def close(self):
        """Notifies the tracer that the stream is over. Further calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._tracer.finished()
