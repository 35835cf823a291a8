"""
Arrow Binary Iterator Module.

Decodes a columnar payload: one Arrow IPC record batch message written with
the stream's Arrow schema. The whole batch is decoded when the iterator is
built, so that a malformed batch is reported before any row is consumed; rows
are then produced lazily by transposing the column vectors, one index at a time.
"""

import logging as log
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

import pyarrow as pa

from ..errors import MalformedRecordBatch, SchemaMismatch
from ..models.row import ArrowRowView
from ..schema.parsers import ArrowSchemaHandle
from ..schema.reconcile import is_safely_convertible
from ..schema.values import ValueConverter, build_value_converter
from ..tracing import ReadRowsTracer
from .base import RowIterator


@dataclass(frozen=True)
class _ColumnPlan:
    index: int  # position of the column in the record batch
    target: pa.Field
    needs_cast: bool
    # applied on read when the column keeps its wire type
    converter: Optional[ValueConverter]


@dataclass(frozen=True)
class ArrowDecodePlan:
    """
    Everything an Arrow iterator needs that does not depend on the batch.

    Built once per stream and shared, read-only, by all the iterators of the stream.

    Attributes:
        output_schema (pa.Schema): The reconciled output schema.
        arrow_schema (ArrowSchemaHandle): The parsed record batch schema.
        columns (Tuple[_ColumnPlan, ...]): How to produce each output column.
    """

    output_schema: pa.Schema
    arrow_schema: ArrowSchemaHandle
    columns: Tuple[_ColumnPlan, ...]

    @classmethod
    def build(
        cls,
        columns_in_order: Sequence[str],
        arrow_schema: ArrowSchemaHandle,
        output_schema: pa.Schema,
    ) -> "ArrowDecodePlan":
        """
        Maps every output column onto its record batch column.

        Args:
            columns_in_order (Sequence[str]): Requested columns, in output order.
            arrow_schema (ArrowSchemaHandle): The record batch schema of the stream.
            output_schema (pa.Schema): The reconciled output schema.

        Raises:
            SchemaMismatch: If a requested column is missing from the Arrow schema.
        """
        schema = arrow_schema.schema
        missing = [c for c in columns_in_order if schema.get_field_index(c) < 0]
        if missing:
            raise SchemaMismatch(
                f"Requested columns {missing} are not in the Arrow schema. "
                f"Available fields: {schema.names}"
            )

        columns = []
        for name in columns_in_order:
            index = schema.get_field_index(name)
            source = schema.field(index).type
            target = output_schema.field(name)
            if not is_safely_convertible(source, target.type):
                raise SchemaMismatch(
                    f"Column '{name}' of Arrow type {source} cannot be safely "
                    f"converted to output type {target.type}"
                )
            needs_cast = not source.equals(target.type)
            columns.append(
                _ColumnPlan(
                    index=index,
                    target=target,
                    needs_cast=needs_cast,
                    converter=build_value_converter(source, target.type),
                )
            )
        return cls(
            output_schema=output_schema,
            arrow_schema=arrow_schema,
            columns=tuple(columns),
        )


class ArrowBinaryIterator(RowIterator):
    """
    Lazily produces the rows of one decoded Arrow record batch.

    Pull `i` yields an `ArrowRowView` over element `i` of each projected column.

    Raises (at construction):
        MalformedRecordBatch: If the payload cannot be read with the stream schema,
            fails full validation, or disagrees with the declared row count.
    """

    def __init__(
        self,
        plan: ArrowDecodePlan,
        serialized_record_batch: bytes,
        row_count: int = 0,
        tracer: Optional[ReadRowsTracer] = None,
        batch_id: Optional[str] = None,
    ):
        """
        Args:
            plan (ArrowDecodePlan): The stream decode plan.
            serialized_record_batch (bytes): The IPC record batch message.
            row_count (int): Row count declared by the server; 0 skips the check.
            tracer (Optional[ReadRowsTracer]): Observer of the batch boundaries.
            batch_id (Optional[str]): Identity of the batch, for error context.
        """
        self._plan = plan
        self._batch_id = batch_id

        batch = self._read_batch(serialized_record_batch, row_count)
        self._num_rows: int = batch.num_rows
        self._columns: List[pa.Array] = []
        self._converters: List[Optional[Callable[[Any], Any]]] = []
        for column_plan in plan.columns:
            column, converter = self._project(batch, column_plan)
            self._columns.append(column)
            self._converters.append(converter)
        # only the projected column vectors are kept
        del batch

        # the tracer only hears of batches that decoded
        super().__init__(
            plan.output_schema, len(serialized_record_batch), tracer, batch_id
        )

        self._index = 0

    @classmethod
    def from_schema(
        cls,
        columns_in_order: Sequence[str],
        arrow_schema: ArrowSchemaHandle,
        serialized_record_batch: bytes,
        user_schema: Optional[pa.Schema] = None,
        tracer: Optional[ReadRowsTracer] = None,
        row_count: int = 0,
        batch_id: Optional[str] = None,
    ) -> "ArrowBinaryIterator":
        """
        Builds a one-off iterator whose output schema is the Arrow schema projected
        on `columns_in_order`, with the fields of `user_schema` taking precedence.
        """
        fields = []
        for name in columns_in_order:
            index = arrow_schema.schema.get_field_index(name)
            if user_schema is not None and user_schema.get_field_index(name) >= 0:
                fields.append(user_schema.field(name))
            elif index >= 0:
                fields.append(arrow_schema.schema.field(index))
        plan = ArrowDecodePlan.build(columns_in_order, arrow_schema, pa.schema(fields))
        return cls(plan, serialized_record_batch, row_count, tracer, batch_id)

    @property
    def num_rows(self) -> int:
        """Number of rows in the decoded batch."""
        return self._num_rows

    def _read_batch(self, payload: bytes, row_count: int) -> pa.RecordBatch:
        try:
            batch = pa.ipc.read_record_batch(
                pa.py_buffer(payload), self._plan.arrow_schema.schema
            )
            batch.validate(full=True)
        except (pa.ArrowException, OSError, ValueError) as e:
            raise MalformedRecordBatch(
                f"Cannot decode record batch: {e}", batch_id=self._batch_id
            ) from e

        if row_count and batch.num_rows != row_count:
            raise MalformedRecordBatch(
                f"Record batch holds {batch.num_rows} rows, {row_count} declared",
                batch_id=self._batch_id,
            )
        return batch

    def _project(
        self, batch: pa.RecordBatch, column_plan: _ColumnPlan
    ) -> Tuple[pa.Array, Optional[ValueConverter]]:
        column = batch.column(column_plan.index)
        if not column_plan.needs_cast:
            return column, column_plan.converter

        target = column_plan.target.type
        try:
            cast = column.cast(target)
        except (pa.ArrowNotImplementedError, pa.ArrowTypeError):
            log.debug(
                f"No Arrow cast from {column.type} to {target} for column "
                f"'{column_plan.target.name}', converting on read"
            )
            return column, column_plan.converter
        except (pa.ArrowInvalid, ValueError) as e:
            raise MalformedRecordBatch(
                f"Column '{column_plan.target.name}' cannot be converted to {target}: {e}",
                batch_id=self._batch_id,
            ) from e
        return cast, build_value_converter(target, target)

    def _has_more(self) -> bool:
        return self._index < self._num_rows

    def _decode_next(self) -> ArrowRowView:
        view = ArrowRowView(self._output_schema, self._columns, self._converters, self._index)
        self._index += 1
        return view

    def _release(self):
        # views already handed out keep their own reference to the column list
        self._columns = []
        self._converters = []
