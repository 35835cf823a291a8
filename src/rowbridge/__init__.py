from .converter import ReadRowsConverter as ReadRowsConverter

from .enum import (
    DataFormat as DataFormat,
    IteratorState as IteratorState,
)

from .errors import (
    BatchFormatMismatch as BatchFormatMismatch,
    CorruptRecord as CorruptRecord,
    MalformedRecordBatch as MalformedRecordBatch,
    RowBridgeError as RowBridgeError,
    SchemaMismatch as SchemaMismatch,
    SchemaParseError as SchemaParseError,
    TruncatedRecord as TruncatedRecord,
)

from .handlers import ReadRowsStreamer as ReadRowsStreamer

from .iterators import (
    ArrowBinaryIterator as ArrowBinaryIterator,
    ArrowDecodePlan as ArrowDecodePlan,
    AvroBinaryIterator as AvroBinaryIterator,
    AvroDecodePlan as AvroDecodePlan,
    RowIterator as RowIterator,
)

from .models import (
    ArrowRecordBatch as ArrowRecordBatch,
    ArrowRowView as ArrowRowView,
    AvroRows as AvroRows,
    FieldMode as FieldMode,
    FieldType as FieldType,
    ReadRowsResponse as ReadRowsResponse,
    Row as Row,
    StructuredRow as StructuredRow,
    WarehouseField as WarehouseField,
    WarehouseSchema as WarehouseSchema,
)

from .schema import (
    SchemaConvertersConfig as SchemaConvertersConfig,
    is_safely_convertible as is_safely_convertible,
    parse_arrow_schema as parse_arrow_schema,
    parse_avro_schema as parse_avro_schema,
    reconcile as reconcile,
)

from .tracing import (
    LoggingReadRowsTracer as LoggingReadRowsTracer,
    NoOpTracer as NoOpTracer,
    ReadRowsTracer as ReadRowsTracer,
)

# useful to do like: `from rowbridge import ReadRowsConverter`
__all__ = [
    "ArrowBinaryIterator",
    "ArrowDecodePlan",
    "ArrowRecordBatch",
    "ArrowRowView",
    "AvroBinaryIterator",
    "AvroDecodePlan",
    "AvroRows",
    "BatchFormatMismatch",
    "CorruptRecord",
    "DataFormat",
    "FieldMode",
    "FieldType",
    "IteratorState",
    "LoggingReadRowsTracer",
    "MalformedRecordBatch",
    "NoOpTracer",
    "ReadRowsConverter",
    "ReadRowsResponse",
    "ReadRowsStreamer",
    "ReadRowsTracer",
    "Row",
    "RowBridgeError",
    "RowIterator",
    "SchemaConvertersConfig",
    "SchemaMismatch",
    "SchemaParseError",
    "StructuredRow",
    "TruncatedRecord",
    "WarehouseField",
    "WarehouseSchema",
    "is_safely_convertible",
    "parse_arrow_schema",
    "parse_avro_schema",
    "reconcile",
]
