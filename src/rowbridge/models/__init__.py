from .warehouse import (
    FieldMode as FieldMode,
    FieldType as FieldType,
    WarehouseField as WarehouseField,
    WarehouseSchema as WarehouseSchema,
)
from .response import (
    ArrowRecordBatch as ArrowRecordBatch,
    AvroRows as AvroRows,
    ReadRowsResponse as ReadRowsResponse,
)
from .row import (
    ArrowRowView as ArrowRowView,
    Row as Row,
    StructuredRow as StructuredRow,
)
