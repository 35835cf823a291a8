from .config import SchemaConvertersConfig as SchemaConvertersConfig
from .converters import (
    to_arrow_field as to_arrow_field,
    to_arrow_schema as to_arrow_schema,
    to_arrow_type as to_arrow_type,
)
from .parsers import (
    ArrowSchemaHandle as ArrowSchemaHandle,
    AvroSchemaHandle as AvroSchemaHandle,
    parse_arrow_schema as parse_arrow_schema,
    parse_avro_schema as parse_avro_schema,
)
from .reconcile import (
    is_safely_convertible as is_safely_convertible,
    reconcile as reconcile,
)
