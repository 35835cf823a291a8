"""
Warehouse to Arrow type mapping.

Maps warehouse fields onto the Arrow data types used as the output type system
of the decode layer. The mapping is resolved once per stream, never per row.
"""

from typing import Dict, Optional

import pyarrow as pa

from ..models.warehouse import FieldMode, FieldType, WarehouseField, WarehouseSchema
from .config import DEFAULT_CONFIG, SchemaConvertersConfig

# -------------------------------------------------------------------------
# Warehouse Type to Pyarrow Type Mapping
# Scalar types only: RECORD and BIGNUMERIC depend on the field / configuration
# and are resolved in `_scalar_arrow_type`.
# -------------------------------------------------------------------------
_WAREHOUSE_TO_PYARROW_TYPE: Dict[FieldType, pa.DataType] = {
    FieldType.INT64: pa.int64(),
    FieldType.FLOAT64: pa.float64(),
    FieldType.NUMERIC: pa.decimal128(38, 9),
    FieldType.BOOL: pa.bool_(),
    FieldType.STRING: pa.string(),
    FieldType.BYTES: pa.binary(),
    FieldType.TIMESTAMP: pa.timestamp("us", tz="UTC"),
    FieldType.DATE: pa.date32(),
    FieldType.TIME: pa.time64("us"),
    FieldType.DATETIME: pa.timestamp("us"),
    # Geography is carried as WKT text, JSON as its text representation
    FieldType.GEOGRAPHY: pa.string(),
    FieldType.JSON: pa.string(),
}

_MAP_KEY = "key"
_MAP_VALUE = "value"


def _is_map_candidate(field: WarehouseField) -> bool:
    if not (field.is_repeated and field.type is FieldType.RECORD):
        return False
    if len(field.fields) != 2:
        return False
    key, value = field.fields
    return (
        key.name == _MAP_KEY
        and key.mode is FieldMode.REQUIRED
        and not key.is_repeated
        and value.name == _MAP_VALUE
    )


def _scalar_arrow_type(
    field: WarehouseField, config: SchemaConvertersConfig
) -> pa.DataType:
    if field.type is FieldType.RECORD:
        return pa.struct([to_arrow_field(sub, config) for sub in field.fields])
    if field.type is FieldType.BIGNUMERIC:
        return pa.decimal256(
            config.bignumeric_default_precision, config.bignumeric_default_scale
        )
    return _WAREHOUSE_TO_PYARROW_TYPE[field.type]


def to_arrow_type(
    field: WarehouseField, config: Optional[SchemaConvertersConfig] = None
) -> pa.DataType:
    """
    Returns the Arrow data type of a warehouse field, repetition included.

    e.g. `INT64 REPEATED` -> `list<int64 not null>`
    """
    config = config or DEFAULT_CONFIG

    if config.allow_map_type_conversion and _is_map_candidate(field):
        key, value = field.fields
        return pa.map_(_scalar_arrow_type(key, config), to_arrow_type(value, config))

    element_type = _scalar_arrow_type(field, config)
    if field.is_repeated:
        return pa.list_(pa.field("element", element_type, nullable=False))
    return element_type


def to_arrow_field(
    field: WarehouseField, config: Optional[SchemaConvertersConfig] = None
) -> pa.Field:
    """
    Returns the Arrow field for a warehouse field.

    REQUIRED and REPEATED fields are not nullable (an empty repetition is an
    empty list, never a null).
    """
    metadata = {"description": field.description} if field.description else None
    return pa.field(
        field.name,
        to_arrow_type(field, config),
        nullable=field.is_nullable,
        metadata=metadata,
    )


def to_arrow_schema(
    schema: WarehouseSchema, config: Optional[SchemaConvertersConfig] = None
) -> pa.Schema:
    """Returns the Arrow schema of a whole warehouse schema, in declaration order."""
    return pa.schema([to_arrow_field(fld, config) for fld in schema.fields])
