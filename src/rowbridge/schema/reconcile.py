"""
Schema Reconciliation Module.

Resolves the authoritative output schema of a stream from three inputs:

1.  The warehouse schema (source of truth for names, types and nullability).
2.  The requested projection (defines the output column order).
3.  An optional user target schema, overriding type and nullability of the
    columns it names, provided the warehouse type converts safely into it.

Reconciliation is pure and deterministic; converters compute it once per stream
and cache the result.
"""

from typing import List, Optional, Sequence

import pyarrow as pa

from ..errors import SchemaMismatch
from ..models.warehouse import WarehouseSchema
from .config import SchemaConvertersConfig
from .converters import to_arrow_field

# Decimal digits needed to hold every value of an integer type
_INTEGER_DIGITS = {
    pa.int8(): 3,
    pa.int16(): 5,
    pa.int32(): 10,
    pa.int64(): 19,
    pa.uint8(): 3,
    pa.uint16(): 5,
    pa.uint32(): 10,
    pa.uint64(): 20,
}


# Temporal units, coarsest first
_UNIT_RANK = {"s": 0, "ms": 1, "us": 2, "ns": 3}


def _unit_widens(source: pa.DataType, target: pa.DataType) -> bool:
    return _UNIT_RANK[target.unit] >= _UNIT_RANK[source.unit]


def _is_list_like(t: pa.DataType) -> bool:
    return pa.types.is_list(t) or pa.types.is_large_list(t)


def _integer_widens(source: pa.DataType, target: pa.DataType) -> bool:
    if pa.types.is_signed_integer(source):
        return pa.types.is_signed_integer(target) and target.bit_width >= source.bit_width
    # unsigned source
    if pa.types.is_unsigned_integer(target):
        return target.bit_width >= source.bit_width
    return target.bit_width > source.bit_width


def _decimal_holds(source: pa.DataType, target: pa.DataType) -> bool:
    if pa.types.is_integer(source):
        return target.precision - target.scale >= _INTEGER_DIGITS[source]
    return (
        target.scale >= source.scale
        and target.precision - target.scale >= source.precision - source.scale
    )


def _struct_fields_convert(source: pa.StructType, target: pa.StructType) -> bool:
    for i in range(target.num_fields):
        dst = target.field(i)
        idx = source.get_field_index(dst.name)
        if idx < 0:
            return False
        src = source.field(idx)
        if src.nullable and not dst.nullable:
            return False
        if not is_safely_convertible(src.type, dst.type):
            return False
    return True


def _key_value_entries_convert(entry: pa.DataType, target: pa.MapType) -> bool:
    # repeated key/value records, as written on the wire for map columns
    if not pa.types.is_struct(entry) or entry.num_fields != 2:
        return False
    if entry.get_field_index("key") < 0 or entry.get_field_index("value") < 0:
        return False
    return is_safely_convertible(
        entry.field("key").type, target.key_type
    ) and is_safely_convertible(entry.field("value").type, target.item_type)


def is_safely_convertible(source: pa.DataType, target: pa.DataType) -> bool:
    """
    Tells whether every value of `source` can be represented in `target`
    without loss.

    Args:
        source (pa.DataType): The type the data is decoded with.
        target (pa.DataType): The type the consumer declared.

    Returns:
        bool: True for identical types and safe widenings, False otherwise.
    """
    if source.equals(target):
        return True

    if pa.types.is_integer(source):
        if pa.types.is_integer(target):
            return _integer_widens(source, target)
        if pa.types.is_float64(target):
            return True
        if pa.types.is_float32(target):
            return source.bit_width <= 16
        if pa.types.is_decimal(target):
            return _decimal_holds(source, target)
        return False

    if pa.types.is_floating(source):
        return pa.types.is_floating(target) and target.bit_width >= source.bit_width

    if pa.types.is_decimal(source):
        return pa.types.is_decimal(target) and _decimal_holds(source, target)

    if pa.types.is_date(source):
        return pa.types.is_date(target) or pa.types.is_timestamp(target)

    if pa.types.is_timestamp(source):
        return (
            pa.types.is_timestamp(target)
            and source.tz == target.tz
            and _unit_widens(source, target)
        )

    if pa.types.is_time(source):
        return pa.types.is_time(target) and _unit_widens(source, target)

    if pa.types.is_string(source):
        return pa.types.is_large_string(target)

    if pa.types.is_binary(source):
        return pa.types.is_large_binary(target)

    if _is_list_like(source) and pa.types.is_map(target):
        return _key_value_entries_convert(source.value_type, target)

    if _is_list_like(source):
        return _is_list_like(target) and is_safely_convertible(
            source.value_type, target.value_type
        )

    if pa.types.is_map(source):
        return (
            pa.types.is_map(target)
            and is_safely_convertible(source.key_type, target.key_type)
            and is_safely_convertible(source.item_type, target.item_type)
        )

    if pa.types.is_struct(source):
        return pa.types.is_struct(target) and _struct_fields_convert(source, target)

    return False


def _user_field(user_schema: pa.Schema, name: str) -> Optional[pa.Field]:
    indices = user_schema.get_all_field_indices(name)
    if not indices:
        return None
    if len(indices) > 1:
        raise SchemaMismatch(f"Column '{name}' is declared more than once in the user schema")
    return user_schema.field(indices[0])


def _check_user_field(source: pa.Field, target: pa.Field):
    if source.nullable and not target.nullable:
        raise SchemaMismatch(
            f"Column '{source.name}' is nullable in the warehouse "
            "but declared non-nullable in the user schema"
        )
    if not is_safely_convertible(source.type, target.type):
        raise SchemaMismatch(
            f"Column '{source.name}' of warehouse type {source.type} "
            f"cannot be safely converted to user type {target.type}"
        )


def reconcile(
    warehouse_schema: WarehouseSchema,
    requested_columns: Sequence[str],
    user_schema: Optional[pa.Schema] = None,
    config: Optional[SchemaConvertersConfig] = None,
) -> pa.Schema:
    """
    Computes the output schema of a stream.

    Args:
        warehouse_schema (WarehouseSchema): The catalog schema of the table.
        requested_columns (Sequence[str]): Column names, in output order.
        user_schema (Optional[pa.Schema]): Caller-declared types for some or all columns.
        config (Optional[SchemaConvertersConfig]): Warehouse type mapping options.

    Returns:
        pa.Schema: One field per requested column, in requested order.

    Raises:
        SchemaMismatch: If a column is requested twice or is missing from the
            warehouse schema, or if a user-declared field is not a safe
            conversion of the warehouse field.
    """
    fields: List[pa.Field] = []
    seen = set()

    for name in requested_columns:
        if name in seen:
            raise SchemaMismatch(f"Column '{name}' is requested more than once")
        seen.add(name)

        wfield = warehouse_schema.field(name)
        if wfield is None:
            raise SchemaMismatch(
                f"Requested column '{name}' is not in the warehouse schema. "
                f"Available columns: {warehouse_schema.names}"
            )
        source = to_arrow_field(wfield, config)

        target = _user_field(user_schema, name) if user_schema is not None else None
        if target is None:
            fields.append(source)
            continue

        _check_user_field(source, target)
        fields.append(target)

    return pa.schema(fields)
