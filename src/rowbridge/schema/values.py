"""
Value Conversion Module.

Builds, once per stream and per column, the callables that turn decoded wire
values into the semantic Python value of the output field:

- `avro_value_normalizer` brings a raw Avro value of a warehouse type to its
  canonical Python form (e.g. a DATETIME string into a `datetime`), covering
  payloads written without Avro logical type annotations.
- `build_value_converter` widens a canonical value of one Arrow type into
  another Arrow type (e.g. `int64` -> `float64`, `date32` -> `timestamp`) and
  turns map entries into dictionaries.

Both return None when the column needs no conversion, so that the hot decoding
path can skip the call entirely.
"""

import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Tuple

import pyarrow as pa

from ..models.warehouse import FieldType, WarehouseField
from .config import DEFAULT_CONFIG, SchemaConvertersConfig
from .converters import to_arrow_type

ValueConverter = Callable[[Any], Any]

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_EPOCH_DATE = datetime.date(1970, 1, 1)
_NUMERIC_SCALE = 9


def _nullable(fn: ValueConverter) -> ValueConverter:
    def convert(value: Any) -> Any:
        return None if value is None else fn(value)

    return convert


def _chain(first: Optional[ValueConverter], second: Optional[ValueConverter]):
    if first is None:
        return second
    if second is None:
        return first
    return lambda value: second(first(value))


# -------------------------------------------------------------------------
# Avro value normalization
# -------------------------------------------------------------------------


def _timestamp_from_avro(value: Any) -> datetime.datetime:
    if isinstance(value, int):
        return _EPOCH + datetime.timedelta(microseconds=value)
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def _date_from_avro(value: Any) -> datetime.date:
    if isinstance(value, int):
        return _EPOCH_DATE + datetime.timedelta(days=value)
    return value


def _time_from_avro(value: Any) -> datetime.time:
    if isinstance(value, int):
        return (datetime.datetime.min + datetime.timedelta(microseconds=value)).time()
    return value


def _datetime_from_avro(value: Any) -> datetime.datetime:
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value)
    return value


def _decimal_from_avro(scale: int) -> ValueConverter:
    def convert(value: Any) -> Decimal:
        if isinstance(value, (bytes, bytearray)):
            # two's-complement big-endian unscaled value
            unscaled = int.from_bytes(value, byteorder="big", signed=True)
            return Decimal(unscaled).scaleb(-scale)
        return value

    return convert


def _record_from_avro(
    field: WarehouseField, config: Optional[SchemaConvertersConfig]
) -> Optional[ValueConverter]:
    children = {sub.name: avro_value_normalizer(sub, config) for sub in field.fields}
    children = {name: fn for name, fn in children.items() if fn is not None}
    if not children:
        return None

    def convert(value: dict) -> dict:
        record = dict(value)
        for name, fn in children.items():
            if name in record:
                record[name] = fn(record[name])
        return record

    return convert


def avro_value_normalizer(
    field: WarehouseField,
    config: Optional[SchemaConvertersConfig] = None,
) -> Optional[ValueConverter]:
    """
    Returns the normalizer for raw Avro values of a warehouse field.

    Args:
        field (WarehouseField): The warehouse field the values belong to.
        config (Optional[SchemaConvertersConfig]): Type mapping options (decimal scales).

    Returns:
        Optional[ValueConverter]: A null-safe callable, or None if raw values are
            already canonical.
    """
    element: Optional[ValueConverter]
    if field.type is FieldType.TIMESTAMP:
        element = _timestamp_from_avro
    elif field.type is FieldType.DATE:
        element = _date_from_avro
    elif field.type is FieldType.TIME:
        element = _time_from_avro
    elif field.type is FieldType.DATETIME:
        element = _datetime_from_avro
    elif field.type is FieldType.NUMERIC:
        element = _decimal_from_avro(_NUMERIC_SCALE)
    elif field.type is FieldType.BIGNUMERIC:
        element = _decimal_from_avro((config or DEFAULT_CONFIG).bignumeric_default_scale)
    elif field.type is FieldType.RECORD:
        element = _record_from_avro(field, config)
    else:
        element = None

    if element is None:
        return None
    element = _nullable(element)
    if field.is_repeated:
        return _nullable(lambda values: [element(v) for v in values])
    return element


# -------------------------------------------------------------------------
# Arrow type widening
# -------------------------------------------------------------------------


def _contains_map(t: pa.DataType) -> bool:
    if pa.types.is_map(t):
        return True
    if pa.types.is_list(t) or pa.types.is_large_list(t):
        return _contains_map(t.value_type)
    if pa.types.is_struct(t):
        return any(_contains_map(t.field(i).type) for i in range(t.num_fields))
    return False


def _map_source_types(source: pa.DataType) -> Tuple[pa.DataType, pa.DataType]:
    if pa.types.is_map(source):
        return source.key_type, source.item_type
    # list<struct<key, value>> as produced by repeated key/value records
    entry = source.value_type
    return entry.field("key").type, entry.field("value").type


def _map_entries(value: Any) -> Iterable[Tuple[Any, Any]]:
    if isinstance(value, dict):
        return value.items()
    return (
        (entry["key"], entry["value"]) if isinstance(entry, dict) else entry
        for entry in value
    )


def _identity(value: Any) -> Any:
    return value


def _map_converter(source: pa.DataType, target: pa.DataType) -> ValueConverter:
    src_key, src_item = _map_source_types(source)
    key_fn = build_value_converter(src_key, target.key_type) or _identity
    item_fn = build_value_converter(src_item, target.item_type) or _identity
    return _nullable(
        lambda value: {key_fn(k): item_fn(v) for k, v in _map_entries(value)}
    )


def _struct_converter(source: pa.DataType, target: pa.DataType) -> ValueConverter:
    children = []
    for i in range(target.num_fields):
        dst = target.field(i)
        src = source.field(source.get_field_index(dst.name))
        children.append((dst.name, build_value_converter(src.type, dst.type)))

    def convert(value: dict) -> dict:
        return {
            name: (value.get(name) if fn is None else fn(value.get(name)))
            for name, fn in children
        }

    return _nullable(convert)


def _date_to_timestamp(target: pa.DataType) -> ValueConverter:
    tzinfo = datetime.timezone.utc if target.tz is not None else None

    def convert(value: datetime.date) -> datetime.datetime:
        return datetime.datetime.combine(value, datetime.time.min, tzinfo=tzinfo)

    return convert


def build_value_converter(
    source: pa.DataType, target: pa.DataType
) -> Optional[ValueConverter]:
    """
    Returns the converter of canonical `source` values into `target` values.

    The pair is expected to have passed `is_safely_convertible`; the
    converter is null-safe.

    Returns:
        Optional[ValueConverter]: None when values can be used as they are.
    """
    if pa.types.is_map(target):
        return _map_converter(source, target)

    if source.equals(target) and not _contains_map(target):
        return None

    if pa.types.is_struct(target):
        return _struct_converter(source, target)

    if pa.types.is_list(target) or pa.types.is_large_list(target):
        element_fn = build_value_converter(source.value_type, target.value_type)
        if element_fn is None:
            return None
        return _nullable(lambda values: [element_fn(v) for v in values])

    if pa.types.is_floating(target):
        return _nullable(float)
    if pa.types.is_integer(target):
        return _nullable(int)
    if pa.types.is_decimal(target):
        return _nullable(lambda value: Decimal(value))
    if pa.types.is_timestamp(target) and pa.types.is_date(source):
        return _nullable(_date_to_timestamp(target))

    # same Python representation (unit, large/small offsets)
    return None


def build_avro_column_converter(
    field: WarehouseField,
    output_type: pa.DataType,
    config: Optional[SchemaConvertersConfig] = None,
) -> Optional[ValueConverter]:
    """
    Returns the full raw-Avro-value to output-value converter of one column.
    """
    normalize = avro_value_normalizer(field, config)
    widen = build_value_converter(to_arrow_type(field, config), output_type)
    return _chain(normalize, widen)
