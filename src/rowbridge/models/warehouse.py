"""
Warehouse Schema Module.

This module defines the `WarehouseSchema` and `WarehouseField` models, the
source-of-truth description of a table as known to the remote catalog. The
schema arrives pre-resolved at stream setup and is immutable for the life of
the stream.
"""

from enum import StrEnum
from typing import Any, Dict, List, Optional, Tuple

import pydantic

from .base_model import BaseModel


class FieldType(StrEnum):
    """Warehouse column types, using the standard SQL names."""

    INT64 = "INT64"
    FLOAT64 = "FLOAT64"
    NUMERIC = "NUMERIC"
    BIGNUMERIC = "BIGNUMERIC"
    BOOL = "BOOL"
    STRING = "STRING"
    BYTES = "BYTES"
    TIMESTAMP = "TIMESTAMP"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    GEOGRAPHY = "GEOGRAPHY"
    JSON = "JSON"
    RECORD = "RECORD"


class FieldMode(StrEnum):
    NULLABLE = "NULLABLE"
    REQUIRED = "REQUIRED"
    REPEATED = "REPEATED"


# Legacy SQL names reported by the catalog for the same types
_TYPE_ALIASES: Dict[str, FieldType] = {
    "INTEGER": FieldType.INT64,
    "FLOAT": FieldType.FLOAT64,
    "BOOLEAN": FieldType.BOOL,
    "STRUCT": FieldType.RECORD,
    "DECIMAL": FieldType.NUMERIC,
    "BIGDECIMAL": FieldType.BIGNUMERIC,
}


class WarehouseField(BaseModel):
    """
    A single named, typed column of the warehouse schema.

    Attributes:
        name (str): Column name.
        type (FieldType): Column type. Legacy names (e.g. "INTEGER") are accepted.
        mode (FieldMode): Nullability / repetition of the column.
        fields (Tuple[WarehouseField, ...]): Sub-fields, only for RECORD columns.
        description (Optional[str]): Free-text column description.
    """

    name: str
    type: FieldType
    mode: FieldMode = FieldMode.NULLABLE
    fields: Tuple["WarehouseField", ...] = ()
    description: Optional[str] = None

    @pydantic.field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, FieldType):
            upper = value.upper()
            return _TYPE_ALIASES.get(upper, upper)
        return value

    @pydantic.field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if value is None:
            return FieldMode.NULLABLE
        if isinstance(value, str):
            return value.upper()
        return value

    @pydantic.model_validator(mode="after")
    def _check_sub_fields(self) -> "WarehouseField":
        if self.type is FieldType.RECORD and not self.fields:
            raise ValueError(f"RECORD field '{self.name}' must declare sub-fields")
        if self.type is not FieldType.RECORD and self.fields:
            raise ValueError(
                f"Field '{self.name}' of type {self.type} cannot declare sub-fields"
            )
        return self

    @property
    def is_nullable(self) -> bool:
        return self.mode is FieldMode.NULLABLE

    @property
    def is_repeated(self) -> bool:
        return self.mode is FieldMode.REPEATED

    @classmethod
    def from_api_repr(cls, api_repr: Dict[str, Any]) -> "WarehouseField":
        """Builds a field from its catalog JSON representation."""
        return cls(
            name=api_repr["name"],
            type=api_repr["type"],
            mode=api_repr.get("mode"),
            fields=tuple(cls.from_api_repr(sub) for sub in api_repr.get("fields", [])),
            description=api_repr.get("description"),
        )


WarehouseField.model_rebuild()


class WarehouseSchema(BaseModel):
    """
    Ordered set of fields describing a warehouse table.

    Example:
        >>> schema = WarehouseSchema.of(
        ...     WarehouseField(name="id", type="INTEGER", mode="REQUIRED"),
        ...     WarehouseField(name="name", type="STRING"),
        ... )
        >>> schema.field("id").type
        <FieldType.INT64: 'INT64'>
    """

    fields: Tuple[WarehouseField, ...]

    @pydantic.model_validator(mode="after")
    def _check_unique_names(self) -> "WarehouseSchema":
        seen = set()
        for fld in self.fields:
            if fld.name in seen:
                raise ValueError(f"Duplicate field name '{fld.name}' in warehouse schema")
            seen.add(fld.name)
        return self

    @classmethod
    def of(cls, *fields: WarehouseField) -> "WarehouseSchema":
        return cls(fields=tuple(fields))

    @classmethod
    def from_api_repr(cls, api_repr: Dict[str, Any]) -> "WarehouseSchema":
        """
        Builds a schema from the catalog JSON representation.

        Args:
            api_repr (Dict[str, Any]): A dictionary shaped like
                `{"fields": [{"name": ..., "type": ..., "mode": ..., "fields": [...]}]}`.

        Returns:
            WarehouseSchema: The validated schema.
        """
        return cls(
            fields=tuple(
                WarehouseField.from_api_repr(fld) for fld in api_repr.get("fields", [])
            )
        )

    @property
    def names(self) -> List[str]:
        return [fld.name for fld in self.fields]

    def field(self, name: str) -> Optional[WarehouseField]:
        """Returns the field called `name`, or None if the schema has no such field."""
        return next((fld for fld in self.fields if fld.name == name), None)

    def __contains__(self, name: object) -> bool:
        return any(fld.name == name for fld in self.fields)

    def __len__(self) -> int:
        return len(self.fields)
