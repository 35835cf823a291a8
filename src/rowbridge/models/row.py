"""
Structured Row Module.

This module defines the per-row output unit of the decode layer. Rows are
read-only sequences whose values are ordered as the reconciled output schema.

- `Row` owns its values (produced fresh on every Avro pull).
- `ArrowRowView` is an index into the column vectors owned by one decoded
  record batch; values are read from the columns on access.
"""

from collections.abc import Sequence
from typing import Any, Callable, Dict, List, Optional, Tuple

import pyarrow as pa


class StructuredRow(Sequence):
    """
    Read-only row ordered per the output schema.

    Rows compare equal to any list or tuple holding the same values, so that
    `row == ["a", 1]` holds for a row of a two-column projection.
    """

    __slots__ = ("_schema",)

    def __init__(self, schema: pa.Schema):
        self._schema = schema

    @property
    def schema(self) -> pa.Schema:
        """The output schema the row values are ordered by."""
        return self._schema

    def as_dict(self) -> Dict[str, Any]:
        """Returns the row as a `{column name: value}` dictionary."""
        return dict(zip(self._schema.names, self))

    def as_tuple(self) -> Tuple[Any, ...]:
        return tuple(self)

    def __len__(self) -> int:
        return len(self._schema)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StructuredRow):
            return self.as_tuple() == other.as_tuple()
        if isinstance(other, (list, tuple)):
            return self.as_tuple() == tuple(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.as_dict()!r})"


class Row(StructuredRow):
    """A row owning its values."""

    __slots__ = ("_values",)

    def __init__(self, schema: pa.Schema, values: Tuple[Any, ...]):
        super().__init__(schema)
        if len(values) != len(schema):
            raise ValueError(
                f"Row has {len(values)} values for a schema of {len(schema)} fields"
            )
        self._values = values

    def __getitem__(self, index):
        return self._values[index]

    def as_tuple(self) -> Tuple[Any, ...]:
        return self._values


class ArrowRowView(StructuredRow):
    """
    A view at row `index` over the column vectors of a decoded record batch.

    The columns are immutable Arrow arrays, so a view stays valid after further
    pulls on its iterator; `copy()` detaches the values from the batch when the
    consumer wants to let the batch go.
    """

    __slots__ = ("_columns", "_converters", "_index")

    def __init__(
        self,
        schema: pa.Schema,
        columns: List[pa.Array],
        converters: List[Optional[Callable[[Any], Any]]],
        index: int,
    ):
        super().__init__(schema)
        self._columns = columns
        self._converters = converters
        self._index = index

    @property
    def index(self) -> int:
        """The row index of this view inside its batch."""
        return self._index

    def _value(self, position: int) -> Any:
        value = self._columns[position][self._index].as_py()
        convert = self._converters[position]
        return value if convert is None else convert(value)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._value(i) for i in range(len(self))[index])
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("row index out of range")
        return self._value(index)

    def copy(self) -> Row:
        """Materializes the view into a `Row` that no longer references the batch."""
        return Row(self._schema, self.as_tuple())
