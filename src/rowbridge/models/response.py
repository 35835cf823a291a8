"""
Read-Rows Response Module.

This module defines the envelope handed over by the transport for every batch
of a read stream (`ReadRowsResponse`) and its two payload variants
(`AvroRows`, `ArrowRecordBatch`). The envelope is immutable; the decode layer
only inspects it.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Union

from ..enum import DataFormat


@dataclass(frozen=True)
class AvroRows:
    """
    Row-oriented payload.

    Attributes:
        serialized_binary_rows (bytes): Concatenated Avro binary datums, one per row,
            without any container-file header.
    """

    serialized_binary_rows: bytes


@dataclass(frozen=True)
class ArrowRecordBatch:
    """
    Columnar payload.

    Attributes:
        serialized_record_batch (bytes): One Arrow IPC record batch message,
            without the schema message.
    """

    serialized_record_batch: bytes


Payload = Union[AvroRows, ArrowRecordBatch]

_PAYLOAD_FORMATS = {
    AvroRows: DataFormat.Avro,
    ArrowRecordBatch: DataFormat.Arrow,
}


@dataclass(frozen=True)
class ReadRowsResponse:
    """
    A single batch received from the read stream.

    Attributes:
        rows (Payload): The serialized rows, either `AvroRows` or `ArrowRecordBatch`.
        row_count (int): Number of rows the server declares in the batch; 0 when unknown.
        batch_id (Optional[str]): Identity used to give context to decode errors
            (e.g. "<stream name>@<offset>").
        unknown_fields (Mapping[int, bytes]): Raw wire fields the transport could not
            map onto this envelope, by field number. Only reported to the tracer.
    """

    rows: Payload
    row_count: int = 0
    batch_id: Optional[str] = None
    unknown_fields: Mapping[int, bytes] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self):
        if type(self.rows) not in _PAYLOAD_FORMATS:
            raise TypeError(
                f"Unsupported payload type '{type(self.rows).__name__}', "
                "expected AvroRows or ArrowRecordBatch"
            )
        if self.row_count < 0:
            raise ValueError(f"Negative row count {self.row_count}")

    @property
    def format(self) -> DataFormat:
        """Returns the wire format tag of the payload carried by this response."""
        return _PAYLOAD_FORMATS[type(self.rows)]

    @property
    def payload(self) -> bytes:
        """Returns the raw serialized bytes of whichever payload is present."""
        if isinstance(self.rows, AvroRows):
            return self.rows.serialized_binary_rows
        return self.rows.serialized_record_batch

    @classmethod
    def avro(cls, serialized_binary_rows: bytes, **kwargs) -> "ReadRowsResponse":
        return cls(rows=AvroRows(serialized_binary_rows), **kwargs)

    @classmethod
    def arrow(cls, serialized_record_batch: bytes, **kwargs) -> "ReadRowsResponse":
        return cls(rows=ArrowRecordBatch(serialized_record_batch), **kwargs)
