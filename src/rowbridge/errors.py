"""
Errors Module.

Defines the exceptions raised by the decode layer. Every error is local to
decoding and is surfaced immediately to the caller of the converter factories,
`convert()` or the iterator pull that detected it. None of them is retried here.
"""

from typing import Optional


class RowBridgeError(Exception):
    """
    Base class for all decode-layer errors.

    Attributes:
        batch_id (Optional[str]): Identity of the batch being decoded, when known.
        offset (Optional[int]): Byte offset in the payload where the failure was detected.
    """

    def __init__(
        self,
        msg: str,
        batch_id: Optional[str] = None,
        offset: Optional[int] = None,
    ):
        self.batch_id = batch_id
        self.offset = offset
        super().__init__(self._with_context(msg))

    def _with_context(self, msg: str) -> str:
        context = []
        if self.batch_id is not None:
            context.append(f"batch '{self.batch_id}'")
        if self.offset is not None:
            context.append(f"byte offset {self.offset}")
        if not context:
            return msg
        return f"{msg} ({', '.join(context)})"


class SchemaParseError(RowBridgeError, ValueError):
    """The per-stream format schema (Avro JSON or Arrow IPC) could not be parsed."""


class SchemaMismatch(RowBridgeError, ValueError):
    """
    The requested projection cannot be served: a column is missing from the
    warehouse or format schema, or a user-declared type is not a safe
    conversion of the warehouse type.
    """


class TruncatedRecord(RowBridgeError):
    """An Avro payload ends in the middle of a record."""


class CorruptRecord(RowBridgeError):
    """An Avro record cannot be decoded with the stream schema (e.g. a bad union branch)."""


class MalformedRecordBatch(RowBridgeError):
    """An Arrow record batch disagrees with its declared schema or row count."""


class BatchFormatMismatch(RowBridgeError):
    """A response carries a payload format different from the stream's format."""
