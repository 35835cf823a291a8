"""
Row Iterator Base Module.

This module defines `RowIterator`, the single-pass, forward-only cursor over
the decoded rows of one read-rows response. Concrete iterators implement how
the next row is decoded; the base class owns the state machine and the tracer
notifications:

    Ready -> (Decoding <-> Ready) -> Exhausted
    any non-terminal state -> Closed (consumer stopped early)

A decode error leaves the iterator Exhausted: no partial row is ever produced.
"""

from abc import ABC, abstractmethod
from typing import Optional

import pyarrow as pa

from ..enum import IteratorState
from ..models.row import StructuredRow
from ..tracing import NO_OP_TRACER, ReadRowsTracer


class RowIterator(ABC):
    """
    Iterator over the structured rows of one batch.

    Supports the Python iterator protocol as well as an explicit
    `has_next()` / `next()` pull contract, where `next()` returns None instead
    of raising at the end.
    """

    def __init__(
        self,
        output_schema: pa.Schema,
        payload_size: int,
        tracer: Optional[ReadRowsTracer] = None,
        batch_id: Optional[str] = None,
    ):
        self._output_schema = output_schema
        self._tracer = tracer or NO_OP_TRACER
        self._batch_id = batch_id
        self._state = IteratorState.Ready
        self._rows_produced = 0

        self._tracer.rows_parse_started(payload_size)

    # --- Subclass contract ---

    @abstractmethod
    def _has_more(self) -> bool:
        """Tells whether the underlying payload holds at least one more row."""

    @abstractmethod
    def _decode_next(self) -> StructuredRow:
        """Decodes and returns the next row. Called only when `_has_more()` is True."""

    @abstractmethod
    def _release(self):
        """Drops the decode buffers owned by the iterator."""

    # --- Public API ---

    @property
    def output_schema(self) -> pa.Schema:
        return self._output_schema

    @property
    def state(self) -> IteratorState:
        return self._state

    @property
    def rows_produced(self) -> int:
        return self._rows_produced

    @property
    def batch_id(self) -> Optional[str]:
        return self._batch_id

    def has_next(self) -> bool:
        """
        Tells whether a further pull will produce a row.

        Reaching the end of the batch transitions the iterator to Exhausted.
        """
        if self._state in (IteratorState.Exhausted, IteratorState.Closed):
            return False
        if self._has_more():
            return True
        self._exhaust()
        return False

    def next(self) -> Optional[StructuredRow]:
        """
        Returns the next row or None if finished (Non-raising equivalent of __next__).
        """
        try:
            return self.__next__()
        except StopIteration:
            return None

    def __iter__(self) -> "RowIterator":
        """Returns self as iterator."""
        return self

    def __next__(self) -> StructuredRow:
        """
        Decodes and returns the next row.

        Raises:
            StopIteration: When the batch is exhausted or the iterator was closed.
            RowBridgeError: When the payload cannot be decoded; the iterator is
                Exhausted afterwards.
        """
        if not self.has_next():
            raise StopIteration

        self._state = IteratorState.Decoding
        try:
            row = self._decode_next()
        except Exception:
            self._state = IteratorState.Exhausted
            self._release()
            raise

        self._rows_produced += 1
        self._state = IteratorState.Ready
        return row

    def close(self):
        """
        Stops the iteration before exhaustion and releases the decode buffers.
        Closing an exhausted or closed iterator does nothing.
        """
        if self._state in (IteratorState.Exhausted, IteratorState.Closed):
            return
        self._state = IteratorState.Closed
        self._release()

    def __enter__(self) -> "RowIterator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # --- Internals ---

    def _exhaust(self):
        self._state = IteratorState.Exhausted
        self._release()
        self._tracer.rows_parse_finished(self._rows_produced)
        self._tracer.next_batch_needed()
