"""
Stream Reading Module.

This module provides the `ReadRowsStreamer`, an iterator that walks all the
responses of one read stream through a `ReadRowsConverter` and yields their
rows as a single sequence, moving to the next response when the current batch
is exhausted.

The responses themselves come from the transport layer (any iterable of
`ReadRowsResponse`); the streamer neither fetches nor retries them.
"""

import logging as log
from typing import Iterable, Iterator, Optional

from ..converter import ReadRowsConverter
from ..iterators import RowIterator
from ..models.response import ReadRowsResponse
from ..models.row import StructuredRow


class ReadRowsStreamer:
    """
    Streams the rows of every response of a read stream.

    Example:
        >>> streamer = ReadRowsStreamer(converter, transport.read_rows(stream_name))
        >>> for row in streamer:
        ...     consume(row)
    """

    _converter: ReadRowsConverter
    _responses: Iterator[ReadRowsResponse]
    _current: Optional[RowIterator]

    def __init__(
        self, converter: ReadRowsConverter, responses: Iterable[ReadRowsResponse]
    ):
        """
        Args:
            converter (ReadRowsConverter): The converter bound to the stream.
            responses (Iterable[ReadRowsResponse]): The responses, in stream order.
        """
        self._converter = converter
        self._responses = iter(responses)
        self._current = None
        self._batches_read = 0
        self._rows_read = 0
        self._closed = False

    @property
    def batches_read(self) -> int:
        """Number of responses converted so far."""
        return self._batches_read

    @property
    def rows_read(self) -> int:
        """Number of rows returned so far."""
        return self._rows_read

    def _advance_to_next_batch(self) -> bool:
        """
        Converts the next response and makes its iterator the current one.

        Returns:
            bool: True if a new batch was loaded; False if the stream is exhausted.
        """
        tracer = self._converter.tracer
        tracer.read_rows_response_requested()
        try:
            response = next(self._responses)
        except StopIteration:
            # Normal end of stream
            self._current = None
            return False

        tracer.read_rows_response_obtained(
            self._converter.get_batch_size_in_bytes(response)
        )
        self._current = self._converter.convert(response)
        self._batches_read += 1
        return True

    def next(self) -> Optional[StructuredRow]:
        """
        Returns the next row or None if finished (Non-raising equivalent of __next__).
        """
        try:
            return self.__next__()
        except StopIteration:
            return None

    def __iter__(self) -> "ReadRowsStreamer":
        """Returns self as iterator."""
        return self

    def __next__(self) -> StructuredRow:
        """
        Returns the next row of the stream, loading responses as needed.

        Raises:
            StopIteration: When every response has been consumed.
            RowBridgeError: When a response cannot be decoded.
        """
        if self._closed:
            raise StopIteration

        while True:
            if self._current is None and not self._advance_to_next_batch():
                self.close()
                raise StopIteration

            assert self._current is not None
            row = self._current.next()
            if row is not None:
                self._rows_read += 1
                return row

            # Current batch finished; loop back to load the next one
            self._current = None

    def close(self):
        """Stops the stream, releasing the current batch and closing the converter."""
        if self._closed:
            return
        self._closed = True
        if self._current is not None:
            try:
                self._current.close()
            except Exception as e:
                log.warning(f"Error releasing batch {self._current.batch_id}: {e}")
            finally:
                self._current = None
        self._converter.close()
        log.info(
            f"ReadRowsStreamer closed after {self._batches_read} batches "
            f"and {self._rows_read} rows."
        )

    def __enter__(self) -> "ReadRowsStreamer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
