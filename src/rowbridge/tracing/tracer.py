"""
Read-Rows Tracer Module.

Defines `ReadRowsTracer`, the observer the decode layer notifies of byte counts,
row counts and batch boundaries. Every hook is a no-op by default, so that an
absent tracer (replaced by `NoOpTracer`) never changes the decoding control flow.

Notification points:

    transport        read_rows_response_requested() / read_rows_response_obtained(bytes)
    iterator init    rows_parse_started(bytes)
    iterator end     rows_parse_finished(rows), next_batch_needed()
    converter        start_stream(), finished(), unknown_fields_observed(...)
"""

from typing import Mapping, Optional


class ReadRowsTracer:
    """
    Base class of read-rows tracers.

    Subclasses override only the hooks they care about.
    """

    def start_stream(self) -> None:
        """The stream has been set up and the first batch is about to be read."""

    def read_rows_response_requested(self) -> None:
        """The consumer asked the transport for the next batch."""

    def read_rows_response_obtained(self, num_bytes: int) -> None:
        """A batch of `num_bytes` serialized bytes was received."""

    def rows_parse_started(self, num_bytes: int) -> None:
        """Decoding of a batch of `num_bytes` serialized bytes started (an iterator was built)."""

    def rows_parse_finished(self, rows: int) -> None:
        """A batch iterator was exhausted after producing `rows` rows."""

    def next_batch_needed(self) -> None:
        """The current batch is fully consumed."""

    def finished(self) -> None:
        """The stream is over."""

    def unknown_fields_observed(
        self, batch_id: Optional[str], fields: Mapping[int, bytes]
    ) -> None:
        """
        Debug hook: a response carried wire fields the transport could not map.

        Args:
            batch_id (Optional[str]): Identity of the response, if known.
            fields (Mapping[int, bytes]): The raw fields, by wire field number.
        """

    def fork_with_prefix(self, prefix: str) -> "ReadRowsTracer":
        """Returns a tracer for a sibling stream, e.g. one per read stream of a session."""
        return self


class NoOpTracer(ReadRowsTracer):
    """The tracer used when none is provided."""


NO_OP_TRACER = NoOpTracer()
