"""
Logging Tracer Module.

`LoggingReadRowsTracer` accumulates per-stream counters and durations and
periodically logs them. Logging happens once every `log_interval_batches`
batches and when the stream finishes, never per row.
"""

import logging as log
import time
from dataclasses import dataclass
from typing import Mapping, Optional

from .tracer import ReadRowsTracer

_DEFAULT_LOG_INTERVAL_BATCHES = 100


class DurationTimer:
    """Accumulates the duration of repeated start/finish intervals."""

    def __init__(self):
        self._start_ns: Optional[int] = None
        self.samples: int = 0
        self.accumulated_ns: int = 0

    def start(self):
        self._start_ns = time.perf_counter_ns()

    def finish(self):
        # finish without start is ignored (e.g. the first batch is never "requested")
        if self._start_ns is None:
            return
        self.accumulated_ns += time.perf_counter_ns() - self._start_ns
        self.samples += 1
        self._start_ns = None

    @property
    def average_ms(self) -> float:
        if self.samples == 0:
            return 0.0
        return self.accumulated_ns / self.samples / 1e6


@dataclass(frozen=True)
class TracerStats:
    """Snapshot of a `LoggingReadRowsTracer` counters."""

    stream_name: str
    batches: int
    rows: int
    bytes: int
    parsed_bytes: int
    parse_ms: float
    service_ms: float
    unknown_field_batches: int


class LoggingReadRowsTracer(ReadRowsTracer):
    """
    Tracer logging throughput statistics of one read stream.

    Example:
        >>> tracer = LoggingReadRowsTracer("projects/p/streams/s0", log_interval_batches=50)
        >>> converter = ReadRowsConverter.arrow(..., tracer=tracer)
    """

    def __init__(
        self,
        stream_name: str,
        log_interval_batches: int = _DEFAULT_LOG_INTERVAL_BATCHES,
    ):
        """
        Args:
            stream_name (str): Name used to tag every log line.
            log_interval_batches (int): Number of batches between two statistics lines.
        """
        if log_interval_batches < 1:
            raise ValueError("log_interval_batches must be at least 1")

        self.stream_name = stream_name
        self.log_interval_batches = log_interval_batches

        self._parse_timer = DurationTimer()
        self._service_timer = DurationTimer()
        self._batches = 0
        self._rows = 0
        self._bytes = 0
        self._parsed_bytes = 0
        self._unknown_field_batches = 0
        self._started_at: Optional[float] = None
        self._finished = False

    def start_stream(self) -> None:
        self._started_at = time.monotonic()
        log.debug(f"[{self.stream_name}] read stream started")

    def read_rows_response_requested(self) -> None:
        self._service_timer.start()

    def read_rows_response_obtained(self, num_bytes: int) -> None:
        self._service_timer.finish()
        self._bytes += num_bytes

    def rows_parse_started(self, num_bytes: int) -> None:
        self._parse_timer.start()
        self._parsed_bytes += num_bytes

    def rows_parse_finished(self, rows: int) -> None:
        self._parse_timer.finish()
        self._rows += rows
        self._batches += 1
        if self._batches % self.log_interval_batches == 0:
            self._log_stats()

    def unknown_fields_observed(
        self, batch_id: Optional[str], fields: Mapping[int, bytes]
    ) -> None:
        self._unknown_field_batches += 1
        log.debug(
            f"[{self.stream_name}] batch {batch_id} carries unknown wire fields "
            f"{sorted(fields)}"
        )

    def finished(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._log_stats(final=True)

    def fork_with_prefix(self, prefix: str) -> "LoggingReadRowsTracer":
        return LoggingReadRowsTracer(
            stream_name=f"{prefix}{self.stream_name}",
            log_interval_batches=self.log_interval_batches,
        )

    def stats(self) -> TracerStats:
        return TracerStats(
            stream_name=self.stream_name,
            batches=self._batches,
            rows=self._rows,
            bytes=self._bytes,
            parsed_bytes=self._parsed_bytes,
            parse_ms=self._parse_timer.accumulated_ns / 1e6,
            service_ms=self._service_timer.accumulated_ns / 1e6,
            unknown_field_batches=self._unknown_field_batches,
        )

    def _log_stats(self, final: bool = False):
        elapsed = (
            time.monotonic() - self._started_at if self._started_at is not None else 0.0
        )
        prefix = "finished" if final else "progress"
        log.info(
            f"[{self.stream_name}] {prefix}: batches={self._batches} rows={self._rows} "
            f"bytes={self._bytes} avg_parse_ms={self._parse_timer.average_ms:.3f} "
            f"avg_service_ms={self._service_timer.average_ms:.3f} elapsed_s={elapsed:.3f}"
        )
