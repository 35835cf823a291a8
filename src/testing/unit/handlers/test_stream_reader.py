import logging

import pytest

from rowbridge import (
    LoggingReadRowsTracer,
    ReadRowsConverter,
    ReadRowsResponse,
    ReadRowsStreamer,
    TruncatedRecord,
)


@pytest.fixture
def avro_responses(scores_avro_payload):
    return [
        ReadRowsResponse.avro(scores_avro_payload, row_count=2, batch_id="s0@0"),
        ReadRowsResponse.avro(b"", row_count=0, batch_id="s0@2"),
        ReadRowsResponse.avro(scores_avro_payload, row_count=2, batch_id="s0@2"),
    ]


@pytest.fixture
def converter(scores_warehouse_schema, scores_avro_schema, tracer) -> ReadRowsConverter:
    return ReadRowsConverter.avro(
        scores_warehouse_schema, ["id", "name"], scores_avro_schema, tracer=tracer
    )


def test_rows_of_every_batch(converter, avro_responses):
    streamer = ReadRowsStreamer(converter, avro_responses)
    rows = [row.as_tuple() for row in streamer]
    assert rows == [(1, "a"), (2, "b"), (1, "a"), (2, "b")]
    assert streamer.batches_read == 3
    assert streamer.rows_read == 4
    assert streamer.next() is None


def test_tracer_sequence(converter, avro_responses, scores_avro_payload, tracer):
    list(ReadRowsStreamer(converter, avro_responses[:1]))
    assert tracer.names() == [
        "start_stream",
        "read_rows_response_requested",
        "read_rows_response_obtained",
        "rows_parse_started",
        "rows_parse_finished",
        "next_batch_needed",
        "read_rows_response_requested",
        "finished",
    ]
    assert tracer.args_of("read_rows_response_obtained") == [(len(scores_avro_payload),)]


def test_early_close(converter, avro_responses, tracer):
    with ReadRowsStreamer(converter, avro_responses) as streamer:
        assert streamer.next() == [1, "a"]
    assert streamer.next() is None
    assert streamer.batches_read == 1
    assert tracer.count("finished") == 1
    assert tracer.count("rows_parse_finished") == 0


def test_decode_error_propagates(converter, scores_avro_payload):
    streamer = ReadRowsStreamer(
        converter, [ReadRowsResponse.avro(scores_avro_payload[:-3], batch_id="s0@0")]
    )
    assert streamer.next() == [1, "a"]
    with pytest.raises(TruncatedRecord):
        streamer.next()
    streamer.close()


def test_logging_tracer_stats(scores_warehouse_schema, scores_avro_schema, avro_responses, caplog):
    tracer = LoggingReadRowsTracer("s0", log_interval_batches=2)
    converter = ReadRowsConverter.avro(
        scores_warehouse_schema, ["id"], scores_avro_schema, tracer=tracer
    )
    with caplog.at_level(logging.INFO):
        rows = list(ReadRowsStreamer(converter, avro_responses))

    assert len(rows) == 4
    stats = tracer.stats()
    assert stats.batches == 3
    assert stats.rows == 4
    assert stats.bytes == stats.parsed_bytes == 2 * len(avro_responses[0].payload)
    assert stats.unknown_field_batches == 0

    messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith("[s0]")]
    assert len(messages) == 2
    assert "progress" in messages[0]
    assert "finished" in messages[1] and "rows=4" in messages[1]


def test_logging_tracer_fork_and_validation():
    tracer = LoggingReadRowsTracer("stream", log_interval_batches=5)
    fork = tracer.fork_with_prefix("session/")
    assert fork.stream_name == "session/stream"
    assert fork.log_interval_batches == 5
    assert fork is not tracer

    with pytest.raises(ValueError):
        LoggingReadRowsTracer("stream", log_interval_batches=0)


def test_logging_tracer_unknown_fields(caplog):
    tracer = LoggingReadRowsTracer("s1")
    with caplog.at_level(logging.DEBUG):
        tracer.unknown_fields_observed("s1@0", {12: b"", 7: b"x"})
    assert tracer.stats().unknown_field_batches == 1
    assert "[7, 12]" in caplog.text
