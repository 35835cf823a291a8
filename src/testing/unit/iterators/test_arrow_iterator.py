import pyarrow as pa
import pytest

from rowbridge import (
    ArrowBinaryIterator,
    ArrowDecodePlan,
    ArrowRowView,
    IteratorState,
    MalformedRecordBatch,
    Row,
    SchemaMismatch,
    WarehouseField,
    WarehouseSchema,
    reconcile,
)
from rowbridge.schema import parse_arrow_schema
from testing.helpers import arrow_batch_bytes


def _plan(warehouse_schema, schema_bytes, columns, user_schema=None) -> ArrowDecodePlan:
    return ArrowDecodePlan.build(
        columns,
        parse_arrow_schema(schema_bytes),
        reconcile(warehouse_schema, columns, user_schema),
    )


@pytest.fixture(scope="module")
def score_plan(scores_warehouse_schema, scores_arrow_schema_bytes) -> ArrowDecodePlan:
    return _plan(scores_warehouse_schema, scores_arrow_schema_bytes, ["score"])


def test_single_column_projection(score_plan, scores_arrow_payload):
    it = ArrowBinaryIterator(score_plan, scores_arrow_payload)
    assert it.num_rows == 3
    assert it.next() == [0.1]
    assert it.next() == [0.2]
    assert it.next() == [0.3]
    assert not it.has_next()
    assert it.state is IteratorState.Exhausted
    assert it.next() is None


def test_reordered_projection(
    scores_warehouse_schema, scores_arrow_schema_bytes, scores_arrow_payload
):
    plan = _plan(scores_warehouse_schema, scores_arrow_schema_bytes, ["name", "id"])
    rows = [row.as_tuple() for row in ArrowBinaryIterator(plan, scores_arrow_payload)]
    assert rows == [("a", 1), ("b", 2), ("c", 3)]


def test_declared_row_count(score_plan, scores_arrow_payload):
    it = ArrowBinaryIterator(score_plan, scores_arrow_payload, row_count=3)
    assert len(list(it)) == 3

    with pytest.raises(MalformedRecordBatch) as exc:
        ArrowBinaryIterator(score_plan, scores_arrow_payload, row_count=4, batch_id="s0@3")
    assert exc.value.batch_id == "s0@3"


@pytest.mark.parametrize("cut", [8, 64])
def test_truncated_batch(score_plan, scores_arrow_payload, cut):
    with pytest.raises(MalformedRecordBatch):
        ArrowBinaryIterator(score_plan, scores_arrow_payload[:-cut])


def test_garbage_batch(score_plan, tracer):
    with pytest.raises(MalformedRecordBatch):
        ArrowBinaryIterator(score_plan, b"\x00\x01\x02garbage", tracer=tracer)
    # nothing was parsed, so nothing is reported
    assert tracer.events == []


def test_row_count_mismatch_is_not_traced(score_plan, scores_arrow_payload, tracer):
    with pytest.raises(MalformedRecordBatch):
        ArrowBinaryIterator(score_plan, scores_arrow_payload, row_count=4, tracer=tracer)
    assert tracer.count("rows_parse_started") == 0


def test_empty_batch(score_plan, scores_arrow_schema, tracer):
    payload = arrow_batch_bytes(pa.RecordBatch.from_pylist([], schema=scores_arrow_schema))
    it = ArrowBinaryIterator(score_plan, payload, tracer=tracer)
    assert it.num_rows == 0
    assert list(it) == []
    assert tracer.args_of("rows_parse_finished") == [(0,)]


def test_user_schema_cast(
    scores_warehouse_schema, scores_arrow_schema_bytes, scores_arrow_payload
):
    user = pa.schema([pa.field("id", pa.float64(), nullable=False)])
    plan = _plan(scores_warehouse_schema, scores_arrow_schema_bytes, ["id"], user)
    values = [row[0] for row in ArrowBinaryIterator(plan, scores_arrow_payload)]
    assert values == [1.0, 2.0, 3.0]
    assert all(isinstance(v, float) for v in values)


def test_unsafe_arrow_column_type(scores_warehouse_schema):
    # the stream writes `score` as float64, the output asks for float32
    schema = pa.schema([pa.field("score", pa.float64())])
    output = pa.schema([pa.field("score", pa.float32())])
    with pytest.raises(SchemaMismatch):
        ArrowDecodePlan.build(["score"], parse_arrow_schema(schema.serialize().to_pybytes()), output)


def test_column_missing_from_arrow_schema(scores_arrow_schema_bytes):
    output = pa.schema([pa.field("other", pa.int64())])
    with pytest.raises(SchemaMismatch):
        ArrowDecodePlan.build(["other"], parse_arrow_schema(scores_arrow_schema_bytes), output)


def test_views_outlive_further_pulls(score_plan, scores_arrow_payload):
    it = ArrowBinaryIterator(score_plan, scores_arrow_payload)
    first = it.next()
    rest = list(it)
    assert isinstance(first, ArrowRowView)
    assert first.index == 0
    assert first[0] == 0.1
    assert first[-1] == 0.1
    assert [r.index for r in rest] == [1, 2]

    copied = first.copy()
    assert isinstance(copied, Row)
    assert copied == first
    with pytest.raises(IndexError):
        first[1]


def test_close_releases_batch(score_plan, scores_arrow_payload, tracer):
    it = ArrowBinaryIterator(score_plan, scores_arrow_payload, tracer=tracer)
    it.next()
    it.close()
    assert it.state is IteratorState.Closed
    assert not it.has_next()
    assert tracer.names() == ["rows_parse_started"]


def test_from_schema(scores_arrow_schema_bytes, scores_arrow_payload):
    it = ArrowBinaryIterator.from_schema(
        ["score", "name"], parse_arrow_schema(scores_arrow_schema_bytes), scores_arrow_payload
    )
    assert it.output_schema.names == ["score", "name"]
    assert list(it)[2] == [0.3, "c"]


def test_map_output_from_key_value_entries():
    warehouse = WarehouseSchema.of(
        WarehouseField(
            name="attrs",
            type="RECORD",
            mode="REPEATED",
            fields=(
                WarehouseField(name="key", type="STRING", mode="REQUIRED"),
                WarehouseField(name="value", type="INT64"),
            ),
        )
    )
    entry = pa.struct(
        [pa.field("key", pa.string(), nullable=False), pa.field("value", pa.int64())]
    )
    wire_schema = pa.schema(
        [pa.field("attrs", pa.list_(pa.field("element", entry, nullable=False)), nullable=False)]
    )
    batch = pa.record_batch(
        [
            pa.array(
                [[{"key": "a", "value": 1}], []],
                type=wire_schema.field("attrs").type,
            )
        ],
        schema=wire_schema,
    )
    plan = _plan(warehouse, wire_schema.serialize().to_pybytes(), ["attrs"])
    rows = list(ArrowBinaryIterator(plan, arrow_batch_bytes(batch)))
    assert [row[0] for row in rows] == [{"a": 1}, {}]


def test_batch_written_with_another_layout(score_plan):
    # one column on the wire, three in the stream schema
    other = pa.record_batch([pa.array([1.5, 2.5])], names=["score"])
    with pytest.raises(MalformedRecordBatch):
        ArrowBinaryIterator(score_plan, arrow_batch_bytes(other))
