from typing import Any, Dict, List

import pyarrow as pa
import pytest

from rowbridge import WarehouseField, WarehouseSchema
from testing.helpers import (
    RecordingTracer,
    arrow_batch_bytes,
    arrow_schema_bytes,
    avro_payload,
    avro_schema_json,
)

SCORES_RECORDS: List[Dict[str, Any]] = [
    {"id": 1, "name": "a", "score": 0.5},
    {"id": 2, "name": "b", "score": 1.5},
]


@pytest.fixture(scope="session")
def scores_warehouse_schema() -> WarehouseSchema:
    """The `{id: int, name: string, score: double}` table."""
    return WarehouseSchema.of(
        WarehouseField(name="id", type="INTEGER", mode="REQUIRED"),
        WarehouseField(name="name", type="STRING"),
        WarehouseField(name="score", type="FLOAT"),
    )


@pytest.fixture(scope="session")
def scores_avro_schema() -> str:
    return avro_schema_json(
        "__root__",
        [
            {"name": "id", "type": "long"},
            {"name": "name", "type": ["null", "string"]},
            {"name": "score", "type": ["null", "double"]},
        ],
    )


@pytest.fixture(scope="session")
def scores_avro_payload(scores_avro_schema) -> bytes:
    """Two records: {id: 1, name: "a", score: 0.5}, {id: 2, name: "b", score: 1.5}"""
    return avro_payload(scores_avro_schema, SCORES_RECORDS)


@pytest.fixture(scope="session")
def scores_arrow_schema() -> pa.Schema:
    return pa.schema(
        [
            pa.field("id", pa.int64(), nullable=False),
            pa.field("name", pa.string()),
            pa.field("score", pa.float64()),
        ]
    )


@pytest.fixture(scope="session")
def scores_arrow_schema_bytes(scores_arrow_schema) -> bytes:
    return arrow_schema_bytes(scores_arrow_schema)


@pytest.fixture(scope="session")
def scores_arrow_batch(scores_arrow_schema) -> pa.RecordBatch:
    """Three rows, with the score column [0.1, 0.2, 0.3]."""
    return pa.record_batch(
        [
            pa.array([1, 2, 3], type=pa.int64()),
            pa.array(["a", "b", "c"], type=pa.string()),
            pa.array([0.1, 0.2, 0.3], type=pa.float64()),
        ],
        schema=scores_arrow_schema,
    )


@pytest.fixture(scope="session")
def scores_arrow_payload(scores_arrow_batch) -> bytes:
    return arrow_batch_bytes(scores_arrow_batch)


@pytest.fixture(scope="function")
def tracer() -> RecordingTracer:
    """A fresh recording tracer FOR EACH function using this fixture"""
    return RecordingTracer()
