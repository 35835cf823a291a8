from .tracer import (
    NO_OP_TRACER as NO_OP_TRACER,
    NoOpTracer as NoOpTracer,
    ReadRowsTracer as ReadRowsTracer,
)
from .logging_tracer import (
    LoggingReadRowsTracer as LoggingReadRowsTracer,
    TracerStats as TracerStats,
)
