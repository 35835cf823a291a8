from .base import RowIterator as RowIterator
from .avro_iterator import (
    AvroBinaryIterator as AvroBinaryIterator,
    AvroDecodePlan as AvroDecodePlan,
)
from .arrow_iterator import (
    ArrowBinaryIterator as ArrowBinaryIterator,
    ArrowDecodePlan as ArrowDecodePlan,
)
