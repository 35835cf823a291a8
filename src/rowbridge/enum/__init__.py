from .data_format import DataFormat as DataFormat
from .iterator_state import IteratorState as IteratorState
