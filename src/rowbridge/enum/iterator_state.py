from enum import Enum


class IteratorState(Enum):
    """
    Represents the lifecycle state of a row iterator over a single batch.
    """

    Ready = "ready"  # A row may be pulled.
    Decoding = "decoding"  # A pull is in progress.
    Exhausted = "exhausted"  # Every row has been produced, or decoding failed.
    Closed = "closed"  # Released by the consumer before exhaustion.
