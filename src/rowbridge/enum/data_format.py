from enum import StrEnum


class DataFormat(StrEnum):
    """
    Defines the wire format of the rows carried by a read-rows response.

    The format is fixed per stream by how the read session was created, and
    selects which binary iterator decodes each response of the stream.
    """

    Avro = "avro"
    """
    Row-oriented encoding: records are serialized one after another as
    schemaless Avro binary datums and decoded by scanning forward.
    """

    Arrow = "arrow"
    """
    Columnar encoding: a batch of rows is serialized as an Arrow IPC record
    batch message and decoded in one shot, then transposed to rows.
    """
