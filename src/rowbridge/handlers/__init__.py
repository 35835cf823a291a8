from .stream_reader import ReadRowsStreamer as ReadRowsStreamer
