"""
Base Model Module.

This module defines the foundational class for the catalog-side data models of
the library. Models are validated with Pydantic when the stream is set up and are
immutable afterwards, so they can be shared read-only by every iterator of a stream.
"""

import pydantic


class BaseModel(pydantic.BaseModel):
    """
    The root base class for the library data models.

    It inherits from `pydantic.BaseModel` to provide runtime type checking and
    initialization logic, and freezes instances so that a schema cannot change
    for the lifetime of a stream.
    """

    model_config = pydantic.ConfigDict(frozen=True, extra="forbid")
