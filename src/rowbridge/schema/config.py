"""
Configuration Module.

This module defines the configuration structure used to control how warehouse
field types are mapped onto output (Arrow) data types.
"""

from dataclasses import dataclass

# Precision and scale the warehouse reports for an unparameterized BIGNUMERIC.
_BIGNUMERIC_DEFAULT_PRECISION = 76
_BIGNUMERIC_DEFAULT_SCALE = 38


@dataclass(frozen=True)
class SchemaConvertersConfig:
    """
    Configuration settings for warehouse to output type conversion.

    Attributes:
        allow_map_type_conversion (bool): Map a REPEATED RECORD made of exactly a
            REQUIRED `key` and a `value` sub-field onto a map type instead of a
            list of structs.
        bignumeric_default_precision (int): Precision used for BIGNUMERIC fields.
        bignumeric_default_scale (int): Scale used for BIGNUMERIC fields.
    """

    allow_map_type_conversion: bool = True
    bignumeric_default_precision: int = _BIGNUMERIC_DEFAULT_PRECISION
    bignumeric_default_scale: int = _BIGNUMERIC_DEFAULT_SCALE

    def __post_init__(self):
        if not 0 <= self.bignumeric_default_scale <= self.bignumeric_default_precision:
            raise ValueError(
                f"Invalid BIGNUMERIC scale {self.bignumeric_default_scale} "
                f"for precision {self.bignumeric_default_precision}"
            )
        if not 1 <= self.bignumeric_default_precision <= 76:
            raise ValueError(
                f"BIGNUMERIC precision must be in [1, 76], got {self.bignumeric_default_precision}"
            )


DEFAULT_CONFIG = SchemaConvertersConfig()
