"""Run configuration schema."""
from .options import (
    MergeOptions,
    ATLAS_SIZES,
    LOD_ERRORS,
)

__all__ = [
    "MergeOptions",
    "ATLAS_SIZES",
    "LOD_ERRORS",
]
