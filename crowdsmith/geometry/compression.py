"""
Draco geometry compression (KHR_draco_mesh_compression).

Compression happens at write time: compress_geometry() attaches settings to
the document and the GLB writer calls DracoSettings.encode() for every
indexed triangle primitive. Positions and indices go through Draco; the
remaining attributes are written as plain accessors alongside.
"""

import logging
from dataclasses import dataclass

import DracoPy
import numpy as np

from crowdsmith.document.model import Document, Primitive

logger = logging.getLogger(__name__)

MIN_LEVEL = 0
MAX_LEVEL = 10
QUANTIZATION_BITS = 14


@dataclass
class DracoSettings:
    """Encoder configuration for one document."""
    level: int = 7
    quantization_bits: int = QUANTIZATION_BITS

    @property
    def encode_speed(self) -> int:
        return MAX_LEVEL - self.level

    @property
    def decode_speed(self) -> int:
        return MAX_LEVEL - self.level

    def encode(self, primitive: Primitive) -> bytes:
        """Encode a primitive's positions and triangle indices."""
        points = primitive.get_attribute('POSITION').to_float()
        faces = primitive.get_indices().array.reshape(-1, 3).astype(np.uint32)
        return DracoPy.encode(
            points,
            faces,
            quantization_bits=self.quantization_bits,
            compression_level=self.level,
            preserve_order=True,
        )


def compress_geometry(document: Document, level: int) -> DracoSettings:
    """
    Enable Draco compression for the next write of ``document``.

    Args:
        document: Document to compress
        level: Compression level, clamped to 0-10; speed is ``10 - level``

    Returns:
        The settings attached to the document
    """
    level = min(MAX_LEVEL, max(MIN_LEVEL, int(level)))
    settings = DracoSettings(level=level)
    document.draco = settings
    logger.info(
        f"Draco compression level {level} "
        f"(encode speed {settings.encode_speed}, decode speed {settings.decode_speed})"
    )
    return settings
