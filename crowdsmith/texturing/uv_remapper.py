"""
UV remapping into atlas tiles.
"""

import numpy as np

from crowdsmith.document.model import Accessor


def remap_uvs_to_atlas(uvs: Accessor, index: int, atlas_width: int) -> Accessor:
    """
    Scale and offset a TEXCOORD accessor into tile ``index``.

    u' = u / w + (index mod w) / w
    v' = v / w + floor(index / w) / w

    Input is expected in [0, 1); values outside it are not clamped and will
    sample neighbouring tiles.

    Args:
        uvs: VEC2 accessor, modified in place
        index: Tile index of the owning primitive
        atlas_width: Tiles per atlas row

    Returns:
        The same accessor
    """
    values = uvs.to_float().astype(np.float64)
    values /= atlas_width
    values[:, 0] += (index % atlas_width) / atlas_width
    values[:, 1] += (index // atlas_width) / atlas_width
    return uvs.set_float(values)
