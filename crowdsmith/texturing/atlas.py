"""
Texture atlas packing.

Every consolidated primitive owns one square tile of a per-slot atlas. Tiles
are laid out row-major on an atlas_width x atlas_width grid, where
atlas_width = ceil(sqrt(primitive_count)). Each atlas starts out filled with
a neutral color for its slot so untextured tiles still shade sensibly.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

import numpy as np

from crowdsmith.document.model import Document, Material, Texture, TextureChannel, set_channel_texture
from . import codec

logger = logging.getLogger(__name__)

DEFAULT_ATLAS_MIME = "image/jpeg"


class AtlasSlot(str, Enum):
    """Material inputs that get an atlas."""
    BASE = "base"
    METALLIC_ROUGHNESS = "metallic-roughness"
    NORMALS = "normals"
    OCCLUSION = "occlusion"

    @property
    def channel(self) -> TextureChannel:
        return SLOT_CHANNELS[self]


SLOT_CHANNELS: Dict[AtlasSlot, TextureChannel] = {
    AtlasSlot.BASE: TextureChannel.BASE_COLOR,
    AtlasSlot.METALLIC_ROUGHNESS: TextureChannel.METALLIC_ROUGHNESS,
    AtlasSlot.NORMALS: TextureChannel.NORMAL,
    AtlasSlot.OCCLUSION: TextureChannel.OCCLUSION,
}

# Neutral RGBA per slot. Metallic-roughness packs roughness in G and
# metalness in B: fully rough, non-metal.
ATLAS_FILL: Dict[AtlasSlot, Tuple[int, int, int, int]] = {
    AtlasSlot.BASE: (0, 0, 0, 255),
    AtlasSlot.METALLIC_ROUGHNESS: (0, 255, 0, 255),
    AtlasSlot.NORMALS: (128, 128, 255, 255),
    AtlasSlot.OCCLUSION: (255, 255, 255, 255),
}


def compute_atlas_width(primitive_count: int) -> int:
    """
    Tiles per atlas row for ``primitive_count`` primitives.

    Raises:
        ValueError: If there are no primitives to pack
    """
    if primitive_count < 1:
        raise ValueError("Cannot build an atlas for zero primitives")
    return math.ceil(math.sqrt(primitive_count))


def round_half_up(value: float) -> int:
    """Round halves up, unlike round()."""
    return math.floor(value + 0.5)


def tile_of(index: int, atlas_width: int) -> Tuple[int, int]:
    """Grid cell (column, row) of tile ``index``."""
    return index % atlas_width, index // atlas_width


@dataclass(frozen=True)
class AtlasLayout:
    """Tile grid for a given primitive count and atlas resolution."""
    primitive_count: int
    resolution: int

    @property
    def atlas_width(self) -> int:
        return compute_atlas_width(self.primitive_count)

    @property
    def tiles_count(self) -> int:
        return self.atlas_width * self.atlas_width

    @property
    def tile_size(self) -> int:
        # Floored: up to atlas_width - 1 pixels per axis stay unused
        return self.resolution // self.atlas_width

    def tile_of(self, index: int) -> Tuple[int, int]:
        return tile_of(index, self.atlas_width)

    def tile_offset(self, index: int) -> Tuple[int, int]:
        """Top-left pixel of tile ``index``."""
        column, row = self.tile_of(index)
        tile_res = self.resolution / self.atlas_width
        return round_half_up(column * tile_res), round_half_up(row * tile_res)


class Atlas:
    """
    One slot's atlas: an RGBA raster bound to a document texture.

    The raster is a (height, width, 4) uint8 numpy array, indexed [y, x].
    """

    def __init__(self, document: Document, name: str, width: int, height: int,
                 mime_type: str = DEFAULT_ATLAS_MIME):
        self.texture: Texture = document.create_texture(name)
        self.data = np.zeros((height, width, 4), dtype=np.uint8)
        self.mime_type = mime_type

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    def fill(self, r: int = 0, g: int = 0, b: int = 0, a: int = 255) -> None:
        self.data[:, :] = (r, g, b, a)

    def copy(self, texture: Texture, x: int, y: int) -> None:
        """
        Decode ``texture`` and write its RGB channels with top-left at (x, y).

        Pixels falling outside the atlas are skipped. Alpha keeps the fill.
        """
        source = codec.decode(texture.image, texture.mime_type)
        self.paste(source, x, y)

    def paste(self, source: np.ndarray, x: int, y: int) -> None:
        """Write the RGB of an RGBA raster with top-left at (x, y), clipped."""
        if x >= self.width or y >= self.height:
            return
        src_x, src_y = max(0, -x), max(0, -y)
        dst_x, dst_y = max(0, x), max(0, y)
        w = min(source.shape[1] - src_x, self.width - dst_x)
        h = min(source.shape[0] - src_y, self.height - dst_y)
        if w <= 0 or h <= 0:
            return
        self.data[dst_y:dst_y + h, dst_x:dst_x + w, :3] = source[src_y:src_y + h, src_x:src_x + w, :3]

    def set(self, x: int, y: int, rgb: Sequence[int]) -> None:
        self.data[y, x, :3] = rgb[:3]

    def upload(self) -> None:
        """Encode the raster onto the bound texture."""
        self.texture.set_image(codec.encode(self.data, self.mime_type)).set_mime_type(self.mime_type)
        logger.debug(f"Uploaded {self.texture.name} ({len(self.texture.image)} bytes)")


def create_atlases(
    document: Document,
    resolution: int,
    material: Material,
    slots: Sequence[AtlasSlot],
) -> Dict[AtlasSlot, Atlas]:
    """
    Allocate and pre-fill one atlas per slot and bind each to ``material``.

    Args:
        document: Document that owns the atlas textures
        resolution: Atlas edge length in pixels
        material: Shared material receiving the atlas textures
        slots: Slots to build, in order

    Returns:
        Dict of slot -> Atlas in request order
    """
    atlases: Dict[AtlasSlot, Atlas] = {}
    for slot in slots:
        slot = AtlasSlot(slot)
        atlas = Atlas(document, f"atlas-{slot.value}", resolution, resolution)
        atlas.fill(*ATLAS_FILL[slot])
        set_channel_texture(material, slot.channel, atlas.texture)
        atlases[slot] = atlas

    logger.info(f"Created atlases: {', '.join(s.value for s in atlases)} ({resolution}x{resolution})")
    return atlases


def slots_for_lod(lod: int) -> List[AtlasSlot]:
    """Base color and metallic-roughness always; normals up to LOD 2; occlusion up to LOD 1."""
    slots = [AtlasSlot.BASE, AtlasSlot.METALLIC_ROUGHNESS]
    if lod <= 2:
        slots.append(AtlasSlot.NORMALS)
    if lod <= 1:
        slots.append(AtlasSlot.OCCLUSION)
    return slots
