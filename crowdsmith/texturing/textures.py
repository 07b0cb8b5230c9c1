"""
Texture cleanup and resizing.
"""

import logging
from typing import Iterable, Set

from crowdsmith.document.model import Document, Texture, TextureChannel
from . import codec

logger = logging.getLogger(__name__)


def list_texture_slots(document: Document, texture: Texture) -> Set[TextureChannel]:
    """Distinct material channels ``texture`` is bound to."""
    return {
        channel
        for material in document.list_materials()
        for channel, bound in material.list_textures()
        if bound is texture
    }


def cleanup_textures(document: Document, channels: Iterable[TextureChannel]) -> int:
    """
    Dispose textures used in exactly one channel that is in ``channels``.

    Textures shared across channels are kept.

    Returns:
        Number of textures disposed
    """
    channels = {TextureChannel(c) for c in channels}
    removed = 0
    for texture in reversed(document.list_textures()):
        slots = list_texture_slots(document, texture)
        if len(slots) == 1 and next(iter(slots)) in channels:
            texture.dispose()
            removed += 1
    logger.info(f"Removed {removed} textures ({', '.join(sorted(c.value for c in channels))})")
    return removed


def channels_for_lod(lod: int) -> Set[TextureChannel]:
    """Channels dropped at a LOD: emissive from 1, occlusion from 2, normals from 3."""
    channels: Set[TextureChannel] = set()
    if lod > 0:
        channels.add(TextureChannel.EMISSIVE)
    if lod > 1:
        channels.add(TextureChannel.OCCLUSION)
    if lod > 2:
        channels.add(TextureChannel.NORMAL)
    return channels


def resize_textures(document: Document, size: int, exact: bool = False) -> int:
    """
    Resample every texture.

    Args:
        document: Document whose textures are resized
        size: Target edge length in pixels
        exact: Scale to exactly size x size (atlas tiles). Otherwise fit
            inside size x size keeping aspect ratio, never enlarging.

    Returns:
        Number of textures resampled
    """
    resized = 0
    for texture in document.list_textures():
        if not texture.image:
            continue
        width, height = codec.image_size(texture.image)
        if exact:
            target = (size, size)
        else:
            scale = min(1.0, size / width, size / height)
            target = (max(1, round(width * scale)), max(1, round(height * scale)))
        if target == (width, height):
            continue
        texture.set_image(codec.resize(texture.image, texture.mime_type, target))
        resized += 1
        logger.debug(f"Resized {texture.name!r} {width}x{height} -> {target[0]}x{target[1]}")
    return resized
