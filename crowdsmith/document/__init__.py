"""
Asset document model and GLB I/O
"""

from .model import (
    Accessor,
    Animation,
    AnimationChannel,
    AnimationSampler,
    Document,
    Material,
    Mesh,
    Node,
    Primitive,
    Scene,
    Skin,
    Texture,
    TextureChannel,
    get_channel_texture,
    set_channel_texture,
)
from .io import read, write, write_binary

__all__ = [
    'Accessor',
    'Animation',
    'AnimationChannel',
    'AnimationSampler',
    'Document',
    'Material',
    'Mesh',
    'Node',
    'Primitive',
    'Scene',
    'Skin',
    'Texture',
    'TextureChannel',
    'get_channel_texture',
    'set_channel_texture',
    'read',
    'write',
    'write_binary',
]
