"""
Document inspection and size reporting
"""

from typing import Any, Dict, List, Set

from crowdsmith.document.model import Document, Mesh, Texture
from crowdsmith.texturing import codec

SIZE_UNITS = ['KB', 'MB', 'GB', 'TB', 'PB', 'EB', 'ZB', 'YB']


def human_file_size(size: float, dp: int = 2) -> str:
    """
    Format a byte count with 1024-based units.

    Examples:
        human_file_size(512) -> '512 B'
        human_file_size(1536) -> '1.50 KB'
    """
    threshold = 1024
    if abs(size) < threshold:
        return f"{size} B"

    unit = -1
    scale = 10 ** dp
    while True:
        size /= threshold
        unit += 1
        if not (round(abs(size) * scale) / scale >= threshold and unit < len(SIZE_UNITS) - 1):
            break
    return f"{size:.{dp}f} {SIZE_UNITS[unit]}"


def gpu_size(width: int, height: int) -> int:
    """Uncompressed RGBA8 bytes including the full mip chain."""
    total = 0
    while True:
        total += width * height * 4
        if width == 1 and height == 1:
            break
        width, height = max(1, width // 2), max(1, height // 2)
    return total


def _mesh_report(document: Document, mesh: Mesh) -> Dict[str, Any]:
    accessors: Set[int] = set()
    size = 0
    vertices = 0
    gl_primitives = 0
    attributes: Set[str] = set()
    for primitive in mesh.list_primitives():
        vertices += primitive.vertex_count
        attributes.update(primitive.list_semantics())
        if primitive.indices is not None:
            gl_primitives += primitive.indices.count // 3
        else:
            gl_primitives += primitive.vertex_count // 3
        for accessor in primitive.list_attributes() + ([primitive.indices] if primitive.indices is not None else []):
            if id(accessor) not in accessors:
                accessors.add(id(accessor))
                size += accessor.byte_length

    return {
        "name": mesh.name,
        "primitives": len(mesh.list_primitives()),
        "vertices": vertices,
        "glPrimitives": gl_primitives,
        "attributes": sorted(attributes),
        "instances": len(document.list_parents(mesh)),
        "size": size,
    }


def _texture_report(document: Document, texture: Texture) -> Dict[str, Any]:
    image = texture.image or b""
    width, height = codec.image_size(image) if image else (0, 0)
    slots = sorted({
        channel.value
        for material in document.list_materials()
        for channel, bound in material.list_textures()
        if bound is texture
    })
    return {
        "name": texture.name,
        "slots": slots,
        "instances": len(document.list_parents(texture)),
        "mimeType": texture.mime_type,
        "resolution": f"{width}x{height}",
        "size": len(image),
        "gpuSize": gpu_size(width, height) if image else 0,
    }


def inspect(document: Document) -> Dict[str, Any]:
    """
    Summarize a document.

    Returns:
        Dict with:
        - data: per-entity reports (scenes, meshes, materials, textures, animations)
        - sizes: byte totals for meshes, textures, estimated VRAM and their sum
    """
    meshes: List[Dict[str, Any]] = [_mesh_report(document, m) for m in document.list_meshes()]
    textures: List[Dict[str, Any]] = [_texture_report(document, t) for t in document.list_textures()]

    data = {
        "scenes": [
            {"name": scene.name, "children": len(scene.list_children())}
            for scene in document.list_scenes()
        ],
        "meshes": meshes,
        "materials": [
            {
                "name": material.name,
                "instances": len(document.list_parents(material)),
                "textures": [channel.value for channel, _ in material.list_textures()],
                "alphaMode": material.alpha_mode,
                "doubleSided": material.double_sided,
            }
            for material in document.list_materials()
        ],
        "textures": textures,
        "animations": [
            {"name": a.name, "channels": len(a.channels), "samplers": len(a.samplers)}
            for a in document.list_animations()
        ],
    }

    sizes = {
        "meshes": sum(m["size"] for m in meshes),
        "textures": sum(t["size"] for t in textures),
        "vram": sum(t["gpuSize"] for t in textures),
    }
    sizes["total"] = sizes["meshes"] + sizes["textures"]
    return {"data": data, "sizes": sizes}
