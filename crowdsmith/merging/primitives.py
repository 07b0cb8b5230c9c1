"""
Primitive consolidation.

Moves every primitive under one mesh with a shared material (keeping the
material each one came with for atlas lookups), joins them once their UVs
and textures are atlased, and strips primitives or attributes that lower
LODs do not need.
"""

import logging
from typing import Callable, List

from crowdsmith.document.model import Document, Material, Node, Primitive
from crowdsmith.geometry.join import join_primitives

logger = logging.getLogger(__name__)

# Secondary skinning influences, unused by crowd rendering
SECONDARY_INFLUENCES = ('JOINTS_1', 'WEIGHTS_1')


def reparent_primitives(document: Document, material: Material) -> List[Primitive]:
    """
    Move every primitive into the first mesh and switch it to ``material``.

    Primitives of the first mesh stay in place. The other meshes are walked
    in reverse index order and their primitives in reverse order; each one
    is appended to the first mesh. Emptied meshes are disposed together with
    the nodes that referenced them.

    Args:
        document: Document with at least one mesh
        material: Shared material every primitive ends up using

    Returns:
        Moved primitives, in the order they were appended
    """
    meshes = document.list_meshes()
    if not meshes:
        return []

    target = meshes[0]
    for primitive in target.list_primitives():
        _assign_shared_material(primitive, material)

    moved: List[Primitive] = []
    for mesh in reversed(meshes[1:]):
        for primitive in reversed(mesh.list_primitives()):
            _assign_shared_material(primitive, material)
            target.add_primitive(primitive)
            mesh.remove_primitive(primitive)
            moved.append(primitive)

        if not mesh.list_primitives():
            for parent in document.list_parents(mesh):
                if isinstance(parent, Node):
                    parent.dispose()
            mesh.dispose()

    logger.info(f"Reparented {len(moved)} primitives into mesh {target.name!r}")
    return moved


def _assign_shared_material(primitive: Primitive, material: Material) -> None:
    if primitive.original_material is None:
        primitive.original_material = primitive.get_material()
    primitive.set_material(material)


def merge_primitives(document: Document) -> Primitive:
    """
    Join every primitive of the first mesh into a single primitive.

    Must run after UV remapping and atlas compositing, which both rely on
    each primitive's position in the mesh.

    Returns:
        The joined primitive, now the only one in the first mesh
    """
    mesh = document.list_meshes()[0]
    primitives = mesh.list_primitives()
    joined = join_primitives(document, primitives)

    for primitive in reversed(primitives):
        primitive.dispose()
    mesh.add_primitive(joined)

    logger.info(f"Merged {len(primitives)} primitives ({joined.vertex_count} vertices)")
    return joined


def remove_primitives_by_material(document: Document, predicate: Callable[[Primitive], bool]) -> int:
    """
    Remove primitives for which ``predicate`` returns True.

    Meshes and primitives are walked in reverse. Emptied meshes are left for
    a following prune.

    Returns:
        Number of primitives removed
    """
    removed = 0
    for mesh in reversed(document.list_meshes()):
        for primitive in reversed(mesh.list_primitives()):
            if predicate(primitive):
                mesh.remove_primitive(primitive)
                primitive.dispose()
                removed += 1

    if removed:
        logger.info(f"Removed Primitives: {removed}")
    return removed


def lod_material_filter(lod: int) -> Callable[[Primitive], bool]:
    """
    Predicate matching primitives that a LOD level drops, by material name.

    LOD 1 and up drop teeth and full-body hair cards; LOD 2 and up drop eyes.
    """
    def matches(primitive: Primitive) -> bool:
        material = primitive.get_material()
        name = material.name if material is not None else ""
        if lod >= 2 and 'Eyes' in name:
            return True
        return 'Teeth' in name or ('FullBody' in name and 'Hair' in name)

    return matches


def cleanup_attributes(primitives: List[Primitive]) -> None:
    """Dispose secondary joint/weight attributes."""
    for primitive in primitives:
        for semantic in SECONDARY_INFLUENCES:
            accessor = primitive.get_attribute(semantic)
            if accessor is not None:
                accessor.dispose()
