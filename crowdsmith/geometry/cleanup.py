"""
Document cleanup transforms.

- prune: dispose entities nothing references anymore
- flatten: lift mesh nodes to the scene root, baking parent transforms
- sparse: flag mostly-zero accessors for sparse storage
"""

import logging
from typing import Set

import numpy as np

from crowdsmith.document.model import Document, Node, Scene
from crowdsmith.document.transform_utils import decompose_matrix

logger = logging.getLogger(__name__)


def prune(document: Document) -> None:
    """
    Remove unused entities.

    Empty meshes, childless nodes with no mesh, skin or role as a joint or
    animation target, and materials, textures, accessors and skins that
    nothing points at are disposed. Scenes are kept.
    """
    disposed = 0

    for mesh in document.list_meshes():
        if not mesh.list_primitives():
            mesh.dispose()
            disposed += 1

    referenced = _referenced_nodes(document)
    changed = True
    while changed:
        changed = False
        for node in document.list_nodes():
            if node.list_children() or node.get_mesh() is not None or node.get_skin() is not None:
                continue
            if node in referenced:
                continue
            node.dispose()
            disposed += 1
            changed = True

    for skin in document.list_skins():
        if not document.list_parents(skin):
            skin.dispose()
            disposed += 1

    for animation in document.list_animations():
        if not animation.channels:
            animation.dispose()
            disposed += 1

    for material in document.list_materials():
        if not document.list_parents(material):
            material.dispose()
            disposed += 1

    for texture in document.list_textures():
        if not document.list_parents(texture):
            texture.dispose()
            disposed += 1

    for accessor in document.list_accessors():
        if not document.list_parents(accessor):
            accessor.dispose()
            disposed += 1

    logger.debug(f"Pruned {disposed} unused entities")


def _referenced_nodes(document: Document) -> Set[Node]:
    nodes: Set[Node] = set()
    for skin in document.list_skins():
        nodes.update(skin.list_joints())
        if skin.get_skeleton() is not None:
            nodes.add(skin.get_skeleton())
    for animation in document.list_animations():
        nodes.update(c.target_node for c in animation.channels)
    return nodes


def flatten(document: Document) -> int:
    """
    Move nodes to the root of their scene, preserving world transforms.

    Joints, animated nodes and their descendants keep their hierarchy.
    Nodes left empty are pruned afterwards.

    Returns:
        Number of nodes moved
    """
    pinned = _referenced_nodes(document)
    moved = 0

    for scene in document.list_scenes():
        candidates = []

        def visit(node: Node, parent_pinned: bool) -> None:
            is_pinned = parent_pinned or node in pinned
            if not is_pinned and node.get_parent_node() is not None:
                candidates.append(node)
            for child in node.list_children():
                visit(child, is_pinned)

        for root in scene.list_children():
            visit(root, False)

        for node in candidates:
            _move_to_scene(scene, node)
            moved += 1

    if moved:
        logger.info(f"Flattened {moved} nodes")
        prune(document)
    return moved


def _move_to_scene(scene: Scene, node: Node) -> None:
    translation, rotation, scale = decompose_matrix(node.get_world_matrix())
    scene.add_child(node)
    node.translation, node.rotation, node.scale = translation, rotation, scale


def sparse(document: Document, ratio: float = 1 / 10) -> int:
    """
    Mark accessors whose non-zero elements are below ``ratio`` of the total.

    The writer stores marked accessors as glTF sparse accessors.

    Returns:
        Number of accessors marked
    """
    marked = 0
    for accessor in document.list_accessors():
        if accessor.count == 0:
            continue
        nonzero = int(np.count_nonzero(np.any(accessor.array != 0, axis=1)))
        accessor.sparse = nonzero / accessor.count < ratio
        marked += accessor.sparse
    if marked:
        logger.info(f"Marked {marked} accessors as sparse")
    return marked
