"""
Skeleton consolidation.

After documents are merged each character still carries its own scene and
skin. This pass folds them into the primary scene with a single surviving
skin that every skinned node points at.
"""

import logging
from typing import List, Optional

from crowdsmith.document.model import Document, Node, Scene, Skin

logger = logging.getLogger(__name__)

PLACEHOLDER_NODE_NAME = "node"


def consolidate_skeletons(document: Document, primary_scene: Scene) -> Optional[Skin]:
    """
    Reduce every scene's skeleton to one skin and one scene.

    Non-primary scenes are visited in reverse order, and their root children
    in reverse order too. The first skin found keeps living: the first child
    of its skeleton node is promoted into the primary scene and the skin's
    skeleton reference is cleared. Every later skin is disposed after all of
    its nodes are rebound to the surviving one. Skinned nodes are renamed
    after their mesh. All root children then move to the primary scene and
    the emptied scene is disposed.

    Args:
        document: Document holding one scene per merged asset
        primary_scene: Scene that receives every node

    Returns:
        The surviving skin, or None if no scene carried one
    """
    surviving: Optional[Skin] = None
    scenes = document.list_scenes()

    for scene in reversed(scenes):
        if scene is primary_scene:
            continue

        for child in reversed(scene.list_children()):
            for node in _skinned_nodes(child):
                skin = node.get_skin()
                if surviving is None:
                    surviving = skin
                    root = _skeleton_root(skin)
                    if root is not None:
                        primary_scene.add_child(root)
                    skin.set_skeleton(None)
                elif skin is not surviving:
                    for holder in document.list_parents(skin):
                        holder.set_skin(surviving)
                    skin.set_skeleton(None)
                    skin.dispose()

                mesh = node.get_mesh()
                node.name = mesh.name if mesh is not None else PLACEHOLDER_NODE_NAME

            primary_scene.add_child(child)

        scene.dispose()

    logger.info(
        f"Consolidated skeletons: {len(document.list_skins())} skin(s), "
        f"{len(primary_scene.list_children())} root nodes"
    )
    return surviving


def _skinned_nodes(root: Node) -> List[Node]:
    """Skin-bearing nodes of a subtree, root first."""
    found: List[Node] = []
    if root.get_skin() is not None:
        found.append(root)
    root.traverse(lambda node: found.append(node) if node.get_skin() is not None else None)
    return found


def _skeleton_root(skin: Skin) -> Optional[Node]:
    """
    Node to promote into the primary scene.

    The first child of the skin's skeleton node, as exporters put the root
    bone under an armature node. Skins without a skeleton reference fall back
    to the first joint whose parent is not itself a joint.
    """
    skeleton = skin.get_skeleton()
    if skeleton is not None:
        children = skeleton.list_children()
        if not children:
            logger.warning(f"Skeleton node {skeleton.name!r} of skin {skin.name!r} has no children, nothing promoted")
            return None
        return children[0]

    joints = skin.list_joints()
    for joint in joints:
        if joint.get_parent_node() not in joints:
            return joint
    logger.warning(f"Skin {skin.name!r} has no skeleton and no root joint, nothing promoted")
    return None
