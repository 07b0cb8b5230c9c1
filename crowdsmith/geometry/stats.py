"""
Vertex counting.
"""

from typing import Set

from crowdsmith.document.model import Node, Scene


def get_scene_vertex_count(scene: Scene) -> int:
    """
    Count vertices uploaded to the GPU for a scene.

    Each distinct POSITION accessor reachable from the scene's mesh nodes is
    counted once, however many nodes or primitives share it.
    """
    seen: Set[int] = set()
    total = 0

    def visit(node: Node) -> None:
        nonlocal total
        mesh = node.get_mesh()
        if mesh is None:
            return
        for primitive in mesh.list_primitives():
            position = primitive.get_attribute('POSITION')
            if position is not None and id(position) not in seen:
                seen.add(id(position))
                total += position.count

    scene.traverse(visit)
    return total
