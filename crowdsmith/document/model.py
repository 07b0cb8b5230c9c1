"""
In-memory asset document

An arena of glTF entities (scenes, nodes, meshes, primitives, accessors,
materials, textures, skins, animations) owned by a single Document.

Ownership edges are one-directional:
- Scene -> root Nodes, Node -> child Nodes
- Node -> Mesh / Skin (shared references)
- Mesh -> Primitives -> Accessors / Material
- Material -> Textures, Skin -> joint Nodes / skeleton Node

No entity stores a pointer back to its owner. Parents are found by scanning
the arena with Document.list_parents(), which keeps skin/skeleton graphs free
of reference cycles.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Callable, Tuple, Any

import numpy as np

from .transform_utils import compose_matrix

# glTF component types
BYTE = 5120
UNSIGNED_BYTE = 5121
SHORT = 5122
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

COMPONENT_DTYPES = {
    BYTE: np.int8,
    UNSIGNED_BYTE: np.uint8,
    SHORT: np.int16,
    UNSIGNED_SHORT: np.uint16,
    UNSIGNED_INT: np.uint32,
    FLOAT: np.float32,
}

TYPE_COMPONENTS = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
    'MAT2': 4,
    'MAT3': 9,
    'MAT4': 16,
}

# Primitive modes
TRIANGLES = 4


class TextureChannel(str, Enum):
    """Material texture inputs, valued by their glTF slot names."""
    BASE_COLOR = "baseColorTexture"
    METALLIC_ROUGHNESS = "metallicRoughnessTexture"
    NORMAL = "normalTexture"
    OCCLUSION = "occlusionTexture"
    EMISSIVE = "emissiveTexture"


def component_type_for(dtype) -> int:
    """Map a numpy dtype to its glTF component type."""
    dtype = np.dtype(dtype)
    for component_type, candidate in COMPONENT_DTYPES.items():
        if np.dtype(candidate) == dtype:
            return component_type
    raise ValueError(f"Unsupported accessor dtype: {dtype}")


#########################
# ENTITIES
#########################

class Property:
    """Base class for every entity owned by a Document."""

    def __init__(self, document: "Document", name: str = ""):
        self._document = document
        self.name = name or ""
        self.extras: Dict[str, Any] = {}

    @property
    def document(self) -> "Document":
        return self._document

    def dispose(self) -> None:
        """Remove this entity from its document and drop every edge to it."""
        self._document._dispose(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class Accessor(Property):
    """
    Typed element array (vertex attribute, indices, matrices, keyframes).

    Data is stored as a 2D numpy array of shape (count, components) in the
    accessor's component dtype.
    """

    def __init__(
        self,
        document: "Document",
        name: str = "",
        array=None,
        accessor_type: Optional[str] = None,
        normalized: bool = False,
    ):
        super().__init__(document, name)
        self.normalized = normalized
        self.sparse = False
        self._array = np.zeros((0, 1), dtype=np.float32)
        self._type = accessor_type
        if array is not None:
            self.set_array(array, accessor_type)

    @property
    def array(self) -> np.ndarray:
        return self._array

    def set_array(self, array, accessor_type: Optional[str] = None) -> "Accessor":
        array = np.asarray(array)
        if array.ndim == 1:
            array = array.reshape(-1, 1)
        component_type_for(array.dtype)
        self._array = np.ascontiguousarray(array)
        if accessor_type is None and self._type and TYPE_COMPONENTS[self._type] == array.shape[1]:
            accessor_type = self._type
        self._type = accessor_type or _default_type(array.shape[1])
        return self

    @property
    def type(self) -> str:
        return self._type

    @property
    def component_type(self) -> int:
        return component_type_for(self._array.dtype)

    @property
    def count(self) -> int:
        return self._array.shape[0]

    @property
    def components(self) -> int:
        return self._array.shape[1]

    @property
    def element_size(self) -> int:
        return self.components * self._array.dtype.itemsize

    @property
    def byte_length(self) -> int:
        return self._array.nbytes

    def to_float(self) -> np.ndarray:
        """Return elements as float32, denormalizing normalized integers."""
        data = self._array
        if not self.normalized or data.dtype == np.float32:
            return data.astype(np.float32)
        info = np.iinfo(data.dtype)
        values = data.astype(np.float32) / float(info.max)
        if info.min < 0:
            values = np.maximum(values, -1.0)
        return values

    def set_float(self, values) -> "Accessor":
        """Write float elements back, re-quantizing normalized integers."""
        values = np.asarray(values, dtype=np.float32).reshape(self._array.shape)
        dtype = self._array.dtype
        if not self.normalized or dtype == np.float32:
            self._array = values.astype(dtype)
            return self
        info = np.iinfo(dtype)
        quantized = np.round(np.clip(values, -1.0 if info.min < 0 else 0.0, 1.0) * info.max)
        self._array = quantized.astype(dtype)
        return self

    def get_element(self, index: int) -> List[float]:
        return self.to_float()[index].tolist()

    def set_element(self, index: int, value) -> "Accessor":
        values = self.to_float()
        values[index] = value
        return self.set_float(values)

    def get_min(self) -> List[float]:
        return self._array.min(axis=0).tolist() if self.count else []

    def get_max(self) -> List[float]:
        return self._array.max(axis=0).tolist() if self.count else []


def _default_type(components: int) -> str:
    return {1: 'SCALAR', 2: 'VEC2', 3: 'VEC3', 4: 'VEC4', 9: 'MAT3', 16: 'MAT4'}[components]


class Texture(Property):
    """Encoded image payload plus its sampler state."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self.image: Optional[bytes] = None
        self.mime_type: str = "image/png"
        self.sampler: Dict[str, int] = {}

    def set_image(self, image: bytes) -> "Texture":
        self.image = image
        return self

    def set_mime_type(self, mime_type: str) -> "Texture":
        self.mime_type = mime_type
        return self


class Material(Property):
    """PBR metallic-roughness material."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self.base_color_factor = [1.0, 1.0, 1.0, 1.0]
        self.metallic_factor = 1.0
        self.roughness_factor = 1.0
        self.normal_scale = 1.0
        self.occlusion_strength = 1.0
        self.emissive_factor = [0.0, 0.0, 0.0]
        self.alpha_mode = "OPAQUE"
        self.alpha_cutoff = 0.5
        self.double_sided = False
        self._textures: Dict[TextureChannel, Texture] = {}
        self.tex_coords: Dict[TextureChannel, int] = {}

    def get_base_color_texture(self) -> Optional[Texture]:
        return self._textures.get(TextureChannel.BASE_COLOR)

    def set_base_color_texture(self, texture: Optional[Texture]) -> "Material":
        return self._set(TextureChannel.BASE_COLOR, texture)

    def get_metallic_roughness_texture(self) -> Optional[Texture]:
        return self._textures.get(TextureChannel.METALLIC_ROUGHNESS)

    def set_metallic_roughness_texture(self, texture: Optional[Texture]) -> "Material":
        return self._set(TextureChannel.METALLIC_ROUGHNESS, texture)

    def get_normal_texture(self) -> Optional[Texture]:
        return self._textures.get(TextureChannel.NORMAL)

    def set_normal_texture(self, texture: Optional[Texture]) -> "Material":
        return self._set(TextureChannel.NORMAL, texture)

    def get_occlusion_texture(self) -> Optional[Texture]:
        return self._textures.get(TextureChannel.OCCLUSION)

    def set_occlusion_texture(self, texture: Optional[Texture]) -> "Material":
        return self._set(TextureChannel.OCCLUSION, texture)

    def get_emissive_texture(self) -> Optional[Texture]:
        return self._textures.get(TextureChannel.EMISSIVE)

    def set_emissive_texture(self, texture: Optional[Texture]) -> "Material":
        return self._set(TextureChannel.EMISSIVE, texture)

    def list_textures(self) -> List[Tuple[TextureChannel, Texture]]:
        return list(self._textures.items())

    def _set(self, channel: TextureChannel, texture: Optional[Texture]) -> "Material":
        if texture is None:
            self._textures.pop(channel, None)
            self.tex_coords.pop(channel, None)
        else:
            self._textures[channel] = texture
        return self


# Channel -> (getter, setter). Callers dispatch through this table rather than
# building method names at runtime.
CHANNEL_ACCESSORS: Dict[TextureChannel, Tuple[Callable, Callable]] = {
    TextureChannel.BASE_COLOR: (Material.get_base_color_texture, Material.set_base_color_texture),
    TextureChannel.METALLIC_ROUGHNESS: (Material.get_metallic_roughness_texture, Material.set_metallic_roughness_texture),
    TextureChannel.NORMAL: (Material.get_normal_texture, Material.set_normal_texture),
    TextureChannel.OCCLUSION: (Material.get_occlusion_texture, Material.set_occlusion_texture),
    TextureChannel.EMISSIVE: (Material.get_emissive_texture, Material.set_emissive_texture),
}


def get_channel_texture(material: Material, channel: TextureChannel) -> Optional[Texture]:
    getter, _ = CHANNEL_ACCESSORS[channel]
    return getter(material)


def set_channel_texture(material: Material, channel: TextureChannel, texture: Optional[Texture]) -> Material:
    _, setter = CHANNEL_ACCESSORS[channel]
    return setter(material, texture)


class Primitive(Property):
    """Drawable geometry: attribute accessors, optional indices, one material."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self._attributes: Dict[str, Accessor] = {}
        self.indices: Optional[Accessor] = None
        self.material: Optional[Material] = None
        self.mode = TRIANGLES
        # Material the primitive carried before consolidation; used for
        # texture lookups once the live material is the shared one.
        self.original_material: Optional[Material] = None

    def get_attribute(self, semantic: str) -> Optional[Accessor]:
        return self._attributes.get(semantic)

    def set_attribute(self, semantic: str, accessor: Optional[Accessor]) -> "Primitive":
        if accessor is None:
            self._attributes.pop(semantic, None)
        else:
            self._attributes[semantic] = accessor
        return self

    def list_semantics(self) -> List[str]:
        return list(self._attributes.keys())

    def list_attributes(self) -> List[Accessor]:
        return list(self._attributes.values())

    def get_indices(self) -> Optional[Accessor]:
        return self.indices

    def set_indices(self, accessor: Optional[Accessor]) -> "Primitive":
        self.indices = accessor
        return self

    def get_material(self) -> Optional[Material]:
        return self.material

    def set_material(self, material: Optional[Material]) -> "Primitive":
        self.material = material
        return self

    @property
    def vertex_count(self) -> int:
        position = self.get_attribute('POSITION')
        return position.count if position else 0


class Mesh(Property):
    """Ordered list of primitives."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self._primitives: List[Primitive] = []

    def add_primitive(self, primitive: Primitive) -> "Mesh":
        if primitive not in self._primitives:
            self._primitives.append(primitive)
        return self

    def remove_primitive(self, primitive: Primitive) -> "Mesh":
        if primitive in self._primitives:
            self._primitives.remove(primitive)
        return self

    def list_primitives(self) -> List[Primitive]:
        return list(self._primitives)


class _Parent(Property):
    """Shared child handling for scenes and nodes."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self._children: List["Node"] = []

    def add_child(self, node: "Node") -> "_Parent":
        self._document._detach_node(node)
        self._children.append(node)
        return self

    def remove_child(self, node: "Node") -> "_Parent":
        if node in self._children:
            self._children.remove(node)
        return self

    def list_children(self) -> List["Node"]:
        return list(self._children)

    def traverse(self, fn: Callable[["Node"], None]) -> None:
        """Depth-first visit of every descendant node."""
        for child in self.list_children():
            fn(child)
            child.traverse(fn)


class Node(_Parent):
    """Transform in the scene graph, optionally carrying a mesh and a skin."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self.translation = [0.0, 0.0, 0.0]
        self.rotation = [0.0, 0.0, 0.0, 1.0]  # xyzw
        self.scale = [1.0, 1.0, 1.0]
        self.mesh: Optional[Mesh] = None
        self.skin: Optional["Skin"] = None

    def get_mesh(self) -> Optional[Mesh]:
        return self.mesh

    def set_mesh(self, mesh: Optional[Mesh]) -> "Node":
        self.mesh = mesh
        return self

    def get_skin(self) -> Optional["Skin"]:
        return self.skin

    def set_skin(self, skin: Optional["Skin"]) -> "Node":
        self.skin = skin
        return self

    def get_parent_node(self) -> Optional["Node"]:
        for node in self._document._nodes:
            if self in node._children:
                return node
        return None

    def get_matrix(self) -> np.ndarray:
        return compose_matrix(self.translation, self.rotation, self.scale)

    def get_world_matrix(self) -> np.ndarray:
        matrix = self.get_matrix()
        parent = self.get_parent_node()
        while parent is not None:
            matrix = parent.get_matrix() @ matrix
            parent = parent.get_parent_node()
        return matrix


class Scene(_Parent):
    """Root of a node hierarchy."""


class Skin(Property):
    """Binds a joint hierarchy to the meshes of the nodes referencing it."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self._joints: List[Node] = []
        self.skeleton: Optional[Node] = None
        self.inverse_bind_matrices: Optional[Accessor] = None

    def add_joint(self, joint: Node) -> "Skin":
        self._joints.append(joint)
        return self

    def list_joints(self) -> List[Node]:
        return list(self._joints)

    def get_skeleton(self) -> Optional[Node]:
        return self.skeleton

    def set_skeleton(self, skeleton: Optional[Node]) -> "Skin":
        self.skeleton = skeleton
        return self


@dataclass(eq=False)
class AnimationSampler:
    input: Accessor
    output: Accessor
    interpolation: str = "LINEAR"


@dataclass(eq=False)
class AnimationChannel:
    target_node: Node
    target_path: str
    sampler: AnimationSampler


class Animation(Property):
    """Keyframe channels targeting node transforms."""

    def __init__(self, document: "Document", name: str = ""):
        super().__init__(document, name)
        self.channels: List[AnimationChannel] = []
        self.samplers: List[AnimationSampler] = []


#########################
# DOCUMENT
#########################

class Document:
    """
    Arena owning every entity of one asset.

    Entities are created through the create_* methods, listed in creation
    order through the list_* methods and removed with Property.dispose().
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.default_scene: Optional[Scene] = None
        self._scenes: List[Scene] = []
        self._nodes: List[Node] = []
        self._meshes: List[Mesh] = []
        self._accessors: List[Accessor] = []
        self._materials: List[Material] = []
        self._textures: List[Texture] = []
        self._skins: List[Skin] = []
        self._animations: List[Animation] = []
        # Set by geometry.compression; read by the writer.
        self.draco = None

    # --- creation ---------------------------------------------------------

    def create_scene(self, name: str = "") -> Scene:
        scene = Scene(self, name)
        self._scenes.append(scene)
        if self.default_scene is None:
            self.default_scene = scene
        return scene

    def create_node(self, name: str = "") -> Node:
        node = Node(self, name)
        self._nodes.append(node)
        return node

    def create_mesh(self, name: str = "") -> Mesh:
        mesh = Mesh(self, name)
        self._meshes.append(mesh)
        return mesh

    def create_primitive(self) -> Primitive:
        return Primitive(self)

    def create_accessor(self, name: str = "", array=None, accessor_type: Optional[str] = None,
                        normalized: bool = False) -> Accessor:
        accessor = Accessor(self, name, array, accessor_type, normalized)
        self._accessors.append(accessor)
        return accessor

    def create_material(self, name: str = "") -> Material:
        material = Material(self, name)
        self._materials.append(material)
        return material

    def create_texture(self, name: str = "") -> Texture:
        texture = Texture(self, name)
        self._textures.append(texture)
        return texture

    def create_skin(self, name: str = "") -> Skin:
        skin = Skin(self, name)
        self._skins.append(skin)
        return skin

    def create_animation(self, name: str = "") -> Animation:
        animation = Animation(self, name)
        self._animations.append(animation)
        return animation

    # --- listing ----------------------------------------------------------

    def list_scenes(self) -> List[Scene]:
        return list(self._scenes)

    def list_nodes(self) -> List[Node]:
        return list(self._nodes)

    def list_meshes(self) -> List[Mesh]:
        return list(self._meshes)

    def list_accessors(self) -> List[Accessor]:
        return list(self._accessors)

    def list_materials(self) -> List[Material]:
        return list(self._materials)

    def list_textures(self) -> List[Texture]:
        return list(self._textures)

    def list_skins(self) -> List[Skin]:
        return list(self._skins)

    def list_animations(self) -> List[Animation]:
        return list(self._animations)

    def list_primitives(self) -> List[Primitive]:
        """Primitives currently attached to a mesh, in mesh order."""
        return [p for mesh in self._meshes for p in mesh._primitives]

    def list_parents(self, prop: Property) -> List[Property]:
        """Find every entity holding an edge to ``prop``."""
        parents: List[Property] = []
        if isinstance(prop, Node):
            parents += [p for p in self._scenes + self._nodes if prop in p._children]
            parents += [s for s in self._skins if prop in s._joints or s.skeleton is prop]
            parents += [a for a in self._animations if any(c.target_node is prop for c in a.channels)]
        elif isinstance(prop, Mesh):
            parents += [n for n in self._nodes if n.mesh is prop]
        elif isinstance(prop, Skin):
            parents += [n for n in self._nodes if n.skin is prop]
        elif isinstance(prop, Primitive):
            parents += [m for m in self._meshes if prop in m._primitives]
        elif isinstance(prop, Material):
            parents += [p for p in self.list_primitives() if p.material is prop]
        elif isinstance(prop, Texture):
            parents += [m for m in self._materials if prop in m._textures.values()]
        elif isinstance(prop, Accessor):
            for primitive in self.list_primitives():
                if primitive.indices is prop or prop in primitive._attributes.values():
                    parents.append(primitive)
            parents += [s for s in self._skins if s.inverse_bind_matrices is prop]
            parents += [a for a in self._animations
                        if any(s.input is prop or s.output is prop for s in a.samplers)]
        return parents

    # --- internals --------------------------------------------------------

    def _detach_node(self, node: Node) -> None:
        for parent in self._scenes + self._nodes:
            if node in parent._children:
                parent._children.remove(node)

    def _dispose(self, prop: Property) -> None:
        if isinstance(prop, Scene):
            _remove(self._scenes, prop)
            if self.default_scene is prop:
                self.default_scene = self._scenes[0] if self._scenes else None
        elif isinstance(prop, Node):
            _remove(self._nodes, prop)
            self._detach_node(prop)
            prop._children = []
            for skin in self._skins:
                _remove(skin._joints, prop)
                if skin.skeleton is prop:
                    skin.skeleton = None
            for animation in self._animations:
                animation.channels = [c for c in animation.channels if c.target_node is not prop]
        elif isinstance(prop, Mesh):
            _remove(self._meshes, prop)
            for node in self._nodes:
                if node.mesh is prop:
                    node.mesh = None
        elif isinstance(prop, Primitive):
            for mesh in self._meshes:
                mesh.remove_primitive(prop)
        elif isinstance(prop, Accessor):
            _remove(self._accessors, prop)
            for primitive in self.list_primitives():
                if primitive.indices is prop:
                    primitive.indices = None
                for semantic, accessor in list(primitive._attributes.items()):
                    if accessor is prop:
                        del primitive._attributes[semantic]
            for skin in self._skins:
                if skin.inverse_bind_matrices is prop:
                    skin.inverse_bind_matrices = None
            for animation in self._animations:
                dead = [s for s in animation.samplers if s.input is prop or s.output is prop]
                animation.samplers = [s for s in animation.samplers if s not in dead]
                animation.channels = [c for c in animation.channels if c.sampler not in dead]
        elif isinstance(prop, Material):
            _remove(self._materials, prop)
            for primitive in self.list_primitives():
                if primitive.material is prop:
                    primitive.material = None
                if primitive.original_material is prop:
                    primitive.original_material = None
        elif isinstance(prop, Texture):
            _remove(self._textures, prop)
            for material in self._materials:
                for channel, texture in material.list_textures():
                    if texture is prop:
                        material._set(channel, None)
        elif isinstance(prop, Skin):
            _remove(self._skins, prop)
            for node in self._nodes:
                if node.skin is prop:
                    node.skin = None
        elif isinstance(prop, Animation):
            _remove(self._animations, prop)

    def _adopt(self, other: "Document") -> None:
        """Move every entity of ``other`` into this arena, keeping order."""
        for attr in ('_scenes', '_nodes', '_meshes', '_accessors', '_materials',
                     '_textures', '_skins', '_animations'):
            items = getattr(other, attr)
            for item in items:
                item._document = self
            getattr(self, attr).extend(items)
            setattr(other, attr, [])
        for primitive in [p for mesh in self._meshes for p in mesh._primitives]:
            primitive._document = self
        if self.default_scene is None:
            self.default_scene = other.default_scene
        other.default_scene = None


def _remove(items: list, item) -> None:
    if item in items:
        items.remove(item)
