"""
GLB/GLTF reading and writing

Loads glTF 2.0 assets into a Document and serializes a Document back to a
single-buffer GLB, using pygltflib for the container format and numpy for
accessor data.

Reading:
- .glb binary chunks and .gltf external / data-URI buffers (folded into one blob)
- interleaved (byteStride) and sparse accessors are densified
- node matrices are decomposed into TRS
- morph targets and cameras are dropped with a warning

Writing:
- one bufferView per accessor, 4-byte aligned, vertex strides padded to 4
- accessors flagged sparse are written as glTF sparse accessors
- KHR_draco_mesh_compression when the document carries Draco settings
"""

import base64
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union
from urllib.parse import unquote

import numpy as np
from pygltflib import (
    GLTF2,
    Accessor as GltfAccessor,
    AccessorSparseIndices,
    AccessorSparseValues,
    Animation as GltfAnimation,
    AnimationChannel as GltfAnimationChannel,
    AnimationChannelTarget,
    AnimationSampler as GltfAnimationSampler,
    Attributes,
    Buffer,
    BufferFormat,
    BufferView,
    Image as GltfImage,
    Material as GltfMaterial,
    Mesh as GltfMesh,
    Node as GltfNode,
    NormalMaterialTexture,
    OcclusionTextureInfo,
    PbrMetallicRoughness,
    Primitive as GltfPrimitive,
    Sampler as GltfSampler,
    Scene as GltfScene,
    Skin as GltfSkin,
    Sparse,
    Texture as GltfTexture,
    TextureInfo,
)

from crowdsmith.exceptions import AssetReadError, AssetWriteError
from .format_utils import get_field, get_list_field, get_extension, has_field
from .model import (
    COMPONENT_DTYPES,
    TYPE_COMPONENTS,
    TRIANGLES,
    Accessor,
    AnimationChannel,
    AnimationSampler,
    Document,
    Material,
    Node,
    Primitive,
    Texture,
    TextureChannel,
    component_type_for,
)
from .transform_utils import decompose_matrix, matrix_from_gltf

logger = logging.getLogger(__name__)

ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

DRACO_EXTENSION = "KHR_draco_mesh_compression"

# Extensions whose absence from the output is harmless
IGNORABLE_EXTENSIONS = {
    "KHR_materials_emissive_strength",
    "KHR_materials_specular",
    "KHR_materials_ior",
    "KHR_texture_transform",
    "KHR_mesh_quantization",
}

DEFAULT_TRANSLATION = [0.0, 0.0, 0.0]
DEFAULT_ROTATION = [0.0, 0.0, 0.0, 1.0]
DEFAULT_SCALE = [1.0, 1.0, 1.0]


#########################
# READING
#########################

def read(path: Union[str, Path]) -> Document:
    """
    Read a .glb or .gltf file into a new Document.

    Args:
        path: Path to the asset

    Returns:
        Document named after the file stem

    Raises:
        FileNotFoundError: If the file does not exist
        AssetReadError: If the file cannot be parsed or requires unsupported extensions
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    try:
        gltf = GLTF2.load(str(path))
    except Exception as e:
        raise AssetReadError(f"Failed to parse {path}: {e}") from e
    if gltf is None:
        raise AssetReadError(f"Failed to parse {path}")

    _check_extensions(gltf, path)

    if path.suffix.lower() != '.glb' and gltf.buffers:
        gltf.convert_buffers(BufferFormat.BINARYBLOB)
    if len(gltf.buffers) > 1:
        raise AssetReadError(f"{path}: multiple buffers are not supported")

    blob = gltf.binary_blob() or b""
    document = _GLTFReader(gltf, blob, path).read()
    logger.debug(
        f"Read {path.name}: {len(document.list_meshes())} meshes, "
        f"{len(document.list_textures())} textures, {len(document.list_skins())} skins"
    )
    return document


def _check_extensions(gltf: GLTF2, path: Path) -> None:
    required = set(get_list_field(gltf, 'extensionsRequired'))
    unsupported = required - IGNORABLE_EXTENSIONS
    if unsupported:
        raise AssetReadError(f"{path}: unsupported required extensions: {sorted(unsupported)}")
    for name in get_list_field(gltf, 'extensionsUsed'):
        logger.warning(f"{path.name}: extension {name} is not carried over")


class _GLTFReader:
    """Builds Document entities from one parsed glTF, index by index."""

    def __init__(self, gltf: GLTF2, blob: bytes, path: Path):
        self.gltf = gltf
        self.blob = blob
        self.path = path
        self.document = Document(path.stem)
        self._accessors: Dict[int, Accessor] = {}

    def read(self) -> Document:
        textures = [self._read_texture(t) for t in get_list_field(self.gltf, 'textures')]
        materials = [self._read_material(m, textures) for m in get_list_field(self.gltf, 'materials')]
        meshes = [self._read_mesh(m, materials) for m in get_list_field(self.gltf, 'meshes')]

        gltf_nodes = get_list_field(self.gltf, 'nodes')
        nodes = [self.document.create_node(get_field(n, 'name', '')) for n in gltf_nodes]
        skins = [self._read_skin(s, nodes) for s in get_list_field(self.gltf, 'skins')]

        for node, gltf_node in zip(nodes, gltf_nodes):
            self._read_transform(node, gltf_node)
            if has_field(gltf_node, 'mesh'):
                node.set_mesh(meshes[gltf_node.mesh])
            if has_field(gltf_node, 'skin'):
                node.set_skin(skins[gltf_node.skin])
            if has_field(gltf_node, 'camera'):
                logger.warning(f"{self.path.name}: dropping camera on node {node.name!r}")
            for child in get_list_field(gltf_node, 'children'):
                node.add_child(nodes[child])

        scenes = []
        for gltf_scene in get_list_field(self.gltf, 'scenes'):
            scene = self.document.create_scene(get_field(gltf_scene, 'name', ''))
            for index in get_list_field(gltf_scene, 'nodes'):
                scene.add_child(nodes[index])
            scenes.append(scene)
        if scenes:
            self.document.default_scene = scenes[get_field(self.gltf, 'scene', 0)]

        for gltf_animation in get_list_field(self.gltf, 'animations'):
            self._read_animation(gltf_animation, nodes)

        return self.document

    # --- accessors --------------------------------------------------------

    def _accessor(self, index: int) -> Accessor:
        if index not in self._accessors:
            gltf_accessor = self.gltf.accessors[index]
            self._accessors[index] = self.document.create_accessor(
                get_field(gltf_accessor, 'name', ''),
                self._read_accessor_array(gltf_accessor),
                gltf_accessor.type,
                bool(get_field(gltf_accessor, 'normalized', False)),
            )
        return self._accessors[index]

    def _read_accessor_array(self, gltf_accessor) -> np.ndarray:
        dtype = np.dtype(COMPONENT_DTYPES[gltf_accessor.componentType])
        components = TYPE_COMPONENTS[gltf_accessor.type]
        count = gltf_accessor.count

        if has_field(gltf_accessor, 'bufferView'):
            view = self.gltf.bufferViews[gltf_accessor.bufferView]
            offset = get_field(view, 'byteOffset', 0) + get_field(gltf_accessor, 'byteOffset', 0)
            array = self._read_elements(offset, count, components, dtype, get_field(view, 'byteStride', 0))
        else:
            array = np.zeros((count, components), dtype=dtype)

        sparse = get_field(gltf_accessor, 'sparse')
        if sparse is not None and get_field(sparse, 'count', 0):
            array = array.copy()
            indices_info = get_field(sparse, 'indices')
            values_info = get_field(sparse, 'values')
            index_view = self.gltf.bufferViews[get_field(indices_info, 'bufferView')]
            value_view = self.gltf.bufferViews[get_field(values_info, 'bufferView')]
            indices = self._read_elements(
                get_field(index_view, 'byteOffset', 0) + get_field(indices_info, 'byteOffset', 0),
                sparse.count, 1, np.dtype(COMPONENT_DTYPES[get_field(indices_info, 'componentType')]), 0,
            ).reshape(-1)
            values = self._read_elements(
                get_field(value_view, 'byteOffset', 0) + get_field(values_info, 'byteOffset', 0),
                sparse.count, components, dtype, 0,
            )
            array[indices.astype(np.int64)] = values
        return array

    def _read_elements(self, offset: int, count: int, components: int, dtype: np.dtype, stride: int) -> np.ndarray:
        element_size = components * dtype.itemsize
        if count == 0:
            return np.zeros((0, components), dtype=dtype)
        if not stride or stride == element_size:
            data = np.frombuffer(self.blob, dtype=dtype, count=count * components, offset=offset)
            return data.reshape(count, components).copy()
        raw = np.frombuffer(self.blob, dtype=np.uint8, count=stride * (count - 1) + element_size, offset=offset)
        rows = np.lib.stride_tricks.as_strided(raw, shape=(count, element_size), strides=(stride, 1))
        return np.ascontiguousarray(rows).view(dtype).reshape(count, components)

    # --- textures & materials ---------------------------------------------

    def _read_texture(self, gltf_texture) -> Texture:
        texture = self.document.create_texture(get_field(gltf_texture, 'name', ''))
        source = get_field(gltf_texture, 'source')
        if source is not None:
            image = self.gltf.images[source]
            texture.set_image(self._read_image(image))
            texture.set_mime_type(get_field(image, 'mimeType') or _guess_mime(get_field(image, 'uri', '')))
            if not texture.name:
                texture.name = get_field(image, 'name', '')
        sampler_index = get_field(gltf_texture, 'sampler')
        if sampler_index is not None:
            sampler = self.gltf.samplers[sampler_index]
            texture.sampler = {
                key: getattr(sampler, key)
                for key in ('magFilter', 'minFilter', 'wrapS', 'wrapT')
                if getattr(sampler, key, None) is not None
            }
        return texture

    def _read_image(self, image) -> bytes:
        if has_field(image, 'bufferView'):
            view = self.gltf.bufferViews[image.bufferView]
            start = get_field(view, 'byteOffset', 0)
            return bytes(self.blob[start:start + view.byteLength])
        uri = get_field(image, 'uri', '')
        if uri.startswith('data:'):
            return base64.b64decode(uri.split(',', 1)[1])
        if uri:
            return (self.path.parent / unquote(uri)).read_bytes()
        raise AssetReadError(f"{self.path}: image without data")

    def _read_material(self, gltf_material, textures: List[Texture]) -> Material:
        material = self.document.create_material(get_field(gltf_material, 'name', ''))
        pbr = get_field(gltf_material, 'pbrMetallicRoughness')

        material.base_color_factor = list(get_field(pbr, 'baseColorFactor', material.base_color_factor))
        material.metallic_factor = get_field(pbr, 'metallicFactor', material.metallic_factor)
        material.roughness_factor = get_field(pbr, 'roughnessFactor', material.roughness_factor)
        material.emissive_factor = list(get_field(gltf_material, 'emissiveFactor', material.emissive_factor))
        material.alpha_mode = get_field(gltf_material, 'alphaMode', material.alpha_mode)
        material.alpha_cutoff = get_field(gltf_material, 'alphaCutoff', material.alpha_cutoff)
        material.double_sided = get_field(gltf_material, 'doubleSided', material.double_sided)

        slots = [
            (TextureChannel.BASE_COLOR, get_field(pbr, 'baseColorTexture')),
            (TextureChannel.METALLIC_ROUGHNESS, get_field(pbr, 'metallicRoughnessTexture')),
            (TextureChannel.NORMAL, get_field(gltf_material, 'normalTexture')),
            (TextureChannel.OCCLUSION, get_field(gltf_material, 'occlusionTexture')),
            (TextureChannel.EMISSIVE, get_field(gltf_material, 'emissiveTexture')),
        ]
        for channel, info in slots:
            if info is None or get_field(info, 'index') is None:
                continue
            material._set(channel, textures[info.index])
            material.tex_coords[channel] = get_field(info, 'texCoord', 0)
            if channel == TextureChannel.NORMAL:
                material.normal_scale = get_field(info, 'scale', 1.0)
            elif channel == TextureChannel.OCCLUSION:
                material.occlusion_strength = get_field(info, 'strength', 1.0)
        return material

    # --- meshes -----------------------------------------------------------

    def _read_mesh(self, gltf_mesh, materials: List[Material]):
        mesh = self.document.create_mesh(get_field(gltf_mesh, 'name', ''))
        for gltf_primitive in get_list_field(gltf_mesh, 'primitives'):
            if get_extension(gltf_primitive, DRACO_EXTENSION):
                raise AssetReadError(f"{self.path}: Draco-compressed input is not supported")
            primitive = self.document.create_primitive()
            for semantic, index in _attribute_items(gltf_primitive.attributes):
                primitive.set_attribute(semantic, self._accessor(index))
            if has_field(gltf_primitive, 'indices'):
                primitive.set_indices(self._accessor(gltf_primitive.indices))
            if has_field(gltf_primitive, 'material'):
                primitive.set_material(materials[gltf_primitive.material])
            primitive.mode = get_field(gltf_primitive, 'mode', TRIANGLES)
            if get_list_field(gltf_primitive, 'targets'):
                logger.warning(f"{self.path.name}: dropping morph targets on mesh {mesh.name!r}")
            mesh.add_primitive(primitive)
        return mesh

    # --- scene graph ------------------------------------------------------

    def _read_transform(self, node: Node, gltf_node) -> None:
        matrix = get_field(gltf_node, 'matrix')
        if matrix:
            node.translation, node.rotation, node.scale = decompose_matrix(matrix_from_gltf(matrix))
            return
        node.translation = list(get_field(gltf_node, 'translation', DEFAULT_TRANSLATION))
        node.rotation = list(get_field(gltf_node, 'rotation', DEFAULT_ROTATION))
        node.scale = list(get_field(gltf_node, 'scale', DEFAULT_SCALE))

    def _read_skin(self, gltf_skin, nodes: List[Node]):
        skin = self.document.create_skin(get_field(gltf_skin, 'name', ''))
        for joint in get_list_field(gltf_skin, 'joints'):
            skin.add_joint(nodes[joint])
        if has_field(gltf_skin, 'skeleton'):
            skin.set_skeleton(nodes[gltf_skin.skeleton])
        if has_field(gltf_skin, 'inverseBindMatrices'):
            skin.inverse_bind_matrices = self._accessor(gltf_skin.inverseBindMatrices)
        return skin

    def _read_animation(self, gltf_animation, nodes: List[Node]) -> None:
        animation = self.document.create_animation(get_field(gltf_animation, 'name', ''))
        samplers = [
            AnimationSampler(
                self._accessor(s.input),
                self._accessor(s.output),
                get_field(s, 'interpolation', 'LINEAR'),
            )
            for s in get_list_field(gltf_animation, 'samplers')
        ]
        animation.samplers = list(samplers)
        for channel in get_list_field(gltf_animation, 'channels'):
            target = get_field(channel, 'target')
            if get_field(target, 'node') is None:
                continue
            animation.channels.append(
                AnimationChannel(nodes[target.node], target.path, samplers[channel.sampler])
            )


def _attribute_items(attributes) -> List[tuple]:
    source = attributes if isinstance(attributes, dict) else vars(attributes)
    return [(k, v) for k, v in source.items() if v is not None and not k.startswith('_')]


def _guess_mime(uri: str) -> str:
    lowered = uri.lower()
    if lowered.endswith(('.jpg', '.jpeg')):
        return "image/jpeg"
    if lowered.endswith('.webp'):
        return "image/webp"
    return "image/png"


#########################
# WRITING
#########################

def write(document: Document, path: Union[str, Path]) -> int:
    """
    Write a Document as GLB.

    Returns:
        Number of bytes written
    """
    glb = write_binary(document)
    Path(path).write_bytes(glb)
    return len(glb)


def write_binary(document: Document) -> bytes:
    """
    Serialize a Document to GLB bytes.

    Raises:
        AssetWriteError: If serialization fails
    """
    try:
        gltf = _GLTFWriter(document).build()
        return b"".join(gltf.save_to_bytes())
    except AssetWriteError:
        raise
    except Exception as e:
        raise AssetWriteError(f"Failed to write GLB: {e}") from e


class _GLTFWriter:
    """Lays out every document entity into a single-buffer glTF."""

    def __init__(self, document: Document):
        self.document = document
        self.gltf = GLTF2()
        self.blob = bytearray()
        self._accessors: Dict[int, int] = {}
        self._samplers: Dict[tuple, int] = {}
        self._textures: Dict[int, int] = {}
        self._materials: Dict[int, int] = {}
        self._meshes: Dict[int, int] = {}
        self._skins: Dict[int, int] = {}
        self._nodes: Dict[int, int] = {}
        self._draco_used = False

    def build(self) -> GLTF2:
        gltf = self.gltf
        document = self.document
        gltf.asset.generator = "crowdsmith"

        for index, texture in enumerate(document.list_textures()):
            self._textures[id(texture)] = index
            gltf.textures.append(self._write_texture(texture))
        for index, material in enumerate(document.list_materials()):
            self._materials[id(material)] = index
            gltf.materials.append(self._write_material(material))
        for index, mesh in enumerate(document.list_meshes()):
            self._meshes[id(mesh)] = index
            gltf.meshes.append(GltfMesh(
                name=mesh.name or None,
                primitives=[self._write_primitive(p) for p in mesh.list_primitives()],
            ))

        nodes = document.list_nodes()
        for index, node in enumerate(nodes):
            self._nodes[id(node)] = index
        for index, skin in enumerate(document.list_skins()):
            self._skins[id(skin)] = index
            gltf.skins.append(self._write_skin(skin))
        gltf.nodes = [self._write_node(node) for node in nodes]

        for scene in document.list_scenes():
            gltf.scenes.append(GltfScene(
                name=scene.name or None,
                nodes=[self._nodes[id(n)] for n in scene.list_children()],
            ))
        if document.default_scene is not None:
            gltf.scene = document.list_scenes().index(document.default_scene)

        for animation in document.list_animations():
            if animation.channels:
                gltf.animations.append(self._write_animation(animation))

        if self._draco_used:
            gltf.extensionsUsed = [DRACO_EXTENSION]
            gltf.extensionsRequired = [DRACO_EXTENSION]

        gltf.buffers = [Buffer(byteLength=len(self.blob))]
        gltf.set_binary_blob(bytes(self.blob))
        return gltf

    # --- buffer layout ----------------------------------------------------

    def _add_view(self, data: bytes, target: Optional[int] = None, stride: Optional[int] = None) -> int:
        padding = (4 - len(self.blob) % 4) % 4
        self.blob.extend(b"\x00" * padding)
        offset = len(self.blob)
        self.blob.extend(data)
        self.gltf.bufferViews.append(BufferView(
            buffer=0,
            byteOffset=offset,
            byteLength=len(data),
            byteStride=stride,
            target=target,
        ))
        return len(self.gltf.bufferViews) - 1

    def _accessor(self, accessor: Accessor, target: Optional[int] = None, with_bounds: bool = False,
                  skip_data: bool = False) -> int:
        key = id(accessor)
        if key in self._accessors:
            return self._accessors[key]

        array = accessor.array
        gltf_accessor = GltfAccessor(
            name=accessor.name or None,
            componentType=accessor.component_type,
            normalized=True if accessor.normalized else None,
            count=accessor.count,
            type=accessor.type,
        )
        if with_bounds and accessor.count:
            gltf_accessor.min = accessor.get_min()
            gltf_accessor.max = accessor.get_max()

        if skip_data:
            pass
        elif accessor.sparse and target != ELEMENT_ARRAY_BUFFER:
            gltf_accessor.sparse = self._write_sparse(array)
        elif target == ARRAY_BUFFER and accessor.element_size % 4:
            stride = accessor.element_size + (4 - accessor.element_size % 4)
            padded = np.zeros((accessor.count, stride), dtype=np.uint8)
            padded[:, :accessor.element_size] = array.view(np.uint8).reshape(accessor.count, -1)
            gltf_accessor.bufferView = self._add_view(padded.tobytes(), target, stride)
        else:
            gltf_accessor.bufferView = self._add_view(array.tobytes(), target)

        self.gltf.accessors.append(gltf_accessor)
        self._accessors[key] = len(self.gltf.accessors) - 1
        return self._accessors[key]

    def _write_sparse(self, array: np.ndarray) -> Optional[Sparse]:
        rows = np.nonzero(np.any(array != 0, axis=1))[0]
        if len(rows) == 0:
            return None
        if len(array) < 256:
            index_dtype = np.uint8
        elif len(array) < 65536:
            index_dtype = np.uint16
        else:
            index_dtype = np.uint32
        indices_view = self._add_view(rows.astype(index_dtype).tobytes())
        values_view = self._add_view(np.ascontiguousarray(array[rows]).tobytes())
        return Sparse(
            count=int(len(rows)),
            indices=AccessorSparseIndices(bufferView=indices_view, byteOffset=0,
                                          componentType=component_type_for(index_dtype)),
            values=AccessorSparseValues(bufferView=values_view, byteOffset=0),
        )

    # --- entities ---------------------------------------------------------

    def _write_texture(self, texture: Texture) -> GltfTexture:
        self.gltf.images.append(GltfImage(
            name=texture.name or None,
            bufferView=self._add_view(texture.image or b""),
            mimeType=texture.mime_type,
        ))
        sampler_index = None
        if texture.sampler:
            key = tuple(sorted(texture.sampler.items()))
            if key not in self._samplers:
                self.gltf.samplers.append(GltfSampler(**texture.sampler))
                self._samplers[key] = len(self.gltf.samplers) - 1
            sampler_index = self._samplers[key]
        return GltfTexture(name=texture.name or None, source=len(self.gltf.images) - 1, sampler=sampler_index)

    def _texture_info(self, material: Material, channel: TextureChannel, cls=TextureInfo, **extra):
        texture = dict(material.list_textures()).get(channel)
        if texture is None:
            return None
        return cls(index=self._textures[id(texture)], texCoord=material.tex_coords.get(channel, 0), **extra)

    def _write_material(self, material: Material) -> GltfMaterial:
        return GltfMaterial(
            name=material.name or None,
            pbrMetallicRoughness=PbrMetallicRoughness(
                baseColorFactor=list(material.base_color_factor),
                metallicFactor=material.metallic_factor,
                roughnessFactor=material.roughness_factor,
                baseColorTexture=self._texture_info(material, TextureChannel.BASE_COLOR),
                metallicRoughnessTexture=self._texture_info(material, TextureChannel.METALLIC_ROUGHNESS),
            ),
            normalTexture=self._texture_info(material, TextureChannel.NORMAL, NormalMaterialTexture,
                                             scale=material.normal_scale),
            occlusionTexture=self._texture_info(material, TextureChannel.OCCLUSION, OcclusionTextureInfo,
                                                strength=material.occlusion_strength),
            emissiveTexture=self._texture_info(material, TextureChannel.EMISSIVE),
            emissiveFactor=list(material.emissive_factor),
            alphaMode=material.alpha_mode,
            alphaCutoff=material.alpha_cutoff if material.alpha_mode == "MASK" else None,
            doubleSided=material.double_sided,
        )

    def _write_primitive(self, primitive: Primitive) -> GltfPrimitive:
        draco = self.document.draco
        use_draco = (
            draco is not None
            and primitive.mode == TRIANGLES
            and primitive.indices is not None
            and primitive.get_attribute('POSITION') is not None
        )

        attributes = Attributes()
        for semantic, accessor in zip(primitive.list_semantics(), primitive.list_attributes()):
            is_position = semantic == 'POSITION'
            index = self._accessor(
                accessor, ARRAY_BUFFER,
                with_bounds=is_position,
                skip_data=use_draco and is_position,
            )
            setattr(attributes, semantic, index)

        gltf_primitive = GltfPrimitive(attributes=attributes, mode=primitive.mode)
        if primitive.indices is not None:
            gltf_primitive.indices = self._accessor(primitive.indices, ELEMENT_ARRAY_BUFFER, skip_data=use_draco)
        if primitive.material is not None:
            gltf_primitive.material = self._materials[id(primitive.material)]

        if use_draco:
            encoded = draco.encode(primitive)
            gltf_primitive.extensions = {
                DRACO_EXTENSION: {
                    "bufferView": self._add_view(encoded),
                    "attributes": {"POSITION": 0},
                }
            }
            self._draco_used = True
        return gltf_primitive

    def _write_node(self, node: Node) -> GltfNode:
        gltf_node = GltfNode(
            name=node.name or None,
            children=[self._nodes[id(c)] for c in node.list_children()],
        )
        if node.mesh is not None:
            gltf_node.mesh = self._meshes[id(node.mesh)]
        if node.skin is not None:
            gltf_node.skin = self._skins[id(node.skin)]
        if list(node.translation) != DEFAULT_TRANSLATION:
            gltf_node.translation = [float(v) for v in node.translation]
        if list(node.rotation) != DEFAULT_ROTATION:
            gltf_node.rotation = [float(v) for v in node.rotation]
        if list(node.scale) != DEFAULT_SCALE:
            gltf_node.scale = [float(v) for v in node.scale]
        return gltf_node

    def _write_skin(self, skin) -> GltfSkin:
        gltf_skin = GltfSkin(
            name=skin.name or None,
            joints=[self._nodes[id(j)] for j in skin.list_joints()],
        )
        if skin.skeleton is not None:
            gltf_skin.skeleton = self._nodes[id(skin.skeleton)]
        if skin.inverse_bind_matrices is not None:
            gltf_skin.inverseBindMatrices = self._accessor(skin.inverse_bind_matrices)
        return gltf_skin

    def _write_animation(self, animation) -> GltfAnimation:
        samplers = [s for s in animation.samplers if any(c.sampler is s for c in animation.channels)]
        gltf_samplers = [
            GltfAnimationSampler(
                input=self._accessor(s.input, with_bounds=True),
                output=self._accessor(s.output),
                interpolation=s.interpolation,
            )
            for s in samplers
        ]
        channels = [
            GltfAnimationChannel(
                sampler=samplers.index(c.sampler),
                target=AnimationChannelTarget(node=self._nodes[id(c.target_node)], path=c.target_path),
            )
            for c in animation.channels
        ]
        return GltfAnimation(name=animation.name or None, samplers=gltf_samplers, channels=channels)
