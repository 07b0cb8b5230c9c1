"""
Tests for GLB reading and writing.
"""

import base64
import json

import numpy as np
import pytest
from pygltflib import GLTF2

from builders import build_character, solid_png
from crowdsmith.document import io
from crowdsmith.document.model import Document, TextureChannel
from crowdsmith.exceptions import AssetReadError


def roundtrip(document, tmp_path, name="asset.glb"):
    path = tmp_path / name
    io.write(document, path)
    return io.read(path)


class TestRoundtrip:
    """Write then read preserves structure and payloads"""

    def test_scene_structure(self, character, tmp_path):
        loaded = roundtrip(character, tmp_path)

        assert len(loaded.list_scenes()) == 1
        roots = [n.name for n in loaded.default_scene.list_children()]
        assert roots == ["Armature", "skinned"]
        armature = loaded.default_scene.list_children()[0]
        assert [c.name for c in armature.list_children()] == ["Hips"]

    def test_skin_joints(self, character, tmp_path):
        loaded = roundtrip(character, tmp_path)

        skin = loaded.list_skins()[0]
        assert [j.name for j in skin.list_joints()] == ["Hips"]
        assert skin.get_skeleton().name == "Armature"
        assert skin.inverse_bind_matrices.type == 'MAT4'
        skinned = [n for n in loaded.list_nodes() if n.get_skin() is skin]
        assert [n.name for n in skinned] == ["skinned"]

    def test_texture_bytes_and_bindings(self, character, tmp_path):
        original = character.list_materials()[0].get_base_color_texture().image
        loaded = roundtrip(character, tmp_path)

        material = loaded.list_materials()[0]
        assert material.name == "hero_Body"
        assert material.get_base_color_texture().image == original
        assert material.get_base_color_texture().mime_type == "image/png"
        assert dict(material.list_textures()).keys() == {
            TextureChannel.BASE_COLOR, TextureChannel.METALLIC_ROUGHNESS,
        }

    def test_geometry(self, character, tmp_path):
        loaded = roundtrip(character, tmp_path)

        primitive = loaded.list_primitives()[0]
        assert sorted(primitive.list_semantics()) == ['JOINTS_0', 'NORMAL', 'POSITION', 'TEXCOORD_0', 'WEIGHTS_0']
        assert primitive.get_indices().array.reshape(-1).tolist() == [0, 1, 2, 0, 2, 3]
        assert primitive.get_attribute('JOINTS_0').array.dtype == np.uint16
        assert np.allclose(primitive.get_attribute('POSITION').array[2], [1, 1, 0])

    def test_transforms(self, tmp_path):
        document = Document()
        scene = document.create_scene()
        node = document.create_node("moved")
        node.translation = [1.0, 2.0, 3.0]
        node.rotation = [0.0, 0.70710677, 0.0, 0.70710677]
        node.scale = [2.0, 2.0, 2.0]
        scene.add_child(node)

        loaded = roundtrip(document, tmp_path).list_nodes()[0]
        assert np.allclose(loaded.translation, [1, 2, 3])
        assert np.allclose(loaded.rotation, [0, 0.70710677, 0, 0.70710677])
        assert np.allclose(loaded.scale, [2, 2, 2])

    def test_sparse_accessor(self, character, tmp_path):
        joints = character.list_primitives()[0].get_attribute('WEIGHTS_0')
        data = np.zeros((40, 4), dtype=np.float32)
        data[7] = [1, 0, 0, 0]
        joints.set_array(data)
        joints.sparse = True
        for semantic in ('POSITION', 'NORMAL', 'TEXCOORD_0', 'JOINTS_0'):
            accessor = character.list_primitives()[0].get_attribute(semantic)
            accessor.set_array(np.resize(accessor.array, (40, accessor.components)))

        path = tmp_path / "sparse.glb"
        io.write(character, path)
        gltf = GLTF2.load(str(path))
        weights = gltf.accessors[gltf.meshes[0].primitives[0].attributes.WEIGHTS_0]
        assert weights.sparse is not None and weights.sparse.count == 1

        loaded = io.read(path).list_primitives()[0].get_attribute('WEIGHTS_0')
        assert np.array_equal(loaded.array, data)

    def test_vertex_strides_are_aligned(self, character, tmp_path):
        primitive = character.list_primitives()[0]
        colors = np.full((4, 3), 255, dtype=np.uint8)
        primitive.set_attribute('COLOR_0', character.create_accessor("color", colors, 'VEC3', normalized=True))

        path = tmp_path / "stride.glb"
        io.write(character, path)
        gltf = GLTF2.load(str(path))
        accessor = gltf.accessors[gltf.meshes[0].primitives[0].attributes.COLOR_0]
        assert gltf.bufferViews[accessor.bufferView].byteStride == 4

        loaded = io.read(path).list_primitives()[0].get_attribute('COLOR_0')
        assert loaded.normalized
        assert np.array_equal(loaded.array, colors)

    def test_binary_output_is_glb(self, character):
        glb = io.write_binary(character)
        assert glb[:4] == b"glTF"


def write_gltf(tmp_path, payload, name="asset.gltf"):
    path = tmp_path / name
    path.write_text(json.dumps(payload))
    return path


class TestReader:
    """Reader edge cases from hand-written .gltf files"""

    def test_matrix_is_decomposed(self, tmp_path):
        matrix = [2, 0, 0, 0, 0, 2, 0, 0, 0, 0, 2, 0, 5, 6, 7, 1]
        path = write_gltf(tmp_path, {
            "asset": {"version": "2.0"},
            "scene": 0,
            "scenes": [{"nodes": [0]}],
            "nodes": [{"name": "m", "matrix": matrix}],
        })

        node = io.read(path).list_nodes()[0]
        assert np.allclose(node.translation, [5, 6, 7])
        assert np.allclose(node.scale, [2, 2, 2])
        assert np.allclose(node.rotation, [0, 0, 0, 1])

    def test_data_uri_image(self, tmp_path):
        png = solid_png((1, 2, 3), size=2)
        path = write_gltf(tmp_path, {
            "asset": {"version": "2.0"},
            "images": [{"uri": "data:image/png;base64," + base64.b64encode(png).decode()}],
            "textures": [{"source": 0}],
            "materials": [{"name": "mat", "pbrMetallicRoughness": {"baseColorTexture": {"index": 0}}}],
        })

        document = io.read(path)
        texture = document.list_materials()[0].get_base_color_texture()
        assert texture.image == png
        assert texture.mime_type == "image/png"

    def test_unsupported_required_extension(self, tmp_path):
        path = write_gltf(tmp_path, {
            "asset": {"version": "2.0"},
            "extensionsUsed": ["EXT_meshopt_compression"],
            "extensionsRequired": ["EXT_meshopt_compression"],
        })
        with pytest.raises(AssetReadError):
            io.read(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            io.read(tmp_path / "nope.glb")

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "broken.glb"
        path.write_bytes(b"not a gltf at all")
        with pytest.raises(AssetReadError):
            io.read(path)

    def test_document_is_named_after_file(self, tmp_path):
        document = roundtrip(build_character("x"), tmp_path, name="villager.glb")
        assert document.name == "villager"
