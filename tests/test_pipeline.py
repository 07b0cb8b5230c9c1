"""
End-to-end tests for the merge pipeline.
"""

import numpy as np
import pytest

from builders import build_character
from crowdsmith.document import io
from crowdsmith.pipeline import MergeResult, merge_assets
from crowdsmith.schema import MergeOptions
from crowdsmith.texturing import codec


def assert_color(pixel, color, tolerance=10):
    assert np.all(np.abs(pixel[:3].astype(int) - np.array(color)) <= tolerance), (pixel, color)


class TestMergeAtlas:
    """Four single-material characters merged into one atlased mesh"""

    @pytest.fixture
    def merged(self, character_files, tmp_path):
        paths, colors = character_files
        output = tmp_path / "merged.glb"
        result = merge_assets(MergeOptions(files=paths, output=str(output), merge=True))
        return result, io.read(output), colors

    def test_result_counts(self, merged):
        result, _, _ = merged
        assert result.documents == 4
        assert result.primitives == 4
        assert result.layout.atlas_width == 2
        assert result.layout.tile_size == 1024
        assert result.size_after > 0

    def test_single_mesh_skin_and_scene(self, merged):
        _, document, _ = merged
        assert len(document.list_scenes()) == 1
        assert len(document.list_meshes()) == 1
        assert len(document.list_meshes()[0].list_primitives()) == 1
        assert len(document.list_skins()) == 1
        assert [m.name for m in document.list_materials()] == ["main"]

    def test_joined_primitive_keeps_all_vertices(self, merged):
        _, document, _ = merged
        primitive = document.list_primitives()[0]
        assert primitive.vertex_count == 16
        assert primitive.get_indices().count == 24

    def test_uvs_stay_in_unit_square(self, merged):
        _, document, _ = merged
        uvs = document.list_primitives()[0].get_attribute('TEXCOORD_0').to_float()
        assert uvs.min() >= 0.0
        assert uvs.max() <= 1.0

    def test_each_quad_stays_in_its_own_tile(self, merged):
        """Quad k of the joined primitive lies entirely inside tile k"""
        _, document, _ = merged
        primitive = document.list_primitives()[0]
        uvs = primitive.get_attribute('TEXCOORD_0').to_float()
        positions = primitive.get_attribute('POSITION').to_float()

        tiles = set()
        for k in range(4):
            quad = uvs[4 * k:4 * k + 4]
            tile_x, tile_y = k % 2, k // 2
            assert np.all(quad[:, 0] >= tile_x / 2) and np.all(quad[:, 0] < tile_x / 2 + 0.5)
            assert np.all(quad[:, 1] >= tile_y / 2) and np.all(quad[:, 1] < tile_y / 2 + 0.5)
            tiles.add((int(quad[:, 0].min() * 2), int(quad[:, 1].min() * 2)))
        assert len(tiles) == 4

        # Asset i was built at x offset 5 * i; tile order is asset 0, 3, 2, 1
        owners = [int(round(positions[4 * k:4 * k + 4, 0].min() / 5)) for k in range(4)]
        assert owners == [0, 3, 2, 1]

    def test_base_atlas_tiles(self, merged):
        """Tiles follow primitive order: first mesh, then the others in reverse"""
        _, document, colors = merged
        texture = document.list_materials()[0].get_base_color_texture()
        assert texture.mime_type == "image/jpeg"
        atlas = codec.decode(texture.image, texture.mime_type)
        assert atlas.shape[:2] == (2048, 2048)

        assert_color(atlas[512, 512], colors[0])
        assert_color(atlas[512, 1536], colors[3])
        assert_color(atlas[1536, 512], colors[2])
        assert_color(atlas[1536, 1536], colors[1])

    def test_emissive_is_cleared(self, merged):
        _, document, _ = merged
        assert document.list_materials()[0].emissive_factor == [0.0, 0.0, 0.0]


class TestMergeWithoutAtlas:
    def test_meshes_are_kept_and_skins_shared(self, character_files, tmp_path):
        paths, _ = character_files
        output = tmp_path / "combined.glb"

        result = merge_assets(MergeOptions(files=paths, output=str(output)))

        assert isinstance(result, MergeResult)
        assert result.layout is None
        document = io.read(output)
        assert len(document.list_meshes()) == 4
        assert len(document.list_skins()) == 1
        skin = document.list_skins()[0]
        skinned = [n for n in document.list_nodes() if n.get_mesh() is not None]
        assert len(skinned) == 4
        assert all(n.get_skin() is skin for n in skinned)
        assert sorted(n.name for n in skinned) == [f"char{i}-mesh" for i in range(4)]

    def test_textures_keep_size_without_resize(self, character_files, tmp_path):
        paths, _ = character_files
        output = tmp_path / "combined.glb"
        merge_assets(MergeOptions(files=paths, output=str(output)))
        for texture in io.read(output).list_textures():
            assert codec.image_size(texture.image) == (64, 64)

    def test_resize_shrinks_textures(self, character_files, tmp_path):
        paths, _ = character_files
        output = tmp_path / "resized.glb"
        merge_assets(MergeOptions(files=paths, output=str(output), resize=32))
        for texture in io.read(output).list_textures():
            assert codec.image_size(texture.image) == (32, 32)

    def test_vertex_counts_are_reported(self, character_files, tmp_path):
        paths, _ = character_files
        result = merge_assets(MergeOptions(files=paths, output=str(tmp_path / "out.glb")))
        assert result.vertices_before == 16
        assert result.vertices_after == 16
        assert result.vertex_reduction == 0


class TestLevelOfDetail:
    def test_lod_drops_teeth_and_shrinks_atlas(self, tmp_path):
        pytest.importorskip("trimesh")
        paths = []
        for index in range(2):
            document = build_character(f"c{index}", materials=[f"c{index}_Body", f"c{index}_Teeth"])
            path = tmp_path / f"c{index}.glb"
            io.write(document, path)
            paths.append(str(path))
        output = tmp_path / "lod.glb"

        result = merge_assets(MergeOptions(files=paths, output=str(output), merge=True, lod=1))

        assert result.primitives == 2
        assert result.layout.resolution == 512
        document = io.read(output)
        texture = document.list_materials()[0].get_base_color_texture()
        assert codec.image_size(texture.image) == (512, 512)
        assert document.list_materials()[0].get_occlusion_texture() is not None

    def test_lod_3_drops_normal_and_occlusion_atlases(self, character_files, tmp_path):
        pytest.importorskip("trimesh")
        paths, _ = character_files
        output = tmp_path / "lod3.glb"

        merge_assets(MergeOptions(files=paths, output=str(output), merge=True, lod=3))

        material = io.read(output).list_materials()[0]
        assert material.get_base_color_texture() is not None
        assert material.get_metallic_roughness_texture() is not None
        assert material.get_normal_texture() is None
        assert material.get_occlusion_texture() is None


class TestErrors:
    def test_unreadable_input(self, tmp_path):
        from crowdsmith.exceptions import AssetReadError

        broken = tmp_path / "broken.glb"
        broken.write_bytes(b"nope")
        with pytest.raises(AssetReadError):
            merge_assets(MergeOptions(files=[str(broken)], output=str(tmp_path / "o.glb")))
