"""
Tests for compositing original textures into atlas tiles.
"""

import numpy as np

from builders import solid_png
from crowdsmith.document.model import Document
from crowdsmith.texturing.atlas import AtlasSlot, create_atlases
from crowdsmith.texturing.compositor import copy_textures_to_atlases


def make_primitives(document, colors, size, with_texture=None):
    """One primitive per color whose original material has a base texture of that color."""
    primitives = []
    for index, color in enumerate(colors):
        material = document.create_material(f"m{index}")
        if with_texture is None or index in with_texture:
            texture = document.create_texture(f"t{index}").set_image(solid_png(color, size))
            material.set_base_color_texture(texture)
        primitive = document.create_primitive()
        primitive.original_material = material
        primitives.append(primitive)
    return primitives


class TestCopyTexturesToAtlases:
    """Tile placement, missing channels, ordering and alpha"""

    def test_each_primitive_fills_its_tile(self):
        document = Document()
        colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
        primitives = make_primitives(document, colors, size=4)
        atlases = create_atlases(document, 8, document.create_material("main"), [AtlasSlot.BASE])

        copied = copy_textures_to_atlases(atlases, 2, 8, primitives)

        data = atlases[AtlasSlot.BASE].data
        assert copied == 4
        assert tuple(data[0, 0, :3]) == colors[0]
        assert tuple(data[0, 4, :3]) == colors[1]
        assert tuple(data[4, 0, :3]) == colors[2]
        assert tuple(data[7, 7, :3]) == colors[3]

    def test_missing_texture_keeps_neutral_fill(self):
        """A primitive without a channel texture is not an error"""
        document = Document()
        primitives = make_primitives(document, [(255, 0, 0), (0, 255, 0)], size=4, with_texture={0})
        material = document.create_material("main")
        atlases = create_atlases(document, 8, material, [AtlasSlot.BASE, AtlasSlot.NORMALS])

        copied = copy_textures_to_atlases(atlases, 2, 8, primitives)

        assert copied == 1
        base = atlases[AtlasSlot.BASE].data
        assert tuple(base[0, 4]) == (0, 0, 0, 255)
        normals = atlases[AtlasSlot.NORMALS].data
        assert (normals == np.array([128, 128, 255, 255], dtype=np.uint8)).all()

    def test_lower_indices_are_written_last(self):
        """Oversized sources overlap; tile 0 is composited last and wins"""
        document = Document()
        primitives = make_primitives(document, [(255, 0, 0), (0, 0, 255)], size=6)
        atlases = create_atlases(document, 8, document.create_material("main"), [AtlasSlot.BASE])

        copy_textures_to_atlases(atlases, 2, 8, primitives)

        data = atlases[AtlasSlot.BASE].data
        assert tuple(data[0, 5, :3]) == (255, 0, 0)
        assert tuple(data[0, 7, :3]) == (0, 0, 255)

    def test_destination_alpha_is_preserved(self):
        """Transparent sources do not punch holes in the atlas alpha"""
        document = Document()
        material = document.create_material("m0")
        texture = document.create_texture("t0").set_image(solid_png((10, 20, 30), size=4, alpha=0))
        material.set_base_color_texture(texture)
        primitive = document.create_primitive()
        primitive.original_material = material
        atlases = create_atlases(document, 4, document.create_material("main"), [AtlasSlot.BASE])

        copy_textures_to_atlases(atlases, 1, 4, [primitive])

        data = atlases[AtlasSlot.BASE].data
        assert tuple(data[2, 2, :3]) == (10, 20, 30)
        assert (data[:, :, 3] == 255).all()

    def test_primitive_without_original_material_is_skipped(self):
        document = Document()
        primitive = document.create_primitive()
        atlases = create_atlases(document, 4, document.create_material("main"), [AtlasSlot.BASE])
        assert copy_textures_to_atlases(atlases, 1, 4, [primitive]) == 0
