"""
Tests for the pixel codec and texture cleanup/resizing.
"""

import numpy as np
import pytest

from builders import solid_png
from crowdsmith.document.model import Document, TextureChannel
from crowdsmith.texturing import codec
from crowdsmith.texturing.textures import channels_for_lod, cleanup_textures, resize_textures


class TestCodec:
    def test_decode_returns_rgba(self):
        raster = codec.decode(solid_png((10, 20, 30), size=5))
        assert raster.shape == (5, 5, 4)
        assert raster.dtype == np.uint8
        assert tuple(raster[0, 0]) == (10, 20, 30, 255)

    def test_png_is_lossless(self):
        raster = np.random.default_rng(0).integers(0, 255, (6, 7, 4), dtype=np.uint8)
        assert np.array_equal(codec.decode(codec.encode(raster, "image/png")), raster)

    def test_jpeg_drops_alpha(self):
        raster = np.zeros((8, 8, 4), dtype=np.uint8)
        raster[:, :, 3] = 10
        decoded = codec.decode(codec.encode(raster, "image/jpeg"), "image/jpeg")
        assert (decoded[:, :, 3] == 255).all()

    def test_unknown_mime_raises(self):
        with pytest.raises(ValueError):
            codec.encode(np.zeros((2, 2, 4), dtype=np.uint8), "image/ktx2")

    def test_image_size(self):
        assert codec.image_size(solid_png((0, 0, 0), size=12)) == (12, 12)


def material_with(document, **textures):
    material = document.create_material()
    for channel, texture in textures.items():
        material._set(TextureChannel(channel), texture)
    return material


class TestCleanupTextures:
    def test_single_slot_textures_in_set_are_removed(self):
        document = Document()
        emissive = document.create_texture("emissive")
        base = document.create_texture("base")
        material_with(document, emissiveTexture=emissive, baseColorTexture=base)

        removed = cleanup_textures(document, {TextureChannel.EMISSIVE})

        assert removed == 1
        assert document.list_textures() == [base]
        assert document.list_materials()[0].get_emissive_texture() is None

    def test_textures_shared_across_slots_are_kept(self):
        document = Document()
        shared = document.create_texture("shared")
        material_with(document, occlusionTexture=shared, metallicRoughnessTexture=shared)

        assert cleanup_textures(document, {TextureChannel.OCCLUSION}) == 0
        assert shared in document.list_textures()

    def test_same_slot_in_several_materials_counts_once(self):
        document = Document()
        normal = document.create_texture("normal")
        material_with(document, normalTexture=normal)
        material_with(document, normalTexture=normal)

        assert cleanup_textures(document, {TextureChannel.NORMAL}) == 1

    def test_channels_for_lod(self):
        assert channels_for_lod(0) == set()
        assert channels_for_lod(1) == {TextureChannel.EMISSIVE}
        assert channels_for_lod(2) == {TextureChannel.EMISSIVE, TextureChannel.OCCLUSION}
        assert channels_for_lod(3) == {TextureChannel.EMISSIVE, TextureChannel.OCCLUSION, TextureChannel.NORMAL}


class TestResizeTextures:
    def test_exact_resize_scales_up_and_down(self):
        document = Document()
        small = document.create_texture("small").set_image(solid_png((1, 2, 3), size=8))
        large = document.create_texture("large").set_image(solid_png((1, 2, 3), size=64))

        resized = resize_textures(document, 32, exact=True)

        assert resized == 2
        assert codec.image_size(small.image) == (32, 32)
        assert codec.image_size(large.image) == (32, 32)

    def test_fit_inside_never_enlarges(self):
        document = Document()
        small = document.create_texture("small").set_image(solid_png((1, 2, 3), size=8))
        raster = np.zeros((32, 64, 4), dtype=np.uint8)
        wide = document.create_texture("wide").set_image(codec.encode(raster))

        resized = resize_textures(document, 16)

        assert resized == 1
        assert codec.image_size(small.image) == (8, 8)
        assert codec.image_size(wide.image) == (16, 8)

    def test_textures_without_image_are_skipped(self):
        document = Document()
        document.create_texture("empty")
        assert resize_textures(document, 16, exact=True) == 0
