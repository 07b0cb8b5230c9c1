"""
Tests for MergeOptions validation and LOD tables.
"""

import pytest
from pydantic import ValidationError

from crowdsmith.schema import ATLAS_SIZES, LOD_ERRORS, MergeOptions


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "in.glb"
    path.write_bytes(b"glTF")
    return str(path)


class TestMergeOptions:
    def test_defaults(self, input_file):
        options = MergeOptions(files=[input_file], output="out.glb")
        assert options.lod == 0
        assert not options.merge
        assert options.resize is None
        assert options.draco is None
        assert options.describe() == []

    def test_lod_tables(self, input_file):
        assert ATLAS_SIZES == (2048, 512, 256, 64)
        assert LOD_ERRORS == (0.001, 0.002, 0.005, 0.015)
        options = MergeOptions(files=[input_file], output="out.glb", lod=2)
        assert options.atlas_size == 256
        assert options.lod_error == 0.005

    @pytest.mark.parametrize("lod", [-1, 4])
    def test_lod_out_of_range(self, input_file, lod):
        with pytest.raises(ValidationError):
            MergeOptions(files=[input_file], output="out.glb", lod=lod)

    @pytest.mark.parametrize("draco", [-1, 11])
    def test_draco_out_of_range(self, input_file, draco):
        with pytest.raises(ValidationError):
            MergeOptions(files=[input_file], output="out.glb", draco=draco)

    def test_files_required(self):
        with pytest.raises(ValidationError):
            MergeOptions(files=[], output="out.glb")

    def test_missing_input_file(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            MergeOptions(files=[str(tmp_path / "missing.glb")], output="out.glb")
        assert "not found" in str(exc_info.value)

    def test_unknown_fields_are_rejected(self, input_file):
        with pytest.raises(ValidationError):
            MergeOptions(files=[input_file], output="out.glb", colour="red")

    def test_texture_size(self, input_file):
        assert MergeOptions(files=[input_file], output="o.glb").texture_size == 512
        assert MergeOptions(files=[input_file], output="o.glb", resize=256).texture_size == 256
        assert MergeOptions(files=[input_file], output="o.glb", resize=256, merge=True).texture_size == 512

    def test_describe(self, input_file):
        options = MergeOptions(files=[input_file], output="o.glb", merge=True, lod=1)
        assert options.describe() == ['Merging', 'Resizing', 'LoD 1']
