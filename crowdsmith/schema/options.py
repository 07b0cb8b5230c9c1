"""
Merge options

Validated run configuration for the merge pipeline, plus the per-LOD tables
it reads from.

LOD TABLES (indexed by LOD 0-3):
- ATLAS_SIZES: atlas edge length in pixels when merging
- LOD_ERRORS: simplification error budget

TEXTURE SIZES:
- merge: textures are resized to the atlas tile size
- resize without merge: textures fit inside resize x resize
- neither: textures are left alone
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ATLAS_SIZES = (2048, 512, 256, 64)
LOD_ERRORS = (0.001, 0.002, 0.005, 0.015)

MAX_LOD = len(ATLAS_SIZES) - 1

# Texture edge length when not merging and no --resize was given
DEFAULT_TEXTURE_SIZE = 512

# Resizing to this size without merging is skipped
NATIVE_TEXTURE_SIZE = 1024

# Fraction of non-zero elements below which accessors are stored sparse
SPARSE_RATIO = 1 / 10


class MergeOptions(BaseModel):
    """Options for one merge run."""
    model_config = ConfigDict(extra='forbid')

    files: List[str] = Field(..., min_length=1, description="Input .glb/.gltf files, in merge order.")
    output: str = Field(..., description="Output .glb path.")
    lod: int = Field(0, ge=0, le=MAX_LOD, description="Level of detail 0-3.")
    merge: bool = Field(False, description="Merge all meshes into one and textures into one atlas per slot.")
    resize: Optional[int] = Field(None, gt=0, description="Maximum texture resolution when not merging.")
    draco: Optional[int] = Field(None, ge=0, le=10, description="Draco compression level 0-10.")
    inspect: bool = Field(False, description="Include the full inspection report.")

    @field_validator('files')
    @classmethod
    def validate_files(cls, v):
        missing = [f for f in v if not Path(f).is_file()]
        if missing:
            raise ValueError(f"Input file not found: {', '.join(missing)}")
        return v

    @property
    def atlas_size(self) -> int:
        return ATLAS_SIZES[self.lod]

    @property
    def lod_error(self) -> float:
        return LOD_ERRORS[self.lod]

    @property
    def texture_size(self) -> int:
        """Texture edge length before atlasing is decided."""
        if not self.merge and self.resize:
            return self.resize
        return DEFAULT_TEXTURE_SIZE

    def describe(self) -> List[str]:
        """Human-readable list of active processing steps."""
        params = []
        if self.merge:
            params.append('Merging')
        if self.merge or self.resize:
            params.append('Resizing')
        if self.lod > 0:
            params.append(f'LoD {self.lod}')
        return params
