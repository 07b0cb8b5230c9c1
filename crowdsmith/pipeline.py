"""
Merge pipeline

Runs a full merge: load every input, fold them into one document with one
skeleton, optionally consolidate primitives into a single atlased mesh,
reduce detail for the requested LOD, clean up and write one GLB.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from crowdsmith.document import io
from crowdsmith.document.model import Document
from crowdsmith.geometry import flatten, get_scene_vertex_count, prune, sparse, weld
from crowdsmith.inspect import inspect
from crowdsmith.merging import (
    cleanup_attributes,
    consolidate_skeletons,
    lod_material_filter,
    merge_documents,
    merge_primitives,
    remove_primitives_by_material,
    reparent_primitives,
)
from crowdsmith.schema.options import NATIVE_TEXTURE_SIZE, SPARSE_RATIO, MergeOptions
from crowdsmith.texturing import (
    AtlasLayout,
    channels_for_lod,
    cleanup_textures,
    copy_textures_to_atlases,
    create_atlases,
    remap_uvs_to_atlas,
    resize_textures,
    slots_for_lod,
)

logger = logging.getLogger(__name__)

SHARED_MATERIAL_NAME = "main"
PRIMARY_SCENE_NAME = "scene"


@dataclass
class MergeResult:
    """
    Outcome of a merge run.

    Attributes:
        output: Path of the written GLB
        documents: Number of input documents
        primitives: Primitives in the consolidated mesh (merge only)
        layout: Atlas tile layout (merge only)
        vertices_before: Scene vertex count before simplification
        vertices_after: Scene vertex count after all transforms
        size_before: Summed input file sizes in bytes
        size_after: Output file size in bytes
        sizes: Mesh, texture and VRAM byte totals of the output
        report: Full inspection report of the output document
        elapsed: Wall time in seconds
    """
    output: str
    documents: int
    primitives: int = 0
    layout: Optional[AtlasLayout] = None
    vertices_before: int = 0
    vertices_after: int = 0
    size_before: int = 0
    size_after: int = 0
    sizes: Dict[str, int] = field(default_factory=dict)
    report: Dict[str, Any] = field(default_factory=dict)
    elapsed: float = 0.0

    @property
    def vertex_reduction(self) -> int:
        """Percentage of vertices removed by simplification."""
        if not self.vertices_before:
            return 0
        return round((1.0 - self.vertices_after / self.vertices_before) * 100)

    @property
    def size_difference(self) -> int:
        """Output size change in percent (negative means smaller)."""
        if not self.size_before:
            return 0
        return -int((self.size_before - self.size_after) / self.size_before * 100)


def load_documents(files: List[str]) -> List[Document]:
    """Read every input in order."""
    return [io.read(path) for path in files]


def merge_assets(options: MergeOptions) -> MergeResult:
    """
    Merge the input assets described by ``options`` into one GLB.

    Args:
        options: Validated merge options

    Returns:
        MergeResult with sizes and counts

    Raises:
        FileNotFoundError: If an input file is missing
        AssetReadError: If an input cannot be parsed
        ValueError: If merging is requested but no primitives remain
    """
    start = time.perf_counter()
    lod = options.lod

    params = options.describe()
    if params:
        logger.info(f"Params: {', '.join(params)}")

    size_before = sum(Path(f).stat().st_size for f in options.files)
    documents = load_documents(options.files)
    logger.info(f"Documents: {len(documents)}")
    result = MergeResult(output=options.output, documents=len(documents), size_before=size_before)

    main = Document("main")
    primary_scene = main.create_scene(PRIMARY_SCENE_NAME)
    merge_documents(main, documents)

    if lod >= 1:
        remove_primitives_by_material(main, lod_material_filter(lod))
        prune(main)

    consolidate_skeletons(main, primary_scene)

    material = None
    layout = None
    texture_size = options.texture_size
    if options.merge:
        material = main.create_material(SHARED_MATERIAL_NAME)
        reparent_primitives(main, material)

        primitives = main.list_meshes()[0].list_primitives() if main.list_meshes() else []
        logger.info(f"Primitives: {len(primitives)}")
        layout = AtlasLayout(primitive_count=len(primitives), resolution=options.atlas_size)
        texture_size = layout.tile_size
        result.primitives = len(primitives)
        result.layout = layout
        logger.info(
            f"Atlas tiles: {layout.tiles_count}, size: {layout.atlas_width}x{layout.atlas_width}, "
            f"resolution: {layout.resolution}x{layout.resolution}"
        )
        logger.info(f"Texture size: {texture_size}")

    cleanup_attributes(main.list_primitives())
    if options.merge:
        primitives = main.list_meshes()[0].list_primitives()
        for i in range(len(primitives) - 1, -1, -1):
            uvs = primitives[i].get_attribute('TEXCOORD_0')
            if uvs is not None:
                remap_uvs_to_atlas(uvs, i, layout.atlas_width)

    logger.info(f"Textures: {len(main.list_textures())}")
    if lod > 0:
        cleanup_textures(main, channels_for_lod(lod))

    for each in main.list_materials():
        each.emissive_factor = [0.0, 0.0, 0.0]
        each.alpha_cutoff = 0.0

    if options.merge or (options.resize and texture_size != NATIVE_TEXTURE_SIZE):
        logger.info(f"Resizing Textures: {texture_size}x{texture_size}")
        resize_textures(main, texture_size, exact=options.merge)

    if options.merge:
        atlases = create_atlases(main, layout.resolution, material, slots_for_lod(lod))
        copy_textures_to_atlases(
            atlases, layout.atlas_width, layout.resolution,
            main.list_meshes()[0].list_primitives(),
        )
        for atlas in atlases.values():
            atlas.upload()

    result.vertices_before = get_scene_vertex_count(primary_scene)

    if lod > 0:
        from crowdsmith.geometry.simplify import simplify
        weld(main)
        simplify(main, ratio=0.0, error=options.lod_error)

    if options.merge:
        merge_primitives(main)

    prune(main)
    flatten(main)
    sparse(main, ratio=SPARSE_RATIO)
    weld(main)
    if options.draco is not None:
        from crowdsmith.geometry.compression import compress_geometry
        compress_geometry(main, options.draco)

    result.vertices_after = get_scene_vertex_count(primary_scene)
    if lod > 0:
        logger.info(
            f"Vertices Reduced {result.vertex_reduction}% from: "
            f"{result.vertices_before:,} to: {result.vertices_after:,}"
        )

    result.size_after = io.write(main, options.output)
    report = inspect(main)
    result.sizes = report["sizes"]
    result.report = report["data"]
    result.elapsed = time.perf_counter() - start
    logger.info(f"Wrote {options.output} ({result.size_after} bytes) in {result.elapsed:.2f}s")
    return result
