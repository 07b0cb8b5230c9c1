"""
CrowdSmith - Merge character GLBs into a single crowd-ready asset

Folds several skinned characters into one document with one skeleton,
packs their textures into per-slot atlases, and writes an optimized GLB.
"""

from crowdsmith.schema.options import MergeOptions
from crowdsmith.pipeline import MergeResult, merge_assets

__version__ = "0.0.1"
__all__ = ["MergeOptions", "MergeResult", "merge_assets"]
