"""
Shared fixtures for CrowdSmith tests.
"""

import pytest

from builders import build_character
from crowdsmith.document import io


@pytest.fixture
def character():
    """A single skinned character document."""
    return build_character("hero")


@pytest.fixture
def character_files(tmp_path):
    """Four character GLBs with distinct solid base colors, written to disk."""
    colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
    paths = []
    for index, color in enumerate(colors):
        document = build_character(f"char{index}", color=color, offset=(index * 5.0, 0.0, 0.0))
        path = tmp_path / f"char{index}.glb"
        io.write(document, path)
        paths.append(str(path))
    return paths, colors
