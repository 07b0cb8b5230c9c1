"""
Folding several loaded documents into one arena.
"""

import logging
from typing import Iterable

from crowdsmith.document.model import Document

logger = logging.getLogger(__name__)


def merge_documents(target: Document, sources: Iterable[Document]) -> Document:
    """
    Move every entity of each source document into ``target``.

    Each source keeps its own scene; scenes are appended after the ones the
    target already has, so a primary scene created on the target first stays
    at index 0. Sources are left empty.

    Args:
        target: Document receiving the entities
        sources: Documents to fold in, in order

    Returns:
        The target document
    """
    count = 0
    for source in sources:
        if source is target:
            continue
        target._adopt(source)
        count += 1
        logger.debug(f"Merged document {source.name!r}")
    logger.info(f"Merged {count} documents ({len(target.list_scenes())} scenes)")
    return target
