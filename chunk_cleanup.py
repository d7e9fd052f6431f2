from __future__ import annotations

import logging
from typing import List

from models import HeightChunk

logger = logging.getLogger(__name__)

CLEANUP_DISTANCE_FACTOR = 1.5


class ChunkCleanupManager:
    """Evicts chunks that fell far enough behind the camera."""

    def __init__(self, generation_distance: float) -> None:
        self.generation_distance = generation_distance

    def cleanup_threshold(self, camera_y: float) -> float:
        return camera_y - self.generation_distance * CLEANUP_DISTANCE_FACTOR

    def cleanup_old_chunks(self, chunks: List[HeightChunk], camera_y: float) -> List[HeightChunk]:
        """Remove stale chunks in place (reverse index order); returns the removed ones."""
        threshold = self.cleanup_threshold(camera_y)
        removed: List[HeightChunk] = []
        for i in range(len(chunks) - 1, -1, -1):
            if chunks[i].end_y < threshold:
                logger.debug("cleaning up chunk %s", chunks[i].chunk_id)
                removed.append(chunks.pop(i))
        removed.reverse()
        return removed
