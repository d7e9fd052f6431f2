from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

import pygame

from content_scheduler import (
    spawn_content_based_on_progress,
    spawn_pre_part_content,
    spawn_remaining_content,
)
from content_spawner import ContentSpawner
from models import HeightChunk
from part_manager import PartManager
from platform_spawner import PlatformSpawner

logger = logging.getLogger(__name__)

# Guards against runaway loops from misconfigured parts.
MAX_PLATFORMS_PER_CHUNK = 10
MAX_GENERATION_LOOPS = 5


@dataclass(frozen=True)
class PlatformGenerationResult:
    position: pygame.Vector2
    next_y: float


class ChunkContentGenerator:
    """Fills one height chunk with platforms and drives content release for it."""

    def __init__(
        self,
        platform_spawner: PlatformSpawner,
        part_manager: PartManager,
        content_spawner: ContentSpawner,
        rng: random.Random,
    ) -> None:
        self.platform_spawner = platform_spawner
        self.part_manager = part_manager
        self.content_spawner = content_spawner
        self.rng = rng

    def populate_chunk(self, chunk: HeightChunk) -> None:
        current_y = chunk.start_y
        loops = 0
        platforms_in_chunk = 0
        deferred = False

        while self._should_continue(current_y, chunk.end_y, loops, platforms_in_chunk):
            loops += 1

            if self.part_manager.needs_new_part():
                if self.part_manager.start_next_part(current_y) is None:
                    deferred = True
                    break

            if self.part_manager.needs_more_platforms():
                result = self._try_generate_platform(chunk, current_y)
                if result is None:
                    # does not fit; the platform goes into the next chunk
                    deferred = True
                    break

                current_y = result.next_y
                platforms_in_chunk += 1
                self._on_platform(result.position)

            if current_y >= chunk.end_y:
                break

        if not deferred and current_y < chunk.end_y:
            logger.warning(
                "hit generation cap for chunk %s (%s loops, %s platforms)",
                chunk.chunk_id,
                loops,
                platforms_in_chunk,
            )

    def _should_continue(self, current_y: float, end_y: float, loops: int, platforms: int) -> bool:
        return (
            current_y < end_y
            and loops < MAX_GENERATION_LOOPS
            and platforms < MAX_PLATFORMS_PER_CHUNK
        )

    def _try_generate_platform(
        self, chunk: HeightChunk, current_y: float
    ) -> Optional[PlatformGenerationResult]:
        state = self.part_manager.current_part_state
        if state is None:
            return None

        part = state.current_part
        spacing = part.get_random_spacing(self.rng)
        next_y = max(current_y, state.part_current_y) + spacing
        if next_y > chunk.end_y:
            return None

        position = self.platform_spawner.spawn_platform_at(next_y, part)
        if position is None:
            logger.warning("platform spawn failed for part '%s' at %.1f", part.part_name, next_y)
            return None

        chunk.add_platform(position, part, f"Platform from {part.part_name}")
        return PlatformGenerationResult(position=position, next_y=next_y)

    def _on_platform(self, position: pygame.Vector2) -> None:
        self.part_manager.on_platform_generated(position)
        state = self.part_manager.current_part_state

        if state.platforms_generated == 1:
            spawn_pre_part_content(state, position.y, self.content_spawner)
        spawn_content_based_on_progress(state, position.y, self.content_spawner)
        if state.is_part_complete:
            spawn_remaining_content(state, position.y, self.content_spawner)
