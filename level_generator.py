from __future__ import annotations

import logging
import random
from itertools import groupby
from operator import itemgetter
from typing import Callable, List, Optional, Sequence, Tuple

import pygame

from chunk_cleanup import ChunkCleanupManager
from chunk_content_generator import ChunkContentGenerator
from content_spawner import ContentSpawner
from gap_filler import PlatformGapFiller
from models import GeneratorSettings, HeightChunk, LevelPart
from part_manager import PartManager
from platform_spawner import Instantiate, PlatformSpawner

logger = logging.getLogger(__name__)


class HeightChunkLevelGenerator:
    """Streams fixed-height chunks ahead of a rising camera.

    The host calls ``init()`` once and ``tick(elapsed)`` from its loop. The
    generation check itself only runs once per ``generation_check_interval``.
    """

    def __init__(
        self,
        settings: GeneratorSettings,
        parts: Sequence[Optional[LevelPart]],
        platform_spawner: PlatformSpawner,
        camera_height: Callable[[], float],
        instantiate: Instantiate,
        rng: random.Random,
        gap_filler: Optional[PlatformGapFiller] = None,
    ) -> None:
        self.settings = settings
        self.available_parts = list(parts)
        self.platform_spawner = platform_spawner
        self.camera_height = camera_height
        self._instantiate = instantiate
        self.rng = rng
        self.gap_filler = gap_filler

        self.enabled = False
        self.is_generating = False
        self.chunks: List[HeightChunk] = []
        self.highest_generated_y = 0.0
        self.next_chunk_id = 0
        self._timer = 0.0

        self.part_manager: Optional[PartManager] = None
        self.content_spawner: Optional[ContentSpawner] = None
        self.chunk_content_generator: Optional[ChunkContentGenerator] = None
        self.chunk_cleanup_manager: Optional[ChunkCleanupManager] = None

    # ----------------------------
    # Initialization
    # ----------------------------

    def init(self) -> bool:
        """Validate, wire components and eagerly generate the initial chunks."""
        if not self.validate_configuration():
            self.disable()
            return False

        self._init_components()
        if self.part_manager.start_first_part() is None:
            self.disable()
            return False

        self.enabled = True
        self._generate_initial_chunks()
        return True

    def validate_configuration(self) -> bool:
        if not self.available_parts:
            logger.error("no parts assigned")
            return False

        valid = sum(1 for p in self.available_parts if p is not None and p.is_valid_part())
        if valid == 0:
            logger.error("no valid parts found")
            return False

        logger.info(
            "loaded %s valid parts, %.1fu per chunk", valid, self.settings.chunk_height
        )
        return True

    def _init_components(self) -> None:
        self.part_manager = PartManager(
            self.available_parts,
            self.rng,
            selection_mode=self.settings.part_selection,
            recent_part_memory=self.settings.recent_part_memory,
        )
        self.content_spawner = ContentSpawner(self.platform_spawner, self._instantiate, self.rng)
        self.chunk_content_generator = ChunkContentGenerator(
            self.platform_spawner, self.part_manager, self.content_spawner, self.rng
        )
        self.chunk_cleanup_manager = ChunkCleanupManager(self.settings.generation_distance)
        logger.debug("components initialized")

    def _generate_initial_chunks(self) -> None:
        for _ in range(self.settings.initial_chunk_count):
            self.generate_next_chunk()
        logger.info(
            "generated %s initial chunks up to height %.1f",
            self.settings.initial_chunk_count,
            self.highest_generated_y,
        )

    def disable(self) -> None:
        """Stop all future ticks."""
        self.enabled = False

    # ----------------------------
    # Tick
    # ----------------------------

    def tick(self, elapsed: float) -> int:
        """Advance the check timer; returns how many chunks were generated."""
        if not self.enabled:
            return 0

        self._timer += elapsed
        interval = self.settings.generation_check_interval
        if self._timer < interval:
            return 0

        # at most one check per tick, missed intervals are not replayed
        self._timer = self._timer % interval if interval > 0 else 0.0
        return self.check_generation_needs()

    def check_generation_needs(self) -> int:
        if self.is_generating or not self.enabled:
            return 0

        camera_y = self.camera_height()
        required_height = camera_y + self.settings.generation_distance

        generated = 0
        if self.highest_generated_y < required_height:
            generated = self.generate_chunks_to_height(required_height)

        self.chunk_cleanup_manager.cleanup_old_chunks(self.chunks, camera_y)
        return generated

    def generate_chunks_to_height(self, required_height: float) -> int:
        self.is_generating = True
        generated = 0
        try:
            while (
                self.highest_generated_y < required_height
                and generated < self.settings.max_chunks_per_frame
            ):
                self.generate_next_chunk()
                generated += 1
        finally:
            self.is_generating = False

        if generated:
            logger.debug("generated %s chunks this tick", generated)
        return generated

    # ----------------------------
    # Chunks
    # ----------------------------

    def generate_next_chunk(self) -> HeightChunk:
        chunk = self._create_chunk()
        self.chunk_content_generator.populate_chunk(chunk)
        if self.gap_filler is not None:
            self._fill_gaps(chunk)

        self.highest_generated_y = chunk.end_y
        self.chunks.append(chunk)
        logger.debug(
            "generated chunk %s from %.1f to %.1f (%s platforms)",
            chunk.chunk_id,
            chunk.start_y,
            chunk.end_y,
            len(chunk.platform_positions),
        )
        return chunk

    def _create_chunk(self) -> HeightChunk:
        chunk = HeightChunk(
            chunk_id=self.next_chunk_id,
            start_y=self.highest_generated_y,
            end_y=self.highest_generated_y + self.settings.chunk_height,
        )
        self.next_chunk_id += 1
        return chunk

    def _fill_gaps(self, chunk: HeightChunk) -> None:
        if not chunk.platform_positions:
            return

        placed = list(zip(chunk.platform_positions, chunk.platform_parts))
        # the top platform below this chunk anchors the gap across the boundary
        previous = self._previous_platform()
        if previous is not None:
            placed.insert(0, previous)
        originals = {id(position) for position, _ in placed}

        # a gap is filled with the variants of the part owning its upper platform
        fills: List[Tuple[pygame.Vector2, LevelPart]] = []
        lower: Optional[pygame.Vector2] = None
        for part, group in groupby(placed, key=itemgetter(1)):
            run = [position for position, _ in group]
            sequence = ([lower] if lower is not None else []) + run
            self.gap_filler.fill_gaps_in_part(sequence, part)
            fills.extend((p, part) for p in sequence if id(p) not in originals)
            lower = run[-1]

        touched = {id(chunk): chunk}
        for position, part in fills:
            owner = chunk
            if position.y <= chunk.start_y:
                owner = self.get_chunk_at_height(position.y) or chunk
            owner.add_platform(position, part, f"Gap fill platform from {part.part_name}")
            touched[id(owner)] = owner
        for owner in touched.values():
            owner.sort_platforms()

    def _previous_platform(self) -> Optional[Tuple[pygame.Vector2, LevelPart]]:
        for previous in reversed(self.chunks):
            if previous.platform_positions:
                return previous.platform_positions[-1], previous.platform_parts[-1]
        return None

    def force_generate_one_chunk(self) -> HeightChunk:
        chunk = self.generate_next_chunk()
        logger.info("force generated chunk - total: %s", len(self.chunks))
        return chunk

    # ----------------------------
    # Queries
    # ----------------------------

    @property
    def generated_chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def current_part_name(self) -> str:
        return self.part_manager.current_part_name if self.part_manager else "None"

    def get_chunk_at_height(self, y: float) -> Optional[HeightChunk]:
        return next((c for c in self.chunks if c.contains_height(y)), None)
