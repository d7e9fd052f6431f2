from __future__ import annotations

import logging
import random
from typing import Callable, Optional

import pygame

from models import LevelPart, SpawnBoundaries, SpawnedObject, SpawnerSettings
from weighted import select_platform

logger = logging.getLogger(__name__)

Instantiate = Callable[..., SpawnedObject]


class PlatformSpawner:
    """Computes horizontal spawn boundaries and materializes platforms.

    The view is centred on x = 0. Walls are given as (min_x, max_x) collider
    bounds; a wall whose centre is left of 0 limits the left side.
    """

    def __init__(
        self,
        settings: SpawnerSettings,
        instantiate: Instantiate,
        rng: random.Random,
    ) -> None:
        self.settings = settings
        self._instantiate = instantiate
        self.rng = rng
        self._boundaries = SpawnBoundaries(0.0, 0.0)
        self.recalculate_boundaries()

    # ----------------------------
    # Boundaries
    # ----------------------------

    def recalculate_boundaries(self) -> SpawnBoundaries:
        half = self.settings.view_width / 2
        left = -half + self.settings.screen_edge_offset
        right = half - self.settings.screen_edge_offset

        if self.settings.auto_detect_walls:
            left, right = self._adjust_for_walls(left, right)

        if left >= right:
            logger.error("invalid spawn boundaries [%.2f, %.2f]", left, right)

        self._boundaries = SpawnBoundaries(left, right)
        logger.debug("spawn boundaries set to [%.2f, %.2f]", left, right)
        return self._boundaries

    def _adjust_for_walls(self, left: float, right: float) -> tuple:
        walls = self.settings.walls
        if len(walls) < 2:
            if walls:
                logger.warning("expected 2 walls, found %s", len(walls))
            return left, right

        left_wall = None
        right_wall = None
        for min_x, max_x in walls:
            if (min_x + max_x) / 2 < 0:
                left_wall = max_x if left_wall is None else max(left_wall, max_x)
            else:
                right_wall = min_x if right_wall is None else min(right_wall, min_x)

        if left_wall is not None:
            left = max(left, left_wall + self.settings.wall_offset)
        if right_wall is not None:
            right = min(right, right_wall - self.settings.wall_offset)
        return left, right

    def get_spawn_boundaries(self) -> SpawnBoundaries:
        return self._boundaries

    def is_valid_spawn_position(self, position: pygame.Vector2) -> bool:
        return self._boundaries.contains(position.x)

    # ----------------------------
    # Spawning
    # ----------------------------

    def spawn_platform_at(
        self, y: float, part: Optional[LevelPart], x: Optional[float] = None
    ) -> Optional[pygame.Vector2]:
        """Spawn one weighted-selected platform variant of ``part`` at height y.

        x defaults to a uniform draw inside the boundaries. Returns the realized
        position, or None when the part offers no usable variant.
        """
        if part is None:
            logger.error("no part data provided")
            return None
        if not part.platform_types:
            logger.error("part '%s' has no platform types", part.part_name)
            return None

        prefab = select_platform(part.platform_types, self.rng)
        if prefab is None:
            logger.warning("failed to select a platform for part '%s'", part.part_name)
            return None

        bounds = self._boundaries
        if x is None:
            x = self.rng.uniform(bounds.left, bounds.right)
        position = pygame.Vector2(bounds.clamp(x), y)
        self._instantiate(prefab, position, False, kind="platform")
        return position
