from __future__ import annotations

import logging
import math
import random
from typing import List, Optional, Sequence

import pygame

from models import GapFillerSettings, LevelPart
from platform_spawner import PlatformSpawner
from utils import clamp01

logger = logging.getLogger(__name__)


class PlatformGapFiller:
    """Inserts intermediate platforms wherever a jump would exceed the safe distance.

    Works on any ordered platform sequence, not only chunk-local ones.
    """

    def __init__(
        self,
        settings: GapFillerSettings,
        platform_spawner: PlatformSpawner,
        rng: random.Random,
    ) -> None:
        self.settings = settings
        self.platform_spawner = platform_spawner
        self.rng = rng

    def fill_gaps_in_part(
        self, platforms: List[pygame.Vector2], part: Optional[LevelPart]
    ) -> List[pygame.Vector2]:
        """Fill oversized gaps; ``platforms`` is replaced in place, sorted by height."""
        if not self._validate_input(platforms, part):
            return platforms

        processed = sorted(platforms, key=lambda p: p.y)
        filled = 0
        i = 0
        while i < len(processed) - 1:
            current, nxt = processed[i], processed[i + 1]
            if self.should_fill_gap(current, nxt):
                fills = self._create_fill_platforms(current, nxt, part)
                processed[i + 1 : i + 1] = fills
                filled += len(fills)
                # skip the platforms just inserted
                i += len(fills)
            i += 1

        processed.sort(key=lambda p: p.y)
        platforms[:] = processed

        if filled:
            logger.info("filled %s gaps in part '%s'", filled, part.part_name)
        return platforms

    def check_for_gaps_in_part(self, platforms: Sequence[pygame.Vector2]) -> bool:
        ordered = sorted(platforms, key=lambda p: p.y)
        return any(self.should_fill_gap(a, b) for a, b in zip(ordered, ordered[1:]))

    def should_fill_gap(self, a: pygame.Vector2, b: pygame.Vector2) -> bool:
        distance = a.distance_to(b)
        too_large = distance > self.settings.effective_max_jump
        significant = distance > self.settings.minimum_gap_to_fill
        if too_large:
            logger.debug(
                "gap detected - distance %.2f, max jump %.2f",
                distance,
                self.settings.effective_max_jump,
            )
        return too_large and significant

    def calculate_jump_difficulty(self, platforms: Sequence[pygame.Vector2]) -> float:
        """Mean of distance / max_jump_distance (each clamped to [0, 1])."""
        if len(platforms) < 2:
            return 0.0
        ordered = sorted(platforms, key=lambda p: p.y)
        scores = [
            clamp01(a.distance_to(b) / self.settings.max_jump_distance)
            for a, b in zip(ordered, ordered[1:])
        ]
        return sum(scores) / len(scores)

    @property
    def jitter_radius(self) -> float:
        return math.hypot(
            self.settings.fill_platform_x_variation, self.settings.fill_platform_height_variation
        )

    def fill_count(self, distance: float) -> int:
        return math.ceil(distance / self.settings.effective_max_jump)

    def _jitter_scale(self, step: float) -> float:
        """Shrink factor for the jitter so two drifting neighbours stay within the safe jump."""
        radius = self.jitter_radius
        if radius <= 0:
            return 0.0
        allowed = (self.settings.effective_max_jump - step) / 2
        return min(1.0, max(0.0, allowed / radius))

    def _validate_input(
        self, platforms: Optional[Sequence[pygame.Vector2]], part: Optional[LevelPart]
    ) -> bool:
        if platforms is None or len(platforms) < 2:
            logger.debug("not enough platforms to check for gaps")
            return False
        if part is None:
            logger.error("no part data provided for gap filling")
            return False
        if not part.platform_types:
            logger.error("part '%s' has no platform types for gap filling", part.part_name)
            return False
        return True

    def _create_fill_platforms(
        self, a: pygame.Vector2, b: pygame.Vector2, part: LevelPart
    ) -> List[pygame.Vector2]:
        distance = a.distance_to(b)
        needed = self.fill_count(distance)
        scale = self._jitter_scale(distance / (needed + 1))
        x_var = self.settings.fill_platform_x_variation * scale
        h_var = self.settings.fill_platform_height_variation * scale
        bounds = self.platform_spawner.get_spawn_boundaries()
        low, high = min(a.y, b.y), max(a.y, b.y)

        fills: List[pygame.Vector2] = []
        for i in range(1, needed + 1):
            base = a.lerp(b, i / (needed + 1))
            x = base.x + self.rng.uniform(-x_var, x_var)
            # fills stay between the two platforms they bridge
            y = min(max(base.y + self.rng.uniform(-h_var, h_var), low), high)
            spawned = self.platform_spawner.spawn_platform_at(y, part, x=bounds.clamp(x))
            if spawned is not None:
                fills.append(spawned)
                logger.debug("fill platform spawned at (%.2f, %.2f)", spawned.x, spawned.y)
        return fills
