from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

import pygame

from models import (
    ChainSpacingMode,
    ContentSpawnItem,
    ContentSpawnRule,
    ContentType,
    SpawnedObject,
    WeightedPowerUp,
)
from platform_spawner import Instantiate, PlatformSpawner
from weighted import (
    payload_weight,
    select_chain_enemy,
    select_enemy,
    select_power_up,
    select_weighted,
)

logger = logging.getLogger(__name__)

# Fixed clearance above the most recent platform.
CONTENT_CLEARANCE = 1.0


def content_kind(content_type: ContentType) -> str:
    return content_type.name.lower()


class ContentSpawner:
    """Places released content items (single objects or chains) in the world."""

    def __init__(
        self,
        platform_spawner: PlatformSpawner,
        instantiate: Instantiate,
        rng: random.Random,
    ) -> None:
        self.platform_spawner = platform_spawner
        self._instantiate = instantiate
        self.rng = rng

    def spawn_content_item(self, item: ContentSpawnItem, height: float) -> List[SpawnedObject]:
        if item.is_chain:
            return self._spawn_chain_at_height(item.rule, height)
        return self._spawn_element_at_height(item.rule, height)

    # ----------------------------
    # Single elements
    # ----------------------------

    def _spawn_element_at_height(
        self, rule: ContentSpawnRule, height: float
    ) -> List[SpawnedObject]:
        payload, offset = self._pick_payload(rule, in_chain=False)
        if payload is None:
            logger.warning("%s rule has no prefab; skipping spawn", rule.content_type.value)
            return []

        bounds = self.platform_spawner.get_spawn_boundaries()
        x = self.rng.uniform(bounds.left, bounds.right)
        position = pygame.Vector2(x, height + CONTENT_CLEARANCE) + offset
        flip = rule.get_flip(self.rng)
        return [self._instantiate(payload, position, flip, kind=content_kind(rule.content_type))]

    # ----------------------------
    # Chains
    # ----------------------------

    def _spawn_chain_at_height(
        self, rule: ContentSpawnRule, height: float
    ) -> List[SpawnedObject]:
        if not rule.has_payload():
            logger.warning("%s chain rule has no prefab; skipping spawn", rule.content_type.value)
            return []

        bounds = self.platform_spawner.get_spawn_boundaries()
        length = rule.get_random_chain_length(self.rng)
        if length <= 0:
            return []
        chain_flip = rule.get_flip(self.rng)

        spawned: List[SpawnedObject] = []
        for x in self._chain_xs(rule, bounds.left, bounds.right, length):
            payload, offset = self._pick_payload(rule, in_chain=True)
            if payload is None:
                logger.warning("no chain-eligible variant for %s rule", rule.content_type.value)
                continue
            position = pygame.Vector2(x, height + CONTENT_CLEARANCE) + offset
            spawned.append(
                self._instantiate(payload, position, chain_flip, kind=content_kind(rule.content_type))
            )

        logger.debug("spawned chain of %s at height %.1f", len(spawned), height)
        return spawned

    def _chain_xs(
        self, rule: ContentSpawnRule, left: float, right: float, length: int
    ) -> List[float]:
        width = right - left
        if rule.chain_spacing_mode is ChainSpacingMode.EVENLY_DISTRIBUTED:
            spacing = width / (length + 1)
            return [left + spacing * (i + 1) for i in range(length)]

        gaps = [rule.get_chain_spacing(width, length, self.rng) for _ in range(length - 1)]
        chain_width = sum(gaps)
        start = left if chain_width > width else self.rng.uniform(left, right - chain_width)

        xs = [start]
        for gap in gaps:
            xs.append(xs[-1] + gap)
        return [min(right, max(left, x)) for x in xs]

    # ----------------------------
    # Payload selection
    # ----------------------------

    def _pick_payload(
        self, rule: ContentSpawnRule, in_chain: bool
    ) -> Tuple[Optional[str], pygame.Vector2]:
        if not rule.variants:
            return rule.prefab, pygame.Vector2(0, 0)

        if rule.content_type is ContentType.ENEMY:
            pick = (
                select_chain_enemy(rule.variants, self.rng)
                if in_chain
                else select_enemy(rule.variants, self.rng)
            )
        elif rule.content_type is ContentType.POWER_UP:
            pick = select_power_up(rule.variants, self.rng)
        else:
            pick = select_weighted(rule.variants, payload_weight, self.rng)

        if pick is None:
            return rule.prefab, pygame.Vector2(0, 0)
        if isinstance(pick, WeightedPowerUp):
            return pick.prefab, pygame.Vector2(pick.spawn_offset)
        return pick.prefab, pygame.Vector2(0, 0)
