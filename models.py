from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Tuple

import pygame

from utils import random_int_inclusive, random_range

logger = logging.getLogger(__name__)


class PartSizeMode(Enum):
    PLATFORM_COUNT = "PlatformCount"
    FIXED_LENGTH = "FixedLength"


class LevelPartType(Enum):
    SAFE = "Safe"
    ENEMY_CHALLENGE = "EnemyChallenge"
    POWER_UP = "PowerUp"
    MIXED = "Mixed"
    REST = "Rest"


class ContentType(Enum):
    ENEMY = "Enemy"
    POWER_UP = "PowerUp"
    OBSTACLE = "Obstacle"
    DECORATION = "Decoration"


class SimplePositioning(Enum):
    OVER_PLATFORMS = "OverPlatforms"
    RANDOM_ACROSS_SCREEN = "RandomAcrossScreen"


class FlipMode(Enum):
    NONE = "None"  # always face right
    FIXED = "Fixed"
    RANDOM = "Random"  # 50/50


class ChainSpacingMode(Enum):
    EVENLY_DISTRIBUTED = "EvenlyDistributed"
    CUSTOM = "Custom"
    RANDOM = "Random"


class PowerUpType(Enum):
    BOOST = "Boost"
    HEALTH = "Health"
    SPECIAL = "Special"
    WEAPON = "Weapon"


class PartPhase(Enum):
    UNINITIALIZED = "uninitialized"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


# ----------------------------
# Weighted variants
# ----------------------------


@dataclass(frozen=True)
class WeightedPlatform:
    prefab: Optional[str]
    weight: float = 1.0


@dataclass(frozen=True)
class WeightedEnemy:
    prefab: Optional[str]
    weight: float = 1.0
    can_be_used_in_chains: bool = True


@dataclass(frozen=True)
class WeightedPowerUp:
    prefab: Optional[str]
    weight: float = 1.0
    power_up_type: PowerUpType = PowerUpType.BOOST
    spawn_offset: Tuple[float, float] = (0.0, 0.5)


# ----------------------------
# Authored data
# ----------------------------


@dataclass(frozen=True)
class ContentSpawnRule:
    """What auxiliary objects to spawn for a part, how many, where and whether chained.

    ``prefab`` is the default payload. ``variants`` optionally replaces it with a
    weighted pick per spawned instance (enemy or power-up variants).
    """

    content_type: ContentType = ContentType.ENEMY
    prefab: Optional[str] = None
    variants: Tuple[Any, ...] = ()
    min_count: int = 1
    max_count: int = 1
    positioning: SimplePositioning = SimplePositioning.OVER_PLATFORMS
    flip_mode: FlipMode = FlipMode.RANDOM
    flip_fixed: bool = False  # False = right, True = left
    spawn_before_part: bool = False
    create_chain: bool = False
    min_chain_length: int = 3
    max_chain_length: int = 5
    chain_spacing_mode: ChainSpacingMode = ChainSpacingMode.EVENLY_DISTRIBUTED
    custom_chain_spacing: float = 2.0
    min_chain_spacing: float = 1.5
    max_chain_spacing: float = 3.0

    def has_payload(self) -> bool:
        return self.prefab is not None or any(
            v is not None and v.prefab is not None for v in self.variants
        )

    def get_random_count(self, rng: random.Random) -> int:
        return random_int_inclusive(rng, self.min_count, self.max_count)

    def get_random_chain_length(self, rng: random.Random) -> int:
        return random_int_inclusive(rng, self.min_chain_length, self.max_chain_length)

    def get_chain_spacing(
        self, screen_width: float, chain_length: int, rng: random.Random
    ) -> float:
        if self.chain_spacing_mode is ChainSpacingMode.CUSTOM:
            return self.custom_chain_spacing
        if self.chain_spacing_mode is ChainSpacingMode.RANDOM:
            return random_range(rng, self.min_chain_spacing, self.max_chain_spacing)
        return screen_width / (chain_length + 1)

    def get_flip(self, rng: random.Random) -> bool:
        if self.flip_mode is FlipMode.FIXED:
            return self.flip_fixed
        if self.flip_mode is FlipMode.NONE:
            return False
        return rng.randint(0, 1) == 1


@dataclass(frozen=True)
class LevelPart:
    """Authored template: a run of platforms plus the content rules attached to it."""

    part_name: str
    part_type: LevelPartType = LevelPartType.SAFE
    description: str = ""
    size_mode: PartSizeMode = PartSizeMode.PLATFORM_COUNT
    platform_count: int = 4
    fixed_part_length: float = 10.0
    min_platforms_in_fixed_length: int = 2
    platform_spacing_min: float = 1.5
    platform_spacing_max: float = 3.5
    platform_types: Tuple[WeightedPlatform, ...] = ()
    content_rules: Tuple[ContentSpawnRule, ...] = ()
    difficulty_rating: float = 1.0
    min_height_required: float = 0.0
    selection_weight: float = 1.0

    def is_valid_part(self) -> bool:
        if not self.platform_types:
            logger.error("Part '%s': no platform types specified", self.part_name)
            return False
        return True

    def requires_enemies(self) -> bool:
        return any(r.content_type is ContentType.ENEMY for r in self.content_rules)

    def requires_power_ups(self) -> bool:
        return any(r.content_type is ContentType.POWER_UP for r in self.content_rules)

    @property
    def average_spacing(self) -> float:
        return (self.platform_spacing_min + self.platform_spacing_max) / 2.0

    def calculate_platform_count(self, rng: random.Random) -> int:
        if self.size_mode is PartSizeMode.PLATFORM_COUNT:
            variation = rng.randint(-1, 1)
            return max(1, self.platform_count + variation)
        if self.average_spacing <= 0:
            return self.min_platforms_in_fixed_length
        calculated = math.floor(self.fixed_part_length / self.average_spacing)
        return max(self.min_platforms_in_fixed_length, calculated)

    def calculate_target_length(self, rng: random.Random) -> float:
        if self.size_mode is PartSizeMode.FIXED_LENGTH:
            return self.fixed_part_length
        return self.calculate_platform_count(rng) * self.average_spacing

    def get_random_spacing(self, rng: random.Random) -> float:
        return random_range(rng, self.platform_spacing_min, self.platform_spacing_max)


# ----------------------------
# Runtime state
# ----------------------------


@dataclass
class ContentSpawnItem:
    rule: ContentSpawnRule
    is_chain: bool = False
    has_spawned: bool = False
    spawned_height: Optional[float] = None

    def mark_spawned(self, height: float) -> None:
        if self.has_spawned:
            return
        self.has_spawned = True
        self.spawned_height = height


@dataclass
class PartGenerationState:
    current_part: LevelPart
    part_start_y: float
    platforms_needed: int
    part_current_y: float = 0.0
    platforms_generated: int = 0
    is_part_complete: bool = False
    content_spawn_queue: List[ContentSpawnItem] = field(default_factory=list)
    pre_part_queue: List[ContentSpawnItem] = field(default_factory=list)

    def record_platform(self, y: float) -> None:
        """Count one realized platform; completion flips once and stays."""
        if self.is_part_complete:
            raise RuntimeError(
                f"Part '{self.current_part.part_name}' is already complete "
                f"({self.platforms_generated}/{self.platforms_needed})"
            )
        self.platforms_generated += 1
        self.part_current_y = y
        if self.platforms_generated >= self.platforms_needed:
            self.is_part_complete = True

    @property
    def progress(self) -> float:
        if self.platforms_needed <= 0:
            return 0.0
        return self.platforms_generated / self.platforms_needed

    def unspawned_items(self) -> List[ContentSpawnItem]:
        return [item for item in self.content_spawn_queue if not item.has_spawned]

    def is_drained(self) -> bool:
        return all(
            item.has_spawned for item in self.content_spawn_queue + self.pre_part_queue
        )


@dataclass
class HeightChunk:
    chunk_id: int
    start_y: float
    end_y: float
    platform_positions: List[pygame.Vector2] = field(default_factory=list)
    # owning part per platform, parallel to platform_positions
    platform_parts: List[LevelPart] = field(default_factory=list)
    generated_content: List[str] = field(default_factory=list)

    @property
    def height(self) -> float:
        return self.end_y - self.start_y

    def contains_height(self, y: float) -> bool:
        return self.start_y <= y <= self.end_y

    def add_platform(self, position: pygame.Vector2, part: LevelPart, description: str) -> None:
        self.platform_positions.append(position)
        self.platform_parts.append(part)
        self.generated_content.append(description)

    def sort_platforms(self) -> None:
        """Order platforms by height, keeping each one's part alongside it."""
        pairs = sorted(zip(self.platform_positions, self.platform_parts), key=lambda e: e[0].y)
        self.platform_positions[:] = [position for position, _ in pairs]
        self.platform_parts[:] = [part for _, part in pairs]


class SpawnBoundaries(NamedTuple):
    left: float
    right: float

    @property
    def width(self) -> float:
        return self.right - self.left

    def contains(self, x: float) -> bool:
        return self.left <= x <= self.right

    def clamp(self, x: float) -> float:
        return self.left if x < self.left else self.right if x > self.right else x


@dataclass
class SpawnedObject:
    """A payload materialized by the host at a world position."""

    kind: str
    payload: Any
    position: pygame.Vector2
    flipped: bool = False


# ----------------------------
# Settings
# ----------------------------


@dataclass(frozen=True)
class GeneratorSettings:
    chunk_height: float = 8.0
    generation_distance: float = 30.0
    generation_check_interval: float = 1.0
    max_chunks_per_frame: int = 1
    initial_chunk_count: int = 3
    part_selection: str = "round_robin"  # round_robin|weighted
    recent_part_memory: int = 5
    gap_filling: bool = False


@dataclass(frozen=True)
class GapFillerSettings:
    max_jump_distance: float = 4.0
    jump_safety_margin: float = 0.5
    minimum_gap_to_fill: float = 2.0
    fill_platform_height_variation: float = 0.3
    fill_platform_x_variation: float = 1.0

    @property
    def effective_max_jump(self) -> float:
        return self.max_jump_distance - self.jump_safety_margin


@dataclass(frozen=True)
class SpawnerSettings:
    view_width: float = 11.0
    screen_edge_offset: float = 1.2
    wall_offset: float = 3.0
    auto_detect_walls: bool = True
    walls: Tuple[Tuple[float, float], ...] = ()  # (min_x, max_x) per wall collider


@dataclass(frozen=True)
class SimulationSettings:
    seconds: float = 60.0
    fps: int = 60
    climb_speed: float = 2.5
    view_height: float = 20.0
