from __future__ import annotations

import random
from typing import Callable, List, Optional, Sequence, TypeVar

from models import WeightedEnemy, WeightedPlatform, WeightedPowerUp

T = TypeVar("T")


def select_weighted(
    items: Optional[Sequence[Optional[T]]],
    get_weight: Callable[[T], float],
    rng: random.Random,
) -> Optional[T]:
    """Pick one item with probability proportional to its weight.

    None entries and entries with a weight <= 0 never win. Returns None when
    nothing is eligible.
    """
    if not items:
        return None

    valid: List[T] = [it for it in items if it is not None and get_weight(it) > 0]
    if not valid:
        return None

    total = sum(get_weight(it) for it in valid)
    draw = rng.random() * total  # [0, total)
    cumulative = 0.0
    for it in valid:
        cumulative += get_weight(it)
        if draw <= cumulative:
            return it

    # float drift
    return valid[-1]


def payload_weight(entry) -> float:
    """Weight of a variant entry, or 0 when it carries no payload."""
    return entry.weight if entry.prefab is not None else 0.0


def select_platform(
    platforms: Sequence[WeightedPlatform], rng: random.Random
) -> Optional[str]:
    selected = select_weighted(platforms, payload_weight, rng)
    return selected.prefab if selected is not None else None


def select_enemy(
    enemies: Sequence[WeightedEnemy], rng: random.Random
) -> Optional[WeightedEnemy]:
    return select_weighted(enemies, payload_weight, rng)


def select_chain_enemy(
    enemies: Sequence[WeightedEnemy], rng: random.Random
) -> Optional[WeightedEnemy]:
    return select_enemy([e for e in enemies if e.can_be_used_in_chains], rng)


def select_power_up(
    power_ups: Sequence[WeightedPowerUp], rng: random.Random
) -> Optional[WeightedPowerUp]:
    return select_weighted(power_ups, payload_weight, rng)
