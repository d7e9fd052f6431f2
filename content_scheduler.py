"""
Expands a part's content rules into spawn items and releases them as the part
advances.

Items are released in proportion to platform progress, so content is spread
over the part's vertical extent instead of clumping at its start or end.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Iterable, List

from content_spawner import ContentSpawner
from models import ContentSpawnItem, ContentSpawnRule, LevelPart, PartGenerationState

logger = logging.getLogger(__name__)


def _expand_rules(rules: Iterable[ContentSpawnRule], rng: random.Random) -> List[ContentSpawnItem]:
    items: List[ContentSpawnItem] = []
    for rule in rules:
        if not rule.has_payload():
            logger.warning(
                "skipping %s rule without prefab", rule.content_type.value
            )
            continue
        if rule.create_chain:
            # one item stands for the whole chain
            items.append(ContentSpawnItem(rule=rule, is_chain=True))
            continue
        for _ in range(rule.get_random_count(rng)):
            items.append(ContentSpawnItem(rule=rule, is_chain=False))
    return items


def create_content_spawn_queue(part: LevelPart, rng: random.Random) -> List[ContentSpawnItem]:
    """Queue items for every rule that is not a pre-part rule."""
    return _expand_rules((r for r in part.content_rules if not r.spawn_before_part), rng)


def create_pre_part_queue(part: LevelPart, rng: random.Random) -> List[ContentSpawnItem]:
    """Queue items for rules flagged spawn_before_part (e.g. a health pickup)."""
    return _expand_rules((r for r in part.content_rules if r.spawn_before_part), rng)


def _release(item: ContentSpawnItem, height: float, spawner: ContentSpawner) -> None:
    spawner.spawn_content_item(item, height)
    item.mark_spawned(height)


def spawn_content_based_on_progress(
    part_state: PartGenerationState, current_height: float, spawner: ContentSpawner
) -> int:
    """Release the items that should exist by now; returns how many were released."""
    queue = part_state.content_spawn_queue
    if not queue:
        return 0

    total = len(queue)
    pending = part_state.unspawned_items()
    already = total - len(pending)
    expected = math.floor(part_state.progress * total)
    to_release = pending[: max(0, expected - already)]

    for item in to_release:
        _release(item, current_height, spawner)

    if to_release:
        logger.debug(
            "released %s/%s items for '%s' at %.1f",
            already + len(to_release),
            total,
            part_state.current_part.part_name,
            current_height,
        )
    return len(to_release)


def spawn_remaining_content(
    part_state: PartGenerationState, current_height: float, spawner: ContentSpawner
) -> int:
    """Force-release every unspawned item; called once when the part completes."""
    pending = part_state.unspawned_items()
    for item in pending:
        _release(item, current_height, spawner)
    return len(pending)


def spawn_pre_part_content(
    part_state: PartGenerationState, current_height: float, spawner: ContentSpawner
) -> int:
    released = 0
    for item in part_state.pre_part_queue:
        if not item.has_spawned:
            _release(item, current_height, spawner)
            released += 1
    return released
