from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List

import pygame

from models import SpawnedObject

logger = logging.getLogger(__name__)


class World:
    """Headless scene that records everything the generator materializes.

    ``instantiate`` is the hook handed to the spawners; a real host would create
    game objects there instead.
    """

    def __init__(self, destroy_buffer: float = 5.0) -> None:
        self.destroy_buffer = destroy_buffer
        self.objects: List[SpawnedObject] = []
        self.spawned: Counter = Counter()
        self.destroyed_count = 0

    def instantiate(
        self,
        payload: Any,
        position: pygame.Vector2,
        flip: bool = False,
        kind: str = "content",
    ) -> SpawnedObject:
        obj = SpawnedObject(
            kind=kind, payload=payload, position=pygame.Vector2(position), flipped=flip
        )
        self.objects.append(obj)
        self.spawned[kind] += 1
        logger.debug("instantiated %s '%s' at (%.2f, %.2f)", kind, payload, obj.position.x, obj.position.y)
        return obj

    def of_kind(self, kind: str) -> List[SpawnedObject]:
        return [o for o in self.objects if o.kind == kind]

    def counts(self) -> Dict[str, int]:
        return dict(Counter(o.kind for o in self.objects))

    def cleanup_below(self, screen_bottom_y: float) -> int:
        """Drop objects that fell further than destroy_buffer below the screen."""
        threshold = screen_bottom_y - self.destroy_buffer
        before = len(self.objects)
        self.objects = [o for o in self.objects if o.position.y >= threshold]
        removed = before - len(self.objects)
        self.destroyed_count += removed
        if removed:
            logger.debug("cleaned up %s objects below %.1f", removed, threshold)
        return removed
