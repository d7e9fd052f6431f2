from __future__ import annotations

import pygame

from utils import clamp_float


class RisingCamera:
    """Vertical follow camera that only ever moves up.

    ``position.y`` is the camera centre in world units (y grows upwards).
    """

    def __init__(self, view_width: float, view_height: float, y_offset: float = 3.0) -> None:
        self.view_width = view_width
        self.view_height = view_height
        self.y_offset = y_offset
        self.position = pygame.Vector2(0, 0)

    @property
    def y(self) -> float:
        return self.position.y

    def follow(self, target_y: float, max_step: float = float("inf")) -> None:
        """Move toward target_y + y_offset, never downward and at most max_step."""
        desired = target_y + self.y_offset
        if desired <= self.position.y:
            return
        self.position.y += clamp_float(desired - self.position.y, 0.0, max_step)

    @property
    def bottom(self) -> float:
        return self.position.y - self.view_height / 2

    @property
    def left(self) -> float:
        return self.position.x - self.view_width / 2

    @property
    def right(self) -> float:
        return self.position.x + self.view_width / 2
