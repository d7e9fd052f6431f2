from __future__ import annotations

import logging
import random
from collections import deque
from typing import Deque, List, Optional, Sequence

import pygame

from content_scheduler import create_content_spawn_queue, create_pre_part_queue
from models import LevelPart, PartGenerationState, PartPhase
from weighted import select_weighted

logger = logging.getLogger(__name__)

ROUND_ROBIN = "round_robin"
WEIGHTED = "weighted"


class PartManager:
    """Owns progression through the authored parts and the single live part state.

    Phases: UNINITIALIZED -> IN_PROGRESS -> COMPLETE -> IN_PROGRESS -> ...
    The part list is cyclic; there is no terminal phase.
    """

    def __init__(
        self,
        parts: Sequence[Optional[LevelPart]],
        rng: random.Random,
        selection_mode: str = ROUND_ROBIN,
        recent_part_memory: int = 5,
    ) -> None:
        if selection_mode not in (ROUND_ROBIN, WEIGHTED):
            raise ValueError(f"Unknown part selection mode: {selection_mode}")
        self.available_parts: List[Optional[LevelPart]] = list(parts)
        self.rng = rng
        self.selection_mode = selection_mode
        self.current_part_index = 0
        self.current_part_state: Optional[PartGenerationState] = None
        self._recent_parts: Deque[LevelPart] = deque(maxlen=max(0, recent_part_memory))

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def start_first_part(self) -> Optional[PartGenerationState]:
        self.current_part_index = 0
        self._recent_parts.clear()
        part = self._select_next_part(0.0)
        if part is None:
            logger.error("could not select first part")
            return None
        self.current_part_state = self._new_state(part, 0.0)
        logger.info(
            "starting with part '%s' - needs %s platforms, %s content items",
            part.part_name,
            self.current_part_state.platforms_needed,
            len(self.current_part_state.content_spawn_queue),
        )
        return self.current_part_state

    def start_next_part(self, start_y: float) -> Optional[PartGenerationState]:
        part = self._select_next_part(start_y)
        if part is None:
            logger.error("could not select next part at %.1f", start_y)
            return None
        self.current_part_state = self._new_state(part, start_y)
        logger.info(
            "part '%s' started at %.1f - needs %s platforms, %s content items",
            part.part_name,
            start_y,
            self.current_part_state.platforms_needed,
            len(self.current_part_state.content_spawn_queue),
        )
        return self.current_part_state

    def _new_state(self, part: LevelPart, start_y: float) -> PartGenerationState:
        return PartGenerationState(
            current_part=part,
            part_start_y=start_y,
            part_current_y=start_y,
            platforms_needed=part.calculate_platform_count(self.rng),
            content_spawn_queue=create_content_spawn_queue(part, self.rng),
            pre_part_queue=create_pre_part_queue(part, self.rng),
        )

    def on_platform_generated(self, position: pygame.Vector2) -> None:
        state = self.current_part_state
        if state is None:
            logger.error("platform reported with no active part")
            return
        state.record_platform(position.y)
        if state.is_part_complete:
            logger.debug(
                "part '%s' completed at height %.1f",
                state.current_part.part_name,
                state.part_current_y,
            )

    # ----------------------------
    # Queries
    # ----------------------------

    @property
    def phase(self) -> PartPhase:
        if self.current_part_state is None:
            return PartPhase.UNINITIALIZED
        if self.current_part_state.is_part_complete:
            return PartPhase.COMPLETE
        return PartPhase.IN_PROGRESS

    def needs_new_part(self) -> bool:
        return self.current_part_state is not None and self.current_part_state.is_part_complete

    def needs_more_platforms(self) -> bool:
        state = self.current_part_state
        return state is not None and state.platforms_generated < state.platforms_needed

    def get_part_progress(self) -> float:
        if self.current_part_state is None:
            return 0.0
        return self.current_part_state.progress

    @property
    def current_part_name(self) -> str:
        if self.current_part_state is None:
            return "None"
        return self.current_part_state.current_part.part_name

    # ----------------------------
    # Selection
    # ----------------------------

    def _select_next_part(self, start_y: float) -> Optional[LevelPart]:
        if not self.available_parts:
            logger.error("no parts available")
            return None
        if self.selection_mode == WEIGHTED:
            return self._select_weighted_part(start_y)
        return self._select_next_part_consecutively()

    def _select_next_part_consecutively(self) -> Optional[LevelPart]:
        index = self.current_part_index % len(self.available_parts)
        self.current_part_index += 1
        part = self.available_parts[index]
        if part is None or not part.is_valid_part():
            logger.error("part at index %s is invalid", index)
            return None
        return part

    def _select_weighted_part(self, start_y: float) -> Optional[LevelPart]:
        eligible = [
            p
            for p in self.available_parts
            if p is not None and p.is_valid_part() and start_y >= p.min_height_required
        ]
        fresh = [p for p in eligible if p not in self._recent_parts]
        candidates = fresh or eligible

        part = select_weighted(candidates, lambda p: p.selection_weight, self.rng)
        if part is None:
            part = next(
                (p for p in self.available_parts if p is not None and p.is_valid_part()),
                None,
            )
        if part is not None:
            self._recent_parts.append(part)
        return part
