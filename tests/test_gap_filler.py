"""Tests for gap_filler.py: reachability patching between platforms."""

from __future__ import annotations

import logging
import random

import pygame
import pytest

from gap_filler import PlatformGapFiller
from models import GapFillerSettings, LevelPart, SpawnerSettings, WeightedPlatform
from platform_spawner import PlatformSpawner
from world import World


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

PART = LevelPart(part_name="Gappy", platform_types=(WeightedPlatform("plat", 1.0),))

STILL = GapFillerSettings(fill_platform_height_variation=0.0, fill_platform_x_variation=0.0)


def _filler(settings: GapFillerSettings = STILL, seed: int = 0):
    world = World()
    rng = random.Random(seed)
    spawner = PlatformSpawner(SpawnerSettings(auto_detect_walls=False), world.instantiate, rng)
    return PlatformGapFiller(settings, spawner, rng), world


def _v(x: float, y: float) -> pygame.Vector2:
    return pygame.Vector2(x, y)


def _max_step(platforms) -> float:
    return max(a.distance_to(b) for a, b in zip(platforms, platforms[1:]))


# ---------------------------------------------------------------------------
# TestFillGaps
# ---------------------------------------------------------------------------

class TestFillGaps:
    def test_six_unit_gap_gets_two_fills(self):
        filler, world = _filler()
        platforms = [_v(0, 0), _v(0, 6)]
        filler.fill_gaps_in_part(platforms, PART)
        assert len(platforms) == 4
        assert [p.y for p in platforms] == pytest.approx([0, 2, 4, 6])
        assert _max_step(platforms) <= STILL.effective_max_jump
        assert world.spawned["platform"] == 2

    def test_fills_follow_the_diagonal(self):
        filler, _ = _filler()
        # distance ~8.49 needs three fills at quarter points
        platforms = [_v(-3, 0), _v(3, 6)]
        filler.fill_gaps_in_part(platforms, PART)
        assert [p.x for p in platforms] == pytest.approx([-3, -1.5, 0, 1.5, 3])
        assert [p.y for p in platforms] == pytest.approx([0, 1.5, 3, 4.5, 6])

    def test_result_is_sorted_in_place(self):
        filler, _ = _filler()
        platforms = [_v(0, 10), _v(0, 0), _v(0, 3)]
        same = platforms
        filler.fill_gaps_in_part(platforms, PART)
        assert platforms is same
        ys = [p.y for p in platforms]
        assert ys == sorted(ys)
        assert _max_step(platforms) <= STILL.effective_max_jump

    def test_jitter_stays_reachable_for_long_gaps(self):
        settings = GapFillerSettings(fill_platform_height_variation=0.3, fill_platform_x_variation=0.5)
        filler, _ = _filler(settings, seed=5)
        platforms = [_v(0, 0), _v(0, 20)]
        filler.fill_gaps_in_part(platforms, PART)
        assert len(platforms) == 2 + 6
        assert _max_step(platforms) <= settings.effective_max_jump + 1e-9

    def test_default_jitter_never_exceeds_safe_jump(self):
        settings = GapFillerSettings()
        for seed in range(300):
            filler, _ = _filler(settings, seed=seed)
            platforms = [_v(0, 0), _v(0, 20.5)]
            filler.fill_gaps_in_part(platforms, PART)
            assert _max_step(platforms) <= settings.effective_max_jump + 1e-9

    def test_jitter_shrinks_when_it_would_eat_the_jump(self):
        settings = GapFillerSettings(fill_platform_x_variation=2.0, fill_platform_height_variation=1.0)
        for seed in range(100):
            filler, _ = _filler(settings, seed=seed)
            assert filler.fill_count(10.0) == 3
            platforms = [_v(0, 0), _v(0, 10)]
            filler.fill_gaps_in_part(platforms, PART)
            assert len(platforms) == 5
            assert _max_step(platforms) <= settings.effective_max_jump + 1e-9

    def test_fills_stay_between_their_platforms(self):
        settings = GapFillerSettings(fill_platform_height_variation=2.0, fill_platform_x_variation=0.0)
        for seed in range(50):
            filler, _ = _filler(settings, seed=seed)
            platforms = [_v(0, 0), _v(3, 3.6)]
            filler.fill_gaps_in_part(platforms, PART)
            assert all(0.0 <= p.y <= 3.6 for p in platforms)

    def test_small_gaps_left_alone(self):
        filler, world = _filler()
        platforms = [_v(0, 0), _v(0, 3), _v(1, 6)]
        filler.fill_gaps_in_part(platforms, PART)
        assert len(platforms) == 3
        assert world.objects == []

    def test_minimum_gap_threshold(self):
        settings = GapFillerSettings(
            max_jump_distance=1.0,
            jump_safety_margin=0.0,
            minimum_gap_to_fill=5.0,
            fill_platform_height_variation=0.0,
            fill_platform_x_variation=0.0,
        )
        filler, _ = _filler(settings)
        assert not filler.should_fill_gap(_v(0, 0), _v(0, 4))
        assert filler.should_fill_gap(_v(0, 0), _v(0, 6))

    def test_single_platform_is_noop(self):
        filler, _ = _filler()
        platforms = [_v(0, 0)]
        filler.fill_gaps_in_part(platforms, PART)
        assert platforms == [_v(0, 0)]

    def test_missing_part(self, caplog):
        filler, world = _filler()
        platforms = [_v(0, 0), _v(0, 10)]
        with caplog.at_level(logging.ERROR):
            filler.fill_gaps_in_part(platforms, None)
        assert len(platforms) == 2
        assert "no part data" in caplog.text
        assert world.objects == []

    def test_part_without_platform_types(self):
        filler, _ = _filler()
        platforms = [_v(0, 0), _v(0, 10)]
        filler.fill_gaps_in_part(platforms, LevelPart(part_name="Empty"))
        assert len(platforms) == 2


# ---------------------------------------------------------------------------
# TestAnalysis
# ---------------------------------------------------------------------------

class TestAnalysis:
    def test_check_for_gaps(self):
        filler, _ = _filler()
        assert filler.check_for_gaps_in_part([_v(0, 6), _v(0, 0)])
        assert not filler.check_for_gaps_in_part([_v(0, 0), _v(0, 3)])
        assert not filler.check_for_gaps_in_part([])

    def test_jump_difficulty(self):
        filler, _ = _filler()
        assert filler.calculate_jump_difficulty([_v(0, 0), _v(0, 2), _v(0, 8)]) == pytest.approx(0.75)
        assert filler.calculate_jump_difficulty([_v(0, 0)]) == 0.0

    def test_effective_max_jump(self):
        assert GapFillerSettings(max_jump_distance=4.0, jump_safety_margin=0.5).effective_max_jump == 3.5
