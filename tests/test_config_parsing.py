"""Tests for config_io.py and config_parsing.py: JSON config into settings and parts."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from config_io import load_json_config
from config_parsing import (
    parse_content_rule,
    parse_enum,
    parse_gap_filler_settings,
    parse_generator_settings,
    parse_part,
    parse_parts,
    parse_simulation_settings,
    parse_spawner_settings,
)
from models import (
    ChainSpacingMode,
    ContentType,
    FlipMode,
    LevelPartType,
    PartSizeMode,
    PowerUpType,
    WeightedEnemy,
    WeightedPlatform,
    WeightedPowerUp,
)
from utils import deep_get

ROOT = Path(__file__).resolve().parent.parent


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _minimal_part(**overrides) -> dict:
    base = {
        "part_name": "Start",
        "platform_types": [{"prefab": "wide", "weight": 2}],
    }
    base.update(overrides)
    return base


# ---------------------------------------------------------------------------
# TestLoadJson
# ---------------------------------------------------------------------------

class TestLoadJson:
    def test_sample_config_loads(self):
        cfg = load_json_config(ROOT / "config.json")
        parts = parse_parts(cfg)
        assert [p.part_name for p in parts] == ["Warmup", "Bat Gauntlet", "Supply Drop", "Spike Run"]
        assert all(p.is_valid_part() for p in parts)
        assert parse_generator_settings(cfg).gap_filling

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_json_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"generator": {', encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            load_json_config(path)
        assert "not valid JSON" in str(exc.value)

    def test_root_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")
        with pytest.raises(SystemExit):
            load_json_config(path)

    def test_parts_catalog_file(self, tmp_path):
        (tmp_path / "catalog.json").write_text(
            json.dumps({"parts": [_minimal_part(part_name="FromCatalog")]}), encoding="utf-8"
        )
        (tmp_path / "bare.json").write_text(json.dumps([_minimal_part()]), encoding="utf-8")

        cfg_path = tmp_path / "config.json"
        cfg_path.write_text(json.dumps({"parts": "catalog.json"}), encoding="utf-8")
        assert [p.part_name for p in parse_parts(load_json_config(cfg_path))] == ["FromCatalog"]

        cfg_path.write_text(json.dumps({"parts": "bare.json"}), encoding="utf-8")
        assert [p.part_name for p in parse_parts(load_json_config(cfg_path))] == ["Start"]

    def test_missing_parts_catalog(self, tmp_path):
        cfg_path = tmp_path / "config.json"
        cfg_path.write_text(json.dumps({"parts": "absent.json"}), encoding="utf-8")
        with pytest.raises(FileNotFoundError):
            load_json_config(cfg_path)

    def test_deep_get(self):
        cfg = {"generator": {"chunk_height": 6}}
        assert deep_get(cfg, "generator.chunk_height", 8) == 6
        assert deep_get(cfg, "generator.missing", 8) == 8
        assert deep_get(cfg, "generator.chunk_height.deeper", None) is None


# ---------------------------------------------------------------------------
# TestEnums
# ---------------------------------------------------------------------------

class TestEnums:
    @pytest.mark.parametrize(
        "raw", ["EnemyChallenge", "enemy_challenge", "ENEMY_CHALLENGE", "enemychallenge"]
    )
    def test_spellings(self, raw):
        assert parse_enum(LevelPartType, raw, LevelPartType.SAFE) is LevelPartType.ENEMY_CHALLENGE

    def test_unknown_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_enum(FlipMode, "sideways", FlipMode.RANDOM) is FlipMode.RANDOM
        assert "sideways" in caplog.text

    def test_non_string_falls_back(self):
        assert parse_enum(PartSizeMode, 3, PartSizeMode.PLATFORM_COUNT) is PartSizeMode.PLATFORM_COUNT


# ---------------------------------------------------------------------------
# TestSettings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_defaults(self):
        gen = parse_generator_settings({})
        assert gen.chunk_height == 8.0
        assert gen.generation_distance == 30.0
        assert gen.max_chunks_per_frame == 1
        assert gen.initial_chunk_count == 3
        assert gen.part_selection == "round_robin"
        assert not gen.gap_filling

        sim = parse_simulation_settings({})
        assert sim.fps == 60

    def test_coercion_and_bounds(self):
        gen = parse_generator_settings(
            {"generator": {"chunk_height": "6", "max_chunks_per_frame": 0, "initial_chunk_count": -2}}
        )
        assert gen.chunk_height == 6.0
        assert gen.max_chunks_per_frame == 1
        assert gen.initial_chunk_count == 0

    def test_unknown_selection_mode(self):
        gen = parse_generator_settings({"generator": {"part_selection": "shuffle"}})
        assert gen.part_selection == "round_robin"
        gen = parse_generator_settings({"generator": {"part_selection": "Weighted"}})
        assert gen.part_selection == "weighted"

    def test_gap_margin_larger_than_jump(self):
        gf = parse_gap_filler_settings({"gap_filler": {"max_jump_distance": 2.0, "jump_safety_margin": 3.0}})
        assert gf.jump_safety_margin == 0.0
        assert gf.effective_max_jump == 2.0

    def test_walls_in_both_forms(self):
        sp = parse_spawner_settings(
            {"spawner": {"walls": [[-5.5, -6.0], {"min_x": 5.5, "max_x": 6.0}, "junk"]}}
        )
        assert sp.walls == ((-6.0, -5.5), (5.5, 6.0))


# ---------------------------------------------------------------------------
# TestParts
# ---------------------------------------------------------------------------

class TestParts:
    def test_minimal_part(self):
        part = parse_part(_minimal_part())
        assert part.part_name == "Start"
        assert part.part_type is LevelPartType.SAFE
        assert part.platform_types == (WeightedPlatform("wide", 2.0),)
        assert part.content_rules == ()

    def test_normalization(self):
        part = parse_part(
            _minimal_part(
                platform_count=0,
                fixed_part_length=0,
                min_platforms_in_fixed_length=0,
                platform_spacing_min=5.0,
                platform_spacing_max=2.0,
                difficulty_rating=9,
            )
        )
        assert part.platform_count == 1
        assert part.fixed_part_length == 1.0
        assert part.min_platforms_in_fixed_length == 1
        assert part.platform_spacing_min == part.platform_spacing_max == 2.0
        assert part.difficulty_rating == 5.0

    def test_default_name_from_type_and_difficulty(self):
        part = parse_part(_minimal_part(part_name="", part_type="enemy_challenge", difficulty_rating=3))
        assert part.part_name == "EnemyChallenge 3.0"

    def test_platform_types_as_strings(self):
        part = parse_part(_minimal_part(platform_types=["a", "b"]))
        assert [p.prefab for p in part.platform_types] == ["a", "b"]

    def test_malformed_parts_are_skipped(self, caplog):
        cfg = {"parts": [_minimal_part(), "oops", _minimal_part(platform_count="many"), _minimal_part(part_name="B")]}
        with caplog.at_level(logging.ERROR):
            parts = parse_parts(cfg)
        assert [p.part_name for p in parts] == ["Start", "B"]
        assert "part 1" in caplog.text
        assert "part 2" in caplog.text

    def test_parts_must_be_a_list(self):
        assert parse_parts({"parts": {"a": 1}}) == []
        assert parse_parts({}) == []


# ---------------------------------------------------------------------------
# TestContentRules
# ---------------------------------------------------------------------------

class TestContentRules:
    def test_enemy_variants(self):
        rule = parse_content_rule(
            {
                "content_type": "Enemy",
                "variants": [{"prefab": "bat", "weight": 3}, {"prefab": "turret", "can_be_used_in_chains": False}],
                "create_chain": True,
                "chain_spacing_mode": "custom",
                "custom_chain_spacing": 2.5,
            }
        )
        assert rule.variants == (WeightedEnemy("bat", 3.0), WeightedEnemy("turret", 1.0, False))
        assert rule.create_chain
        assert rule.chain_spacing_mode is ChainSpacingMode.CUSTOM
        assert rule.custom_chain_spacing == 2.5

    def test_power_up_variants(self):
        rule = parse_content_rule(
            {
                "content_type": "power_up",
                "variants": [{"prefab": "heart", "power_up_type": "health", "spawn_offset": [0, 1]}],
            }
        )
        assert rule.content_type is ContentType.POWER_UP
        assert rule.variants == (WeightedPowerUp("heart", 1.0, PowerUpType.HEALTH, (0.0, 1.0)),)

    def test_count_range_is_ordered(self):
        rule = parse_content_rule({"prefab": "slime", "min_count": 3, "max_count": 1})
        assert (rule.min_count, rule.max_count) == (3, 3)

    def test_rule_without_prefab_is_dropped(self, caplog):
        with caplog.at_level(logging.ERROR):
            assert parse_content_rule({"content_type": "Obstacle"}) is None
        assert "no prefab" in caplog.text

    def test_part_keeps_only_usable_rules(self):
        part = parse_part(
            _minimal_part(content_rules=[{"prefab": "slime"}, {"content_type": "Enemy"}, 7])
        )
        assert len(part.content_rules) == 1
        assert part.requires_enemies()
        assert not part.requires_power_ups()
