from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from models import (
    ChainSpacingMode,
    ContentSpawnRule,
    ContentType,
    FlipMode,
    GapFillerSettings,
    GeneratorSettings,
    LevelPart,
    LevelPartType,
    PartSizeMode,
    PowerUpType,
    SimplePositioning,
    SimulationSettings,
    SpawnerSettings,
    WeightedEnemy,
    WeightedPlatform,
    WeightedPowerUp,
)
from part_manager import ROUND_ROBIN, WEIGHTED

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def _section(raw: Any, key: str) -> Dict[str, Any]:
    value = raw.get(key, {}) if isinstance(raw, dict) else {}
    return value if isinstance(value, dict) else {}


def _norm(text: str) -> str:
    return text.replace("_", "").replace("-", "").replace(" ", "").lower()


def parse_enum(enum_cls: Type[E], raw: Any, default: E) -> E:
    """Parse an enum by value or name, case-insensitive, snake_case or CamelCase."""
    if isinstance(raw, enum_cls):
        return raw
    if not isinstance(raw, str):
        return default
    wanted = _norm(raw)
    for member in enum_cls:
        if _norm(member.value) == wanted or _norm(member.name) == wanted:
            return member
    logger.warning("unknown %s '%s', using %s", enum_cls.__name__, raw, default.value)
    return default


def _prefab(raw: Any) -> Optional[str]:
    if isinstance(raw, str):
        txt = raw.strip()
        return txt if txt else None
    return None


def _weight(raw: Dict[str, Any]) -> float:
    return max(0.0, float(raw.get("weight", 1.0)))


# ----------------------------
# Settings
# ----------------------------


def parse_generator_settings(raw: Any) -> GeneratorSettings:
    """Parse the "generator" section.

    Args:
        raw: Full config dict.

    Returns:
        GeneratorSettings with defaults applied.
    """
    g = _section(raw, "generator")
    selection = str(g.get("part_selection", ROUND_ROBIN)).strip().lower()
    if selection not in (ROUND_ROBIN, WEIGHTED):
        logger.warning("unknown part_selection '%s', using %s", selection, ROUND_ROBIN)
        selection = ROUND_ROBIN
    return GeneratorSettings(
        chunk_height=max(0.1, float(g.get("chunk_height", 8.0))),
        generation_distance=max(0.0, float(g.get("generation_distance", 30.0))),
        generation_check_interval=max(0.0, float(g.get("generation_check_interval", 1.0))),
        max_chunks_per_frame=max(1, int(g.get("max_chunks_per_frame", 1))),
        initial_chunk_count=max(0, int(g.get("initial_chunk_count", 3))),
        part_selection=selection,
        recent_part_memory=max(0, int(g.get("recent_part_memory", 5))),
        gap_filling=bool(g.get("gap_filling", False)),
    )


def parse_gap_filler_settings(raw: Any) -> GapFillerSettings:
    gf = _section(raw, "gap_filler")
    max_jump = max(0.1, float(gf.get("max_jump_distance", 4.0)))
    margin = max(0.0, float(gf.get("jump_safety_margin", 0.5)))
    if margin >= max_jump:
        logger.warning("jump_safety_margin %.2f >= max_jump_distance %.2f; ignoring margin", margin, max_jump)
        margin = 0.0
    return GapFillerSettings(
        max_jump_distance=max_jump,
        jump_safety_margin=margin,
        minimum_gap_to_fill=max(0.0, float(gf.get("minimum_gap_to_fill", 2.0))),
        fill_platform_height_variation=abs(float(gf.get("fill_platform_height_variation", 0.3))),
        fill_platform_x_variation=abs(float(gf.get("fill_platform_x_variation", 1.0))),
    )


def _parse_walls(raw: Any) -> Tuple[Tuple[float, float], ...]:
    if not isinstance(raw, list):
        return ()
    walls: List[Tuple[float, float]] = []
    for entry in raw:
        try:
            if isinstance(entry, dict):
                a, b = float(entry["min_x"]), float(entry["max_x"])
            else:
                a, b = float(entry[0]), float(entry[1])
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("skipping malformed wall entry: %r", entry)
            continue
        walls.append((min(a, b), max(a, b)))
    return tuple(walls)


def parse_spawner_settings(raw: Any) -> SpawnerSettings:
    sp = _section(raw, "spawner")
    return SpawnerSettings(
        view_width=max(0.1, float(sp.get("view_width", 11.0))),
        screen_edge_offset=float(sp.get("screen_edge_offset", 1.2)),
        wall_offset=float(sp.get("wall_offset", 3.0)),
        auto_detect_walls=bool(sp.get("auto_detect_walls", True)),
        walls=_parse_walls(sp.get("walls")),
    )


def parse_simulation_settings(raw: Any) -> SimulationSettings:
    sim = _section(raw, "simulation")
    return SimulationSettings(
        seconds=max(0.0, float(sim.get("seconds", 60.0))),
        fps=max(1, int(sim.get("fps", 60))),
        climb_speed=float(sim.get("climb_speed", 2.5)),
        view_height=max(0.1, float(sim.get("view_height", 20.0))),
    )


# ----------------------------
# Parts and rules
# ----------------------------


def _parse_variant(raw: Any, content_type: ContentType) -> Any:
    if isinstance(raw, str):
        raw = {"prefab": raw}
    if not isinstance(raw, dict):
        return None
    prefab = _prefab(raw.get("prefab"))
    weight = _weight(raw)
    if content_type is ContentType.ENEMY:
        return WeightedEnemy(
            prefab=prefab,
            weight=weight,
            can_be_used_in_chains=bool(raw.get("can_be_used_in_chains", True)),
        )
    if content_type is ContentType.POWER_UP:
        offset = raw.get("spawn_offset", [0.0, 0.5])
        if not (isinstance(offset, (list, tuple)) and len(offset) >= 2):
            offset = [0.0, 0.5]
        return WeightedPowerUp(
            prefab=prefab,
            weight=weight,
            power_up_type=parse_enum(PowerUpType, raw.get("power_up_type"), PowerUpType.BOOST),
            spawn_offset=(float(offset[0]), float(offset[1])),
        )
    return WeightedPlatform(prefab=prefab, weight=weight)


def parse_content_rule(raw: Any) -> Optional[ContentSpawnRule]:
    """Parse one content rule; returns None (and logs) when it has nothing to spawn."""
    if not isinstance(raw, dict):
        return None

    content_type = parse_enum(ContentType, raw.get("content_type"), ContentType.ENEMY)
    variants_raw = raw.get("variants", [])
    variants = tuple(
        v
        for v in (_parse_variant(x, content_type) for x in (variants_raw if isinstance(variants_raw, list) else []))
        if v is not None
    )

    min_count = max(0, int(raw.get("min_count", 1)))
    max_count = max(min_count, int(raw.get("max_count", min_count)))
    min_chain = max(1, int(raw.get("min_chain_length", 3)))
    max_chain = max(min_chain, int(raw.get("max_chain_length", 5)))
    min_spacing = float(raw.get("min_chain_spacing", 1.5))
    max_spacing = max(min_spacing, float(raw.get("max_chain_spacing", 3.0)))

    rule = ContentSpawnRule(
        content_type=content_type,
        prefab=_prefab(raw.get("prefab")),
        variants=variants,
        min_count=min_count,
        max_count=max_count,
        positioning=parse_enum(SimplePositioning, raw.get("positioning"), SimplePositioning.OVER_PLATFORMS),
        flip_mode=parse_enum(FlipMode, raw.get("flip_mode"), FlipMode.RANDOM),
        flip_fixed=bool(raw.get("flip_fixed", False)),
        spawn_before_part=bool(raw.get("spawn_before_part", False)),
        create_chain=bool(raw.get("create_chain", False)),
        min_chain_length=min_chain,
        max_chain_length=max_chain,
        chain_spacing_mode=parse_enum(
            ChainSpacingMode, raw.get("chain_spacing_mode"), ChainSpacingMode.EVENLY_DISTRIBUTED
        ),
        custom_chain_spacing=float(raw.get("custom_chain_spacing", 2.0)),
        min_chain_spacing=min_spacing,
        max_chain_spacing=max_spacing,
    )
    if not rule.has_payload():
        logger.error("%s content rule has no prefab; skipped", content_type.value)
        return None
    return rule


def _parse_platform_types(raw: Any) -> Tuple[WeightedPlatform, ...]:
    if not isinstance(raw, list):
        return ()
    platforms: List[WeightedPlatform] = []
    for entry in raw:
        if isinstance(entry, str):
            entry = {"prefab": entry}
        if not isinstance(entry, dict):
            continue
        try:
            platforms.append(WeightedPlatform(prefab=_prefab(entry.get("prefab")), weight=_weight(entry)))
        except (TypeError, ValueError):
            logger.warning("skipping malformed platform type: %r", entry)
    return tuple(platforms)


def parse_part(raw: Any) -> Optional[LevelPart]:
    """Parse and normalize one authored part.

    Returns None for entries that are not objects. Parts without platform
    types are still returned; the generator skips them at selection time.
    """
    if not isinstance(raw, dict):
        return None

    part_type = parse_enum(LevelPartType, raw.get("part_type"), LevelPartType.SAFE)
    difficulty = min(5.0, max(1.0, float(raw.get("difficulty_rating", 1.0))))

    name = raw.get("part_name", raw.get("name"))
    name = str(name).strip() if isinstance(name, str) else ""
    if not name or name == "New Part":
        name = f"{part_type.value} {difficulty:.1f}"

    spacing_max = float(raw.get("platform_spacing_max", 3.5))
    spacing_min = min(float(raw.get("platform_spacing_min", 1.5)), spacing_max)

    rules_raw = raw.get("content_rules", [])
    rules = tuple(
        r
        for r in (parse_content_rule(x) for x in (rules_raw if isinstance(rules_raw, list) else []))
        if r is not None
    )

    description = raw.get("description")
    return LevelPart(
        part_name=name,
        part_type=part_type,
        description=description.strip() if isinstance(description, str) else "",
        size_mode=parse_enum(PartSizeMode, raw.get("size_mode"), PartSizeMode.PLATFORM_COUNT),
        platform_count=max(1, int(raw.get("platform_count", 4))),
        fixed_part_length=max(1.0, float(raw.get("fixed_part_length", 10.0))),
        min_platforms_in_fixed_length=max(1, int(raw.get("min_platforms_in_fixed_length", 2))),
        platform_spacing_min=spacing_min,
        platform_spacing_max=spacing_max,
        platform_types=_parse_platform_types(raw.get("platform_types")),
        content_rules=rules,
        difficulty_rating=difficulty,
        min_height_required=float(raw.get("min_height_required", 0.0)),
        selection_weight=max(0.0, float(raw.get("selection_weight", 1.0))),
    )


def parse_parts(raw: Any) -> List[LevelPart]:
    """Parse the "parts" list; malformed entries are logged and skipped."""
    parts_raw = raw.get("parts", []) if isinstance(raw, dict) else []
    if not isinstance(parts_raw, list):
        logger.error("'parts' must be a list")
        return []

    parts: List[LevelPart] = []
    for i, entry in enumerate(parts_raw):
        try:
            part = parse_part(entry)
        except (TypeError, ValueError) as e:
            logger.error("part %s is malformed: %s", i, e)
            continue
        if part is None:
            logger.error("part %s is not an object; skipped", i)
            continue
        parts.append(part)
    return parts
