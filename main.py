from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import Optional

from camera import RisingCamera
from config_io import load_json_config
from config_parsing import (
    parse_gap_filler_settings,
    parse_generator_settings,
    parse_parts,
    parse_simulation_settings,
    parse_spawner_settings,
)
from gap_filler import PlatformGapFiller
from level_generator import HeightChunkLevelGenerator
from platform_spawner import PlatformSpawner
from utils import deep_get
from world import World

logger = logging.getLogger(__name__)


# ----------------------------
# Simulation
# ----------------------------


def run_simulation(
    cfg: dict,
    rng: random.Random,
    seconds: Optional[float] = None,
    fps: Optional[int] = None,
) -> dict:
    """Climb through a generated level headlessly and report what was built.

    Args:
        cfg: Parsed config dict.
        rng: Random source shared by every component.
        seconds: Overrides simulation.seconds when given.
        fps: Overrides simulation.fps when given.

    Returns:
        Summary dict with chunk, height and spawn statistics.
    """
    sim = parse_simulation_settings(cfg)
    gen_settings = parse_generator_settings(cfg)
    spawner_settings = parse_spawner_settings(cfg)
    parts = parse_parts(cfg)

    seconds = sim.seconds if seconds is None else max(0.0, seconds)
    fps = sim.fps if fps is None else max(1, fps)

    world = World(destroy_buffer=float(deep_get(cfg, "world.destroy_buffer", 5.0)))
    camera = RisingCamera(
        spawner_settings.view_width,
        sim.view_height,
        y_offset=float(deep_get(cfg, "camera.y_offset", 3.0)),
    )
    spawner = PlatformSpawner(spawner_settings, world.instantiate, rng)
    gap_filler = None
    if gen_settings.gap_filling:
        gap_filler = PlatformGapFiller(parse_gap_filler_settings(cfg), spawner, rng)

    generator = HeightChunkLevelGenerator(
        gen_settings,
        parts,
        spawner,
        camera_height=lambda: camera.y,
        instantiate=world.instantiate,
        rng=rng,
        gap_filler=gap_filler,
    )
    if not generator.init():
        raise SystemExit("level generator failed to initialize, see log for details")

    dt = 1.0 / fps
    frames = int(seconds * fps)
    climber_y = 0.0
    for _ in range(frames):
        climber_y += sim.climb_speed * dt
        camera.follow(climber_y)
        generator.tick(dt)
        world.cleanup_below(camera.bottom)

    logger.info("simulated %s frames, camera at %.1f", frames, camera.y)
    spawned = world.spawned
    return {
        "frames": frames,
        "camera_y": camera.y,
        "chunks_generated": generator.next_chunk_id,
        "chunks_alive": generator.generated_chunk_count,
        "highest_generated_y": generator.highest_generated_y,
        "platforms_spawned": spawned.get("platform", 0),
        "content_spawned": sum(n for kind, n in spawned.items() if kind != "platform"),
        "objects_alive": len(world.objects),
        "objects_destroyed": world.destroyed_count,
        "current_part": generator.current_part_name,
    }


# ----------------------------
# CLI
# ----------------------------


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Simulate a rising camera over a procedurally generated vertical level."
    )
    p.add_argument(
        "config",
        nargs="?",
        default="config.json",
        help="Path to the JSON config (default: config.json)",
    )
    p.add_argument("--seconds", type=float, default=None, help="Seconds of ascent to simulate.")
    p.add_argument("--fps", type=int, default=None, help="Simulated frames per second.")
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed for reproducible generation.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cfg = load_json_config(Path(args.config))
    seed = args.seed if args.seed is not None else deep_get(cfg, "seed", None)
    rng = random.Random(seed)

    summary = run_simulation(cfg, rng, seconds=args.seconds, fps=args.fps)
    width = max(len(k) for k in summary)
    for key, value in summary.items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        print(f"{key.ljust(width)}  {value}")


if __name__ == "__main__":
    main()
