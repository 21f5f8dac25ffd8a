import argparse
import logging

import pyglet

from voxelworld.constants import CHUNK_SIZE_X, CHUNK_SIZE_Y, CHUNK_SIZE_Z, LOAD_RADIUS_CHUNKS
from voxelworld.debug.profiler import RuntimeProfiler
from voxelworld.game.window import GameWindow
from voxelworld.graphics.rendering import setup_gl
from voxelworld.world.world import World


def run(
    seed: int = 1337,
    radius: int = LOAD_RADIUS_CHUNKS,
    chunk_height: int = CHUNK_SIZE_Y,
    structures: bool = True,
    profile: bool = False,
) -> None:
    profiler = RuntimeProfiler(enabled=profile)
    world = World(
        seed=seed,
        chunk_size=(CHUNK_SIZE_X, chunk_height, CHUNK_SIZE_Z),
        load_radius=radius,
        profiler=profiler,
    )
    GameWindow(world, profiler=profiler, structures=structures)
    setup_gl()
    pyglet.app.run()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Procedural voxel world")
    parser.add_argument("--seed", type=int, default=1337, help="Terrain seed (same seed => same world)")
    parser.add_argument("--radius", type=int, default=LOAD_RADIUS_CHUNKS, help="Chunk load radius around the player")
    parser.add_argument("--chunk-height", type=int, default=CHUNK_SIZE_Y, help="Vertical size of every chunk")
    parser.add_argument("--no-structures", action="store_true", help="Skip the village and forests at spawn")
    parser.add_argument("--profile", action="store_true", help="Write a timing report to ./profiling on exit")
    parser.add_argument("--log-level", default="INFO", choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run(
        seed=args.seed,
        radius=args.radius,
        chunk_height=args.chunk_height,
        structures=not args.no_structures,
        profile=args.profile,
    )
