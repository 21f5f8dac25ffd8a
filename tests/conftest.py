from __future__ import annotations

import pytest

from voxelworld.world.terrain import FlatTerrainGenerator
from voxelworld.world.world import World

CHUNK = (16, 32, 16)
FLAT_HEIGHT = 8


def make_world(height: int = FLAT_HEIGHT, radius: int = 1, **terrain_kwargs) -> World:
    terrain = FlatTerrainGenerator(height=height, world_height=CHUNK[1], **terrain_kwargs)
    world = World(terrain=terrain, chunk_size=CHUNK)
    world.load_chunks_around_position(0.0, 0.0, radius=radius)
    return world


@pytest.fixture()
def flat_world() -> World:
    """Grass surface at y=8 over a 3x3 chunk square centred on the origin."""
    return make_world()


@pytest.fixture()
def empty_world() -> World:
    world = make_world(height=-1)
    world.update()
    return world
