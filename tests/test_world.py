import numpy as np
import pytest

from voxelworld.blocks import BlockType
from voxelworld.debug.profiler import RuntimeProfiler
from voxelworld.world.terrain import FlatTerrainGenerator
from voxelworld.world.world import World


def test_chunk_coords_floor_negative_positions(flat_world):
    assert flat_world.chunk_coords(0, 0) == (0, 0)
    assert flat_world.chunk_coords(15.9, 15.9) == (0, 0)
    assert flat_world.chunk_coords(-1, -0.5) == (-1, -1)
    assert flat_world.chunk_coords(-16, 16) == (-1, 1)
    assert flat_world.chunk_coords(-17, 0) == (-2, 0)
    assert flat_world.local_coords(-1, 5, -1) == (-1, -1, 15, 5, 15)


def test_flat_layers(flat_world):
    assert flat_world.get_block(0, 3, 0) is BlockType.STONE
    assert flat_world.get_block(0, 4, 0) is BlockType.DIRT
    assert flat_world.get_block(-5, 7, 9) is BlockType.DIRT
    assert flat_world.get_block(0, 8, 0) is BlockType.GRASS
    assert flat_world.get_block(0, 9, 0) is BlockType.AIR


def test_set_then_get_round_trip(flat_world):
    flat_world.set_block(-3, 12, 7, BlockType.PLANKS)
    assert flat_world.get_block(-3, 12, 7) is BlockType.PLANKS


def test_vertical_out_of_range(flat_world):
    assert flat_world.get_block(0, -1, 0) is BlockType.AIR
    assert flat_world.get_block(0, flat_world.size_y, 0) is BlockType.AIR
    flat_world.update()
    flat_world.set_block(0, flat_world.size_y, 0, BlockType.STONE)
    flat_world.set_block(0, -1, 0, BlockType.STONE)
    assert flat_world.dirty_chunks() == []


def test_unloaded_chunk_reads_air_and_ignores_writes(flat_world):
    flat_world.set_block(1000, 5, 1000, BlockType.STONE)
    assert flat_world.get_block(1000, 5, 1000) is BlockType.AIR
    assert not flat_world.is_chunk_loaded(flat_world.chunk_coords(1000, 1000))


@pytest.mark.parametrize(
    ("x", "z", "expected"),
    [
        (5, 5, {(0, 0)}),
        (0, 5, {(0, 0), (-1, 0)}),
        (15, 5, {(0, 0), (1, 0)}),
        (5, 0, {(0, 0), (0, -1)}),
        (5, 15, {(0, 0), (0, 1)}),
        (0, 0, {(0, 0), (-1, 0), (0, -1)}),
    ],
)
def test_edit_invalidates_touching_neighbours(flat_world, x, z, expected):
    flat_world.update()
    flat_world.set_block(x, 10, z, BlockType.STONE)
    assert set(flat_world.dirty_chunks()) == expected


def test_load_around_origin_and_rebuild(flat_world):
    assert sorted(flat_world.loaded_chunks()) == [(cx, cz) for cx in (-1, 0, 1) for cz in (-1, 0, 1)]
    assert len(flat_world.dirty_chunks()) == 9

    rebuilt = flat_world.update()

    assert len(rebuilt) == 9
    assert flat_world.dirty_chunks() == []
    assert all(flat_world.chunk_mesh(key) is not None for key in rebuilt)
    assert flat_world.update() == []


def test_reloading_is_a_no_op(flat_world):
    assert flat_world.load_chunks_around_position(8.0, 8.0, radius=1) == []
    assert flat_world.generate_chunk(0, 0) is False


def test_generated_chunk_dirties_loaded_neighbours(flat_world):
    flat_world.update()
    assert flat_world.generate_chunk(2, 0)
    assert set(flat_world.dirty_chunks()) == {(2, 0), (1, 0)}


def test_sample_region_spans_chunks(flat_world):
    region = flat_world.sample_region(-2, 8, -2, 4, 2, 4)
    assert region.shape == (2, 4, 4)
    assert np.all(region[0] == BlockType.GRASS)
    assert np.all(region[1] == BlockType.AIR)

    outside = flat_world.sample_region(500, 0, 500, 2, 4, 2)
    assert not outside.any()


def test_height_at(flat_world):
    assert flat_world.height_at(3, -7) == 8
    flat_world.set_block(3, 20, -7, BlockType.STONE)
    assert flat_world.height_at(3, -7) == 20
    assert flat_world.height_at(900, 900) == -1


def test_rejects_bad_configuration():
    with pytest.raises(ValueError):
        World(chunk_size=(0, 16, 16))
    with pytest.raises(ValueError):
        World(load_radius=-1)


def test_profiler_records_world_sections():
    profiler = RuntimeProfiler()
    world = World(terrain=FlatTerrainGenerator(4, world_height=16), chunk_size=(8, 16, 8), profiler=profiler)
    world.load_chunks_around_position(0, 0, radius=0)
    world.update()

    stats = profiler.stats()
    assert stats["world.chunk.generate"].count == 1
    assert stats["world.stream.load"].count == 1
    assert stats["world.mesh.rebuild"].count == 1
    assert world.diagnostics_snapshot()["meshed_chunks"] == 1


def test_whole_number_float_coordinates(flat_world):
    assert flat_world.local_coords(-1.0, 5.0, 17.5) == (-1, 1, 15, 5, 1)
    assert flat_world.get_block(1.0, 8.0, 0.0) is BlockType.GRASS
    assert flat_world.get_block(0.5, 8.9, -0.5) is BlockType.GRASS

    flat_world.set_block(1.0, 12.0, 0.0, BlockType.STONE)
    assert flat_world.get_block(1, 12, 0) is BlockType.STONE
    assert flat_world.height_at(1.0, 0.0) == 12


def test_default_chunk_height_scenario():
    world = World(terrain=FlatTerrainGenerator(height=8), chunk_size=(16, 64, 16))
    generated = world.load_chunks_around_position(0.0, 0.0, radius=1)

    assert sorted(generated) == [(cx, cz) for cx in (-1, 0, 1) for cz in (-1, 0, 1)]
    assert world.get_block(0, 8, 0) is BlockType.GRASS
    assert world.get_block(0, 63, 0) is BlockType.AIR
    assert world.height_at(-20, 20) == 8
    assert len(world.update()) == 9
