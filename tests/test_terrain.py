import numpy as np
import pytest

from voxelworld.blocks import BlockType
from voxelworld.world.chunk import VoxelChunk
from voxelworld.world.terrain import BIOMES, BiomeType, FlatTerrainGenerator, TerrainGenerator


def _generate(generator, cx=0, cz=0):
    chunk = VoxelChunk(cx, cz, (16, 64, 16))
    generator.generate_chunk(chunk)
    return chunk


def test_same_seed_same_chunk():
    first = _generate(TerrainGenerator(42), 3, -2)
    second = _generate(TerrainGenerator(42), 3, -2)
    assert np.array_equal(first.blocks, second.blocks)


def test_different_seeds_differ():
    heights_a = [TerrainGenerator(1).height_at(x, 0) for x in range(0, 256, 4)]
    heights_b = [TerrainGenerator(2).height_at(x, 0) for x in range(0, 256, 4)]
    assert heights_a != heights_b


def test_sample_is_pure():
    generator = TerrainGenerator(7)
    assert generator.sample(-40, 113) == generator.sample(-40, 113)


def test_heights_stay_inside_the_world():
    generator = TerrainGenerator(5, world_height=64)
    for x in range(-200, 200, 13):
        for z in range(-200, 200, 17):
            assert 1 <= generator.height_at(x, z) <= 62


def test_column_layering():
    generator = TerrainGenerator(11)
    chunk = _generate(generator, -1, 2)
    x0, _, z0 = chunk.origin
    for lz in range(16):
        for lx in range(16):
            sample = generator.sample(x0 + lx, z0 + lz)
            column = chunk.voxels[:, lz, lx]
            h = sample.height
            assert column[h] == sample.surface
            stone_top = max(0, h - generator.crust_thickness)
            assert np.all(column[:stone_top] == BlockType.STONE)
            assert np.all(column[stone_top:h] == sample.subsurface)
            if h < generator.sea_level:
                assert np.all(column[h + 1 : generator.sea_level] == BlockType.WATER)
            elif sample.has_ground_cover:
                assert column[h + 1] == sample.ground_cover
            assert np.all(column[max(h + 2, generator.sea_level) :] == BlockType.AIR)


def test_generation_marks_chunk_dirty():
    chunk = VoxelChunk(0, 0, (16, 64, 16))
    chunk.dirty = False
    TerrainGenerator(3).generate_chunk(chunk)
    assert chunk.dirty


@pytest.mark.parametrize(
    ("biome_noise", "moisture_noise", "expected"),
    [
        (0.5, 0.0, BiomeType.MOUNTAINS),
        (0.5, 0.9, BiomeType.MOUNTAINS),
        (0.0, 0.5, BiomeType.DESERT),
        (0.3, 0.2, BiomeType.PLAINS),
    ],
)
def test_biome_thresholds(monkeypatch, biome_noise, moisture_noise, expected):
    generator = TerrainGenerator(9)
    monkeypatch.setattr(generator._biome, "noise", lambda x, z: biome_noise)
    monkeypatch.setattr(generator._moisture, "noise", lambda x, z: moisture_noise)
    assert generator.biome_at(10, 10) is expected
    assert generator.sample(10, 10).biome is expected


def test_biome_surfaces():
    assert BIOMES[BiomeType.PLAINS].surface_at(30) is BlockType.GRASS
    assert BIOMES[BiomeType.DESERT].surface_at(30) is BlockType.SAND
    assert BIOMES[BiomeType.MOUNTAINS].surface_at(34) is BlockType.STONE
    assert BIOMES[BiomeType.MOUNTAINS].surface_at(35) is BlockType.DIRT


def test_ground_cover_never_under_water():
    generator = TerrainGenerator(21)
    for x in range(-64, 64):
        sample = generator.sample(x, 5)
        if sample.has_ground_cover:
            assert sample.height >= generator.sea_level
            assert sample.ground_cover is BIOMES[sample.biome].ground_cover


def test_flat_generator():
    chunk = _generate(FlatTerrainGenerator(height=8))
    assert np.all(chunk.voxels[8] == BlockType.GRASS)
    assert np.all(chunk.voxels[9:] == BlockType.AIR)

    empty = _generate(FlatTerrainGenerator(height=-1))
    assert empty.count_blocks(BlockType.AIR) == 16 * 64 * 16


def test_water_fills_up_to_sea_level():
    chunk = _generate(FlatTerrainGenerator(height=5, sea_level=10))
    assert np.all(chunk.voxels[5] == BlockType.GRASS)
    assert np.all(chunk.voxels[6:10] == BlockType.WATER)
    assert np.all(chunk.voxels[10:] == BlockType.AIR)
    assert chunk.count_blocks(BlockType.WATER) == 4 * 16 * 16
