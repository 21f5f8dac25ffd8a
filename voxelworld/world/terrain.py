from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import IntEnum

from voxelworld.blocks import BlockType
from voxelworld.constants import CHUNK_SIZE_Y, CRUST_THICKNESS, SEA_LEVEL
from voxelworld.world.chunk import VoxelChunk


class BiomeType(IntEnum):
    PLAINS = 0
    DESERT = 1
    MOUNTAINS = 2


@dataclass(frozen=True)
class Biome:
    kind: BiomeType
    base_height: float
    amplitude: float
    frequency: float
    detail_amplitude: float
    detail_frequency: float
    surface: BlockType
    subsurface: BlockType
    ground_cover: BlockType | None = None
    cover_chance: float = 0.0
    # Above this height the surface switches to ``high_surface``.
    high_surface_above: int | None = None
    high_surface: BlockType | None = None

    def surface_at(self, height: int) -> BlockType:
        if self.high_surface is not None and self.high_surface_above is not None and height > self.high_surface_above:
            return self.high_surface
        return self.surface


# Indexed by BiomeType ordinal.
BIOMES: tuple[Biome, ...] = (
    Biome(
        BiomeType.PLAINS,
        base_height=24,
        amplitude=6,
        frequency=1 / 100,
        detail_amplitude=2,
        detail_frequency=1 / 20,
        surface=BlockType.GRASS,
        subsurface=BlockType.DIRT,
        ground_cover=BlockType.WHEAT,
        cover_chance=0.03,
    ),
    Biome(
        BiomeType.DESERT,
        base_height=22,
        amplitude=4,
        frequency=1 / 50,
        detail_amplitude=3,
        detail_frequency=1 / 12.5,
        surface=BlockType.SAND,
        subsurface=BlockType.SANDSTONE,
        ground_cover=BlockType.CACTUS,
        cover_chance=0.01,
    ),
    Biome(
        BiomeType.MOUNTAINS,
        base_height=22,
        amplitude=18,
        frequency=1 / 50,
        detail_amplitude=5,
        detail_frequency=1 / 10,
        surface=BlockType.STONE,
        subsurface=BlockType.DIRT,
        high_surface_above=34,
        high_surface=BlockType.DIRT,
    ),
)

BIOME_FREQUENCY = 1 / 200
MOISTURE_FREQUENCY = 1 / 333
MOUNTAIN_THRESHOLD = 0.3
DESERT_THRESHOLD = 0.2


@dataclass(frozen=True)
class TerrainSample:
    height: int
    biome: BiomeType
    surface: BlockType
    subsurface: BlockType
    has_ground_cover: bool = False
    ground_cover: BlockType | None = None


class PerlinField:
    """2D gradient noise over a permutation table drawn from ``rng``."""

    def __init__(self, rng: random.Random) -> None:
        permutation = list(range(256))
        rng.shuffle(permutation)
        self._perm = permutation + permutation

    @staticmethod
    def _fade(t: float) -> float:
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _lerp(a: float, b: float, t: float) -> float:
        return a + t * (b - a)

    @staticmethod
    def _grad(hash_value: int, x: float, y: float) -> float:
        h = hash_value & 7
        u = x if h < 4 else y
        v = y if h < 4 else x
        return ((u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v))

    def noise(self, x: float, y: float) -> float:
        xi = math.floor(x) & 255
        yi = math.floor(y) & 255
        xf = x - math.floor(x)
        yf = y - math.floor(y)

        u = self._fade(xf)
        v = self._fade(yf)

        aa = self._perm[self._perm[xi] + yi]
        ab = self._perm[self._perm[xi] + yi + 1]
        ba = self._perm[self._perm[xi + 1] + yi]
        bb = self._perm[self._perm[xi + 1] + yi + 1]

        x1 = self._lerp(self._grad(aa, xf, yf), self._grad(ba, xf - 1.0, yf), u)
        x2 = self._lerp(self._grad(ab, xf, yf - 1.0), self._grad(bb, xf - 1.0, yf - 1.0), u)
        return self._lerp(x1, x2, v)

    def fbm(self, x: float, y: float, octaves: int, persistence: float, lacunarity: float) -> float:
        frequency = 1.0
        amplitude = 1.0
        noise_sum = 0.0
        max_amplitude = 0.0
        for _ in range(octaves):
            noise_sum += self.noise(x * frequency, y * frequency) * amplitude
            max_amplitude += amplitude
            amplitude *= persistence
            frequency *= lacunarity
        return noise_sum / max_amplitude if max_amplitude else 0.0


class TerrainGenerator:
    """Height, biome and surface classification as a pure function of (x, z, seed)."""

    def __init__(
        self,
        seed: int,
        world_height: int = CHUNK_SIZE_Y,
        sea_level: int = SEA_LEVEL,
        crust_thickness: int = CRUST_THICKNESS,
        octaves: int = 4,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> None:
        self.seed = seed
        self.world_height = world_height
        self.sea_level = sea_level
        self.crust_thickness = crust_thickness
        self.octaves = octaves
        self.persistence = persistence
        self.lacunarity = lacunarity

        rng = random.Random(seed)
        self._height = PerlinField(rng)
        self._detail = PerlinField(rng)
        self._biome = PerlinField(rng)
        self._moisture = PerlinField(rng)

    def biome_at(self, x: int, z: int) -> BiomeType:
        # Hard cutoff, no blending across the threshold.
        if self._biome.noise(x * BIOME_FREQUENCY, z * BIOME_FREQUENCY) > MOUNTAIN_THRESHOLD:
            return BiomeType.MOUNTAINS
        if self._moisture.noise(x * MOISTURE_FREQUENCY, z * MOISTURE_FREQUENCY) > DESERT_THRESHOLD:
            return BiomeType.DESERT
        return BiomeType.PLAINS

    def _cover_roll(self, x: int, z: int) -> float:
        h = (x * 374761393 + z * 668265263 + self.seed * 2246822519) & 0xFFFFFFFF
        h = ((h ^ (h >> 13)) * 1274126177) & 0xFFFFFFFF
        return (h ^ (h >> 16)) / float(0xFFFFFFFF)

    def sample(self, x: int, z: int) -> TerrainSample:
        kind = self.biome_at(x, z)
        biome = BIOMES[kind]
        base = self._height.fbm(
            x * biome.frequency,
            z * biome.frequency,
            self.octaves,
            self.persistence,
            self.lacunarity,
        )
        detail = self._detail.noise(x * biome.detail_frequency, z * biome.detail_frequency)
        height = math.floor(biome.base_height + base * biome.amplitude + detail * biome.detail_amplitude)
        height = max(1, min(self.world_height - 2, height))

        has_cover = (
            biome.ground_cover is not None
            and height >= self.sea_level
            and self._cover_roll(x, z) < biome.cover_chance
        )
        return TerrainSample(
            height=height,
            biome=kind,
            surface=biome.surface_at(height),
            subsurface=biome.subsurface,
            has_ground_cover=has_cover,
            ground_cover=biome.ground_cover if has_cover else None,
        )

    def height_at(self, x: int, z: int) -> int:
        return self.sample(x, z).height

    def generate_chunk(self, chunk: VoxelChunk) -> None:
        x0, _, z0 = chunk.origin
        top = chunk.size_y
        for lz in range(chunk.size_z):
            for lx in range(chunk.size_x):
                sample = self.sample(x0 + lx, z0 + lz)
                self._fill_column(chunk.voxels[:, lz, lx], sample, top)
        chunk.mark_dirty()

    def _fill_column(self, column, sample: TerrainSample, top: int) -> None:
        h = sample.height
        if h >= 0:
            stone_top = max(0, min(top, h - self.crust_thickness))
            column[:stone_top] = BlockType.STONE
            column[stone_top : min(h, top)] = sample.subsurface
            if h < top:
                column[h] = sample.surface
        if h < self.sea_level:
            column[max(0, h + 1) : min(self.sea_level, top)] = BlockType.WATER
        elif sample.ground_cover is not None and h + 1 < top:
            column[h + 1] = sample.ground_cover


class FlatTerrainGenerator(TerrainGenerator):
    """Constant-height terrain; a negative height yields an all-air world."""

    def __init__(
        self,
        height: int = 8,
        seed: int = 0,
        world_height: int = CHUNK_SIZE_Y,
        sea_level: int = 0,
        crust_thickness: int = CRUST_THICKNESS,
        surface: BlockType = BlockType.GRASS,
        subsurface: BlockType = BlockType.DIRT,
    ) -> None:
        super().__init__(seed, world_height=world_height, sea_level=sea_level, crust_thickness=crust_thickness)
        self.flat_height = height
        self.surface = surface
        self.subsurface = subsurface

    def biome_at(self, x: int, z: int) -> BiomeType:
        return BiomeType.PLAINS

    def sample(self, x: int, z: int) -> TerrainSample:
        return TerrainSample(
            height=self.flat_height,
            biome=BiomeType.PLAINS,
            surface=self.surface,
            subsurface=self.subsurface,
        )
