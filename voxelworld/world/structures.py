"""Procedural structures stamped into a loaded world.

Every template is a fixed sequence of ``World.set_block`` calls, so edits made
here invalidate chunk meshes exactly like player edits do.
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING

from voxelworld.blocks import BlockType
from voxelworld.constants import BlockPos

if TYPE_CHECKING:
    from voxelworld.world.world import World

logger = logging.getLogger(__name__)

PLANTABLE = frozenset({BlockType.GRASS, BlockType.DIRT})


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class StructurePlacer:
    HOUSE_WIDTH = 6
    HOUSE_DEPTH = 8
    FARM_WIDTH = 8
    FARM_DEPTH = 6
    TOWER_SIZE = 3
    TOWER_HEIGHT = 16
    TRUNK_HEIGHT = 4
    LEAF_RADIUS = 2
    LEAF_CHANCE = 0.8
    CROWN_LEAF_CHANCE = 0.7
    FOREST_EXCLUSION_RADIUS = 25.0

    def __init__(self, world: World, seed: int = 0) -> None:
        self.world = world
        self.rng = random.Random(seed)

    def ground_level(self, x: int, z: int, start_y: int | None = None, fallback: int | None = None) -> int:
        """Scan down from ``start_y`` to the first block that is neither air nor water."""
        top = self.world.size_y - 1 if start_y is None else min(start_y, self.world.size_y - 1)
        for y in range(top, -1, -1):
            block = self.world.get_block(x, y, z)
            if block != BlockType.AIR and block != BlockType.WATER:
                return y
        return self.world.size_y // 2 if fallback is None else fallback

    def _set(self, x: int, y: int, z: int, block: BlockType) -> None:
        self.world.set_block(x, y, z, block)

    def flatten_area(self, x: int, z: int, width: int, depth: int, ground: int, clearance: int = 10) -> None:
        for dx in range(width):
            for dz in range(depth):
                for y in range(ground - 2, ground + clearance + 1):
                    if y == ground:
                        block = BlockType.GRASS
                    elif y < ground:
                        block = BlockType.DIRT
                    else:
                        block = BlockType.AIR
                    self._set(x + dx, y, z + dz, block)

    def place_house(self, x: int, z: int, ground: int) -> None:
        w, d = self.HOUSE_WIDTH, self.HOUSE_DEPTH
        for dx in range(w):
            for dz in range(d):
                self._set(x + dx, ground, z + dz, BlockType.COBBLESTONE)
                if dx in (0, w - 1) or dz in (0, d - 1):
                    for dy in (1, 2, 3):
                        self._set(x + dx, ground + dy, z + dz, BlockType.COBBLESTONE)

        # door
        self._set(x + 2, ground + 1, z, BlockType.AIR)
        self._set(x + 2, ground + 2, z, BlockType.AIR)
        # windows
        self._set(x, ground + 2, z + 3, BlockType.AIR)
        self._set(x + w - 1, ground + 2, z + 4, BlockType.AIR)

        for dx in range(-1, w + 1):
            for dz in range(-1, d + 1):
                self._set(x + dx, ground + 4, z + dz, BlockType.PLANKS)

        # table and chest
        self._set(x + 1, ground + 1, z + d - 2, BlockType.PLANKS)
        self._set(x + 4, ground + 1, z + d - 2, BlockType.PLANKS)
        self._set(x - 1, ground + 3, z + 2, BlockType.TORCH)

    def place_farm(self, x: int, z: int, ground: int) -> None:
        w, d = self.FARM_WIDTH, self.FARM_DEPTH
        for dx in range(w):
            for dz in range(d):
                self._set(x + dx, ground, z + dz, BlockType.DIRT)
                if (dx + dz) % 2 == 0:
                    self._set(x + dx, ground + 1, z + dz, BlockType.WHEAT)

        for dx in range(-1, w + 1):
            self._set(x + dx, ground + 1, z - 1, BlockType.PLANKS)
            self._set(x + dx, ground + 1, z + d, BlockType.PLANKS)
        for dz in range(-1, d + 1):
            self._set(x - 1, ground + 1, z + dz, BlockType.PLANKS)
            self._set(x + w, ground + 1, z + dz, BlockType.PLANKS)

        for dx, dz in ((3, 2), (4, 2), (3, 3), (4, 3)):
            self._set(x + dx, ground, z + dz, BlockType.WATER)
            # Water sits level with the soil, so the crop above it goes.
            self._set(x + dx, ground + 1, z + dz, BlockType.AIR)

    def place_watchtower(self, x: int, z: int, ground: int) -> None:
        size, height = self.TOWER_SIZE, self.TOWER_HEIGHT
        edge = size - 1
        for dx in range(size):
            for dz in range(size):
                for dy in range(height):
                    if dx == 1 and dz == 1 and 0 < dy < height - 1:
                        self._set(x + dx, ground + dy, z + dz, BlockType.AIR)
                    elif dx in (0, edge) or dz in (0, edge) or dy == 0:
                        self._set(x + dx, ground + dy, z + dz, BlockType.STONE)

        top = ground + height
        for dx in range(-1, size + 1):
            for dz in range(-1, size + 1):
                self._set(x + dx, top, z + dz, BlockType.PLANKS)

        for dx in range(-1, size + 1):
            for dz in range(-1, size + 1):
                on_rim = dx in (-1, size) or dz in (-1, size)
                if on_rim and (dx + dz) % 2 == 0:
                    self._set(x + dx, top + 1, z + dz, BlockType.STONE)

        for dx, dz in ((-1, 1), (size, 1), (1, -1), (1, size)):
            self._set(x + dx, top + 2, z + dz, BlockType.TORCH)

        self._set(x + 1, ground + 1, z, BlockType.AIR)

    def place_path(self, x1: int, z1: int, x2: int, z2: int, ground: int) -> list[tuple[int, int]]:
        dx = x2 - x1
        dz = z2 - z1
        steps = max(abs(dx), abs(dz))
        cells: list[tuple[int, int]] = []
        for i in range(steps + 1):
            t = 0.0 if steps == 0 else i / steps
            cell = (_round_half_up(x1 + dx * t), _round_half_up(z1 + dz * t))
            self._set(cell[0], ground + 1, cell[1], BlockType.COBBLESTONE)
            cells.append(cell)
        return cells

    def place_tree(self, x: int, y: int, z: int) -> None:
        """Trunk base at (x, y, z); canopy leaves are randomised per call."""
        for i in range(self.TRUNK_HEIGHT):
            self._set(x, y + i, z, BlockType.WOOD)

        leaf_y = y + self.TRUNK_HEIGHT
        radius = self.LEAF_RADIUS
        for dx in range(-radius, radius + 1):
            for dz in range(-radius, radius + 1):
                for dy in range(3):
                    distance = math.sqrt(dx * dx + dz * dz + dy * dy)
                    if distance <= radius + 0.5 and self.rng.random() < self.LEAF_CHANCE:
                        if not (dx == 0 and dz == 0 and dy == 0):
                            self._set(x + dx, leaf_y + dy, z + dz, BlockType.LEAVES)

        crown = (
            (x + 1, leaf_y + 2, z),
            (x - 1, leaf_y + 2, z),
            (x, leaf_y + 2, z + 1),
            (x, leaf_y + 2, z - 1),
            (x, leaf_y + 3, z),
        )
        for lx, ly, lz in crown:
            if self.rng.random() < self.CROWN_LEAF_CHANCE:
                self._set(lx, ly, lz, BlockType.LEAVES)

    def place_forest(
        self,
        center_x: int,
        center_z: int,
        radius: float,
        tree_count: int,
        exclusion_center: tuple[int, int] = (0, 0),
        exclusion_radius: float | None = None,
    ) -> list[BlockPos]:
        """Scatter trees around a centre, skipping anchors near ``exclusion_center``.

        The exclusion is a per-anchor rejection test; trees may still overlap
        each other.
        """
        if exclusion_radius is None:
            exclusion_radius = self.FOREST_EXCLUSION_RADIUS
        ex, ez = exclusion_center
        planted: list[BlockPos] = []
        for _ in range(tree_count):
            angle = self.rng.random() * math.tau
            distance = self.rng.random() * radius
            x = math.floor(center_x + math.cos(angle) * distance)
            z = math.floor(center_z + math.sin(angle) * distance)

            if math.hypot(x - ex, z - ez) <= exclusion_radius:
                continue
            ground = self.ground_level(x, z, fallback=-1)
            if ground < 0 or self.world.get_block(x, ground, z) not in PLANTABLE:
                continue
            if ground + self.TRUNK_HEIGHT + 4 >= self.world.size_y:
                continue
            self.place_tree(x, ground + 1, z)
            planted.append((x, ground + 1, z))
        logger.debug("forest at %s: planted %d of %d trees", (center_x, center_z), len(planted), tree_count)
        return planted

    def place_village(self, center_x: int, center_z: int) -> int:
        ground = self.ground_level(center_x, center_z)

        house = (center_x - 10, center_z - 5)
        farm = (center_x + 5, center_z - 8)
        tower = (center_x, center_z + 10)

        self.flatten_area(house[0] - 1, house[1] - 1, self.HOUSE_WIDTH + 2, self.HOUSE_DEPTH + 2, ground)
        self.flatten_area(farm[0] - 1, farm[1] - 1, self.FARM_WIDTH + 2, self.FARM_DEPTH + 2, ground)
        self.flatten_area(tower[0] - 1, tower[1] - 1, self.TOWER_SIZE + 2, self.TOWER_SIZE + 2, ground)

        self.place_path(house[0], house[1], farm[0], farm[1], ground)
        self.place_path(house[0], house[1], tower[0], tower[1], ground)

        self.place_house(house[0], house[1], ground)
        self.place_farm(farm[0], farm[1], ground)
        self.place_watchtower(tower[0], tower[1], ground)
        logger.info("placed village at %s on ground level %d", (center_x, center_z), ground)
        return ground

    def populate(self, center_x: int = 0, center_z: int = 0, forests: int = 4, trees_per_forest: int = 12) -> None:
        """Village at the centre with forests ringed around it."""
        self.place_village(center_x, center_z)
        for i in range(forests):
            angle = math.tau * i / max(1, forests)
            fx = center_x + _round_half_up(math.cos(angle) * 35)
            fz = center_z + _round_half_up(math.sin(angle) * 35)
            self.place_forest(
                fx,
                fz,
                radius=12,
                tree_count=trees_per_forest,
                exclusion_center=(center_x, center_z),
            )
