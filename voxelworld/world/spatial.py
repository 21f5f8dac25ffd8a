"""Spatial queries against the voxel grid: ray casting and box collision.

Both read the world only through ``get_block`` and never mutate it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Protocol

from pyglet.math import Vec3

from voxelworld.blocks import BlockType, is_solid
from voxelworld.constants import GRAVITY, GROUND_TOLERANCE, RAYCAST_STEP, TERMINAL_VELOCITY, BlockPos

# Keeps a box resting exactly on a face from counting the voxel it touches.
_CONTACT_EPSILON = 1e-6


class BlockReader(Protocol):
    size_y: int

    def get_block(self, x: int, y: int, z: int) -> BlockType: ...


@dataclass(frozen=True)
class RaycastHit:
    hit: bool
    block: BlockPos | None = None
    normal: BlockPos | None = None
    block_type: BlockType | None = None
    distance: float = 0.0

    @classmethod
    def miss(cls) -> RaycastHit:
        return cls(hit=False)

    @property
    def adjacent(self) -> BlockPos | None:
        """The empty cell in front of the hit face, where a placed block goes."""
        if self.block is None or self.normal is None:
            return None
        return (
            self.block[0] + self.normal[0],
            self.block[1] + self.normal[1],
            self.block[2] + self.normal[2],
        )


@dataclass(frozen=True)
class BoundingBox:
    width: float
    height: float
    depth: float

    @property
    def half_width(self) -> float:
        return self.width / 2.0

    @property
    def half_depth(self) -> float:
        return self.depth / 2.0


@dataclass(frozen=True)
class CollisionResult:
    position: Vec3
    velocity: Vec3
    grounded: bool


def _estimate_normal(previous: tuple[float, float, float], block: BlockPos) -> BlockPos:
    dev_x = previous[0] - (block[0] + 0.5)
    dev_y = previous[1] - (block[1] + 0.5)
    dev_z = previous[2] - (block[2] + 0.5)
    if abs(dev_x) > abs(dev_y) and abs(dev_x) > abs(dev_z):
        return (1 if dev_x > 0 else -1), 0, 0
    if abs(dev_y) > abs(dev_z):
        return 0, (1 if dev_y > 0 else -1), 0
    return 0, 0, (1 if dev_z > 0 else -1)


def raycast(
    world: BlockReader,
    origin: Iterable[float],
    direction: Iterable[float],
    max_distance: float,
    step: float = RAYCAST_STEP,
) -> RaycastHit:
    """March from ``origin`` in fixed steps and report the first solid block.

    The face normal is estimated from the sample just before the hit, so a
    ray grazing a one-voxel-thin wall at a shallow angle can step over it.
    """
    ox, oy, oz = origin
    dx, dy, dz = direction
    length = math.sqrt(dx * dx + dy * dy + dz * dz)
    if length == 0.0 or max_distance < 0 or step <= 0:
        return RaycastHit.miss()
    dx, dy, dz = dx / length, dy / length, dz / length

    steps = int(math.floor(max_distance / step + 1e-9))
    previous = (ox - dx * step, oy - dy * step, oz - dz * step)
    for i in range(steps + 1):
        t = i * step
        x, y, z = ox + dx * t, oy + dy * t, oz + dz * t
        block = (math.floor(x), math.floor(y), math.floor(z))
        block_type = world.get_block(*block)
        if is_solid(block_type):
            return RaycastHit(
                hit=True,
                block=block,
                normal=_estimate_normal(previous, block),
                block_type=block_type,
                distance=t,
            )
        previous = (x, y, z)
    return RaycastHit.miss()


def _cells(lo: float, hi: float) -> range:
    return range(math.floor(lo), math.floor(hi - _CONTACT_EPSILON) + 1)


def ground_height(world: BlockReader, x: float, z: float, feet: float, box: BoundingBox) -> float | None:
    """Top of the highest solid voxel at or below ``feet`` under the box footprint."""
    start = min(world.size_y - 1, math.floor(feet))
    best: int | None = None
    for bx in _cells(x - box.half_width, x + box.half_width):
        for bz in _cells(z - box.half_depth, z + box.half_depth):
            for by in range(start, -1, -1):
                if best is not None and by < best:
                    break
                if is_solid(world.get_block(bx, by, bz)):
                    best = by if best is None else max(best, by)
                    break
    return None if best is None else float(best + 1)


def box_blocked(world: BlockReader, x: float, feet: float, z: float, box: BoundingBox) -> bool:
    for by in _cells(feet + _CONTACT_EPSILON, feet + box.height):
        for bx in _cells(x - box.half_width, x + box.half_width):
            for bz in _cells(z - box.half_depth, z + box.half_depth):
                if is_solid(world.get_block(bx, by, bz)):
                    return True
    return False


def resolve_collision(
    world: BlockReader,
    position: Iterable[float],
    velocity: Iterable[float],
    box: BoundingBox,
    dt: float,
    gravity: float = GRAVITY,
) -> CollisionResult:
    """Advance a box by one step, resolving Y first, then X, then Z.

    ``position`` is the top centre of the box. A blocked horizontal axis is
    reverted to its previous value rather than clamped to the contact face.
    """
    x, y, z = position
    vx, vy, vz = velocity

    feet = y - box.height
    vy = max(vy - gravity * dt, -TERMINAL_VELOCITY)
    projected = feet + vy * dt
    ground = ground_height(world, x, z, feet, box)
    if ground is not None and vy <= 0 and projected <= ground + GROUND_TOLERANCE:
        feet = ground
        vy = 0.0
        grounded = True
    else:
        feet = projected
        grounded = False

    new_x = x + vx * dt
    if box_blocked(world, new_x, feet, z, box):
        vx = 0.0
    else:
        x = new_x

    new_z = z + vz * dt
    if box_blocked(world, x, feet, new_z, box):
        vz = 0.0
    else:
        z = new_z

    return CollisionResult(Vec3(x, feet + box.height, z), Vec3(vx, vy, vz), grounded)
