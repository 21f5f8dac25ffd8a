import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pyglet.math import Vec3

from voxelworld.blocks import BlockType
from voxelworld.constants import JUMP_SPEED, PLAYER_HEIGHT, PLAYER_REACH, PLAYER_WIDTH, WALK_SPEED, BlockPos
from voxelworld.world.spatial import BoundingBox, RaycastHit, raycast, resolve_collision

if TYPE_CHECKING:
    from voxelworld.world.world import World


@dataclass
class Player:
    position: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, 0.0))
    velocity: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, 0.0))
    # (yaw, pitch) in degrees.
    rotation: tuple[float, float] = (0.0, 0.0)
    box: BoundingBox = field(default_factory=lambda: BoundingBox(PLAYER_WIDTH, PLAYER_HEIGHT, PLAYER_WIDTH))
    speed: float = WALK_SPEED
    reach: float = PLAYER_REACH
    grounded: bool = False
    selected_block: BlockType = BlockType.STONE

    def sight_vector(self) -> Vec3:
        yaw, pitch = self.rotation
        m = math.cos(math.radians(pitch))
        dy = math.sin(math.radians(pitch))
        dx = math.cos(math.radians(yaw - 90)) * m
        dz = math.sin(math.radians(yaw - 90)) * m
        return Vec3(dx, dy, dz)

    def motion_vector(self, forward: int, strafe: int) -> tuple[float, float]:
        if not forward and not strafe:
            return 0.0, 0.0
        yaw, _ = self.rotation
        forward_x = math.cos(math.radians(yaw - 90))
        forward_z = math.sin(math.radians(yaw - 90))
        right_x = -forward_z
        right_z = forward_x
        dx = forward * forward_x + strafe * right_x
        dz = forward * forward_z + strafe * right_z
        mag = math.sqrt(dx * dx + dz * dz)
        return dx / mag, dz / mag

    def update(self, dt: float, world: "World", forward: int = 0, strafe: int = 0, jump: bool = False) -> None:
        mx, mz = self.motion_vector(forward, strafe)
        vy = self.velocity.y
        if jump and self.grounded:
            vy = JUMP_SPEED
        velocity = Vec3(mx * self.speed, vy, mz * self.speed)

        result = resolve_collision(world, self.position, velocity, self.box, dt)
        self.position = result.position
        self.velocity = result.velocity
        self.grounded = result.grounded

        if self.position.y - self.box.height < 0:
            self.respawn(world)

    def respawn(self, world: "World") -> None:
        x, z = self.position.x, self.position.z
        ground = world.height_at(math.floor(x), math.floor(z))
        top = ground + 1 if ground >= 0 else world.size_y
        self.position = Vec3(x, top + self.box.height, z)
        self.velocity = Vec3(0.0, 0.0, 0.0)
        self.grounded = False

    def target(self, world: "World") -> RaycastHit:
        return raycast(world, self.position, self.sight_vector(), self.reach)

    def break_block(self, world: "World") -> BlockType | None:
        hit = self.target(world)
        if not hit.hit or hit.block is None:
            return None
        world.set_block(*hit.block, BlockType.AIR)
        return hit.block_type

    def overlaps_block(self, block: BlockPos) -> bool:
        bx, by, bz = block
        x, top, z = self.position.x, self.position.y, self.position.z
        feet = top - self.box.height
        return (
            bx < x + self.box.half_width
            and bx + 1 > x - self.box.half_width
            and by < top
            and by + 1 > feet
            and bz < z + self.box.half_depth
            and bz + 1 > z - self.box.half_depth
        )

    def place_block(self, world: "World", block: BlockType | None = None) -> bool:
        hit = self.target(world)
        target = hit.adjacent
        if not hit.hit or target is None or self.overlaps_block(target):
            return False
        world.set_block(*target, self.selected_block if block is None else block)
        return True
