import math

import pytest
from pyglet.math import Vec3

from voxelworld.blocks import BlockType
from voxelworld.entities.player import Player

STANDING_Y = 9.0 + 1.8


def _player(yaw=0.0, pitch=0.0, y=STANDING_Y):
    return Player(position=Vec3(0.5, y, 0.5), rotation=(yaw, pitch), grounded=True)


def test_motion_vector_is_normalised():
    player = _player()
    assert player.motion_vector(0, 0) == (0.0, 0.0)
    dx, dz = player.motion_vector(1, 0)
    assert dx == pytest.approx(0.0, abs=1e-9)
    assert dz == pytest.approx(-1.0)
    dx, dz = player.motion_vector(1, 1)
    assert math.hypot(dx, dz) == pytest.approx(1.0)


def test_break_block_below(flat_world):
    player = _player(pitch=-90.0)
    assert player.break_block(flat_world) is BlockType.GRASS
    assert flat_world.get_block(0, 8, 0) is BlockType.AIR


def test_cannot_place_inside_own_box(flat_world):
    player = _player(pitch=-90.0)
    assert not player.place_block(flat_world)
    assert flat_world.get_block(0, 9, 0) is BlockType.AIR


def test_place_against_wall(flat_world):
    flat_world.set_block(3, 10, 0, BlockType.STONE)
    player = _player(yaw=90.0)
    player.selected_block = BlockType.PLANKS
    assert player.place_block(flat_world)
    assert flat_world.get_block(2, 10, 0) is BlockType.PLANKS


def test_nothing_in_reach(empty_world):
    player = _player(pitch=-90.0)
    assert player.break_block(empty_world) is None
    assert not player.place_block(empty_world)


def test_jump_leaves_the_ground(flat_world):
    player = _player()
    player.update(1.0 / 60.0, flat_world, jump=True)
    assert not player.grounded
    assert player.position.y > STANDING_Y
    assert player.velocity.y > 0


def test_walks_forward(flat_world):
    player = _player()
    player.update(0.1, flat_world, forward=1)
    assert player.position.z == pytest.approx(0.5 - player.speed * 0.1)
    assert player.grounded


def test_respawns_after_falling_out(flat_world):
    player = _player(y=-3.0)
    player.grounded = False
    player.update(1.0 / 60.0, flat_world)
    assert player.position.y == pytest.approx(STANDING_Y)
    assert player.velocity == Vec3(0.0, 0.0, 0.0)
