import typing

import numpy as np

from conftest import FLAT_HEIGHT, make_world

import voxelworld.world.world as world_module
from voxelworld.blocks import BlockType
from voxelworld.entities.player import Player
from voxelworld.world.structures import StructurePlacer

GROUND = FLAT_HEIGHT


def test_ground_level(flat_world, empty_world):
    placer = StructurePlacer(flat_world)
    assert placer.ground_level(5, -5) == GROUND
    flat_world.set_block(5, 9, -5, BlockType.WATER)
    assert placer.ground_level(5, -5) == GROUND

    empty = StructurePlacer(empty_world)
    assert empty.ground_level(0, 0) == empty_world.size_y // 2
    assert empty.ground_level(0, 0, fallback=-1) == -1


def test_tree_trunk_and_canopy(flat_world):
    StructurePlacer(flat_world, seed=1).place_tree(5, GROUND + 1, 5)
    for y in range(GROUND + 1, GROUND + 5):
        assert flat_world.get_block(5, y, 5) is BlockType.WOOD
    leaves = sum(
        flat_world.get_block(x, y, z) is BlockType.LEAVES
        for x in range(3, 8)
        for y in range(GROUND + 5, GROUND + 9)
        for z in range(3, 8)
    )
    assert leaves > 0


def test_path_rounds_half_up(flat_world):
    cells = StructurePlacer(flat_world).place_path(0, 0, 4, 2, GROUND)
    assert cells == [(0, 0), (1, 1), (2, 1), (3, 2), (4, 2)]
    for x, z in cells:
        assert flat_world.get_block(x, GROUND + 1, z) is BlockType.COBBLESTONE


def test_house_shell(flat_world):
    StructurePlacer(flat_world).place_house(0, 0, GROUND)
    assert flat_world.get_block(0, GROUND + 1, 0) is BlockType.COBBLESTONE
    assert flat_world.get_block(2, GROUND + 1, 0) is BlockType.AIR
    assert flat_world.get_block(2, GROUND + 2, 0) is BlockType.AIR
    assert flat_world.get_block(0, GROUND + 2, 3) is BlockType.AIR
    assert flat_world.get_block(-1, GROUND + 4, -1) is BlockType.PLANKS
    assert flat_world.get_block(-1, GROUND + 3, 2) is BlockType.TORCH


def test_farm_irrigation(flat_world):
    StructurePlacer(flat_world).place_farm(0, 0, GROUND)
    assert flat_world.get_block(3, GROUND, 2) is BlockType.WATER
    assert flat_world.get_block(3, GROUND + 1, 2) is BlockType.AIR
    assert flat_world.get_block(0, GROUND + 1, 0) is BlockType.WHEAT
    assert flat_world.get_block(1, GROUND + 1, 0) is BlockType.AIR
    assert flat_world.get_block(-1, GROUND + 1, -1) is BlockType.PLANKS


def test_village_layout(flat_world):
    assert StructurePlacer(flat_world).place_village(0, 0) == GROUND
    # house door, watchtower floor and platform
    assert flat_world.get_block(-8, GROUND + 1, -5) is BlockType.AIR
    assert flat_world.get_block(0, GROUND, 10) is BlockType.STONE
    assert flat_world.get_block(1, GROUND + 5, 11) is BlockType.AIR
    assert flat_world.get_block(0, GROUND + 16, 10) is BlockType.PLANKS


def test_forest_respects_exclusion(flat_world):
    placer = StructurePlacer(flat_world, seed=4)
    assert placer.place_forest(0, 0, radius=10, tree_count=30, exclusion_center=(0, 0), exclusion_radius=25) == []

    planted = placer.place_forest(0, 0, radius=10, tree_count=30, exclusion_radius=0)
    assert planted
    for x, y, z in planted:
        assert y == GROUND + 1
        assert flat_world.get_block(x, y, z) is BlockType.WOOD


def test_forest_needs_plantable_ground():
    world = make_world(surface=BlockType.SAND)
    assert StructurePlacer(world, seed=4).place_forest(0, 0, radius=10, tree_count=10, exclusion_radius=0) == []


def test_edits_invalidate_chunk_meshes(flat_world):
    flat_world.update()
    StructurePlacer(flat_world, seed=2).place_tree(0, GROUND + 1, 5)
    assert {(0, 0), (-1, 0)} <= set(flat_world.dirty_chunks())


def test_same_seed_same_structures():
    first, second = make_world(), make_world()
    anchors_a = StructurePlacer(first, seed=8).place_forest(3, 3, radius=12, tree_count=15, exclusion_radius=0)
    anchors_b = StructurePlacer(second, seed=8).place_forest(3, 3, radius=12, tree_count=15, exclusion_radius=0)
    assert anchors_a == anchors_b
    for key in first.loaded_chunks():
        assert np.array_equal(first.sample_region(key[0] * 16, 0, key[1] * 16, 16, 32, 16),
                              second.sample_region(key[0] * 16, 0, key[1] * 16, 16, 32, 16))


def test_populate_village_and_forests():
    world = make_world(radius=3)
    StructurePlacer(world, seed=12).populate(0, 0)

    assert world.get_block(-8, GROUND + 1, -5) is BlockType.AIR
    region = world.sample_region(-48, 0, -48, 112, world.size_y, 112)
    assert np.count_nonzero(region == BlockType.WOOD) > 0


def test_world_annotations_resolve_to_world():
    hints = typing.get_type_hints(StructurePlacer.__init__, localns=vars(world_module))
    assert hints["world"] is world_module.World
    for method in (Player.update, Player.respawn, Player.target, Player.place_block):
        assert typing.get_type_hints(method, localns=vars(world_module))["world"] is world_module.World
