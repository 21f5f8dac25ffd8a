from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class BlockType(IntEnum):
    AIR = 0
    STONE = 1
    DIRT = 2
    GRASS = 3
    WOOD = 4
    LEAVES = 5
    WATER = 6
    SAND = 7
    COBBLESTONE = 8
    PLANKS = 9
    TORCH = 10
    WHEAT = 11
    CACTUS = 12
    FENCE = 13
    SANDSTONE = 14


@dataclass(frozen=True)
class BlockDefinition:
    block: BlockType
    name: str
    color: tuple[float, float, float]
    transparent: bool = False
    emissive: bool = False


def _rgb(value: int) -> tuple[float, float, float]:
    return ((value >> 16) & 0xFF) / 255.0, ((value >> 8) & 0xFF) / 255.0, (value & 0xFF) / 255.0


# Indexed by BlockType ordinal; order must match the enum.
BLOCKS: tuple[BlockDefinition, ...] = (
    BlockDefinition(BlockType.AIR, "air", (0.0, 0.0, 0.0), transparent=True),
    BlockDefinition(BlockType.STONE, "stone", _rgb(0x888888)),
    BlockDefinition(BlockType.DIRT, "dirt", _rgb(0x8B4513)),
    BlockDefinition(BlockType.GRASS, "grass", _rgb(0x228B22)),
    BlockDefinition(BlockType.WOOD, "wood", _rgb(0x6B4423)),
    BlockDefinition(BlockType.LEAVES, "leaves", _rgb(0x32CD32)),
    BlockDefinition(BlockType.WATER, "water", _rgb(0x4682B4), transparent=True),
    BlockDefinition(BlockType.SAND, "sand", _rgb(0xF4A460)),
    BlockDefinition(BlockType.COBBLESTONE, "cobblestone", _rgb(0x696969)),
    BlockDefinition(BlockType.PLANKS, "planks", _rgb(0xDEB887)),
    BlockDefinition(BlockType.TORCH, "torch", _rgb(0xFFFF00), emissive=True),
    BlockDefinition(BlockType.WHEAT, "wheat", _rgb(0xF0E68C)),
    BlockDefinition(BlockType.CACTUS, "cactus", _rgb(0x2E8B57)),
    BlockDefinition(BlockType.FENCE, "fence", _rgb(0xA0522D)),
    BlockDefinition(BlockType.SANDSTONE, "sandstone", _rgb(0xE3C98F)),
)

TRANSPARENT: tuple[bool, ...] = tuple(definition.transparent for definition in BLOCKS)
EMISSIVE: tuple[bool, ...] = tuple(definition.emissive for definition in BLOCKS)
BLOCK_COLORS: tuple[tuple[float, float, float], ...] = tuple(definition.color for definition in BLOCKS)
SOLID_BLOCKS: frozenset[BlockType] = frozenset(d.block for d in BLOCKS if not d.transparent)

_BY_NAME = {definition.name: definition for definition in BLOCKS}


def is_transparent(block: int) -> bool:
    return TRANSPARENT[block]


def is_emissive(block: int) -> bool:
    return EMISSIVE[block]


def is_solid(block: int) -> bool:
    """Blocks that stop raycasts and entity movement (anything but air and water)."""
    return not TRANSPARENT[block]


def get_block_color(block: int) -> tuple[float, float, float]:
    return BLOCK_COLORS[block]


def get_block_definition(block: int | str) -> BlockDefinition | None:
    if isinstance(block, str):
        return _BY_NAME.get(block.strip().lower())
    if 0 <= block < len(BLOCKS):
        return BLOCKS[block]
    return None
