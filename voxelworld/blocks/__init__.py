from voxelworld.blocks.registry import (
    BLOCK_COLORS,
    BLOCKS,
    SOLID_BLOCKS,
    BlockDefinition,
    BlockType,
    get_block_color,
    get_block_definition,
    is_emissive,
    is_solid,
    is_transparent,
)

__all__ = [
    "BLOCK_COLORS",
    "BLOCKS",
    "SOLID_BLOCKS",
    "BlockDefinition",
    "BlockType",
    "get_block_color",
    "get_block_definition",
    "is_emissive",
    "is_solid",
    "is_transparent",
]
