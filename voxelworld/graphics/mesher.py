from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Protocol

import numpy as np

from voxelworld.blocks import BLOCK_COLORS, BlockType
from voxelworld.blocks.registry import EMISSIVE, TRANSPARENT
from voxelworld.constants import ChunkKey


class Face(IntEnum):
    TOP = 0
    BOTTOM = 1
    WEST = 2
    EAST = 3
    NORTH = 4
    SOUTH = 5


FACE_OFFSETS: tuple[tuple[int, int, int], ...] = (
    (0, 1, 0),
    (0, -1, 0),
    (-1, 0, 0),
    (1, 0, 0),
    (0, 0, -1),
    (0, 0, 1),
)

FACE_NORMALS: tuple[tuple[float, float, float], ...] = tuple(
    (float(dx), float(dy), float(dz)) for dx, dy, dz in FACE_OFFSETS
)

# Corner offsets from the voxel's minimum corner, in winding order.
FACE_CORNERS: tuple[tuple[tuple[int, int, int], ...], ...] = (
    ((0, 1, 0), (1, 1, 0), (1, 1, 1), (0, 1, 1)),
    ((0, 0, 1), (1, 0, 1), (1, 0, 0), (0, 0, 0)),
    ((0, 0, 0), (0, 1, 0), (0, 1, 1), (0, 0, 1)),
    ((1, 0, 1), (1, 1, 1), (1, 1, 0), (1, 0, 0)),
    ((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)),
    ((1, 0, 1), (0, 0, 1), (0, 1, 1), (1, 1, 1)),
)

FACE_UVS: tuple[tuple[float, float], ...] = ((0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0))

QUAD_INDICES: tuple[int, ...] = (0, 1, 2, 0, 2, 3)

_CORNERS = np.array(FACE_CORNERS, dtype=np.float32)
_NORMALS = np.array(FACE_NORMALS, dtype=np.float32)
_UVS = np.array(FACE_UVS, dtype=np.float32)
_QUAD = np.array(QUAD_INDICES, dtype=np.uint32)
_TRANSPARENT = np.array(TRANSPARENT, dtype=bool)
_COLORS = np.array(BLOCK_COLORS, dtype=np.float32)
# Emissive blocks are drawn at double brightness, saturating at white.
EMISSIVE_BOOST = 2.0
_MESH_COLORS = np.where(
    np.array(EMISSIVE, dtype=bool)[:, None], np.minimum(_COLORS * EMISSIVE_BOOST, 1.0), _COLORS
).astype(np.float32)


class BlockSource(Protocol):
    size_x: int
    size_y: int
    size_z: int

    def sample_region(self, x0: int, y0: int, z0: int, width: int, height: int, depth: int) -> np.ndarray: ...


@dataclass
class MeshPart:
    block: BlockType
    positions: np.ndarray
    normals: np.ndarray
    colors: np.ndarray
    uvs: np.ndarray
    indices: np.ndarray

    @property
    def emissive(self) -> bool:
        return EMISSIVE[self.block]

    @property
    def face_count(self) -> int:
        return len(self.indices) // len(QUAD_INDICES)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)


@dataclass
class ChunkMeshData:
    chunk: ChunkKey
    parts: dict[BlockType, MeshPart] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.parts

    @property
    def face_count(self) -> int:
        return sum(part.face_count for part in self.parts.values())

    @property
    def vertex_count(self) -> int:
        return sum(part.vertex_count for part in self.parts.values())

    @property
    def triangle_count(self) -> int:
        return self.face_count * 2


class ChunkMesher:
    """Per-voxel face culling against the world-level neighbourhood of a chunk."""

    def build_chunk_mesh_data(self, world: BlockSource, chunk: ChunkKey) -> ChunkMeshData:
        cx, cz = chunk
        sx, sy, sz = world.size_x, world.size_y, world.size_z
        x0 = cx * sx
        z0 = cz * sz

        # One cell of padding on every side; border cells come from neighbour
        # chunks (or air) exactly as World.get_block would report them.
        padded = world.sample_region(x0 - 1, -1, z0 - 1, sx + 2, sy + 2, sz + 2)
        core = padded[1:-1, 1:-1, 1:-1]
        filled = core != BlockType.AIR
        if not filled.any():
            return ChunkMeshData(chunk)
        open_cells = _TRANSPARENT[padded]

        per_block: dict[int, list[tuple[int, np.ndarray]]] = {}
        for face in Face:
            dx, dy, dz = FACE_OFFSETS[face]
            neighbour_open = open_cells[1 + dy : 1 + dy + sy, 1 + dz : 1 + dz + sz, 1 + dx : 1 + dx + sx]
            ys, zs, xs = np.nonzero(filled & neighbour_open)
            if len(xs) == 0:
                continue
            origins = np.stack((xs + x0, ys, zs + z0), axis=1).astype(np.float32)
            types = core[ys, zs, xs]
            for block in np.unique(types):
                per_block.setdefault(int(block), []).append((face, origins[types == block]))

        parts: dict[BlockType, MeshPart] = {}
        for block in sorted(per_block):
            parts[BlockType(block)] = self._build_part(BlockType(block), per_block[block])
        return ChunkMeshData(chunk, parts)

    @staticmethod
    def _build_part(block: BlockType, faces: list[tuple[int, np.ndarray]]) -> MeshPart:
        positions: list[np.ndarray] = []
        normals: list[np.ndarray] = []
        for face, origins in faces:
            quads = origins[:, None, :] + _CORNERS[face][None, :, :]
            positions.append(quads.reshape(-1, 3))
            normals.append(np.broadcast_to(_NORMALS[face], (len(origins) * 4, 3)))

        position_array = np.concatenate(positions).astype(np.float32)
        quad_count = len(position_array) // 4
        bases = np.arange(quad_count, dtype=np.uint32) * 4
        indices = (bases[:, None] + _QUAD[None, :]).reshape(-1)
        return MeshPart(
            block=block,
            positions=position_array,
            normals=np.concatenate(normals).astype(np.float32),
            colors=np.tile(_MESH_COLORS[block], (len(position_array), 1)),
            uvs=np.tile(_UVS, (quad_count, 1)),
            indices=indices,
        )
