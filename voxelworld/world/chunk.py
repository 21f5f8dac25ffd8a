from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from voxelworld.blocks import BlockType
from voxelworld.constants import CHUNK_SIZE_X, CHUNK_SIZE_Y, CHUNK_SIZE_Z, ChunkKey

if TYPE_CHECKING:
    from voxelworld.graphics.mesher import ChunkMeshData


class VoxelChunk:
    """Dense block storage for one vertical column of the world.

    ``blocks`` is the flat buffer indexed by ``x + z*size_x + y*size_x*size_z``.
    ``voxels`` is a ``(y, z, x)`` view over the same memory for bulk writes.
    """

    def __init__(
        self,
        cx: int,
        cz: int,
        size: tuple[int, int, int] = (CHUNK_SIZE_X, CHUNK_SIZE_Y, CHUNK_SIZE_Z),
    ) -> None:
        self.cx = cx
        self.cz = cz
        self.size_x, self.size_y, self.size_z = size
        self.blocks = np.zeros(self.size_x * self.size_y * self.size_z, dtype=np.uint8)
        self.voxels = self.blocks.reshape(self.size_y, self.size_z, self.size_x)
        self.dirty = True
        self._mesh: ChunkMeshData | None = None

    @property
    def key(self) -> ChunkKey:
        return self.cx, self.cz

    @property
    def origin(self) -> tuple[int, int, int]:
        return self.cx * self.size_x, 0, self.cz * self.size_z

    @property
    def mesh(self) -> ChunkMeshData | None:
        return self._mesh

    def _in_bounds(self, lx: int, ly: int, lz: int) -> bool:
        return 0 <= lx < self.size_x and 0 <= ly < self.size_y and 0 <= lz < self.size_z

    def index(self, lx: int, ly: int, lz: int) -> int:
        return lx + lz * self.size_x + ly * self.size_x * self.size_z

    def get_block(self, lx: int, ly: int, lz: int) -> BlockType:
        if not self._in_bounds(lx, ly, lz):
            return BlockType.AIR
        return BlockType(int(self.blocks[self.index(lx, ly, lz)]))

    def set_block(self, lx: int, ly: int, lz: int, block: BlockType) -> None:
        if not self._in_bounds(lx, ly, lz):
            return
        self.blocks[self.index(lx, ly, lz)] = int(block)
        self.dirty = True

    def mark_dirty(self) -> None:
        self.dirty = True

    def replace_mesh(self, mesh: ChunkMeshData) -> ChunkMeshData | None:
        """Install ``mesh`` and hand back the previous one for the caller to release."""
        old = self._mesh
        self._mesh = mesh
        return old

    def count_blocks(self, block: BlockType) -> int:
        return int(np.count_nonzero(self.blocks == int(block)))

    def __repr__(self) -> str:
        return f"VoxelChunk(cx={self.cx}, cz={self.cz}, dirty={self.dirty})"
