import logging
import math
from contextlib import nullcontext

import numpy as np

from voxelworld.blocks import BlockType
from voxelworld.constants import CHUNK_SIZE_X, CHUNK_SIZE_Y, CHUNK_SIZE_Z, LOAD_RADIUS_CHUNKS, ChunkKey
from voxelworld.debug.profiler import RuntimeProfiler
from voxelworld.graphics.mesher import ChunkMesher, ChunkMeshData
from voxelworld.world.chunk import VoxelChunk
from voxelworld.world.terrain import TerrainGenerator

logger = logging.getLogger(__name__)


class World:
    """Chunk store: owns every loaded chunk, streams them in and routes edits."""

    CHUNK_SIZE_X = CHUNK_SIZE_X
    CHUNK_SIZE_Y = CHUNK_SIZE_Y
    CHUNK_SIZE_Z = CHUNK_SIZE_Z
    LOAD_RADIUS_CHUNKS = LOAD_RADIUS_CHUNKS

    def __init__(
        self,
        seed: int = 1337,
        terrain: TerrainGenerator | None = None,
        chunk_size: tuple[int, int, int] | None = None,
        load_radius: int | None = None,
        profiler: RuntimeProfiler | None = None,
    ) -> None:
        size_x, size_y, size_z = chunk_size or (self.CHUNK_SIZE_X, self.CHUNK_SIZE_Y, self.CHUNK_SIZE_Z)
        if size_x <= 0 or size_y <= 0 or size_z <= 0:
            raise ValueError("chunk dimensions must be positive")
        radius = self.LOAD_RADIUS_CHUNKS if load_radius is None else load_radius
        if radius < 0:
            raise ValueError("load radius must not be negative")

        self.seed = seed
        self.size_x = size_x
        self.size_y = size_y
        self.size_z = size_z
        self.load_radius = radius
        self.profiler = profiler
        self.terrain = terrain if terrain is not None else TerrainGenerator(seed, world_height=size_y)
        self.mesher = ChunkMesher()
        self._chunks: dict[ChunkKey, VoxelChunk] = {}
        self._center_chunk: ChunkKey | None = None

    def _profile(self, name: str):
        if self.profiler is None:
            return nullcontext()
        return self.profiler.section(name)

    @property
    def chunk_size(self) -> tuple[int, int, int]:
        return self.size_x, self.size_y, self.size_z

    def chunk_coords(self, x: float, z: float) -> ChunkKey:
        return math.floor(x / self.size_x), math.floor(z / self.size_z)

    def local_coords(self, x: float, y: float, z: float) -> tuple[int, int, int, int, int]:
        x, y, z = math.floor(x), math.floor(y), math.floor(z)
        cx, cz = self.chunk_coords(x, z)
        return cx, cz, x - cx * self.size_x, y, z - cz * self.size_z

    def _chunk_neighbors(self, chunk: ChunkKey) -> tuple[ChunkKey, ChunkKey, ChunkKey, ChunkKey]:
        cx, cz = chunk
        return (cx - 1, cz), (cx + 1, cz), (cx, cz - 1), (cx, cz + 1)

    def is_chunk_loaded(self, chunk: ChunkKey) -> bool:
        return chunk in self._chunks

    def loaded_chunks(self) -> list[ChunkKey]:
        return list(self._chunks)

    def dirty_chunks(self) -> list[ChunkKey]:
        return [key for key, chunk in self._chunks.items() if chunk.dirty]

    def chunk_mesh(self, chunk: ChunkKey) -> ChunkMeshData | None:
        stored = self._chunks.get(chunk)
        return None if stored is None else stored.mesh

    def mark_chunk_dirty(self, chunk: ChunkKey) -> None:
        stored = self._chunks.get(chunk)
        if stored is not None:
            stored.mark_dirty()

    def _mark_neighbors_dirty_for_border_change(self, chunk: ChunkKey) -> None:
        for neighbor in self._chunk_neighbors(chunk):
            self.mark_chunk_dirty(neighbor)

    def _affected_chunks_for_local(self, cx: int, cz: int, lx: int, lz: int) -> list[ChunkKey]:
        chunks = [(cx, cz)]
        if lx == 0:
            chunks.append((cx - 1, cz))
        if lx == self.size_x - 1:
            chunks.append((cx + 1, cz))
        if lz == 0:
            chunks.append((cx, cz - 1))
        if lz == self.size_z - 1:
            chunks.append((cx, cz + 1))
        return chunks

    def get_block(self, x: int, y: int, z: int) -> BlockType:
        if y < 0 or y >= self.size_y:
            return BlockType.AIR
        cx, cz, lx, ly, lz = self.local_coords(x, y, z)
        chunk = self._chunks.get((cx, cz))
        if chunk is None:
            return BlockType.AIR
        return chunk.get_block(lx, ly, lz)

    def set_block(self, x: int, y: int, z: int, block: BlockType) -> None:
        if y < 0 or y >= self.size_y:
            return
        cx, cz, lx, ly, lz = self.local_coords(x, y, z)
        chunk = self._chunks.get((cx, cz))
        if chunk is None:
            return
        chunk.set_block(lx, ly, lz, block)
        # Border faces of the adjacent chunk depend on this voxel.
        for affected in self._affected_chunks_for_local(cx, cz, lx, lz)[1:]:
            self.mark_chunk_dirty(affected)

    def height_at(self, x: int, z: int) -> int:
        """Highest solid block in a loaded column, or -1 if none."""
        cx, cz, lx, _, lz = self.local_coords(x, 0, z)
        chunk = self._chunks.get((cx, cz))
        if chunk is None:
            return -1
        column = chunk.voxels[:, lz, lx]
        solid = np.nonzero((column != BlockType.AIR) & (column != BlockType.WATER))[0]
        return int(solid[-1]) if len(solid) else -1

    def sample_region(self, x0: int, y0: int, z0: int, width: int, height: int, depth: int) -> np.ndarray:
        """Blocks of a world-space box as a ``(y, z, x)`` array; air where nothing is loaded."""
        region = np.zeros((height, depth, width), dtype=np.uint8)
        y_lo = max(y0, 0)
        y_hi = min(y0 + height, self.size_y)
        if y_lo >= y_hi or width <= 0 or depth <= 0:
            return region

        cx0, cz0 = self.chunk_coords(x0, z0)
        cx1, cz1 = self.chunk_coords(x0 + width - 1, z0 + depth - 1)
        for cx in range(cx0, cx1 + 1):
            for cz in range(cz0, cz1 + 1):
                chunk = self._chunks.get((cx, cz))
                if chunk is None:
                    continue
                ox = cx * self.size_x
                oz = cz * self.size_z
                ax0 = max(x0, ox)
                ax1 = min(x0 + width, ox + self.size_x)
                az0 = max(z0, oz)
                az1 = min(z0 + depth, oz + self.size_z)
                region[y_lo - y0 : y_hi - y0, az0 - z0 : az1 - z0, ax0 - x0 : ax1 - x0] = chunk.voxels[
                    y_lo:y_hi, az0 - oz : az1 - oz, ax0 - ox : ax1 - ox
                ]
        return region

    def generate_chunk(self, cx: int, cz: int) -> bool:
        """Generate and insert chunk (cx, cz); returns False if it was already loaded."""
        key = (cx, cz)
        if key in self._chunks:
            return False
        chunk = VoxelChunk(cx, cz, self.chunk_size)
        with self._profile("world.chunk.generate"):
            self.terrain.generate_chunk(chunk)
        self._chunks[key] = chunk
        self._mark_neighbors_dirty_for_border_change(key)
        logger.debug("generated chunk %s", key)
        return True

    def load_chunks_around_position(self, x: float, z: float, radius: int | None = None) -> list[ChunkKey]:
        radius = self.load_radius if radius is None else radius
        pcx, pcz = self.chunk_coords(x, z)
        self._center_chunk = (pcx, pcz)

        # Nearest first so the focus chunk is available as early as possible.
        pending = [
            (pcx + dcx, pcz + dcz)
            for dcx in range(-radius, radius + 1)
            for dcz in range(-radius, radius + 1)
            if (pcx + dcx, pcz + dcz) not in self._chunks
        ]
        pending.sort(key=lambda c: (c[0] - pcx) * (c[0] - pcx) + (c[1] - pcz) * (c[1] - pcz))

        generated: list[ChunkKey] = []
        with self._profile("world.stream.load"):
            for cx, cz in pending:
                if self.generate_chunk(cx, cz):
                    generated.append((cx, cz))
        if generated:
            logger.info(
                "loaded %d chunk(s) around %s, %d resident",
                len(generated),
                (pcx, pcz),
                len(self._chunks),
            )
        return generated

    def update(self) -> list[ChunkKey]:
        """Rebuild the mesh of every dirty chunk; returns the rebuilt keys."""
        rebuilt: list[ChunkKey] = []
        for key, chunk in self._chunks.items():
            if not chunk.dirty:
                continue
            with self._profile("world.mesh.rebuild"):
                mesh = self.mesher.build_chunk_mesh_data(self, key)
            # The previous mesh stays installed until the new one replaces it.
            chunk.replace_mesh(mesh)
            chunk.dirty = False
            rebuilt.append(key)
        if rebuilt:
            logger.debug("rebuilt %d chunk mesh(es)", len(rebuilt))
        return rebuilt

    def diagnostics_snapshot(self) -> dict[str, int]:
        faces = 0
        for chunk in self._chunks.values():
            if chunk.mesh is not None:
                faces += chunk.mesh.face_count
        return {
            "loaded_chunks": len(self._chunks),
            "dirty_chunks": sum(1 for chunk in self._chunks.values() if chunk.dirty),
            "meshed_chunks": sum(1 for chunk in self._chunks.values() if chunk.mesh is not None),
            "mesh_faces": faces,
        }
