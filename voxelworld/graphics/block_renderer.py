from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pyglet
from pyglet import gl

from voxelworld.blocks import BlockType, is_transparent
from voxelworld.constants import ChunkKey
from voxelworld.graphics.mesher import ChunkMeshData, MeshPart

logger = logging.getLogger(__name__)

# Directional shade per face normal; emissive blocks skip it.
_SHADE_TOP = 1.0
_SHADE_SIDE_X = 0.8
_SHADE_SIDE_Z = 0.7
_SHADE_BOTTOM = 0.5
WATER_ALPHA = 0.6


class RenderedChunk:
    def __init__(self, parts: list[pyglet.graphics.vertexdomain.IndexedVertexList]) -> None:
        self.parts = parts

    def delete(self) -> None:
        for part in self.parts:
            part.delete()
        self.parts = []


def shaded_colors(part: MeshPart) -> np.ndarray:
    """RGBA per vertex, darkened by face direction."""
    if part.emissive:
        shade = np.ones(len(part.normals), dtype=np.float32)
    else:
        nx, ny = part.normals[:, 0], part.normals[:, 1]
        side = np.where(nx != 0, _SHADE_SIDE_X, _SHADE_SIDE_Z)
        shade = np.where(ny > 0, _SHADE_TOP, np.where(ny < 0, _SHADE_BOTTOM, side)).astype(np.float32)
    alpha = WATER_ALPHA if part.block == BlockType.WATER else 1.0
    rgba = np.empty((len(part.colors), 4), dtype=np.float32)
    rgba[:, :3] = part.colors * shade[:, None]
    rgba[:, 3] = alpha
    return rgba


class BlockRenderer:
    """Uploads chunk meshes into a pyglet batch and swaps them when chunks rebuild."""

    def __init__(self) -> None:
        self.shader = pyglet.graphics.get_default_shader()
        self.batch = pyglet.graphics.Batch()
        self.opaque_group = pyglet.graphics.ShaderGroup(program=self.shader, order=0)
        # Drawn after opaque geometry so blending sees what is behind it.
        self.translucent_group = pyglet.graphics.ShaderGroup(program=self.shader, order=1)
        self._rendered: dict[ChunkKey, RenderedChunk] = {}

    def upload_chunk_mesh(self, mesh_data: ChunkMeshData) -> RenderedChunk:
        parts: list[pyglet.graphics.vertexdomain.IndexedVertexList] = []
        for block, part in mesh_data.parts.items():
            if part.vertex_count == 0:
                continue
            group = self.translucent_group if is_transparent(block) else self.opaque_group
            parts.append(
                self.shader.vertex_list_indexed(
                    part.vertex_count,
                    gl.GL_TRIANGLES,
                    part.indices.tolist(),
                    batch=self.batch,
                    group=group,
                    position=("f/static", part.positions.ravel().tolist()),
                    colors=("f/static", shaded_colors(part).ravel().tolist()),
                )
            )
        return RenderedChunk(parts)

    def sync(self, world: "World", keys: Iterable[ChunkKey]) -> int:
        """Re-upload the given chunks; the old buffers go only after the new ones exist."""
        uploaded = 0
        for key in keys:
            mesh = world.chunk_mesh(key)
            replacement = None if mesh is None or mesh.is_empty else self.upload_chunk_mesh(mesh)
            previous = self._rendered.pop(key, None)
            if replacement is not None:
                self._rendered[key] = replacement
                uploaded += 1
            if previous is not None:
                previous.delete()
        if uploaded:
            logger.debug("uploaded %d chunk mesh(es), %d on the GPU", uploaded, len(self._rendered))
        return uploaded

    def release(self, key: ChunkKey) -> None:
        rendered = self._rendered.pop(key, None)
        if rendered is not None:
            rendered.delete()

    def draw(self) -> None:
        self.batch.draw()

    def delete(self) -> None:
        for rendered in self._rendered.values():
            rendered.delete()
        self._rendered.clear()
