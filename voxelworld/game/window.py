import logging
import math

import pyglet
from pyglet.math import Vec3
from pyglet.window import key, mouse

from voxelworld.blocks import BlockType
from voxelworld.constants import TICKS_PER_SECOND
from voxelworld.debug.profiler import RuntimeProfiler
from voxelworld.entities.player import Player
from voxelworld.graphics.block_renderer import BlockRenderer
from voxelworld.graphics.rendering import set_2d, set_3d
from voxelworld.world.structures import StructurePlacer
from voxelworld.world.world import World

logger = logging.getLogger(__name__)

HOTBAR = (
    BlockType.STONE,
    BlockType.DIRT,
    BlockType.GRASS,
    BlockType.PLANKS,
    BlockType.COBBLESTONE,
    BlockType.WOOD,
    BlockType.SAND,
    BlockType.TORCH,
    BlockType.WATER,
)


class GameWindow(pyglet.window.Window):
    """Interactive client: streams chunks around the player and draws their meshes."""

    MOUSE_SENSITIVITY = 0.15
    EYE_OFFSET = 0.2

    def __init__(
        self,
        world: World,
        profiler: RuntimeProfiler | None = None,
        structures: bool = True,
    ) -> None:
        super().__init__(width=1280, height=720, caption="Voxel World", resizable=True)
        self.exclusive = False
        self.profiler = profiler or RuntimeProfiler(enabled=False)
        self.world = world
        self.renderer = BlockRenderer()

        self.world.load_chunks_around_position(0.0, 0.0)
        if structures:
            with self.profiler.section("world.structures"):
                StructurePlacer(self.world, seed=self.world.seed).populate(0, 0)

        self.player = Player(position=Vec3(0.5, 0.0, 0.5), rotation=(0.0, -20.0))
        self.player.respawn(self.world)
        self._stream_chunk = self.world.chunk_coords(self.player.position.x, self.player.position.z)
        self.renderer.sync(self.world, self.world.update())

        self.keys = key.KeyStateHandler()
        self.push_handlers(self.keys)
        pyglet.clock.schedule_interval(self.update, 1.0 / TICKS_PER_SECOND)

        self.ui_batch = pyglet.graphics.Batch()
        self.label = pyglet.text.Label(
            "",
            x=10,
            y=self.height - 10,
            anchor_x="left",
            anchor_y="top",
            color=(255, 255, 255, 255),
            batch=self.ui_batch,
        )
        cx, cy = self.width // 2, self.height // 2
        self.crosshair = (
            pyglet.shapes.Line(cx - 8, cy, cx + 8, cy, color=(255, 255, 255), batch=self.ui_batch),
            pyglet.shapes.Line(cx, cy - 8, cx, cy + 8, color=(255, 255, 255), batch=self.ui_batch),
        )

    def set_exclusive_mouse(self, exclusive: bool) -> None:
        super().set_exclusive_mouse(exclusive)
        self.exclusive = exclusive

    def update(self, dt: float) -> None:
        dt = min(dt, 0.25)
        steps = max(1, math.ceil(dt * TICKS_PER_SECOND))
        step_dt = dt / steps
        self.profiler.begin_frame("update", {"chunk": list(self._stream_chunk), "steps": steps})
        try:
            forward = int(self.keys[key.W]) - int(self.keys[key.S])
            strafe = int(self.keys[key.D]) - int(self.keys[key.A])
            jump = bool(self.keys[key.SPACE])
            with self.profiler.section("update.player"):
                for _ in range(steps):
                    self.player.update(step_dt, self.world, forward, strafe, jump)

            position = self.player.position
            current = self.world.chunk_coords(position.x, position.z)
            if current != self._stream_chunk:
                self.world.load_chunks_around_position(position.x, position.z)
                self._stream_chunk = current

            rebuilt = self.world.update()
            with self.profiler.section("update.upload"):
                self.renderer.sync(self.world, rebuilt)

            stats = self.world.diagnostics_snapshot()
            self.label.text = (
                f"XYZ: ({position.x:.1f}, {position.y:.1f}, {position.z:.1f})  "
                f"Block: {self.player.selected_block.name.lower()}  "
                f"Chunks: {stats['loaded_chunks']}  Faces: {stats['mesh_faces']}"
            )
        finally:
            self.profiler.end_frame(extra_context=self.world.diagnostics_snapshot())

    def on_mouse_press(self, x, y, button, modifiers):
        if not self.exclusive:
            self.set_exclusive_mouse(True)
            return
        if button == mouse.LEFT:
            removed = self.player.break_block(self.world)
            if removed is not None:
                logger.debug("broke %s", removed.name)
        elif button == mouse.RIGHT:
            self.player.place_block(self.world)

    def on_mouse_motion(self, x, y, dx, dy):
        if not self.exclusive:
            return
        yaw, pitch = self.player.rotation
        yaw += dx * self.MOUSE_SENSITIVITY
        pitch = max(-90.0, min(90.0, pitch + dy * self.MOUSE_SENSITIVITY))
        self.player.rotation = (yaw, pitch)

    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.set_exclusive_mouse(False)
        elif key._1 <= symbol < key._1 + len(HOTBAR):
            self.player.selected_block = HOTBAR[symbol - key._1]

    def on_resize(self, width, height):
        super().on_resize(width, height)
        self.label.y = height - 10
        horizontal, vertical = self.crosshair
        horizontal.x, horizontal.x2 = width // 2 - 8, width // 2 + 8
        horizontal.y = horizontal.y2 = height // 2
        vertical.y, vertical.y2 = height // 2 - 8, height // 2 + 8
        vertical.x = vertical.x2 = width // 2

    def on_draw(self):
        self.profiler.begin_frame("draw")
        try:
            self.clear()
            position = self.player.position
            eye = (position.x, position.y - self.EYE_OFFSET, position.z)
            with self.profiler.section("draw.world"):
                set_3d(self, self.player.rotation, eye)
                self.renderer.draw()
            with self.profiler.section("draw.ui"):
                set_2d(self)
                self.ui_batch.draw()
        finally:
            self.profiler.end_frame()

    def on_close(self):
        self.profiler.write_report()
        self.renderer.delete()
        super().on_close()
