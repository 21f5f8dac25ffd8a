import math

import pyglet
from pyglet import gl
from pyglet.math import Mat4, Vec3

SKY_COLOR = (0.52, 0.80, 0.92, 1.0)
FIELD_OF_VIEW = 70.0
FAR_PLANE = 300.0


def setup_gl() -> None:
    gl.glClearColor(*SKY_COLOR)
    gl.glEnable(gl.GL_BLEND)
    gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)


def set_3d(window: pyglet.window.Window, rotation: tuple[float, float], eye: tuple[float, float, float]) -> None:
    """Perspective projection looking along (yaw, pitch) from ``eye``."""
    width, height = window.get_framebuffer_size()
    gl.glEnable(gl.GL_DEPTH_TEST)
    gl.glViewport(0, 0, width, height)
    aspect = width / max(1.0, float(height))
    window.projection = Mat4.perspective_projection(aspect, z_near=0.1, z_far=FAR_PLANE, fov=FIELD_OF_VIEW)

    yaw, pitch = rotation
    ex, ey, ez = eye
    view = Mat4.from_rotation(math.radians(-pitch), Vec3(1.0, 0.0, 0.0))
    view = view @ Mat4.from_rotation(math.radians(yaw), Vec3(0.0, 1.0, 0.0))
    window.view = view @ Mat4.from_translation(Vec3(-ex, -ey, -ez))


def set_2d(window: pyglet.window.Window) -> None:
    width, height = window.get_framebuffer_size()
    gl.glDisable(gl.GL_DEPTH_TEST)
    gl.glViewport(0, 0, width, height)
    window.projection = Mat4.orthogonal_projection(0.0, float(width), 0.0, float(height), -1.0, 1.0)
    window.view = Mat4()
