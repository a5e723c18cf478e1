"""Device-side primary ray generation.

``setup_camera`` uploads a :class:`~beamtracer.camera.pinhole.CameraFrame`
into Taichi fields; ``get_primary_ray`` then reproduces
``Camera.generate_ray`` inside kernels.

Example:
    >>> from beamtracer.camera.pinhole import Camera
    >>> from beamtracer.camera.rays import setup_camera, get_primary_ray
    >>> setup_camera(Camera(position=(0, 0, 3), look_at=(0, 0, 0)), 640, 480)
    >>> @ti.kernel
    ... def render():
    ...     for i, j in ti.ndrange(640, 480):
    ...         origin, direction = get_primary_ray(i, j, 640, 480)
"""

import taichi as ti
import taichi.math as tm

from beamtracer.camera.pinhole import Camera, CameraFrame
from beamtracer.core.ray import safe_normalize

vec3 = tm.vec3

# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: Camera, width: int, height: int) -> CameraFrame:
    """Upload the camera frame for an image of the given size.

    Returns:
        The CameraFrame that was uploaded.
    """
    frame = camera.frame(width, height)
    _camera_origin[None] = list(frame.origin.as_tuple())
    _camera_w[None] = list(frame.w.as_tuple())
    _viewport_horizontal[None] = list(frame.horizontal.as_tuple())
    _viewport_vertical[None] = list(frame.vertical.as_tuple())
    _lower_left_corner[None] = list(frame.lower_left.as_tuple())
    return frame


@ti.func
def get_primary_ray(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32):
    """Primary ray through the center of pixel (i, j).

    Args:
        pixel_i: Column, 0 at the left edge.
        pixel_j: Row, 0 at the top edge.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Tuple ``(origin, direction)`` with a unit direction.
    """
    s = (ti.cast(pixel_i, ti.f32) + 0.5) / ti.cast(width, ti.f32)
    t = 1.0 - (ti.cast(pixel_j, ti.f32) + 0.5) / ti.cast(height, ti.f32)

    origin = _camera_origin[None]
    target = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    direction = safe_normalize(target - origin, -_camera_w[None])
    return origin, direction


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Current device-side camera state, for debugging."""
    fields = {
        "origin": _camera_origin,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
