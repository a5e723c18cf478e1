"""Shared definitions for geometric primitives.

Every primitive variant provides two Taichi functions following the same
pattern:

    intersect_<kind>(ray_origin, ray_direction, ..., t_min, t_max) -> t
    <kind>_normal_at(..., point, ray_direction) -> (normal, front_face)

The scene query calls ``intersect_*`` for every primitive and the normal
function only for the closest one.

``intersect_*`` returns NO_HIT when there is no root inside the closed range
[t_min, t_max]. Normals returned by ``*_normal_at`` are unit length and always
face the incoming ray.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Sentinel distance returned by intersect_* on a miss
NO_HIT = -1.0


class PrimitiveKind(IntEnum):
    """Tag stored per primitive in the device-side scene table."""

    SPHERE = 0
    PLANE = 1
    QUAD = 2


@ti.func
def face_forward(outward_normal: vec3, ray_direction: vec3):
    """Orient an outward normal against the incoming ray.

    Returns:
        Tuple ``(normal, front_face)``.
    """
    normal = outward_normal
    front_face = 1
    if tm.dot(ray_direction, outward_normal) > 0.0:
        normal = -outward_normal
        front_face = 0
    return normal, front_face
