"""Geometry module for shape primitives and intersection algorithms.

Components:
    primitive: PrimitiveKind tags, the NO_HIT sentinel and shared helpers
    sphere: Sphere primitive with robust ray-sphere intersection
    plane: Infinite two-sided plane
    quad: Flat parallelogram

Each module pairs an immutable host-side dataclass (used to build scenes)
with Taichi functions that intersect rays against the uploaded geometry.
"""

from .plane import Plane, intersect_plane, plane_normal_at
from .primitive import NO_HIT, PrimitiveKind, face_forward
from .quad import Quad, intersect_quad, quad_normal_at
from .sphere import Sphere, intersect_sphere, sphere_normal_at

Primitive = Sphere | Plane | Quad

__all__ = [
    "Primitive",
    "PrimitiveKind",
    "NO_HIT",
    "face_forward",
    "Sphere",
    "intersect_sphere",
    "sphere_normal_at",
    "Plane",
    "intersect_plane",
    "plane_normal_at",
    "Quad",
    "intersect_quad",
    "quad_normal_at",
]
