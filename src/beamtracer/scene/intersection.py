"""Scene-level ray queries over the uploaded primitive table.

Two queries are provided as Taichi functions:

- ``nearest_hit``: closest intersection along a ray. A linear scan in scene
  order keeps the current best and replaces it only on a strictly smaller
  distance, so identical distances resolve to the primitive that comes
  first in the scene.
- ``is_occluded``: any-hit test used for shadow rays; it stops scanning at
  the first intersection.

Host-callable wrappers (``query_nearest_hit``, ``query_occluded``) run a
single query against the current scene and return Python values.

Example:
    >>> from beamtracer.scene.buffers import upload_scene
    >>> from beamtracer.scene.intersection import query_nearest_hit
    >>> upload_scene(scene)
    >>> hit = query_nearest_hit((0, 0, 0), (0, 0, -1))
    >>> hit.primitive_index if hit else None
    0
"""

from typing import NamedTuple

import taichi as ti
import taichi.math as tm

from beamtracer.config import RAY_EPSILON, T_MAX
from beamtracer.core.ray import safe_normalize
from beamtracer.core.vector import Vector3
from beamtracer.geometry import (
    NO_HIT,
    PrimitiveKind,
    intersect_plane,
    intersect_quad,
    intersect_sphere,
    plane_normal_at,
    quad_normal_at,
    sphere_normal_at,
)
from beamtracer.scene.buffers import (
    primitive_count,
    primitive_kind,
    primitive_material,
    primitive_scalar,
    primitive_valid,
    primitive_vectors,
)

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of the nearest ray-scene intersection.

    Attributes:
        hit: 1 if any primitive was hit, 0 otherwise.
        t: Distance along the ray to the hit.
        point: World-space hit point.
        normal: Unit normal facing the incoming ray.
        front_face: 1 if the ray arrived from the outward side.
        primitive_index: Scene-order index of the hit primitive, -1 on a miss.
        material_id: Material row of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    primitive_index: ti.i32
    material_id: ti.i32


@ti.func
def intersect_primitive(
    index: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32
) -> ti.f32:
    """Dispatch the intersection test for one primitive row.

    Returns:
        The hit distance, or NO_HIT. Degenerate rows always miss.
    """
    t = NO_HIT
    if primitive_valid(index) == 1:
        kind = primitive_kind(index)
        a, b, c = primitive_vectors(index)
        s = primitive_scalar(index)
        if kind == int(PrimitiveKind.SPHERE):
            t = intersect_sphere(ray_origin, ray_direction, a, s, t_min, t_max)
        elif kind == int(PrimitiveKind.PLANE):
            t = intersect_plane(ray_origin, ray_direction, a, s, t_min, t_max)
        elif kind == int(PrimitiveKind.QUAD):
            t = intersect_quad(ray_origin, ray_direction, a, b, c, t_min, t_max)
    return t


@ti.func
def primitive_normal_at(index: ti.i32, point: vec3, ray_direction: vec3):
    """Surface normal of a primitive row at ``point``, facing the ray.

    Returns:
        Tuple ``(normal, front_face)``.
    """
    kind = primitive_kind(index)
    a, b, c = primitive_vectors(index)
    s = primitive_scalar(index)
    normal = vec3(0.0, 0.0, 0.0)
    front_face = 0
    if kind == int(PrimitiveKind.SPHERE):
        n, f = sphere_normal_at(a, s, point, ray_direction)
        normal = n
        front_face = f
    elif kind == int(PrimitiveKind.PLANE):
        n, f = plane_normal_at(a, ray_direction)
        normal = n
        front_face = f
    else:
        n, f = quad_normal_at(b, c, ray_direction)
        normal = n
        front_face = f
    return normal, front_face


@ti.func
def nearest_hit(
    ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32
) -> SceneHitRecord:
    """Find the closest intersection with any primitive.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        t_min: Minimum accepted distance.
        t_max: Maximum accepted distance.

    Returns:
        A SceneHitRecord; check ``hit`` before reading the other fields.
    """
    closest_t = t_max
    closest_index = -1

    # Must stay a while loop: a range-for inlined at kernel top level is parallelized
    i = 0
    n = primitive_count()
    while i < n:
        t = intersect_primitive(i, ray_origin, ray_direction, t_min, t_max)
        # Strict comparison keeps the earliest primitive on exact ties
        if t != NO_HIT and t < closest_t:
            closest_t = t
            closest_index = i
        elif t != NO_HIT and closest_index == -1 and t == closest_t:
            # A hit exactly at t_max still counts when nothing else was found
            closest_index = i
        i += 1

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0
    material_id = -1

    if closest_index >= 0:
        did_hit = 1
        hit_t = closest_t
        hit_point = ray_origin + closest_t * ray_direction
        normal, face = primitive_normal_at(closest_index, hit_point, ray_direction)
        hit_normal = normal
        is_front_face = face
        material_id = primitive_material(closest_index)

    return SceneHitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        primitive_index=closest_index,
        material_id=material_id,
    )


@ti.func
def is_occluded(ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32) -> ti.i32:
    """Test whether any primitive blocks the ray within [t_min, t_max].

    Returns:
        1 if occluded, 0 otherwise.
    """
    occluded = 0
    i = 0
    n = primitive_count()
    while i < n and occluded == 0:
        if intersect_primitive(i, ray_origin, ray_direction, t_min, t_max) != NO_HIT:
            occluded = 1
        i += 1
    return occluded


# =============================================================================
# Host-side Query Wrappers
# =============================================================================


class SceneHit(NamedTuple):
    """Python-side result of query_nearest_hit."""

    t: float
    point: Vector3
    normal: Vector3
    front_face: bool
    primitive_index: int
    material_id: int


_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_index = ti.field(dtype=ti.i32, shape=())
_query_material = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _nearest_hit_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    record = nearest_hit(origin, safe_normalize(direction, vec3(0.0, 0.0, -1.0)), t_min, t_max)
    _query_hit[None] = record.hit
    _query_t[None] = record.t
    _query_point[None] = record.point
    _query_normal[None] = record.normal
    _query_front_face[None] = record.front_face
    _query_index[None] = record.primitive_index
    _query_material[None] = record.material_id


@ti.kernel
def _occluded_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32) -> ti.i32:
    return is_occluded(origin, safe_normalize(direction, vec3(0.0, 0.0, -1.0)), t_min, t_max)


def _to_vector3(value) -> Vector3:
    return Vector3(float(value[0]), float(value[1]), float(value[2]))


def query_nearest_hit(
    origin, direction, t_min: float = RAY_EPSILON, t_max: float = T_MAX
) -> SceneHit | None:
    """Run nearest_hit for one ray against the uploaded scene.

    Args:
        origin: Ray origin (any 3-sequence).
        direction: Ray direction; normalized before the query.
        t_min: Minimum accepted distance.
        t_max: Maximum accepted distance.

    Returns:
        A SceneHit, or None if the ray hits nothing.
    """
    o = Vector3.of(origin)
    d = Vector3.of(direction)
    _nearest_hit_kernel(vec3(o.x, o.y, o.z), vec3(d.x, d.y, d.z), t_min, t_max)
    if _query_hit[None] == 0:
        return None
    return SceneHit(
        t=float(_query_t[None]),
        point=_to_vector3(_query_point[None]),
        normal=_to_vector3(_query_normal[None]),
        front_face=bool(_query_front_face[None]),
        primitive_index=int(_query_index[None]),
        material_id=int(_query_material[None]),
    )


def query_occluded(origin, direction, t_min: float = RAY_EPSILON, t_max: float = T_MAX) -> bool:
    """Run is_occluded for one ray against the uploaded scene."""
    o = Vector3.of(origin)
    d = Vector3.of(direction)
    return bool(_occluded_kernel(vec3(o.x, o.y, o.z), vec3(d.x, d.y, d.z), t_min, t_max))
