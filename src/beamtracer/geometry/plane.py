"""Infinite plane primitive.

A plane is the set of points P with ``N.P + d = 0``. The host-side
:class:`Plane` stores a point on the plane and its normal; kernels receive
the unit normal and the offset ``d``.

Example:
    >>> from beamtracer.geometry.plane import Plane
    >>> floor = Plane(point=(0.0, -1.0, 0.0), normal=(0.0, 1.0, 0.0))
    >>> floor.offset
    1.0
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from beamtracer.config import PARALLEL_EPSILON
from beamtracer.core.vector import Vector3
from beamtracer.geometry.primitive import NO_HIT, PrimitiveKind, face_forward
from beamtracer.materials.material import DEFAULT_MATERIAL, Material

vec3 = tm.vec3


@dataclass(frozen=True)
class Plane:
    """An infinite, two-sided plane.

    Attributes:
        point: Any point on the plane.
        normal: Plane normal; need not be unit length. A zero normal is
            degenerate and never intersects.
        material: Shared surface material.
    """

    point: Vector3
    normal: Vector3
    material: Material = DEFAULT_MATERIAL

    kind = PrimitiveKind.PLANE

    def __post_init__(self):
        object.__setattr__(self, "point", Vector3.of(self.point))
        object.__setattr__(self, "normal", Vector3.of(self.normal))

    @classmethod
    def from_normal_offset(
        cls, normal, offset: float, material: Material = DEFAULT_MATERIAL
    ) -> "Plane":
        """Build the plane ``N.P + offset = 0``.

        Raises:
            ZeroLengthVectorError: If ``normal`` has zero length.
        """
        n = Vector3.of(normal)
        unit = n.normalized()
        # Closest point to the origin: N.P = -offset with |N| folded in
        point = unit * (-offset / n.length())
        return cls(point=point, normal=n, material=material)

    def is_degenerate(self) -> bool:
        return self.normal.is_zero()

    @property
    def unit_normal(self) -> Vector3:
        return self.normal.normalized()

    @property
    def offset(self) -> float:
        """``d`` in ``N.P + d = 0`` for the unit normal."""
        return -self.unit_normal.dot(self.point)


@ti.func
def intersect_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    normal: vec3,
    offset: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.f32:
    """Ray-plane intersection ``t = -(O.N + d) / (D.N)``.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        normal: Unit plane normal; a zero normal never hits.
        offset: Plane constant ``d``.
        t_min: Minimum accepted distance.
        t_max: Maximum accepted distance.

    Returns:
        The hit distance, or NO_HIT when the ray is parallel to the plane
        (``|D.N| < PARALLEL_EPSILON``) or the root is out of range.
    """
    result = NO_HIT
    denom = tm.dot(ray_direction, normal)

    if tm.dot(normal, normal) > 0.0 and ti.abs(denom) >= PARALLEL_EPSILON:
        t = -(tm.dot(ray_origin, normal) + offset) / denom
        if t >= t_min and t <= t_max:
            result = t

    return result


@ti.func
def plane_normal_at(normal: vec3, ray_direction: vec3):
    """Plane normal oriented against the ray.

    The plane is two-sided; front_face is 1 when the ray travels against
    the stored normal.
    """
    return face_forward(normal, ray_direction)
