"""Sphere primitive with robust ray-sphere intersection.

The host-side :class:`Sphere` describes a sphere in a scene. The Taichi
functions below intersect rays with a sphere given as ``(center, radius)``
using the robust quadratic formula from Ray Tracing Gems, which avoids
catastrophic cancellation when ``b^2`` is nearly equal to ``4ac``.

Example:
    >>> from beamtracer.geometry.sphere import Sphere
    >>> from beamtracer.materials import matte
    >>> ball = Sphere(center=(0.0, 0.0, -5.0), radius=1.0, material=matte((1, 0, 0)))
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from beamtracer.core.vector import Vector3
from beamtracer.geometry.primitive import NO_HIT, PrimitiveKind, face_forward
from beamtracer.materials.material import DEFAULT_MATERIAL, Material

vec3 = tm.vec3


@dataclass(frozen=True)
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere. Radius <= 0 is degenerate and
            never intersects.
        material: Shared surface material.
    """

    center: Vector3
    radius: float
    material: Material = DEFAULT_MATERIAL

    kind = PrimitiveKind.SPHERE

    def __post_init__(self):
        object.__setattr__(self, "center", Vector3.of(self.center))
        object.__setattr__(self, "radius", float(self.radius))

    def is_degenerate(self) -> bool:
        return not (math.isfinite(self.radius) and self.radius > 0.0)


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve ``a*t^2 + 2*h*t + c = 0`` with the numerically stable formula.

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Both h and the discriminant vanish; fall back to the textbook form
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def intersect_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.f32:
    """Nearest ray-sphere root inside [t_min, t_max].

    Solves ``|O + tD - C|^2 = r^2`` in the half-b form

        a = D.D,  h = D.(O - C),  c = |O - C|^2 - r^2,  disc = h^2 - ac

    A negative discriminant is a miss; a zero discriminant is a tangent hit
    accepted like any other root. The smaller root in range wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        center: Sphere center.
        radius: Sphere radius; radius <= 0 never hits.
        t_min: Minimum accepted distance.
        t_max: Maximum accepted distance.

    Returns:
        The hit distance, or NO_HIT.
    """
    result = NO_HIT

    if radius > 0.0:
        oc = ray_origin - center
        a = tm.dot(ray_direction, ray_direction)
        h = tm.dot(ray_direction, oc)
        c = tm.dot(oc, oc) - radius * radius
        discriminant = h * h - a * c

        if discriminant >= 0.0 and a > 0.0:
            sqrt_d = ti.sqrt(discriminant)
            t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

            if t0 >= t_min and t0 <= t_max:
                result = t0
            elif t1 >= t_min and t1 <= t_max:
                result = t1

    return result


@ti.func
def sphere_normal_at(center: vec3, radius: ti.f32, point: vec3, ray_direction: vec3):
    """Unit surface normal at ``point``, oriented against the ray.

    Returns:
        Tuple ``(normal, front_face)``; front_face is 0 when the ray
        started inside the sphere.
    """
    outward_normal = (point - center) / radius
    return face_forward(outward_normal, ray_direction)
