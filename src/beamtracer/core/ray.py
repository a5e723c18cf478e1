"""Kernel-side vector utilities for ray tracing.

This module provides the Taichi functions shared by the geometry, shading
and camera code:

- Point evaluation along a ray
- Safe normalization with a fallback axis for zero-length vectors
- Mirror reflection and Snell refraction with total internal reflection
- Surface-origin offsetting for secondary and shadow rays

Rays inside kernels are carried as ``(origin, direction)`` pairs of
``vec3`` with a unit-length direction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from beamtracer.core.ray import reflect, vec3
    >>> @ti.kernel
    ... def mirror() -> vec3:
    ...     return reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

from beamtracer.config import RAY_EPSILON
from beamtracer.core.vector import ZERO_LENGTH_TOLERANCE

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.func
def ray_at(origin: vec3, direction: vec3, t: ti.f32) -> vec3:
    """Compute the point at parameter t along a ray."""
    return origin + t * direction


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def safe_normalize(v: vec3, fallback: vec3) -> vec3:
    """Normalize a vector, returning ``fallback`` if it has zero length.

    This is the kernel-side counterpart of raising ZeroLengthVectorError:
    a degenerate direction never produces NaNs inside a render.

    Args:
        v: The vector to normalize.
        fallback: Unit vector returned when ``v`` has (near) zero length.

    Returns:
        A unit vector.
    """
    len_sq = tm.dot(v, v)
    result = fallback
    if len_sq > ZERO_LENGTH_TOLERANCE * ZERO_LENGTH_TOLERANCE:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect a vector about a normal: ``I - 2 (I.N) N``.

    Args:
        incident: The incoming direction vector.
        normal: The surface normal (should be normalized).

    Returns:
        The mirror direction.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32):
    """Refract an incident direction through a surface using Snell's law.

    The normal must face the incoming ray (``dot(incident, normal) <= 0``),
    which is what every hit record in this package provides.

    Args:
        incident: The incoming direction (normalized).
        normal: The surface normal facing the incoming ray (normalized).
        eta: Ratio of refractive indices, n_incident / n_transmitted.

    Returns:
        Tuple ``(direction, refracted)``. ``refracted`` is 0 on total
        internal reflection, in which case ``direction`` is the zero vector.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    direction = vec3(0.0, 0.0, 0.0)
    refracted = 0
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        direction = tm.normalize(eta * incident + (eta * cos_i - cos_t) * normal)
        refracted = 1
    return direction, refracted


@ti.func
def offset_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Nudge a surface point to the side a new ray will travel into.

    Reflected and shadow rays leave above the surface (``+eps * N``),
    refracted rays leave below it (``-eps * N``).
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir
