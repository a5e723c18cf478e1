"""Quad (parallelogram) primitive with ray intersection.

A quad is defined by a corner point Q and two edge vectors u and v. The
four vertices are Q, Q+u, Q+v and Q+u+v. Intersection is a plane test
followed by a bounds check on the hit point's coordinates (alpha, beta)
in the (u, v) frame.

Example:
    >>> from beamtracer.geometry.quad import Quad
    >>> panel = Quad(corner=(-1, -1, -3), edge_u=(2, 0, 0), edge_v=(0, 2, 0))
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from beamtracer.config import PARALLEL_EPSILON
from beamtracer.core.vector import Vector3
from beamtracer.geometry.primitive import NO_HIT, PrimitiveKind, face_forward
from beamtracer.materials.material import DEFAULT_MATERIAL, Material

vec3 = tm.vec3

# Squared cross-product magnitude below which the edges count as parallel
DEGENERATE_AREA_SQ = 1e-10


@dataclass(frozen=True)
class Quad:
    """A flat parallelogram.

    Attributes:
        corner: Corner point Q.
        edge_u: Edge from Q to the first adjacent corner.
        edge_v: Edge from Q to the second adjacent corner.
        material: Shared surface material.
    """

    corner: Vector3
    edge_u: Vector3
    edge_v: Vector3
    material: Material = DEFAULT_MATERIAL

    kind = PrimitiveKind.QUAD

    def __post_init__(self):
        object.__setattr__(self, "corner", Vector3.of(self.corner))
        object.__setattr__(self, "edge_u", Vector3.of(self.edge_u))
        object.__setattr__(self, "edge_v", Vector3.of(self.edge_v))

    def is_degenerate(self) -> bool:
        return self.edge_u.cross(self.edge_v).length_squared() <= DEGENERATE_AREA_SQ

    @property
    def area(self) -> float:
        return self.edge_u.cross(self.edge_v).length()


@ti.func
def _compute_quad_frame(corner: vec3, edge_u: vec3, edge_v: vec3):
    """Compute the quad's plane and the dual vectors of its edges.

    With n = u x v, the vectors ``w_u = (v x n) / n.n`` and
    ``w_v = (n x u) / n.n`` satisfy ``w_u.u = 1, w_u.v = 0, w_v.u = 0,
    w_v.v = 1``, so for a point P on the plane:

        alpha = w_u.(P - Q),  beta = w_v.(P - Q)

    Returns:
        Tuple of (normal, d, w_u, w_v, valid) where d = normal.Q and
        valid is 0 for parallel or zero edges.
    """
    n = tm.cross(edge_u, edge_v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    d = 0.0
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)
    valid = 0

    if n_dot_n > DEGENERATE_AREA_SQ:
        normal = n / ti.sqrt(n_dot_n)
        d = tm.dot(normal, corner)
        w_u = tm.cross(edge_v, n) / n_dot_n
        w_v = tm.cross(n, edge_u) / n_dot_n
        valid = 1

    return normal, d, w_u, w_v, valid


@ti.func
def intersect_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    corner: vec3,
    edge_u: vec3,
    edge_v: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.f32:
    """Ray-quad intersection distance inside [t_min, t_max].

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        corner: Quad corner Q.
        edge_u: First edge vector.
        edge_v: Second edge vector.
        t_min: Minimum accepted distance.
        t_max: Maximum accepted distance.

    Returns:
        The hit distance, or NO_HIT.
    """
    normal, d, w_u, w_v, valid = _compute_quad_frame(corner, edge_u, edge_v)
    result = NO_HIT

    denom = tm.dot(normal, ray_direction)
    if valid == 1 and ti.abs(denom) >= PARALLEL_EPSILON:
        t = (d - tm.dot(normal, ray_origin)) / denom
        if t >= t_min and t <= t_max:
            p_minus_q = ray_origin + t * ray_direction - corner
            alpha = tm.dot(w_u, p_minus_q)
            beta = tm.dot(w_v, p_minus_q)
            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                result = t

    return result


@ti.func
def quad_normal_at(edge_u: vec3, edge_v: vec3, ray_direction: vec3):
    """Quad normal (right-hand rule on u x v) oriented against the ray."""
    outward_normal = tm.normalize(tm.cross(edge_u, edge_v))
    return face_forward(outward_normal, ray_direction)
