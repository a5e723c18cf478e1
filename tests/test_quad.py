"""Unit tests for quad intersection.

Tests cover:
- Host-side Quad area and degeneracy
- Hits inside the parallelogram and misses outside it
- Edge points are inside (closed bounds)
- Parallel rays and degenerate edges never hit
- Normal orientation against the ray
"""

import pytest
import taichi as ti


def _run_hit(origin, direction, corner, edge_u, edge_v, t_min=1e-4, t_max=1e10):
    from beamtracer.geometry.primitive import NO_HIT
    from beamtracer.geometry.quad import intersect_quad, quad_normal_at, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, q: vec3, u: vec3, v: vec3, lo: ti.f32, hi: ti.f32):
        hit[None] = 0
        t = intersect_quad(o, d, q, u, v, lo, hi)
        if t != NO_HIT:
            n, face = quad_normal_at(u, v, d)
            hit[None] = 1
            t_val[None] = t
            normal[None] = n
            front_face[None] = face

    test_kernel(
        vec3(*origin), vec3(*direction), vec3(*corner), vec3(*edge_u), vec3(*edge_v), t_min, t_max
    )
    return hit[None], t_val[None], normal[None], front_face[None]


# Unit square in the z = -3 plane, normal +z (u x v)
CORNER = (-1.0, -1.0, -3.0)
EDGE_U = (2.0, 0.0, 0.0)
EDGE_V = (0.0, 2.0, 0.0)


class TestQuadBasics:
    """Tests for the host-side Quad dataclass."""

    def test_area(self):
        from beamtracer.geometry.quad import Quad

        quad = Quad(corner=CORNER, edge_u=EDGE_U, edge_v=EDGE_V)
        assert quad.area == pytest.approx(4.0)
        assert not quad.is_degenerate()

    def test_parallel_edges_are_degenerate(self):
        from beamtracer.geometry.quad import Quad

        assert Quad(corner=(0, 0, 0), edge_u=(1, 0, 0), edge_v=(2, 0, 0)).is_degenerate()
        assert Quad(corner=(0, 0, 0), edge_u=(0, 0, 0), edge_v=(0, 1, 0)).is_degenerate()


class TestQuadIntersection:
    """Tests for ray-quad intersection."""

    def test_hit_center(self):
        hit, t, n, front = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), CORNER, EDGE_U, EDGE_V)
        assert hit == 1
        assert abs(t - 3.0) < 1e-5
        assert abs(n[2] - 1.0) < 1e-5
        assert front == 1

    def test_miss_outside_bounds(self):
        hit, _, _, _ = _run_hit((1.5, 0.0, 0.0), (0.0, 0.0, -1.0), CORNER, EDGE_U, EDGE_V)
        assert hit == 0

    def test_edge_point_is_inside(self):
        hit, _, _, _ = _run_hit((1.0, 0.0, 0.0), (0.0, 0.0, -1.0), CORNER, EDGE_U, EDGE_V)
        assert hit == 1

    def test_hit_from_behind_flips_normal(self):
        hit, t, n, front = _run_hit((0.0, 0.0, -6.0), (0.0, 0.0, 1.0), CORNER, EDGE_U, EDGE_V)
        assert hit == 1
        assert abs(t - 3.0) < 1e-5
        assert abs(n[2] + 1.0) < 1e-5
        assert front == 0

    def test_parallel_ray_never_hits(self):
        hit, _, _, _ = _run_hit((0.0, 0.0, -3.0), (1.0, 0.0, 0.0), CORNER, EDGE_U, EDGE_V)
        assert hit == 0

    def test_degenerate_quad_never_hits(self):
        hit, _, _, _ = _run_hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), CORNER, (1.0, 0.0, 0.0), (2.0, 0.0, 0.0)
        )
        assert hit == 0

    def test_skewed_parallelogram(self):
        # Parallelogram with a slanted second edge
        corner = (0.0, 0.0, -2.0)
        edge_u = (2.0, 0.0, 0.0)
        edge_v = (1.0, 1.0, 0.0)
        hit_inside, _, _, _ = _run_hit((1.5, 0.5, 0.0), (0.0, 0.0, -1.0), corner, edge_u, edge_v)
        hit_outside, _, _, _ = _run_hit((0.2, 0.8, 0.0), (0.0, 0.0, -1.0), corner, edge_u, edge_v)
        assert hit_inside == 1
        assert hit_outside == 0
