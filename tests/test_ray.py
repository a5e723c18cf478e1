"""Unit tests for the kernel-side ray utilities.

Tests cover:
- Point evaluation along a ray
- Safe normalization with a fallback
- Mirror reflection
- Snell refraction and total internal reflection
- Surface-origin offsetting
"""

import math

import taichi as ti


class TestRayAt:
    """Tests for ray_at."""

    def test_ray_at(self):
        from beamtracer.core.ray import ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = ray_at(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -1.0), 2.5)

        test_kernel()
        p = result[None]
        assert abs(p[0] - 1.0) < 1e-6
        assert abs(p[1] - 2.0) < 1e-6
        assert abs(p[2] - 0.5) < 1e-6


class TestSafeNormalize:
    """Tests for safe_normalize."""

    def test_normalizes_nonzero_vector(self):
        from beamtracer.core.ray import safe_normalize, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = safe_normalize(vec3(0.0, 3.0, 4.0), vec3(1.0, 0.0, 0.0))

        test_kernel()
        v = result[None]
        assert abs(v[0]) < 1e-6
        assert abs(v[1] - 0.6) < 1e-6
        assert abs(v[2] - 0.8) < 1e-6

    def test_zero_vector_returns_fallback(self):
        from beamtracer.core.ray import safe_normalize, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = safe_normalize(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        v = result[None]
        assert abs(v[0]) < 1e-6
        assert abs(v[1] - 1.0) < 1e-6
        assert abs(v[2]) < 1e-6
        assert not any(math.isnan(float(v[k])) for k in range(3))


class TestReflect:
    """Tests for reflect."""

    def test_reflect_off_horizontal_surface(self):
        from beamtracer.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_reflect_head_on_reverses_direction(self):
        from beamtracer.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0))

        test_kernel()
        r = result[None]
        assert abs(r[2] - 1.0) < 1e-6


class TestRefract:
    """Tests for Snell refraction."""

    def test_normal_incidence_passes_straight_through(self):
        from beamtracer.core.ray import refract, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        refracted = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, ok = refract(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0), 1.0 / 1.5)
            direction[None] = d
            refracted[None] = ok

        test_kernel()
        assert refracted[None] == 1
        d = direction[None]
        assert abs(d[0]) < 1e-6
        assert abs(d[1]) < 1e-6
        assert abs(d[2] + 1.0) < 1e-6

    def test_snell_law_holds(self):
        from beamtracer.core.ray import refract, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            d, ok = refract(incident, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)
            direction[None] = d

        test_kernel()
        d = direction[None]
        sin_i = math.sin(math.radians(45.0))
        sin_t = float(d[0])
        assert abs(sin_i - 1.5 * sin_t) < 1e-5
        assert float(d[1]) < 0.0
        assert abs(math.sqrt(sum(float(d[k]) ** 2 for k in range(3))) - 1.0) < 1e-5

    def test_total_internal_reflection(self):
        from beamtracer.core.ray import refract, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        refracted = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            # Grazing ray leaving glass (eta = 1.5): sin_t > 1
            incident = ti.math.normalize(vec3(1.0, -0.2, 0.0))
            d, ok = refract(incident, vec3(0.0, 1.0, 0.0), 1.5)
            direction[None] = d
            refracted[None] = ok

        test_kernel()
        assert refracted[None] == 0
        d = direction[None]
        assert abs(d[0]) < 1e-6 and abs(d[1]) < 1e-6 and abs(d[2]) < 1e-6


class TestOffsetOrigin:
    """Tests for offset_origin."""

    def test_offsets_along_travel_side(self):
        from beamtracer.config import RAY_EPSILON
        from beamtracer.core.ray import offset_origin, vec3

        above = ti.Vector.field(3, dtype=ti.f32, shape=())
        below = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            above[None] = offset_origin(vec3(0.0, 0.0, 0.0), n, vec3(0.0, 1.0, 0.0))
            below[None] = offset_origin(vec3(0.0, 0.0, 0.0), n, vec3(0.0, -1.0, 0.0))

        test_kernel()
        assert abs(above[None][1] - RAY_EPSILON) < 1e-7
        assert abs(below[None][1] + RAY_EPSILON) < 1e-7
