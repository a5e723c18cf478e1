"""Unit tests for the pinhole camera.

Tests cover:
- Camera validation
- Orthonormal basis, including an up vector parallel to the view
- Center ray and pixel-center sampling
- Aspect ratio handling for non-square images
- Agreement between host-side generate_ray and the kernel-side get_primary_ray
"""

import math

import pytest
import taichi as ti


class TestCameraConfig:
    """Tests for Camera construction."""

    def test_defaults(self):
        from beamtracer.camera import Camera

        camera = Camera()
        assert camera.vfov == 90.0
        assert camera.forward.z == pytest.approx(-1.0)

    @pytest.mark.parametrize("vfov", [0.0, 180.0, -10.0])
    def test_invalid_vfov_raises(self, vfov):
        from beamtracer.camera import Camera

        with pytest.raises(ValueError):
            Camera(vfov=vfov)

    def test_invalid_aspect_raises(self):
        from beamtracer.camera import Camera

        with pytest.raises(ValueError):
            Camera(aspect_ratio=0.0)


class TestCameraBasis:
    """Tests for the (u, v, w) basis."""

    def test_basis_is_orthonormal(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(1, 2, 3), look_at=(-2, 0, 1), up=(0, 1, 0))
        u, v, w = camera.basis()
        for a in (u, v, w):
            assert a.length() == pytest.approx(1.0)
        assert u.dot(v) == pytest.approx(0.0, abs=1e-12)
        assert u.dot(w) == pytest.approx(0.0, abs=1e-12)
        assert v.dot(w) == pytest.approx(0.0, abs=1e-12)

    def test_up_parallel_to_view_uses_alternate_axis(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, -1, 0), up=(0, 1, 0))
        u, v, w = camera.basis()
        assert not any(math.isnan(c) for c in (*u, *v, *w))
        assert u.dot(w) == pytest.approx(0.0, abs=1e-12)

    def test_z_up_camera(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, 1, 0), up=(0, 0, 1))
        u, v, _ = camera.basis()
        assert u.x == pytest.approx(1.0)
        assert v.z == pytest.approx(1.0)


class TestGenerateRay:
    """Tests for Camera.generate_ray."""

    def test_center_ray_points_forward(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1), vfov=90.0)
        # Odd resolution: pixel (50, 50) is exactly centered
        ray = camera.generate_ray(50, 50, 101, 101)
        assert ray.direction.x == pytest.approx(0.0, abs=1e-12)
        assert ray.direction.y == pytest.approx(0.0, abs=1e-12)
        assert ray.direction.z == pytest.approx(-1.0)

    def test_direction_is_unit_length(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(1, 1, 1), look_at=(0, 0, 0))
        ray = camera.generate_ray(3, 7, 40, 30)
        assert ray.direction.length() == pytest.approx(1.0)
        assert ray.origin.as_tuple() == (1.0, 1.0, 1.0)

    def test_pixel_centers(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1), vfov=90.0)
        # 2x2 image: pixel centers at +-0.5 on a viewport spanning [-1, 1]
        top_left = camera.generate_ray(0, 0, 2, 2).direction
        assert top_left.x / -top_left.z == pytest.approx(-0.5)
        assert top_left.y / -top_left.z == pytest.approx(0.5)

        bottom_right = camera.generate_ray(1, 1, 2, 2).direction
        assert bottom_right.x / -bottom_right.z == pytest.approx(0.5)
        assert bottom_right.y / -bottom_right.z == pytest.approx(-0.5)

    def test_aspect_ratio_widens_horizontal_extent(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1), vfov=90.0)
        # 200x100: rightmost pixel center at 2 * (199.5 / 200) - 1 of a viewport 4 wide
        right = camera.generate_ray(199, 50, 200, 100).direction
        assert right.x / -right.z == pytest.approx(2.0 * (199.5 / 200.0 * 2.0 - 1.0))
        top = camera.generate_ray(100, 0, 200, 100).direction
        assert top.y / -top.z == pytest.approx(1.0 - 1.0 / 100.0)

    def test_explicit_aspect_ratio_overrides_image(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1), vfov=90.0, aspect_ratio=1.0)
        frame = camera.frame(200, 100)
        assert frame.horizontal.length() == pytest.approx(frame.vertical.length())

    def test_rotated_camera_turns_view(self):
        from beamtracer.camera import Camera

        camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1)).rotated((0, 1, 0), 90.0)
        assert camera.forward.x == pytest.approx(-1.0)


class TestKernelPrimaryRays:
    """Tests that device-side primary rays match the host camera."""

    def test_kernel_matches_host(self):
        from beamtracer.camera import Camera
        from beamtracer.camera.rays import get_primary_ray, setup_camera

        width, height = 8, 6
        camera = Camera(position=(0.5, 1.0, 2.0), look_at=(0.0, 0.0, -3.0), vfov=60.0)
        setup_camera(camera, width, height)

        directions = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))
        origins = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

        @ti.kernel
        def test_kernel():
            for i, j in ti.ndrange(width, height):
                o, d = get_primary_ray(i, j, width, height)
                origins[i, j] = o
                directions[i, j] = d

        test_kernel()
        for i, j in [(0, 0), (7, 0), (3, 2), (7, 5)]:
            expected = camera.generate_ray(i, j, width, height)
            d = directions[i, j]
            o = origins[i, j]
            assert abs(d[0] - expected.direction.x) < 1e-5
            assert abs(d[1] - expected.direction.y) < 1e-5
            assert abs(d[2] - expected.direction.z) < 1e-5
            assert abs(o[0] - 0.5) < 1e-6

    def test_get_camera_info(self):
        from beamtracer.camera import Camera
        from beamtracer.camera.rays import get_camera_info, setup_camera

        setup_camera(Camera(position=(1, 2, 3), look_at=(1, 2, 0)), 10, 10)
        info = get_camera_info()
        assert info["origin"] == pytest.approx((1.0, 2.0, 3.0))
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
