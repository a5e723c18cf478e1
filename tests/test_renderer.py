"""Tests for the render orchestration.

Tests cover:
- Parameter validation before any work is done
- Row band partitioning
- Deterministic output across thread counts and band sizes
- Background-only renders, image orientation and the analytic silhouette
- Mirror reflections in full renders
- Progress reporting, cancellation and partial images
- The Renderer class and render statistics
- Renders interleaved through callbacks, generators and threads
"""

import math

import numpy as np
import pytest


def _render(scene, camera, width=32, height=24, **kwargs):
    from beamtracer.core.renderer import render

    return render(scene, camera, width, height, **kwargs)


class TestPartitionRows:
    """Tests for partition_rows."""

    def test_bands_cover_all_rows(self):
        from beamtracer.core.renderer import RowBand, partition_rows

        bands = partition_rows(10, 4)
        assert bands == [RowBand(0, 4), RowBand(4, 8), RowBand(8, 10)]
        assert sum(len(b) for b in bands) == 10

    def test_single_band(self):
        from beamtracer.core.renderer import partition_rows

        assert len(partition_rows(5, 16)) == 1

    def test_invalid_arguments(self):
        from beamtracer.core.renderer import partition_rows

        with pytest.raises(ValueError):
            partition_rows(0, 4)
        with pytest.raises(ValueError):
            partition_rows(10, 0)


class TestValidation:
    """Tests that bad top-level parameters are rejected up front."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"height": -1},
            {"width": 4096},
            {"max_depth": -1},
            {"max_depth": 13},
            {"thread_count": 0},
            {"tile_rows": 0},
            {"tile_rows": 17},
        ],
    )
    def test_invalid_parameters_raise(self, kwargs):
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene()
        params = {"width": 16, "height": 16}
        params.update(kwargs)
        with pytest.raises(ValueError):
            _render(scene, camera, **params)

    def test_validation_happens_before_progress(self):
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene()
        calls = []
        with pytest.raises(ValueError):
            _render(scene, camera, max_depth=99, progress=lambda r, t: calls.append(r))
        assert calls == []


class TestRenderOutput:
    """Tests for rendered pixels."""

    def test_empty_scene_is_background(self):
        from beamtracer.camera import Camera
        from beamtracer.scene import Scene

        background = (0.1, 0.2, 0.3)
        image = _render(Scene(background=background), Camera(), 17, 9, thread_count=2)
        assert image.shape == (17, 9)
        expected = np.asarray(background, dtype=np.float32)
        assert np.all(image.pixels == expected)

    def test_output_is_independent_of_threads_and_bands(self):
        from beamtracer.scene.presets import glass_scene

        scene, camera = glass_scene()
        a = _render(scene, camera, 40, 30, max_depth=4, thread_count=1, tile_rows=16)
        b = _render(scene, camera, 40, 30, max_depth=4, thread_count=4, tile_rows=3)
        c = _render(scene, camera, 40, 30, max_depth=4, thread_count=4, tile_rows=3)
        assert np.array_equal(a.pixels, b.pixels)
        assert np.array_equal(b.pixels, c.pixels)

    def test_pixels_are_clamped(self):
        from beamtracer.scene.presets import showcase_scene

        scene, camera = showcase_scene()
        image = _render(scene, camera, 32, 24, max_depth=3)
        low, high = image.min_max()
        assert low >= 0.0
        assert high <= 1.0

    def test_row_zero_is_the_top_of_the_image(self):
        from beamtracer.camera import Camera
        from beamtracer.geometry import Sphere
        from beamtracer.materials import matte
        from beamtracer.scene import Scene

        # Sphere above the view axis
        scene = Scene(primitives=(Sphere((0, 2, -5), 1.0, matte((1, 1, 1), ambient=1.0)),))
        camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1), vfov=90.0)
        image = _render(scene, camera, 40, 40)
        top_half = image.pixels[:20]
        bottom_half = image.pixels[20:]
        assert top_half.max() > 0.0
        assert bottom_half.max() == 0.0

    def test_single_sphere_silhouette(self):
        from beamtracer.scene.presets import single_sphere_scene

        background = (0.1, 0.2, 0.3)
        scene, camera = single_sphere_scene(background=background)
        width = height = 100
        image = _render(scene, camera, width, height, max_depth=2, thread_count=4)

        # Unit sphere at distance 5: hit iff the ray's tan(angle to -z) < 1 / sqrt(24)
        limit = 1.0 / math.sqrt(24.0)
        bg = np.asarray(background, dtype=np.float32)
        inside = outside = 0
        for y in range(height):
            for x in range(width):
                sx = 2.0 * (x + 0.5) / width - 1.0
                sy = 1.0 - 2.0 * (y + 0.5) / height
                r = math.hypot(sx, sy)
                pixel = image.pixels[y, x]
                if r < limit - 0.01:
                    assert not np.array_equal(pixel, bg), (x, y)
                    inside += 1
                elif r > limit + 0.01:
                    assert np.array_equal(pixel, bg), (x, y)
                    outside += 1
        assert inside > 0
        assert outside > 0

    def test_mirror_sphere_reflects_wall(self):
        from beamtracer.scene.presets import mirror_sphere_scene

        scene, camera = mirror_sphere_scene(wall_color=(1.0, 0.0, 0.0))
        image = _render(scene, camera, 100, 100, max_depth=3)
        r, g, b = image.get_pixel(50, 50)
        assert abs(r - 1.0) < 1e-5
        assert abs(g) < 1e-6
        assert abs(b) < 1e-6
        # Far corner misses the sphere and sees the black background
        assert image.get_pixel(0, 0) == (0.0, 0.0, 0.0)

    def test_max_depth_zero_renders_mirror_black(self):
        from beamtracer.scene.presets import mirror_sphere_scene

        scene, camera = mirror_sphere_scene()
        image = _render(scene, camera, 100, 100, max_depth=0)
        assert image.get_pixel(50, 50) == (0.0, 0.0, 0.0)


class TestStats:
    """Tests for render statistics."""

    def test_stats(self):
        from beamtracer.scene.presets import mirror_sphere_scene

        scene, camera = mirror_sphere_scene()
        image = _render(scene, camera, 20, 20, max_depth=2, tile_rows=8)
        stats = image.stats
        assert stats.primary_rays == 400
        assert stats.secondary_rays > 0
        assert 1 <= stats.max_depth_reached <= 2
        assert stats.tiles == 3
        assert stats.total_rays == stats.primary_rays + stats.secondary_rays
        assert stats.elapsed_seconds >= 0.0


class TestProgressAndCancellation:
    """Tests for progress callbacks and cooperative cancellation."""

    def test_progress_reports_every_band(self):
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene()
        calls = []
        _render(scene, camera, 16, 10, tile_rows=4, progress=lambda r, t: calls.append((r, t)))
        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_cancel_before_start(self):
        from beamtracer.core.renderer import CancellationToken
        from beamtracer.errors import RenderCancelledError
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene()
        token = CancellationToken()
        token.cancel()
        assert token.cancelled
        with pytest.raises(RenderCancelledError) as exc_info:
            _render(scene, camera, 16, 16, cancel_token=token)
        assert exc_info.value.rows_completed == 0
        assert exc_info.value.partial.shape == (16, 16)

    def test_cancel_between_bands_keeps_finished_rows(self):
        from beamtracer.core.renderer import CancellationToken
        from beamtracer.errors import RenderCancelledError
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene(background=(0.2, 0.2, 0.2))
        full = _render(scene, camera, 24, 24, tile_rows=8)

        token = CancellationToken()

        def on_progress(rows, total):
            if rows >= 8:
                token.cancel()

        with pytest.raises(RenderCancelledError) as exc_info:
            _render(scene, camera, 24, 24, tile_rows=8, cancel_token=token, progress=on_progress)

        error = exc_info.value
        assert error.rows_completed == 8
        assert np.array_equal(error.partial.pixels[:8], full.pixels[:8])
        # Unrendered rows are still cleared
        assert np.all(error.partial.pixels[8:] == 0.0)

    def test_renderer_can_be_reused_after_cancellation(self):
        from beamtracer.core.renderer import CancellationToken
        from beamtracer.errors import RenderCancelledError
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene()
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RenderCancelledError):
            _render(scene, camera, 8, 8, cancel_token=token)
        image = _render(scene, camera, 8, 8)
        assert image.shape == (8, 8)


class TestRendererClass:
    """Tests for the reusable Renderer."""

    def test_render_and_save(self, tmp_path):
        from beamtracer.config import RenderSettings
        from beamtracer.core.renderer import Renderer
        from beamtracer.preview import load_png
        from beamtracer.scene.presets import single_sphere_scene

        renderer = Renderer(RenderSettings(width=32, height=24, max_depth=2, thread_count=2))
        assert renderer.width == 32
        assert renderer.height == 24
        assert renderer.last_image is None

        scene, camera = single_sphere_scene()
        image = renderer.render(scene, camera)
        assert renderer.last_image is image

        path = renderer.save_image(tmp_path / "out" / "render.png")
        assert path.exists()
        assert load_png(path).shape == (24, 32, 3)

    def test_save_before_render_raises(self, tmp_path):
        from beamtracer.core.renderer import Renderer

        with pytest.raises(RuntimeError):
            Renderer().save_image(tmp_path / "nothing.png")

    def test_invalid_settings_raise(self):
        from beamtracer.config import RenderSettings
        from beamtracer.core.renderer import Renderer

        with pytest.raises(ValueError):
            Renderer(RenderSettings(width=-5))

    def test_render_progressive(self):
        from beamtracer.config import RenderSettings
        from beamtracer.core.renderer import Renderer
        from beamtracer.scene.presets import single_sphere_scene

        renderer = Renderer(RenderSettings(width=16, height=20, tile_rows=8))
        scene, camera = single_sphere_scene()
        updates = list(renderer.render_progressive(scene, camera))
        assert updates == [(8, 20), (16, 20), (20, 20)]
        assert renderer.last_image is not None
        assert renderer.last_image.shape == (16, 20)

    def test_lazy_top_level_exports(self):
        import beamtracer
        from beamtracer.core.renderer import CancellationToken, Renderer, render

        assert beamtracer.render is render
        assert beamtracer.Renderer is Renderer
        assert beamtracer.CancellationToken is CancellationToken


class TestInterleavedRenders:
    """Tests that renders sharing the device buffers never see each other's scene."""

    def test_render_inside_progress_callback(self):
        from beamtracer.camera import Camera
        from beamtracer.scene import Scene
        from beamtracer.scene.presets import single_sphere_scene

        scene, camera = single_sphere_scene()
        reference = _render(scene, camera, 32, 32, tile_rows=4)

        inner = []

        def on_progress(rows, total):
            if not inner:
                inner.append(_render(Scene(background=(1.0, 0.0, 0.0)), Camera(), 8, 8))

        image = _render(scene, camera, 32, 32, tile_rows=4, progress=on_progress)
        assert np.array_equal(image.pixels, reference.pixels)
        assert np.all(inner[0].pixels == np.asarray((1.0, 0.0, 0.0), dtype=np.float32))

    def test_alternating_progressive_renders(self):
        from beamtracer.config import RenderSettings
        from beamtracer.core.renderer import Renderer
        from beamtracer.scene.presets import mirror_sphere_scene, single_sphere_scene

        settings = RenderSettings(width=24, height=24, max_depth=3, tile_rows=4)
        sphere_scene, sphere_camera = single_sphere_scene()
        mirror_scene, mirror_camera = mirror_sphere_scene()
        sphere_reference = _render(sphere_scene, sphere_camera, 24, 24, max_depth=3)
        mirror_reference = _render(mirror_scene, mirror_camera, 24, 24, max_depth=3)

        first = Renderer(settings)
        second = Renderer(settings)
        first_steps = first.render_progressive(sphere_scene, sphere_camera)
        second_steps = second.render_progressive(mirror_scene, mirror_camera)
        for expected_rows in (4, 8, 12, 16, 20, 24):
            assert next(first_steps) == (expected_rows, 24)
            assert next(second_steps) == (expected_rows, 24)
        assert list(first_steps) == []
        assert list(second_steps) == []

        assert np.array_equal(first.last_image.pixels, sphere_reference.pixels)
        assert np.array_equal(second.last_image.pixels, mirror_reference.pixels)

    def test_suspended_progressive_render_does_not_block_other_threads(self):
        import threading

        from beamtracer.config import RenderSettings
        from beamtracer.core.renderer import Renderer
        from beamtracer.scene.presets import mirror_sphere_scene, single_sphere_scene

        scene, camera = single_sphere_scene()
        reference = _render(scene, camera, 16, 16, tile_rows=4)

        renderer = Renderer(RenderSettings(width=16, height=16, tile_rows=4))
        progress = renderer.render_progressive(scene, camera)
        assert next(progress) == (4, 16)

        results = []
        other_scene, other_camera = mirror_sphere_scene()
        worker = threading.Thread(
            target=lambda: results.append(_render(other_scene, other_camera, 8, 8))
        )
        worker.start()
        worker.join(timeout=120)
        assert not worker.is_alive()
        assert results[0].shape == (8, 8)

        # The suspended render picks up its own scene again
        assert list(progress) == [(8, 16), (12, 16), (16, 16)]
        assert np.array_equal(renderer.last_image.pixels, reference.pixels)

    def test_statistics_are_per_render(self):
        from beamtracer.scene.presets import glass_scene, single_sphere_scene

        scene, camera = single_sphere_scene()
        alone = _render(scene, camera, 16, 16, max_depth=2, tile_rows=4)

        glass, glass_camera = glass_scene()

        def on_progress(rows, total):
            _render(glass, glass_camera, 16, 16, max_depth=6)

        interleaved = _render(scene, camera, 16, 16, max_depth=2, tile_rows=4, progress=on_progress)
        assert interleaved.stats.secondary_rays == alone.stats.secondary_rays
        assert interleaved.stats.max_depth_reached == alone.stats.max_depth_reached
