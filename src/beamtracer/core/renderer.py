"""Render orchestration: row bands, worker threads, cancellation.

The image is partitioned into contiguous bands of rows. Each band is one
kernel launch whose pixel loop runs on ``thread_count`` CPU workers; every
pixel writes only its own cell of the color buffer. Each finished band is
copied to the host, and the bands are assembled into an
:class:`~beamtracer.core.image.Image`. Between bands the orchestrator
reports progress and checks the cancellation token.

Device buffers are process-global Taichi fields. A module lock is held for
one band launch at a time, never across a progress callback or a
generator yield. A render whose scene was replaced by another render in the
meantime uploads it again before its next band, so interleaved renders in
one thread or across threads each produce their own image. Scene and
camera values are never mutated.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from beamtracer.core.renderer import render
    >>> from beamtracer.scene.presets import single_sphere_scene
    >>>
    >>> scene, camera = single_sphere_scene()
    >>> image = render(scene, camera, 320, 240, max_depth=4, thread_count=4)
    >>> image.stats.max_depth_reached <= 4
    True
"""

import itertools
import logging
import threading
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from beamtracer.camera.pinhole import Camera
from beamtracer.camera.rays import setup_camera
from beamtracer.config import DEFAULT_MAX_DEPTH, DEFAULT_TILE_ROWS, RenderSettings
from beamtracer.core.image import Image, RenderStats
from beamtracer.core.integrator import get_stats, read_rows, render_band, reset_stats
from beamtracer.errors import RenderCancelledError
from beamtracer.preview.export import save_png
from beamtracer.scene.buffers import SceneLayout, upload_scene
from beamtracer.scene.scene import Scene

logger = logging.getLogger(__name__)

# Callback receives (rows_completed, total_rows)
ProgressCallback = Callable[[int, int], None]

# Guards the process-global device fields for the length of one band
_RENDER_LOCK = threading.Lock()

_job_ids = itertools.count(1)

# Id of the job whose scene and camera are currently uploaded
_resident_job_id = 0


class CancellationToken:
    """Thread-safe flag asking a render to stop at the next band boundary."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


@dataclass(frozen=True)
class RowBand:
    """Half-open range of image rows [start, stop) owned by one kernel launch."""

    start: int
    stop: int

    def __len__(self) -> int:
        return self.stop - self.start


def partition_rows(height: int, tile_rows: int) -> list[RowBand]:
    """Split ``height`` rows into contiguous, disjoint bands.

    Every band has ``tile_rows`` rows except possibly the last.

    Raises:
        ValueError: If height or tile_rows is not positive.
    """
    if height <= 0:
        raise ValueError(f"height must be positive, got {height}")
    if tile_rows <= 0:
        raise ValueError(f"tile_rows must be positive, got {tile_rows}")
    return [RowBand(start, min(start + tile_rows, height)) for start in range(0, height, tile_rows)]


class _RenderJob:
    """One render pass over a validated settings object.

    The device fields hold one scene and camera at a time. Each job takes
    the lock only around a band launch and re-uploads its own scene and
    camera when another job has used the fields since its last band.
    """

    def __init__(
        self,
        scene: Scene,
        camera: Camera,
        settings: RenderSettings,
        cancel_token: CancellationToken | None,
    ) -> None:
        self.scene = scene
        self.camera = camera
        self.settings = settings
        self.cancel_token = cancel_token
        self.image: Image | None = None
        self._job_id = next(_job_ids)
        self._pixels = np.zeros((settings.height, settings.width, 3), dtype=np.float32)
        self._stats = RenderStats(primary_rays=settings.width * settings.height)

    def _make_resident(self) -> SceneLayout:
        """Upload this job's scene and camera. Caller holds _RENDER_LOCK."""
        global _resident_job_id
        layout = upload_scene(self.scene)
        setup_camera(self.camera, self.settings.width, self.settings.height)
        _resident_job_id = self._job_id
        return layout

    def _render_band(self, band: RowBand, threads: int) -> None:
        s = self.settings
        with _RENDER_LOCK:
            if _resident_job_id != self._job_id:
                logger.debug("Device fields changed hands; re-uploading scene")
                self._make_resident()
            reset_stats()
            render_band(
                band.start, band.stop, s.width, s.height, s.max_depth, int(s.clamp), threads
            )
            secondary, deepest = get_stats()
            self._pixels[band.start : band.stop] = read_rows(s.width, band.start, band.stop)

        self._stats.secondary_rays += secondary
        self._stats.max_depth_reached = max(self._stats.max_depth_reached, deepest)
        self._stats.tiles += 1

    def _snapshot(self, started: float) -> Image:
        self._stats.elapsed_seconds = time.perf_counter() - started
        return Image(self._pixels.copy(), self._stats)

    def run(self) -> Generator[int, None, None]:
        """Render band by band, yielding the number of completed rows.

        Nothing is locked while the generator is suspended.
        """
        s = self.settings
        threads = s.resolved_thread_count()
        bands = partition_rows(s.height, s.tile_rows)
        started = time.perf_counter()

        with _RENDER_LOCK:
            layout = self._make_resident()

        logger.info(
            "Rendering %dx%d: %d primitives, %d lights, max_depth=%d, %d threads, %d bands",
            s.width,
            s.height,
            layout.primitive_count,
            layout.light_count,
            s.max_depth,
            threads,
            len(bands),
        )

        rows_done = 0
        for band in bands:
            if self.cancel_token is not None and self.cancel_token.cancelled:
                logger.warning("Render cancelled after %d of %d rows", rows_done, s.height)
                raise RenderCancelledError(self._snapshot(started), rows_done)

            self._render_band(band, threads)
            rows_done = band.stop
            logger.debug("Band rows %d-%d done", band.start, band.stop - 1)
            yield rows_done

        self.image = self._snapshot(started)
        stats = self.image.stats
        logger.info(
            "Rendered %dx%d in %.3fs (%d rays, max depth %d)",
            s.width,
            s.height,
            stats.elapsed_seconds,
            stats.total_rays,
            stats.max_depth_reached,
        )


def render(
    scene: Scene,
    camera: Camera,
    width: int,
    height: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    thread_count: int | None = None,
    *,
    tile_rows: int = DEFAULT_TILE_ROWS,
    cancel_token: CancellationToken | None = None,
    progress: ProgressCallback | None = None,
    clamp: bool = True,
) -> Image:
    """Render a scene to an image.

    Args:
        scene: Immutable scene to render.
        camera: Camera to render from.
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum recursion depth for secondary rays.
        thread_count: CPU workers, or None for every core.
        tile_rows: Rows per band; cancellation is checked between bands.
        cancel_token: Optional token checked before each band.
        progress: Optional callback receiving (rows_completed, total_rows).
        clamp: Clamp each pixel to [0, 1] as it is written.

    Returns:
        The rendered Image, with statistics attached.

    Raises:
        ValueError: If any parameter is invalid. Nothing is rendered.
        RenderCancelledError: If ``cancel_token`` was cancelled.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        max_depth=max_depth,
        thread_count=thread_count,
        tile_rows=tile_rows,
        clamp=clamp,
    )
    settings.validate()

    job = _RenderJob(scene, camera, settings, cancel_token)
    for rows_done in job.run():
        if progress is not None:
            progress(rows_done, height)
    return job.image


class Renderer:
    """Reusable renderer bound to a set of RenderSettings.

    Example:
        >>> renderer = Renderer(RenderSettings(width=320, height=240, max_depth=3))
        >>> for rows, total in renderer.render_progressive(scene, camera):
        ...     print(f"{rows}/{total}")
        >>> renderer.save_image("out.png")
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If the settings are invalid.
        """
        self._settings = settings if settings is not None else RenderSettings()
        self._settings.validate()
        self._last_image: Image | None = None

    @property
    def settings(self) -> RenderSettings:
        return self._settings

    @property
    def width(self) -> int:
        return self._settings.width

    @property
    def height(self) -> int:
        return self._settings.height

    @property
    def last_image(self) -> Image | None:
        """Image from the most recent completed render."""
        return self._last_image

    def render(
        self,
        scene: Scene,
        camera: Camera,
        cancel_token: CancellationToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> Image:
        s = self._settings
        self._last_image = render(
            scene,
            camera,
            s.width,
            s.height,
            s.max_depth,
            s.thread_count,
            tile_rows=s.tile_rows,
            cancel_token=cancel_token,
            progress=progress,
            clamp=s.clamp,
        )
        return self._last_image

    def render_progressive(
        self,
        scene: Scene,
        camera: Camera,
        cancel_token: CancellationToken | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render band by band, yielding (rows_completed, total_rows).

        The finished image is available from ``last_image`` once the
        generator is exhausted.
        """
        job = _RenderJob(scene, camera, self._settings, cancel_token)
        for rows_done in job.run():
            yield rows_done, self._settings.height
        self._last_image = job.image

    def save_image(self, filepath: str | Path, **kwargs) -> Path:
        """Save the last rendered image as PNG (see preview.export.save_png).

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        if self._last_image is None:
            raise RuntimeError("Nothing rendered yet. Call render() first.")
        return save_png(self._last_image, filepath, **kwargs)

    def __repr__(self) -> str:
        s = self._settings
        return (
            f"Renderer(width={s.width}, height={s.height}, max_depth={s.max_depth}, "
            f"thread_count={s.thread_count}, tile_rows={s.tile_rows})"
        )
