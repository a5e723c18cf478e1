"""Configuration for the beamtracer renderer.

Rendering constants shared by the kernels live here, together with the
environment-driven defaults used by the command-line tools. Every setting
that can be overridden reads a ``BEAMTRACER_*`` environment variable.

Example:
    >>> from beamtracer.config import RenderSettings, init_backend
    >>> init_backend()  # honours BEAMTRACER_ARCH, defaults to the CPU
    >>> settings = RenderSettings.from_env()
    >>> settings.validate()
"""

import os
from dataclasses import dataclass

import taichi as ti

# =============================================================================
# Numerical Constants
# =============================================================================

# Offset used for secondary ray t_min and surface-origin nudging
RAY_EPSILON = 1e-4

# Below this |D.N| a ray is treated as parallel to a plane
PARALLEL_EPSILON = 1e-8

# Upper bound of the parametric range for unbounded rays
T_MAX = 1e10

# =============================================================================
# Capacity Limits (fields are preallocated to avoid kernel recompilation)
# =============================================================================

MAX_TRACE_DEPTH = 12
DEFAULT_MAX_DEPTH = 5

MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Rows rendered per kernel launch; cancellation is checked between bands
MAX_TILE_ROWS = 16
DEFAULT_TILE_ROWS = 16

MAX_PRIMITIVES = 1024
MAX_MATERIALS = 256
MAX_LIGHTS = 32

# =============================================================================
# Environment
# =============================================================================

ENV_PREFIX = "BEAMTRACER_"

ARCH = os.getenv(f"{ENV_PREFIX}ARCH", "cpu")
LOG_LEVEL = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv(
    f"{ENV_PREFIX}LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


def _env_int(name: str, default: int | None, prefix: str = ENV_PREFIX) -> int | None:
    raw = os.getenv(f"{prefix}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{prefix}{name} must be an integer, got {raw!r}") from exc


@dataclass
class RenderSettings:
    """Top-level render parameters.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum recursion depth for reflected/refracted rays.
        thread_count: Number of CPU workers, or None for all cores.
        tile_rows: Rows per band; cancellation is checked between bands.
        clamp: Clamp each pixel to [0, 1] when it is written.
    """

    width: int = 640
    height: int = 480
    max_depth: int = DEFAULT_MAX_DEPTH
    thread_count: int | None = None
    tile_rows: int = DEFAULT_TILE_ROWS
    clamp: bool = True

    def validate(self) -> None:
        """Check every parameter, raising ValueError on the first bad one."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_depth > MAX_TRACE_DEPTH:
            raise ValueError(
                f"max_depth ({self.max_depth}) exceeds maximum supported ({MAX_TRACE_DEPTH})"
            )
        if self.thread_count is not None and self.thread_count < 1:
            raise ValueError(f"thread_count must be >= 1, got {self.thread_count}")
        if not 1 <= self.tile_rows <= MAX_TILE_ROWS:
            raise ValueError(f"tile_rows must be in [1, {MAX_TILE_ROWS}], got {self.tile_rows}")

    def resolved_thread_count(self) -> int:
        """Worker count actually used: thread_count or every available core."""
        if self.thread_count is not None:
            return self.thread_count
        return os.cpu_count() or 1

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "RenderSettings":
        """Build settings from environment variables.

        Reads ``<prefix>WIDTH``, ``HEIGHT``, ``MAX_DEPTH``, ``THREADS``,
        ``TILE_ROWS`` and ``CLAMP``; unset variables keep their defaults.

        Raises:
            ValueError: If a numeric variable is not an integer.
        """
        defaults = cls()
        return cls(
            width=_env_int("WIDTH", defaults.width, prefix),
            height=_env_int("HEIGHT", defaults.height, prefix),
            max_depth=_env_int("MAX_DEPTH", defaults.max_depth, prefix),
            thread_count=_env_int("THREADS", None, prefix),
            tile_rows=_env_int("TILE_ROWS", defaults.tile_rows, prefix),
            clamp=os.getenv(f"{prefix}CLAMP", "true").lower() == "true",
        )


def init_backend(
    arch: str | None = None,
    thread_count: int | None = None,
    debug: bool = False,
    random_seed: int = 0,
) -> None:
    """Initialize the Taichi runtime.

    Must run before any beamtracer module that owns device fields is
    imported (scene buffers, camera rays, integrator, renderer).

    Args:
        arch: One of "cpu", "gpu", "cuda", "vulkan", "metal". Defaults to
            BEAMTRACER_ARCH, then "cpu".
        thread_count: Upper bound on CPU worker threads.
        debug: Enable Taichi's bounds-checking debug mode.
        random_seed: Seed for Taichi's RNG.

    Raises:
        ValueError: If the architecture name is unknown.
    """
    name = (arch or ARCH).lower()
    if name not in _ARCHES:
        raise ValueError(f"Unknown Taichi arch {name!r}; expected one of {sorted(_ARCHES)}")

    kwargs = {"arch": _ARCHES[name], "debug": debug, "random_seed": random_seed}
    if thread_count is not None:
        kwargs["cpu_max_num_threads"] = thread_count
    ti.init(**kwargs)
