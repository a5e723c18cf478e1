"""beamtracer: a Whitted-style recursive ray tracer built on Taichi.

Scenes are immutable values (primitives, shared materials, lights and a
background color) rendered through a pinhole camera. Shading combines
ambient, Lambertian and Phong terms with shadow rays, and follows mirror
reflection and Snell refraction up to a bounded depth.

Subpackages:
    core: Vector/ray math, image buffer, integrator and renderer
    geometry: Sphere, plane and quad primitives
    materials: Material value type and presets
    scene: Scene description, lights, device buffers and ray queries
    camera: Pinhole camera and primary ray generation
    preview: Tone mapping and PNG export

The Taichi runtime must be initialized (``beamtracer.config.init_backend``)
before importing modules that own device fields; ``render`` and ``Renderer``
are therefore resolved lazily on first access.
"""

from beamtracer.camera import Camera
from beamtracer.core import Image, Ray, RenderStats, Vector3
from beamtracer.errors import (
    BeamtracerError,
    DegenerateGeometryError,
    RenderCancelledError,
    ZeroLengthVectorError,
)
from beamtracer.geometry import Plane, Quad, Sphere
from beamtracer.materials import Material
from beamtracer.scene import DirectionalLight, PointLight, Scene, SceneBuilder, validate_scene

__version__ = "0.1.0"

_LAZY = {
    "render": "beamtracer.core.renderer",
    "Renderer": "beamtracer.core.renderer",
    "CancellationToken": "beamtracer.core.renderer",
}


def __getattr__(name):
    if name in _LAZY:
        import importlib

        return getattr(importlib.import_module(_LAZY[name]), name)
    raise AttributeError(f"module 'beamtracer' has no attribute {name!r}")


__all__ = [
    "__version__",
    "Vector3",
    "Ray",
    "Image",
    "RenderStats",
    "Camera",
    "Material",
    "Sphere",
    "Plane",
    "Quad",
    "PointLight",
    "DirectionalLight",
    "Scene",
    "SceneBuilder",
    "validate_scene",
    "BeamtracerError",
    "DegenerateGeometryError",
    "ZeroLengthVectorError",
    "RenderCancelledError",
    "render",
    "Renderer",
    "CancellationToken",
]
