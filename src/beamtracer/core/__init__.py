"""Core rendering module.

Components:
    vector: Host-side Vector3 and Ray value types
    ray: Kernel-side vector utilities (reflect, refract, safe_normalize)
    image: Image buffer, sRGB conversion and RenderStats
    integrator: Whitted shading model and the per-pixel tracing kernel
    renderer: Row-band orchestration, cancellation and the render() entry point

Note: integrator and renderer own Taichi fields and are NOT imported here.
Import them directly after the Taichi runtime is initialized:
    from beamtracer.core.renderer import render
"""

from .image import Image, RenderStats, linear_to_srgb
from .ray import length_squared, offset_origin, ray_at, reflect, refract, safe_normalize, vec3
from .vector import Ray, Vector3

__all__ = [
    "Vector3",
    "Ray",
    "Image",
    "RenderStats",
    "linear_to_srgb",
    "vec3",
    "ray_at",
    "length_squared",
    "safe_normalize",
    "reflect",
    "refract",
    "offset_origin",
]
