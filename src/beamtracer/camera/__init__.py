"""Camera models for primary ray generation.

Components:
    pinhole: Host-side Camera and CameraFrame (look-at basis, viewport)
    rays: Device-side camera state and get_primary_ray for kernels

Only ``pinhole`` is imported here; ``rays`` owns Taichi fields and must be
imported after the Taichi runtime is initialized.
"""

from .pinhole import Camera, CameraFrame

__all__ = ["Camera", "CameraFrame"]
