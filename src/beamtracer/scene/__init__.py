"""Scene description, device upload and ray queries.

Components:
    lights: PointLight and DirectionalLight
    scene: Immutable Scene value, SceneBuilder and validate_scene
    presets: Demo scenes
    buffers: Device-side structure-of-arrays storage (owns Taichi fields)
    intersection: nearest_hit / is_occluded queries (owns Taichi fields)

Only the host-side modules are imported here; import ``buffers`` and
``intersection`` after the Taichi runtime is initialized.
"""

from .lights import DirectionalLight, Light, LightKind, PointLight
from .scene import Scene, SceneBuilder, validate_scene

__all__ = [
    "Light",
    "LightKind",
    "PointLight",
    "DirectionalLight",
    "Scene",
    "SceneBuilder",
    "validate_scene",
]
