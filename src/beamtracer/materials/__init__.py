"""Surface materials for the Whitted shading model.

Components:
    material: The immutable Material value type
    presets: Matte, plastic, mirror and glass constructors
"""

from .material import DEFAULT_MATERIAL, Material
from .presets import glass, matte, mirror, plastic

__all__ = [
    "Material",
    "DEFAULT_MATERIAL",
    "matte",
    "plastic",
    "mirror",
    "glass",
]
