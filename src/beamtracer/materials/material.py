"""Whitted/Phong surface material.

A Material bundles everything the shading model needs at a hit point:
base color, the ambient/diffuse/specular coefficients of the Phong model,
and the weights of the reflected and refracted secondary rays.

Materials are immutable and shared by reference. Many primitives may point
at the same Material; uploading a scene stores each distinct instance once.

Example:
    >>> from beamtracer.materials.material import Material
    >>> red = Material(color=(0.9, 0.1, 0.1), specular=0.3, shininess=64.0)
    >>> glass = Material(color=(1, 1, 1), diffuse=0.0, transparency=0.9,
    ...                  refractive_index=1.5)
"""

import math
from dataclasses import dataclass

from beamtracer.core.vector import Vector3


@dataclass(frozen=True, eq=False)
class Material:
    """Surface response parameters for the Whitted shading model.

    Attributes:
        color: Base RGB color (linear).
        ambient: Weight of the light-independent ambient term.
        diffuse: Weight of the Lambertian term.
        specular: Weight of the Phong highlight.
        shininess: Phong exponent; larger means a tighter highlight.
        reflectivity: Weight of the mirror-reflected ray.
        transparency: Weight of the refracted ray.
        refractive_index: Index of refraction of the material interior.

    Raises:
        ValueError: If a coefficient is negative or not finite, or the
            refractive index is not positive.
    """

    color: Vector3 = Vector3(1.0, 1.0, 1.0)
    ambient: float = 0.1
    diffuse: float = 0.9
    specular: float = 0.0
    shininess: float = 32.0
    reflectivity: float = 0.0
    transparency: float = 0.0
    refractive_index: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "color", Vector3.of(self.color))
        for name in (
            "ambient",
            "diffuse",
            "specular",
            "shininess",
            "reflectivity",
            "transparency",
        ):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"Material {name} must be finite and >= 0, got {value}")
            object.__setattr__(self, name, value)
        ior = float(self.refractive_index)
        if not math.isfinite(ior) or ior <= 0.0:
            raise ValueError(f"Material refractive_index must be > 0, got {ior}")
        object.__setattr__(self, "refractive_index", ior)

    @property
    def is_reflective(self) -> bool:
        return self.reflectivity > 0.0

    @property
    def is_transparent(self) -> bool:
        return self.transparency > 0.0


# Used by primitives constructed without an explicit material
DEFAULT_MATERIAL = Material()
