"""Ready-made materials for common surfaces."""

from beamtracer.core.vector import Vector3
from beamtracer.materials.material import Material

ColorLike = Vector3 | tuple[float, float, float]


def matte(color: ColorLike, ambient: float = 0.1) -> Material:
    """Purely diffuse surface."""
    return Material(color=color, ambient=ambient, diffuse=1.0 - ambient)


def plastic(color: ColorLike, specular: float = 0.5, shininess: float = 64.0) -> Material:
    """Diffuse base with a white Phong highlight."""
    return Material(color=color, ambient=0.1, diffuse=0.8, specular=specular, shininess=shininess)


def mirror(reflectivity: float = 1.0) -> Material:
    """Perfect mirror with no local shading."""
    return Material(
        color=(1.0, 1.0, 1.0),
        ambient=0.0,
        diffuse=0.0,
        specular=0.0,
        reflectivity=reflectivity,
    )


def glass(refractive_index: float = 1.5, transparency: float = 0.9) -> Material:
    """Clear dielectric with a small reflective component and sharp highlight."""
    return Material(
        color=(1.0, 1.0, 1.0),
        ambient=0.0,
        diffuse=0.0,
        specular=0.5,
        shininess=128.0,
        reflectivity=0.1,
        transparency=transparency,
        refractive_index=refractive_index,
    )
