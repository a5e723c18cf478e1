"""Light sources for direct illumination.

Two kinds of light are supported:

- PointLight: emits from a single position; shadow rays stop at the light.
- DirectionalLight: parallel rays travelling along a fixed direction, like
  sunlight; shadow rays are unbounded.

Lights carry no falloff. Their radiance is ``color * intensity``.
"""

from dataclasses import dataclass
from enum import IntEnum

from beamtracer.core.vector import Vector3


class LightKind(IntEnum):
    """Tag stored per light in the device-side light table."""

    POINT = 0
    DIRECTIONAL = 1


@dataclass(frozen=True)
class PointLight:
    """Omnidirectional light at a position.

    Attributes:
        position: World-space position.
        color: RGB color of the emitted light.
        intensity: Scalar multiplier applied to ``color``.
    """

    position: Vector3
    color: Vector3 = Vector3(1.0, 1.0, 1.0)
    intensity: float = 1.0

    kind = LightKind.POINT

    def __post_init__(self):
        object.__setattr__(self, "position", Vector3.of(self.position))
        object.__setattr__(self, "color", Vector3.of(self.color))
        if self.intensity < 0.0:
            raise ValueError(f"Light intensity must be >= 0, got {self.intensity}")

    @property
    def radiance(self) -> Vector3:
        return self.color * self.intensity


@dataclass(frozen=True)
class DirectionalLight:
    """Infinitely distant light emitting parallel rays.

    Attributes:
        direction: Direction the light travels in (from the light toward
            the scene). Normalized on construction.
        color: RGB color of the emitted light.
        intensity: Scalar multiplier applied to ``color``.

    Raises:
        ZeroLengthVectorError: If ``direction`` has zero length.
    """

    direction: Vector3
    color: Vector3 = Vector3(1.0, 1.0, 1.0)
    intensity: float = 1.0

    kind = LightKind.DIRECTIONAL

    def __post_init__(self):
        object.__setattr__(self, "direction", Vector3.of(self.direction).normalized())
        object.__setattr__(self, "color", Vector3.of(self.color))
        if self.intensity < 0.0:
            raise ValueError(f"Light intensity must be >= 0, got {self.intensity}")

    @property
    def radiance(self) -> Vector3:
        return self.color * self.intensity

    @property
    def to_light(self) -> Vector3:
        """Unit vector from any surface point toward the light."""
        return -self.direction


Light = PointLight | DirectionalLight
