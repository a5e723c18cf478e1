"""Host-side vector and ray value types.

These immutable types describe scenes and cameras in plain Python before
anything is uploaded to Taichi fields. Kernel code uses ``taichi.math.vec3``
instead (see :mod:`beamtracer.core.ray`).

Example:
    >>> from beamtracer.core.vector import Ray, Vector3
    >>> v = Vector3(3.0, 0.0, 4.0)
    >>> v.length()
    5.0
    >>> ray = Ray(Vector3(0, 0, 0), Vector3(0, 0, -2))
    >>> ray.direction
    Vector3(x=0.0, y=0.0, z=-1.0)
"""

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from beamtracer.config import RAY_EPSILON, T_MAX
from beamtracer.errors import ZeroLengthVectorError

# Vectors shorter than this are treated as zero length
ZERO_LENGTH_TOLERANCE = 1e-12


@dataclass(frozen=True)
class Vector3:
    """An immutable 3-component vector of floats."""

    x: float
    y: float
    z: float

    def __post_init__(self):
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "z", float(self.z))

    @classmethod
    def of(cls, value: "Vector3 | Sequence[float]") -> "Vector3":
        """Coerce a Vector3 or any 3-sequence into a Vector3."""
        if isinstance(value, Vector3):
            return value
        if len(value) != 3:
            raise ValueError(f"Expected 3 components, got {len(value)}")
        return cls(value[0], value[1], value[2])

    @classmethod
    def zero(cls) -> "Vector3":
        return cls(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[index]

    def __len__(self) -> int:
        return 3

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def __mul__(self, other):
        if isinstance(other, Vector3):
            return Vector3(self.x * other.x, self.y * other.y, self.z * other.z)
        return Vector3(self.x * other, self.y * other, self.z * other)

    def __rmul__(self, other: float) -> "Vector3":
        return self.__mul__(other)

    def __truediv__(self, scalar: float) -> "Vector3":
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def is_zero(self) -> bool:
        return self.length_squared() < ZERO_LENGTH_TOLERANCE * ZERO_LENGTH_TOLERANCE

    def normalized(self, fallback: "Vector3 | None" = None) -> "Vector3":
        """Return the unit vector pointing the same way.

        Args:
            fallback: Returned unchanged when this vector has zero length.

        Raises:
            ZeroLengthVectorError: If the vector has zero length and no
                fallback was given.
        """
        length = self.length()
        if length < ZERO_LENGTH_TOLERANCE:
            if fallback is None:
                raise ZeroLengthVectorError(f"Cannot normalize zero-length vector {self!r}")
            return fallback
        return self / length

    def rotated(self, axis: "Vector3", angle_degrees: float) -> "Vector3":
        """Rotate about ``axis`` by ``angle_degrees`` (right-hand rule).

        Uses Rodrigues' rotation formula, equivalent to applying the unit
        quaternion for the same axis-angle pair.
        """
        k = Vector3.of(axis).normalized()
        theta = math.radians(angle_degrees)
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)
        return self * cos_t + k.cross(self) * sin_t + k * (k.dot(self) * (1.0 - cos_t))

    def is_close(self, other: "Vector3", tolerance: float = 1e-9) -> bool:
        return (
            abs(self.x - other.x) <= tolerance
            and abs(self.y - other.y) <= tolerance
            and abs(self.z - other.z) <= tolerance
        )

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Ray:
    """A half-line with a bounded parametric range.

    The direction is normalized on construction, so ``at(t)`` returns the
    point at distance ``t`` from the origin.

    Attributes:
        origin: Start point of the ray.
        direction: Unit direction of travel.
        t_min: Smallest accepted hit distance (strictly positive).
        t_max: Largest accepted hit distance.

    Raises:
        ZeroLengthVectorError: If the direction has zero length.
        ValueError: If the parametric range is empty or starts at or below 0.
    """

    origin: Vector3
    direction: Vector3
    t_min: float = RAY_EPSILON
    t_max: float = T_MAX

    def __post_init__(self):
        object.__setattr__(self, "origin", Vector3.of(self.origin))
        object.__setattr__(self, "direction", Vector3.of(self.direction).normalized())
        if not self.t_min > 0.0:
            raise ValueError(f"t_min must be positive, got {self.t_min}")
        if not self.t_min < self.t_max:
            raise ValueError(f"t_min ({self.t_min}) must be less than t_max ({self.t_max})")

    def at(self, t: float) -> Vector3:
        return self.origin + self.direction * t
