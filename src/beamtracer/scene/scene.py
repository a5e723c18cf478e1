"""Immutable scene description and a builder for assembling one.

A :class:`Scene` is a plain value: an ordered tuple of primitives, a tuple of
lights and a background color. Primitive order matters, because ties in hit
distance resolve to the primitive that appears first.

:class:`SceneBuilder` is the mutable convenience layer used by demos and
tests. It hands out the finished, frozen Scene from ``build()``.

Example:
    >>> from beamtracer.scene.scene import SceneBuilder
    >>> from beamtracer.materials import matte
    >>> builder = SceneBuilder(background=(0.1, 0.1, 0.2))
    >>> red = matte((0.9, 0.1, 0.1))
    >>> builder.add_sphere((0, 0, -5), 1.0, red)
    >>> builder.add_point_light((5, 5, 0))
    >>> scene = builder.build()
"""

import logging
from dataclasses import dataclass

from beamtracer.core.vector import Vector3
from beamtracer.errors import DegenerateGeometryError
from beamtracer.geometry import Plane, Primitive, Quad, Sphere
from beamtracer.materials.material import DEFAULT_MATERIAL, Material
from beamtracer.scene.lights import DirectionalLight, Light, PointLight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scene:
    """A complete, immutable scene.

    Attributes:
        primitives: Geometry in scene order.
        lights: Light sources.
        background: Color returned by rays that hit nothing.
    """

    primitives: tuple[Primitive, ...] = ()
    lights: tuple[Light, ...] = ()
    background: Vector3 = Vector3(0.0, 0.0, 0.0)

    def __post_init__(self):
        object.__setattr__(self, "primitives", tuple(self.primitives))
        object.__setattr__(self, "lights", tuple(self.lights))
        object.__setattr__(self, "background", Vector3.of(self.background))
        for primitive in self.primitives:
            if not isinstance(primitive, (Sphere, Plane, Quad)):
                raise TypeError(f"Unsupported primitive type: {type(primitive).__name__}")
        for light in self.lights:
            if not isinstance(light, (PointLight, DirectionalLight)):
                raise TypeError(f"Unsupported light type: {type(light).__name__}")

    def materials(self) -> list[Material]:
        """Distinct materials in order of first use, compared by identity."""
        seen: dict[int, Material] = {}
        for primitive in self.primitives:
            seen.setdefault(id(primitive.material), primitive.material)
        return list(seen.values())

    def degenerate_indices(self) -> tuple[int, ...]:
        return tuple(i for i, p in enumerate(self.primitives) if p.is_degenerate())

    def __len__(self) -> int:
        return len(self.primitives)


def validate_scene(scene: Scene) -> None:
    """Reject scenes containing degenerate primitives.

    The renderer itself tolerates degenerate primitives (they never
    intersect); callers that load scenes can use this to fail early.

    Raises:
        DegenerateGeometryError: Listing every offending primitive.
    """
    bad = scene.degenerate_indices()
    if bad:
        descriptions = ", ".join(
            f"#{i} {type(scene.primitives[i]).__name__}" for i in bad
        )
        raise DegenerateGeometryError(f"Degenerate primitives: {descriptions}", bad)


class SceneBuilder:
    """Mutable helper that accumulates primitives and lights.

    Attributes:
        background: Background color for the built scene.
    """

    def __init__(self, background=(0.0, 0.0, 0.0)):
        self.background = Vector3.of(background)
        self._primitives: list[Primitive] = []
        self._lights: list[Light] = []

    def add(self, primitive: Primitive) -> Primitive:
        self._primitives.append(primitive)
        return primitive

    def add_sphere(self, center, radius: float, material: Material = DEFAULT_MATERIAL) -> Sphere:
        return self.add(Sphere(center=center, radius=radius, material=material))

    def add_plane(self, point, normal, material: Material = DEFAULT_MATERIAL) -> Plane:
        return self.add(Plane(point=point, normal=normal, material=material))

    def add_quad(self, corner, edge_u, edge_v, material: Material = DEFAULT_MATERIAL) -> Quad:
        return self.add(Quad(corner=corner, edge_u=edge_u, edge_v=edge_v, material=material))

    def add_light(self, light: Light) -> Light:
        self._lights.append(light)
        return light

    def add_point_light(
        self, position, color=(1.0, 1.0, 1.0), intensity: float = 1.0
    ) -> PointLight:
        return self.add_light(PointLight(position=position, color=color, intensity=intensity))

    def add_directional_light(
        self, direction, color=(1.0, 1.0, 1.0), intensity: float = 1.0
    ) -> DirectionalLight:
        return self.add_light(
            DirectionalLight(direction=direction, color=color, intensity=intensity)
        )

    @property
    def primitive_count(self) -> int:
        return len(self._primitives)

    @property
    def light_count(self) -> int:
        return len(self._lights)

    def clear(self) -> None:
        self._primitives.clear()
        self._lights.clear()

    def build(self) -> Scene:
        scene = Scene(
            primitives=tuple(self._primitives),
            lights=tuple(self._lights),
            background=self.background,
        )
        logger.debug(
            "Built scene with %d primitives, %d lights, %d materials",
            len(scene.primitives),
            len(scene.lights),
            len(scene.materials()),
        )
        return scene

    def __repr__(self) -> str:
        return (
            f"SceneBuilder(primitives={len(self._primitives)}, "
            f"lights={len(self._lights)}, background={self.background.as_tuple()})"
        )
