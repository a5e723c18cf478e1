"""Ready-made scenes used by the demo script and the tests.

Each factory returns a ``(scene, camera)`` pair. Scenes are immutable, so
the same pair can be rendered any number of times.

Example:
    >>> from beamtracer.scene.presets import showcase_scene
    >>> scene, camera = showcase_scene()
    >>> len(scene.primitives), len(scene.lights)
    (3, 3)
"""

from beamtracer.camera.pinhole import Camera
from beamtracer.materials import glass, matte, mirror, plastic
from beamtracer.materials.material import Material
from beamtracer.scene.scene import Scene, SceneBuilder

# =============================================================================
# Showcase: two spheres on a floor under three colored suns
# =============================================================================


def showcase_scene(reflective: bool = True) -> tuple[Scene, Camera]:
    """Two spheres resting above a floor, lit by red, green and blue suns.

    The camera sits at the origin looking along +y with +z up. The floor
    is the plane z = -2.

    Args:
        reflective: Give the larger sphere a partial mirror finish.

    Returns:
        Tuple of (scene, camera).
    """
    builder = SceneBuilder(background=(0.0, 0.0, 0.0))

    white = Material(color=(1.0, 1.0, 1.0), ambient=0.05, diffuse=0.8, specular=0.4, shininess=48.0)
    large = (
        Material(
            color=(1.0, 1.0, 1.0),
            ambient=0.05,
            diffuse=0.5,
            specular=0.5,
            shininess=96.0,
            reflectivity=0.4,
        )
        if reflective
        else white
    )
    floor = matte((0.8, 0.8, 0.8), ambient=0.05)

    builder.add_sphere((-1.0, 5.0, 0.0), 1.5, large)
    builder.add_sphere((1.0, 5.0, 0.0), 1.0, white)
    builder.add_plane((0.0, 0.0, -2.0), (0.0, 0.0, 1.0), floor)

    builder.add_directional_light((1.0, 1.0, -1.0), color=(1.0, 0.0, 0.0))
    builder.add_directional_light((-1.0, 1.0, -1.0), color=(0.0, 1.0, 0.0))
    builder.add_directional_light((0.0, 1.0, 1.0), color=(0.0, 0.0, 1.0))

    camera = Camera(
        position=(0.0, 0.0, 0.0), look_at=(0.0, 1.0, 0.0), up=(0.0, 0.0, 1.0), vfov=60.0
    )
    return builder.build(), camera


# =============================================================================
# Small analytic scenes
# =============================================================================


def single_sphere_scene(
    color=(0.9, 0.2, 0.2), background=(0.0, 0.0, 0.0)
) -> tuple[Scene, Camera]:
    """One unit sphere at (0, 0, -5) lit by a point light above the camera.

    The camera is at the origin looking down -z with a 90 degree field of
    view, so the sphere's silhouette can be computed analytically.
    """
    builder = SceneBuilder(background=background)
    builder.add_sphere((0.0, 0.0, -5.0), 1.0, plastic(color, specular=0.3, shininess=32.0))
    builder.add_point_light((2.0, 4.0, 0.0))
    camera = Camera(position=(0.0, 0.0, 0.0), look_at=(0.0, 0.0, -1.0), vfov=90.0)
    return builder.build(), camera


def mirror_sphere_scene(wall_color=(1.0, 0.0, 0.0)) -> tuple[Scene, Camera]:
    """A perfect mirror sphere facing a self-lit wall behind the camera.

    The wall is the plane z = 2 and has only an ambient term, so every
    reflected ray that reaches it returns exactly ``wall_color``. The scene
    has no lights.
    """
    builder = SceneBuilder(background=(0.0, 0.0, 0.0))
    builder.add_sphere((0.0, 0.0, -5.0), 1.0, mirror())
    wall = Material(color=wall_color, ambient=1.0, diffuse=0.0)
    builder.add_plane((0.0, 0.0, 2.0), (0.0, 0.0, -1.0), wall)
    camera = Camera(position=(0.0, 0.0, 0.0), look_at=(0.0, 0.0, -1.0), vfov=90.0)
    return builder.build(), camera


def glass_scene() -> tuple[Scene, Camera]:
    """A glass sphere in front of a two-tone back wall, above a floor.

    Exercises refraction, total internal reflection inside the sphere and
    shadow rays that stop at the transparent surface.
    """
    builder = SceneBuilder(background=(0.05, 0.05, 0.1))

    builder.add_sphere((0.0, 0.0, -4.0), 1.0, glass(refractive_index=1.5))
    builder.add_quad((-4.0, -1.0, -8.0), (4.0, 0.0, 0.0), (0.0, 5.0, 0.0), matte((0.8, 0.3, 0.1)))
    builder.add_quad((0.0, -1.0, -8.0), (4.0, 0.0, 0.0), (0.0, 5.0, 0.0), matte((0.1, 0.3, 0.8)))
    builder.add_plane((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), matte((0.7, 0.7, 0.7)))

    builder.add_point_light((3.0, 5.0, 0.0), intensity=0.9)
    builder.add_directional_light((-0.3, -1.0, -0.2), intensity=0.3)

    camera = Camera(position=(0.0, 0.5, 1.0), look_at=(0.0, 0.0, -4.0), vfov=50.0)
    return builder.build(), camera


PRESETS = {
    "showcase": showcase_scene,
    "single_sphere": single_sphere_scene,
    "mirror_sphere": mirror_sphere_scene,
    "glass": glass_scene,
}
