"""Device-side scene storage.

The immutable :class:`~beamtracer.scene.scene.Scene` is compiled into
structure-of-arrays Taichi fields before rendering. Fields are preallocated
to fixed capacities so kernels never need recompiling when the scene changes.

Primitive table layout (one row per primitive, in scene order):

    kind     a           b        c        scalar
    SPHERE   center      -        -        radius
    PLANE    unit normal -        -        offset d
    QUAD     corner      edge u   edge v   -

Degenerate primitives keep their row (so scene indices stay stable) but are
flagged ``valid = 0`` and never intersect.

Materials are deduplicated by identity: N primitives sharing one Material
reference one material row.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from beamtracer.scene.buffers import upload_scene
    >>> layout = upload_scene(scene)
    >>> layout.primitive_count
    3
"""

import logging
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from beamtracer.config import MAX_LIGHTS, MAX_MATERIALS, MAX_PRIMITIVES
from beamtracer.geometry import Plane, PrimitiveKind, Quad, Sphere
from beamtracer.scene.lights import DirectionalLight, LightKind, PointLight
from beamtracer.scene.scene import Scene

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Taichi Fields
# =============================================================================

# Primitives
_num_primitives = ti.field(dtype=ti.i32, shape=())
_prim_kind = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
_prim_valid = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
_prim_material = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
_prim_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
_prim_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
_prim_c = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
_prim_scalar = ti.field(dtype=ti.f32, shape=MAX_PRIMITIVES)

# Materials: color, (ambient, diffuse, specular, shininess),
# (reflectivity, transparency, refractive_index)
_num_materials = ti.field(dtype=ti.i32, shape=())
_mat_color = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
_mat_phong = ti.Vector.field(4, dtype=ti.f32, shape=MAX_MATERIALS)
_mat_secondary = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)

# Lights: vector is the position for point lights and the unit direction
# toward the light for directional lights
_num_lights = ti.field(dtype=ti.i32, shape=())
_light_kind = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
_light_vector = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_light_radiance = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)

_background = ti.Vector.field(3, dtype=ti.f32, shape=())


@dataclass(frozen=True)
class SceneLayout:
    """Summary of an uploaded scene.

    Attributes:
        primitive_count: Rows written to the primitive table.
        material_count: Distinct materials uploaded.
        light_count: Rows written to the light table.
        material_ids: Material row of each primitive, in scene order.
        degenerate: Scene indices of primitives flagged as never-hit.
    """

    primitive_count: int
    material_count: int
    light_count: int
    material_ids: tuple[int, ...]
    degenerate: tuple[int, ...]


def clear_scene() -> None:
    """Reset the scene to empty (no primitives, materials or lights)."""
    _num_primitives[None] = 0
    _num_materials[None] = 0
    _num_lights[None] = 0
    _background[None] = [0.0, 0.0, 0.0]


def _check_capacity(what: str, count: int, capacity: int) -> None:
    if count > capacity:
        raise ValueError(f"Scene has {count} {what}, exceeding maximum supported ({capacity})")


def upload_scene(scene: Scene) -> SceneLayout:
    """Copy an immutable scene into the device fields.

    Args:
        scene: The scene to upload.

    Returns:
        A SceneLayout describing what was written.

    Raises:
        ValueError: If the scene exceeds MAX_PRIMITIVES, MAX_MATERIALS or
            MAX_LIGHTS.
    """
    materials = scene.materials()
    _check_capacity("primitives", len(scene.primitives), MAX_PRIMITIVES)
    _check_capacity("materials", len(materials), MAX_MATERIALS)
    _check_capacity("lights", len(scene.lights), MAX_LIGHTS)

    # Materials
    material_index = {id(material): i for i, material in enumerate(materials)}
    mat_color = np.zeros((MAX_MATERIALS, 3), dtype=np.float32)
    mat_phong = np.zeros((MAX_MATERIALS, 4), dtype=np.float32)
    mat_secondary = np.zeros((MAX_MATERIALS, 3), dtype=np.float32)
    for i, material in enumerate(materials):
        mat_color[i] = material.color.as_tuple()
        mat_phong[i] = (material.ambient, material.diffuse, material.specular, material.shininess)
        mat_secondary[i] = (
            material.reflectivity,
            material.transparency,
            material.refractive_index,
        )

    # Primitives
    kinds = np.zeros(MAX_PRIMITIVES, dtype=np.int32)
    valid = np.zeros(MAX_PRIMITIVES, dtype=np.int32)
    mat_ids = np.zeros(MAX_PRIMITIVES, dtype=np.int32)
    a = np.zeros((MAX_PRIMITIVES, 3), dtype=np.float32)
    b = np.zeros((MAX_PRIMITIVES, 3), dtype=np.float32)
    c = np.zeros((MAX_PRIMITIVES, 3), dtype=np.float32)
    scalar = np.zeros(MAX_PRIMITIVES, dtype=np.float32)
    degenerate = []

    for i, primitive in enumerate(scene.primitives):
        kinds[i] = int(primitive.kind)
        mat_ids[i] = material_index[id(primitive.material)]
        if primitive.is_degenerate():
            degenerate.append(i)
            logger.warning(
                "Primitive #%d (%s) is degenerate and will never be hit",
                i,
                type(primitive).__name__,
            )
            continue

        valid[i] = 1
        if isinstance(primitive, Sphere):
            a[i] = primitive.center.as_tuple()
            scalar[i] = primitive.radius
        elif isinstance(primitive, Plane):
            a[i] = primitive.unit_normal.as_tuple()
            scalar[i] = primitive.offset
        elif isinstance(primitive, Quad):
            a[i] = primitive.corner.as_tuple()
            b[i] = primitive.edge_u.as_tuple()
            c[i] = primitive.edge_v.as_tuple()

    # Lights
    light_kinds = np.zeros(MAX_LIGHTS, dtype=np.int32)
    light_vectors = np.zeros((MAX_LIGHTS, 3), dtype=np.float32)
    light_radiance = np.zeros((MAX_LIGHTS, 3), dtype=np.float32)
    for i, light in enumerate(scene.lights):
        light_kinds[i] = int(light.kind)
        if isinstance(light, PointLight):
            light_vectors[i] = light.position.as_tuple()
        elif isinstance(light, DirectionalLight):
            light_vectors[i] = light.to_light.as_tuple()
        light_radiance[i] = light.radiance.as_tuple()

    _mat_color.from_numpy(mat_color)
    _mat_phong.from_numpy(mat_phong)
    _mat_secondary.from_numpy(mat_secondary)
    _num_materials[None] = len(materials)

    _prim_kind.from_numpy(kinds)
    _prim_valid.from_numpy(valid)
    _prim_material.from_numpy(mat_ids)
    _prim_a.from_numpy(a)
    _prim_b.from_numpy(b)
    _prim_c.from_numpy(c)
    _prim_scalar.from_numpy(scalar)
    _num_primitives[None] = len(scene.primitives)

    _light_kind.from_numpy(light_kinds)
    _light_vector.from_numpy(light_vectors)
    _light_radiance.from_numpy(light_radiance)
    _num_lights[None] = len(scene.lights)

    _background[None] = list(scene.background.as_tuple())

    layout = SceneLayout(
        primitive_count=len(scene.primitives),
        material_count=len(materials),
        light_count=len(scene.lights),
        material_ids=tuple(int(m) for m in mat_ids[: len(scene.primitives)]),
        degenerate=tuple(degenerate),
    )
    logger.debug(
        "Uploaded scene: %d primitives (%d degenerate), %d materials, %d lights",
        layout.primitive_count,
        len(layout.degenerate),
        layout.material_count,
        layout.light_count,
    )
    return layout


def get_primitive_count() -> int:
    return int(_num_primitives[None])


def get_material_count() -> int:
    return int(_num_materials[None])


def get_light_count() -> int:
    return int(_num_lights[None])


# =============================================================================
# Taichi Accessors
# =============================================================================


@ti.func
def primitive_count() -> ti.i32:
    return _num_primitives[None]


@ti.func
def light_count() -> ti.i32:
    return _num_lights[None]


@ti.func
def background_color() -> vec3:
    return _background[None]


@ti.func
def is_point_light(light_id: ti.i32) -> ti.i32:
    return _light_kind[light_id] == int(LightKind.POINT)


@ti.func
def light_vector(light_id: ti.i32) -> vec3:
    return _light_vector[light_id]


@ti.func
def light_radiance(light_id: ti.i32) -> vec3:
    return _light_radiance[light_id]


@ti.func
def material_color(material_id: ti.i32) -> vec3:
    return _mat_color[material_id]


@ti.func
def material_phong(material_id: ti.i32):
    """Return (ambient, diffuse, specular, shininess) for a material."""
    p = _mat_phong[material_id]
    return p[0], p[1], p[2], p[3]


@ti.func
def material_secondary(material_id: ti.i32):
    """Return (reflectivity, transparency, refractive_index) for a material."""
    s = _mat_secondary[material_id]
    return s[0], s[1], s[2]


@ti.func
def primitive_kind(index: ti.i32) -> ti.i32:
    return _prim_kind[index]


@ti.func
def primitive_valid(index: ti.i32) -> ti.i32:
    return _prim_valid[index]


@ti.func
def primitive_material(index: ti.i32) -> ti.i32:
    return _prim_material[index]


@ti.func
def primitive_vectors(index: ti.i32):
    return _prim_a[index], _prim_b[index], _prim_c[index]


@ti.func
def primitive_scalar(index: ti.i32) -> ti.f32:
    return _prim_scalar[index]
