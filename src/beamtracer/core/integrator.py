"""Whitted-style recursive ray tracing integrator.

This module implements the shading model and the per-pixel tracing kernel:

    color = ambient * base
          + sum over unoccluded lights of
                diffuse  * max(0, N.L) * base * radiance
              + specular * max(0, R.V)^shininess * radiance
          + reflectivity * trace(reflected ray,  depth + 1)
          + transparency * trace(refracted ray, depth + 1)

Secondary rays are only spawned while ``depth < max_depth``; at the limit
they contribute nothing. Rays that leave the scene return the background
color. The sum is clamped to [0, 1] once per pixel, never at intermediate
recursion levels.

Taichi functions cannot recurse, so the ray tree is walked with an explicit
stack. Each pending ray carries its own origin, direction, accumulated
weight and depth. Depth-first order bounds the stack at ``max_depth + 1``
entries; every pixel owns a private stack slice in preallocated fields.

Key features:
    - Shadow rays from ``hit + eps * N`` (no self-shadowing)
    - Snell refraction with total internal reflection folded into reflection
    - Point lights (shadow ray stops at the light) and directional lights
    - Non-finite pixels replaced by black
    - Per-render ray and depth statistics

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from beamtracer.core.integrator import trace_ray
    >>> from beamtracer.scene.buffers import upload_scene
    >>> upload_scene(scene)
    >>> color, depth, rays = trace_ray((0, 0, 0), (0, 0, -1), max_depth=3)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from beamtracer.camera.rays import get_primary_ray
from beamtracer.config import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_TILE_ROWS,
    MAX_TRACE_DEPTH,
    RAY_EPSILON,
    T_MAX,
)
from beamtracer.core.ray import offset_origin, reflect, refract, safe_normalize
from beamtracer.scene.buffers import (
    background_color,
    is_point_light,
    light_count,
    light_radiance,
    light_vector,
    material_color,
    material_phong,
    material_secondary,
)
from beamtracer.scene.intersection import SceneHitRecord, is_occluded, nearest_hit

# Type alias for 3D vectors
vec3 = tm.vec3

# Depth-first traversal never holds more than max_depth + 1 pending rays
STACK_CAPACITY = MAX_TRACE_DEPTH + 1

# =============================================================================
# Render Target and Per-pixel Work Stacks
# =============================================================================

# Color buffer indexed [x, y] with y = 0 at the top row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Host copies of a finished band go through this smaller buffer
_band_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_TILE_ROWS))

# Stack slots are indexed [x, row within the current band, level]
_stack_origin = ti.Vector.field(
    3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_TILE_ROWS, STACK_CAPACITY)
)
_stack_direction = ti.Vector.field(
    3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_TILE_ROWS, STACK_CAPACITY)
)
_stack_weight = ti.field(dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_TILE_ROWS, STACK_CAPACITY))
_stack_depth = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_TILE_ROWS, STACK_CAPACITY))

# Statistics (secondary ray count and deepest level reached)
_stat_secondary_rays = ti.field(dtype=ti.i64, shape=())
_stat_max_depth = ti.field(dtype=ti.i32, shape=())


def reset_stats() -> None:
    _stat_secondary_rays[None] = 0
    _stat_max_depth[None] = 0


def get_stats() -> tuple[int, int]:
    """Return (secondary_rays, max_depth_reached) since the last reset."""
    return int(_stat_secondary_rays[None]), int(_stat_max_depth[None])


def clear_render_target() -> None:
    """Clear the color buffer to zero."""
    _color_buffer.fill(0.0)


# =============================================================================
# Shading Model
# =============================================================================


@ti.dataclass
class ShadeResult:
    """Local color at a hit plus the secondary rays it spawns.

    A weight of 0 means the corresponding ray is not spawned.

    Attributes:
        color: Ambient plus direct (diffuse and specular) lighting.
        reflect_weight: Weight of the mirror ray.
        reflect_origin: Origin of the mirror ray (offset above the surface).
        reflect_direction: Unit direction of the mirror ray.
        refract_weight: Weight of the transmitted ray.
        refract_origin: Origin of the transmitted ray.
        refract_direction: Unit direction of the transmitted ray.
        total_internal_reflection: 1 if refraction was impossible and the
            transmitted ray was replaced by a reflection.
    """

    color: vec3
    reflect_weight: ti.f32
    reflect_origin: vec3
    reflect_direction: vec3
    refract_weight: ti.f32
    refract_origin: vec3
    refract_direction: vec3
    total_internal_reflection: ti.i32


@ti.func
def direct_lighting(point: vec3, normal: vec3, incoming: vec3, material_id: ti.i32) -> vec3:
    """Ambient term plus the Lambert and Phong contributions of every visible light.

    Args:
        point: Surface point.
        normal: Unit normal facing the incoming ray.
        incoming: Unit direction of the ray that hit the surface.
        material_id: Material row of the surface.

    Returns:
        The unclamped local color.
    """
    base = material_color(material_id)
    ambient, diffuse, specular, shininess = material_phong(material_id)
    view = -incoming

    result = ambient * base

    li = 0
    n_lights = light_count()
    while li < n_lights:
        to_light = light_vector(li)
        distance = T_MAX
        visible_light = 1

        if is_point_light(li) == 1:
            offset = light_vector(li) - point
            distance = tm.length(offset)
            if distance <= RAY_EPSILON:
                # Light sits on the surface; no meaningful direction
                visible_light = 0
            to_light = safe_normalize(offset, normal)

        if visible_light == 1:
            n_dot_l = tm.dot(normal, to_light)
            if n_dot_l > 0.0:
                shadow_origin = offset_origin(point, normal, to_light)
                if is_occluded(shadow_origin, to_light, RAY_EPSILON, distance) == 0:
                    radiance = light_radiance(li)
                    result += diffuse * n_dot_l * base * radiance
                    if specular > 0.0:
                        mirrored = reflect(-to_light, normal)
                        r_dot_v = tm.dot(mirrored, view)
                        if r_dot_v > 0.0:
                            result += specular * (r_dot_v**shininess) * radiance
        li += 1

    return result


@ti.func
def shade(hit: SceneHitRecord, incoming: vec3, depth: ti.i32, max_depth: ti.i32) -> ShadeResult:
    """Shade a hit point and describe the secondary rays it spawns.

    The reflected ray starts at ``hit + eps * N``. The refracted ray uses
    ``eta = 1 / ior`` when entering (front face) and ``ior`` when leaving,
    and starts at ``hit - eps * N``. Under total internal reflection the
    refracted ray becomes a mirror ray from ``hit + eps * N`` with the
    transparency weight.

    Args:
        hit: Nearest-hit record (hit == 1).
        incoming: Unit direction of the ray that produced the hit.
        depth: Recursion depth of that ray.
        max_depth: Secondary rays are spawned only if depth < max_depth.

    Returns:
        A ShadeResult.
    """
    normal = hit.normal
    color = direct_lighting(hit.point, normal, incoming, hit.material_id)
    reflectivity, transparency, ior = material_secondary(hit.material_id)

    reflect_weight = 0.0
    reflect_origin = vec3(0.0, 0.0, 0.0)
    reflect_direction = vec3(0.0, 0.0, 0.0)
    refract_weight = 0.0
    refract_origin = vec3(0.0, 0.0, 0.0)
    refract_direction = vec3(0.0, 0.0, 0.0)
    tir = 0

    mirror_direction = safe_normalize(reflect(incoming, normal), normal)
    above = offset_origin(hit.point, normal, mirror_direction)

    if depth < max_depth:
        if reflectivity > 0.0:
            reflect_weight = reflectivity
            reflect_origin = above
            reflect_direction = mirror_direction

        if transparency > 0.0:
            eta = ior
            if hit.front_face == 1:
                eta = 1.0 / ior
            direction, refracted = refract(incoming, normal, eta)
            refract_weight = transparency
            if refracted == 1:
                refract_origin = offset_origin(hit.point, normal, direction)
                refract_direction = direction
            else:
                tir = 1
                refract_origin = above
                refract_direction = mirror_direction

    return ShadeResult(
        color=color,
        reflect_weight=reflect_weight,
        reflect_origin=reflect_origin,
        reflect_direction=reflect_direction,
        refract_weight=refract_weight,
        refract_origin=refract_origin,
        refract_direction=refract_direction,
        total_internal_reflection=tir,
    )


# =============================================================================
# Bounded Ray-tree Traversal
# =============================================================================


@ti.func
def _push(
    slot_i: ti.i32,
    slot_j: ti.i32,
    top: ti.i32,
    origin: vec3,
    direction: vec3,
    weight: ti.f32,
    depth: ti.i32,
):
    _stack_origin[slot_i, slot_j, top] = origin
    _stack_direction[slot_i, slot_j, top] = direction
    _stack_weight[slot_i, slot_j, top] = weight
    _stack_depth[slot_i, slot_j, top] = depth


@ti.func
def trace(origin: vec3, direction: vec3, max_depth: ti.i32, slot_i: ti.i32, slot_j: ti.i32):
    """Follow a primary ray and all of its secondary rays.

    Args:
        origin: Primary ray origin.
        direction: Primary ray unit direction.
        max_depth: Recursion limit.
        slot_i: First index of the caller's private stack slice.
        slot_j: Second index of the caller's private stack slice.

    Returns:
        Tuple ``(radiance, deepest, rays)``: the unclamped color, the deepest
        level any ray reached, and the number of rays traced.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    deepest = 0
    rays = 0

    _push(slot_i, slot_j, 0, origin, direction, 1.0, 0)
    top = 1

    while top > 0:
        top -= 1
        ray_origin = _stack_origin[slot_i, slot_j, top]
        ray_direction = _stack_direction[slot_i, slot_j, top]
        weight = _stack_weight[slot_i, slot_j, top]
        depth = _stack_depth[slot_i, slot_j, top]

        rays += 1
        deepest = ti.max(deepest, depth)

        hit = nearest_hit(ray_origin, ray_direction, RAY_EPSILON, T_MAX)
        if hit.hit == 0:
            radiance += weight * background_color()
        else:
            result = shade(hit, ray_direction, depth, max_depth)
            radiance += weight * result.color

            if result.refract_weight > 0.0 and top < STACK_CAPACITY:
                _push(
                    slot_i,
                    slot_j,
                    top,
                    result.refract_origin,
                    result.refract_direction,
                    weight * result.refract_weight,
                    depth + 1,
                )
                top += 1
            if result.reflect_weight > 0.0 and top < STACK_CAPACITY:
                _push(
                    slot_i,
                    slot_j,
                    top,
                    result.reflect_origin,
                    result.reflect_direction,
                    weight * result.reflect_weight,
                    depth + 1,
                )
                top += 1

    return radiance, deepest, rays


@ti.func
def _finalize(color: vec3, clamp: ti.i32) -> vec3:
    """Replace non-finite channels with 0 and optionally clamp to [0, 1]."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    if clamp == 1:
        result = tm.clamp(result, 0.0, 1.0)
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def render_band(
    row_start: ti.i32,
    row_stop: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    clamp: ti.i32,
    threads: ti.template(),
):
    """Render rows [row_start, row_stop) into the color buffer.

    Pixels are distributed over ``threads`` CPU workers. Each pixel writes
    only its own buffer cell and its own stack slice.

    Args:
        row_start: First row of the band (0 = top).
        row_stop: One past the last row; at most MAX_TILE_ROWS rows.
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Recursion limit.
        clamp: 1 to clamp each pixel to [0, 1].
        threads: Worker count (compile-time constant).
    """
    ti.loop_config(parallelize=threads)
    for i, j in ti.ndrange(width, (row_start, row_stop)):
        origin, direction = get_primary_ray(i, j, width, height)
        radiance, deepest, rays = trace(origin, direction, max_depth, i, j - row_start)

        _color_buffer[i, j] = _finalize(radiance, clamp)
        _stat_secondary_rays[None] += ti.cast(rays - 1, ti.i64)
        ti.atomic_max(_stat_max_depth[None], deepest)


_trace_result_depth = ti.field(dtype=ti.i32, shape=())
_trace_result_rays = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_single(origin: vec3, direction: vec3, max_depth: ti.i32, clamp: ti.i32) -> vec3:
    radiance, deepest, rays = trace(
        origin, safe_normalize(direction, vec3(0.0, 0.0, -1.0)), max_depth, 0, 0
    )
    _trace_result_depth[None] = deepest
    _trace_result_rays[None] = rays
    return _finalize(radiance, clamp)


def trace_ray(
    origin, direction, max_depth: int = 5, clamp: bool = True
) -> tuple[tuple[float, float, float], int, int]:
    """Trace one ray through the uploaded scene.

    Useful for tests and debugging; use the renderer for whole images.

    Args:
        origin: Ray origin (any 3-sequence).
        direction: Ray direction; normalized before tracing.
        max_depth: Recursion limit, in [0, MAX_TRACE_DEPTH].
        clamp: Clamp the result to [0, 1].

    Returns:
        Tuple ``((r, g, b), max_depth_reached, rays_traced)``.

    Raises:
        ValueError: If max_depth is out of range.
    """
    if not 0 <= max_depth <= MAX_TRACE_DEPTH:
        raise ValueError(f"max_depth must be in [0, {MAX_TRACE_DEPTH}], got {max_depth}")
    color = _trace_single(
        vec3(*[float(c) for c in origin]),
        vec3(*[float(c) for c in direction]),
        max_depth,
        int(clamp),
    )
    return (
        (float(color[0]), float(color[1]), float(color[2])),
        int(_trace_result_depth[None]),
        int(_trace_result_rays[None]),
    )


@ti.kernel
def _stage_rows(row_start: ti.i32, row_stop: ti.i32, width: ti.i32):
    for i, j in ti.ndrange(width, (row_start, row_stop)):
        _band_buffer[i, j - row_start] = _color_buffer[i, j]


def read_rows(width: int, row_start: int, row_stop: int) -> np.ndarray:
    """Copy rows [row_start, row_stop) of the color buffer.

    At most MAX_TILE_ROWS rows are copied per call.

    Returns:
        Array of shape (row_stop - row_start, width, 3), first row first.
    """
    _stage_rows(row_start, row_stop, width)
    staged = _band_buffer.to_numpy()[:width, : row_stop - row_start, :]
    return np.ascontiguousarray(np.transpose(staged, (1, 0, 2)), dtype=np.float32)
