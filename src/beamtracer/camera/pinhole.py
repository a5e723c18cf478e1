"""Pinhole camera model for perspective projection.

The camera builds an orthonormal basis (u, v, w) from look-at parameters:

- w: points from look_at toward position (opposite the view direction)
- u: points right in the image plane
- v: points up in the image plane

A virtual viewport sits at unit distance in front of the camera. Its height
is ``2 * tan(vfov / 2)`` and its width is ``aspect * height``, so non-square
images keep a fixed vertical field of view without distortion.

Pixels are sampled at their centers. Pixel (0, 0) is the top-left corner of
the image, matching the row-major layout of :class:`~beamtracer.core.image.Image`.

Example:
    >>> from beamtracer.camera.pinhole import Camera
    >>> camera = Camera(position=(0, 0, 0), look_at=(0, 0, -1), vfov=90.0)
    >>> ray = camera.generate_ray(50, 50, 100, 100)
    >>> ray.direction.z < 0
    True
"""

import math
from dataclasses import dataclass

from beamtracer.config import RAY_EPSILON, T_MAX
from beamtracer.core.vector import Ray, Vector3

# Default view direction when position and look_at coincide
_FALLBACK_FORWARD = Vector3(0.0, 0.0, -1.0)


@dataclass(frozen=True)
class CameraFrame:
    """Viewport geometry derived from a camera and an image size.

    Attributes:
        origin: Camera position.
        u: Unit right vector.
        v: Unit up vector.
        w: Unit backward vector.
        horizontal: Full viewport width along u.
        vertical: Full viewport height along v.
        lower_left: Lower-left corner of the viewport.
    """

    origin: Vector3
    u: Vector3
    v: Vector3
    w: Vector3
    horizontal: Vector3
    vertical: Vector3
    lower_left: Vector3

    def ray_through(self, s: float, t: float) -> Ray:
        """Ray through normalized viewport coordinates (s right, t up)."""
        target = self.lower_left + self.horizontal * s + self.vertical * t
        direction = (target - self.origin).normalized(fallback=-self.w)
        return Ray(self.origin, direction, RAY_EPSILON, T_MAX)


@dataclass(frozen=True)
class Camera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        position: Camera position in world space.
        look_at: Point the camera is looking at.
        up: Approximate up direction. If it is parallel to the view
            direction an alternate axis is used.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width over height of the viewport, or None to use
            the aspect ratio of the rendered image.

    Raises:
        ValueError: If vfov or aspect_ratio is out of range.
    """

    position: Vector3 = Vector3(0.0, 0.0, 0.0)
    look_at: Vector3 = Vector3(0.0, 0.0, -1.0)
    up: Vector3 = Vector3(0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float | None = None

    def __post_init__(self):
        object.__setattr__(self, "position", Vector3.of(self.position))
        object.__setattr__(self, "look_at", Vector3.of(self.look_at))
        object.__setattr__(self, "up", Vector3.of(self.up))
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio is not None and not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")

    @property
    def forward(self) -> Vector3:
        return (self.look_at - self.position).normalized(fallback=_FALLBACK_FORWARD)

    def basis(self) -> tuple[Vector3, Vector3, Vector3]:
        """Orthonormal (u, v, w) basis: right, up, backward."""
        w = -self.forward
        u = self.up.cross(w)
        if u.length() < 1e-6:
            # up is parallel to the view direction; pick the least aligned axis
            candidates = (Vector3(0.0, 1.0, 0.0), Vector3(0.0, 0.0, 1.0), Vector3(1.0, 0.0, 0.0))
            alternate = min(candidates, key=lambda axis: abs(axis.dot(w)))
            u = alternate.cross(w)
        u = u.normalized()
        v = w.cross(u)
        return u, v, w

    def frame(self, width: int, height: int) -> CameraFrame:
        """Viewport geometry for an image of the given size.

        Raises:
            ValueError: If width or height is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

        aspect = self.aspect_ratio if self.aspect_ratio is not None else width / height
        viewport_height = 2.0 * math.tan(math.radians(self.vfov) / 2.0)
        viewport_width = aspect * viewport_height

        u, v, w = self.basis()
        horizontal = u * viewport_width
        vertical = v * viewport_height
        lower_left = self.position - w - horizontal / 2.0 - vertical / 2.0

        return CameraFrame(
            origin=self.position,
            u=u,
            v=v,
            w=w,
            horizontal=horizontal,
            vertical=vertical,
            lower_left=lower_left,
        )

    def generate_ray(self, pixel_x: int, pixel_y: int, image_width: int, image_height: int) -> Ray:
        """Primary ray through the center of a pixel.

        Args:
            pixel_x: Column, 0 at the left edge.
            pixel_y: Row, 0 at the top edge.
            image_width: Image width in pixels.
            image_height: Image height in pixels.

        Returns:
            A normalized Ray starting at the camera position.
        """
        frame = self.frame(image_width, image_height)
        s = (pixel_x + 0.5) / image_width
        t = 1.0 - (pixel_y + 0.5) / image_height
        return frame.ray_through(s, t)

    def rotated(self, axis, angle_degrees: float) -> "Camera":
        """Camera turned about ``axis`` through its own position.

        The view direction and up vector are both rotated; position, FOV
        and aspect ratio are unchanged.
        """
        offset = (self.look_at - self.position).rotated(axis, angle_degrees)
        return Camera(
            position=self.position,
            look_at=self.position + offset,
            up=self.up.rotated(axis, angle_degrees),
            vfov=self.vfov,
            aspect_ratio=self.aspect_ratio,
        )
