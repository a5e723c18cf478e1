"""Rendered image buffer and render statistics.

An :class:`Image` wraps a row-major ``(height, width, 3)`` float32 NumPy
array of linear RGB values. Row 0 is the top of the image.

Example:
    >>> from beamtracer.core.image import Image
    >>> image = Image.blank(4, 2, background=(0.2, 0.4, 0.6))
    >>> image.get_pixel(3, 1)
    (0.2, 0.4, 0.6)
    >>> image.to_uint8("srgb").shape
    (2, 4, 3)
"""

from dataclasses import dataclass, field
from typing import Literal

import numpy as np
import numpy.typing as npt

Encoding = Literal["srgb", "gamma", "linear"]

# Break point of the piecewise sRGB transfer function
SRGB_LINEAR_THRESHOLD = 0.0031308


def linear_to_srgb(values: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Apply the sRGB transfer function to linear values in [0, 1].

    ``12.92 * c`` below 0.0031308, ``1.055 * c^(1/2.4) - 0.055`` above.
    """
    c = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    encoded = np.where(
        c < SRGB_LINEAR_THRESHOLD,
        12.92 * c,
        1.055 * np.power(c, 1.0 / 2.4) - 0.055,
    )
    return encoded.astype(np.float32)


@dataclass
class RenderStats:
    """Counters collected while rendering.

    Attributes:
        primary_rays: Camera rays traced (one per pixel).
        secondary_rays: Reflected and refracted rays traced.
        max_depth_reached: Deepest recursion level any ray reached.
        tiles: Row bands rendered.
        elapsed_seconds: Wall-clock render time.
    """

    primary_rays: int = 0
    secondary_rays: int = 0
    max_depth_reached: int = 0
    tiles: int = 0
    elapsed_seconds: float = 0.0

    @property
    def total_rays(self) -> int:
        return self.primary_rays + self.secondary_rays


@dataclass
class Image:
    """A 2D grid of linear RGB samples.

    Attributes:
        pixels: Array of shape (height, width, 3), dtype float32.
        stats: Statistics of the render that produced the image.
    """

    pixels: npt.NDArray[np.float32]
    stats: RenderStats = field(default_factory=RenderStats)

    def __post_init__(self):
        pixels = np.asarray(self.pixels, dtype=np.float32)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Image pixels must have shape (H, W, 3), got {pixels.shape}")
        self.pixels = pixels

    @classmethod
    def blank(cls, width: int, height: int, background=(0.0, 0.0, 0.0)) -> "Image":
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        pixels = np.empty((height, width, 3), dtype=np.float32)
        pixels[:] = np.asarray(tuple(background), dtype=np.float32)
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        return self.width, self.height

    def get_pixel(self, x: int, y: int) -> tuple[float, float, float]:
        """Color at column x, row y (row 0 at the top)."""
        r, g, b = self.pixels[y, x]
        return float(r), float(g), float(b)

    def to_numpy(self, copy: bool = True) -> npt.NDArray[np.float32]:
        return self.pixels.copy() if copy else self.pixels

    def min_max(self) -> tuple[float, float]:
        """Smallest and largest channel value across the whole image."""
        return float(self.pixels.min()), float(self.pixels.max())

    def clamped(self, low: float = 0.0, high: float = 1.0) -> "Image":
        return Image(np.clip(self.pixels, low, high), self.stats)

    def normalized(self) -> "Image":
        """Linearly map the minimum channel value to 0 and the maximum to 1.

        A constant image has no range to stretch and maps to all zeros.
        """
        low, high = self.min_max()
        if high - low <= 0.0:
            return Image(np.zeros_like(self.pixels), self.stats)
        return Image((self.pixels - low) / (high - low), self.stats)

    def to_uint8(self, encoding: Encoding = "srgb", gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Convert to 8-bit RGB.

        Args:
            encoding: "srgb" for the exact sRGB transfer function, "gamma"
                for a plain power curve, "linear" for no encoding.
            gamma: Exponent used by the "gamma" encoding.

        Returns:
            Array of shape (height, width, 3) with dtype uint8. Values are
            clamped to [0, 1] and rounded to the nearest level.
        """
        clipped = np.clip(self.pixels, 0.0, 1.0)
        if encoding == "srgb":
            encoded = linear_to_srgb(clipped)
        elif encoding == "gamma":
            encoded = np.power(clipped, 1.0 / gamma)
        elif encoding == "linear":
            encoded = clipped
        else:
            raise ValueError(f"Unknown encoding: {encoding}")
        return np.round(encoded * 255.0).astype(np.uint8)

    def __repr__(self) -> str:
        return f"Image(width={self.width}, height={self.height})"
