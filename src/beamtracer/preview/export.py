"""Image export utilities.

Rendered images are written as 8-bit PNG files through Pillow, after the
tone mapping and encoding pipeline in :mod:`beamtracer.preview.tonemap`.

Example:
    >>> from beamtracer.core.renderer import render
    >>> from beamtracer.preview.export import save_png
    >>> image = render(scene, camera, 320, 240)
    >>> save_png(image, "output.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from beamtracer.core.image import Encoding, Image
from beamtracer.preview.tonemap import ToneMapMethod, prepare_for_output


def image_to_uint8(
    image: Image | npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    encoding: Encoding = "srgb",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit RGB.

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    pixels = image.pixels if isinstance(image, Image) else image
    processed = prepare_for_output(
        pixels, tone_map=tone_map, encoding=encoding, gamma=gamma, exposure=exposure
    )
    return np.round(processed * 255.0).astype(np.uint8)


def save_png(
    image: Image | npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    encoding: Encoding = "srgb",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> Path:
    """Save an image as an 8-bit RGB PNG.

    Args:
        image: A rendered Image or a linear array of shape (H, W, 3).
        filepath: Output path; parent directories are created.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        encoding: Transfer function ("srgb", "gamma" or "linear").
        gamma: Exponent for the "gamma" encoding.
        exposure: Exposure for the "exposure" tone map.

    Returns:
        The path written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = image_to_uint8(
        image, tone_map=tone_map, encoding=encoding, gamma=gamma, exposure=exposure
    )
    PILImage.fromarray(data).save(path)
    return path


def load_png(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Read an 8-bit PNG back as an (H, W, 3) array."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared error between two images of the same shape.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")
    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
