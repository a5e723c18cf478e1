"""Tone mapping and output encoding for rendered images.

Renders are clamped to [0, 1] by default, so tone mapping only matters for
images rendered with ``clamp=False``, where bright reflections and stacked
lights can exceed 1.

Features:
    - Reinhard and exposure tone mapping operators
    - Exact sRGB encoding or a plain gamma curve
    - A single ``prepare_for_output`` pipeline used by the exporters
"""

from typing import Literal

import numpy as np
import numpy.typing as npt

from beamtracer.core.image import Encoding, linear_to_srgb

ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: L / (1 + L).

    Args:
        image: Linear HDR image array of shape (H, W, 3).

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32], exposure: float = 1.0
) -> npt.NDArray[np.float32]:
    """Apply exposure tone mapping: 1 - exp(-L * exposure)."""
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(image: npt.NDArray[np.float32], gamma: float = 2.2) -> npt.NDArray[np.float32]:
    """Encode linear values with a power curve, out = in^(1/gamma)."""
    if gamma == 1.0:
        return image
    # Negative inputs would produce NaN under a fractional power
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def prepare_for_output(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    encoding: Encoding = "srgb",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Full output pipeline: tone map, encode, clamp.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        encoding: "srgb", "gamma" or "linear".
        gamma: Exponent for the "gamma" encoding.
        exposure: Exposure for the "exposure" tone map.

    Returns:
        Encoded image in [0, 1], ready for quantization.

    Raises:
        ValueError: On an unknown tone map or encoding name.
    """
    result = np.asarray(image, dtype=np.float32).copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    if encoding == "srgb":
        result = linear_to_srgb(result)
    elif encoding == "gamma":
        result = apply_gamma(result, gamma)
    elif encoding != "linear":
        raise ValueError(f"Unknown encoding: {encoding}")

    return np.clip(result, 0.0, 1.0).astype(np.float32)
