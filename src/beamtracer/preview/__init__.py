"""Output utilities: tone mapping, encoding and PNG export.

Components:
    tonemap: Reinhard/exposure tone mapping, sRGB and gamma encoding
    export: PNG writing and reading via Pillow, image comparison
"""

from .export import compute_rmse, image_to_uint8, load_png, save_png
from .tonemap import (
    ToneMapMethod,
    apply_gamma,
    prepare_for_output,
    tone_map_exposure,
    tone_map_reinhard,
)

__all__ = [
    "ToneMapMethod",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "prepare_for_output",
    "save_png",
    "load_png",
    "image_to_uint8",
    "compute_rmse",
]
