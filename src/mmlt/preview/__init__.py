"""Preview module for image output and visualization.

Components:
    display: Tone mapping, gamma encoding and Matplotlib preview
    export: PNG and PFM writers, PFM reader, image comparison

Example:
    >>> from src.mmlt.preview import save_image, show_preview
    >>> save_image(film, "render.png", tone_map="reinhard")
    >>> show_preview(film)
"""

from src.mmlt.preview.display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    linear_image,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from src.mmlt.preview.export import (
    compute_rmse,
    image_to_uint8,
    load_pfm,
    save_image,
    save_pfm,
    save_png,
)

__all__ = [
    # Display functions
    "show_preview",
    "linear_image",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    # Export functions
    "save_png",
    "save_pfm",
    "save_image",
    "load_pfm",
    "image_to_uint8",
    "compute_rmse",
]
