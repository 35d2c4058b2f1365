"""Camera module for path endpoints on the sensor side.

Components:
    pinhole: Pinhole camera with normalized importance, sampling densities
        and ray-through-pinhole resolution for light subpath connections

Camera conventions:
    - Look-at positioning (origin, look_at, vup)
    - Vertical field of view in degrees
    - Raster coordinates with (0, 0) at the top-left of the image
"""

from .pinhole import PINHOLE_TOLERANCE, PinholeCamera

__all__ = [
    "PinholeCamera",
    "PINHOLE_TOLERANCE",
]
