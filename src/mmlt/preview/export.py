"""Image export for rendered films.

Supported formats:
    - PNG: 8-bit, tone mapped and gamma encoded, written with Pillow
    - PFM: 32-bit float portable float map holding the linear values

The writer is picked from the file extension by save_image().

Example:
    >>> from src.mmlt.preview.export import save_image
    >>> save_image(film, "render.pfm")
    >>> save_image(film, "render.png", tone_map="reinhard")
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.mmlt.config import get_logger
from src.mmlt.preview.display import ImageSource, ToneMapMethod, linear_image, process_image_for_display

logger = get_logger("preview")

PathLike = Union[str, Path]


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit display values.

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.round(processed * 255.0).astype(np.uint8)


def save_png(
    source: ImageSource,
    filepath: PathLike,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> None:
    """Save a film or linear image as an 8-bit PNG.

    Args:
        source: A Film or a linear (H, W, 3) array.
        filepath: Output path.
        tone_map: Tone mapping method.
        gamma: Gamma encoding value.
        exposure: Exposure for "exposure" tone mapping.
    """
    image_uint8 = image_to_uint8(
        linear_image(source), tone_map=tone_map, gamma=gamma, exposure=exposure
    )
    PILImage.fromarray(image_uint8).save(filepath)
    logger.info("Wrote %s", filepath)


def save_pfm(source: ImageSource, filepath: PathLike) -> None:
    """Save a film or linear image as a color portable float map.

    The header is "PF", the dimensions and a negative scale marking
    little-endian data; rows are stored bottom to top.
    """
    image = linear_image(source)
    height, width = image.shape[:2]
    data = np.ascontiguousarray(np.flipud(image), dtype="<f4")
    with open(filepath, "wb") as f:
        f.write(f"PF\n{width} {height}\n-1.0\n".encode("ascii"))
        f.write(data.tobytes())
    logger.info("Wrote %s", filepath)


def load_pfm(filepath: PathLike) -> npt.NDArray[np.float32]:
    """Read a color portable float map into an (H, W, 3) array, top row first.

    Raises:
        ValueError: If the file is not a color PFM.
    """
    with open(filepath, "rb") as f:
        magic = f.readline().strip()
        if magic != b"PF":
            raise ValueError(f"Not a color PFM file: {filepath}")
        width, height = (int(v) for v in f.readline().split())
        scale = float(f.readline().strip())
        dtype = "<f4" if scale < 0.0 else ">f4"
        data = np.frombuffer(f.read(), dtype=dtype)
    if data.size != width * height * 3:
        raise ValueError(f"Truncated PFM file: {filepath}")
    return np.flipud(data.reshape(height, width, 3)).astype(np.float32)


def save_image(
    source: ImageSource,
    filepath: PathLike,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> None:
    """Save as PFM when the path ends in .pfm, otherwise through Pillow."""
    if Path(filepath).suffix.lower() == ".pfm":
        save_pfm(source, filepath)
    else:
        save_png(source, filepath, tone_map=tone_map, gamma=gamma, exposure=exposure)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared error between two images.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")
    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
