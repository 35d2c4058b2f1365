"""Tone mapping and Matplotlib preview of rendered images.

Film values are linear radiance estimates with no upper bound. Before they
can be shown or written to an 8-bit file they go through a display pipeline:

1. Tone mapping (optional): "reinhard" or "exposure"
2. Gamma encoding (default 2.2)
3. Clamping to [0, 1]

Example:
    >>> from src.mmlt.preview.display import show_preview
    >>> film = integrator.integrate(scene, film)
    >>> show_preview(film, tone_map="reinhard")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Optional, Union

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.mmlt.core.film import Film


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]
TONE_MAP_METHODS: tuple[str, ...] = ("none", "reinhard", "exposure")

ImageSource = Union["Film", npt.NDArray[np.float32]]


def linear_image(source: ImageSource) -> npt.NDArray[np.float32]:
    """Return the linear (H, W, 3) image held by a film or an array."""
    if isinstance(source, np.ndarray):
        image = source
    else:
        image = source.to_numpy()
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    return image.astype(np.float32, copy=False)


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Compress HDR values with the global Reinhard operator c / (1 + c)."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply exposure tone mapping 1 - exp(-c * exposure).

    Args:
        image: Linear HDR image of shape (H, W, 3).
        exposure: Higher values brighten the image.

    Returns:
        Tone mapped image in [0, 1).
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode linear values in [0, 1] with 1 / gamma."""
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image
    # Negative values would produce NaN
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the full display pipeline on a linear image.

    Args:
        image: Linear HDR image of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        gamma: Gamma encoding value.
        exposure: Exposure for "exposure" tone mapping.

    Returns:
        Display-ready image in [0, 1].

    Raises:
        ValueError: If tone_map is unknown.
    """
    result = np.nan_to_num(image.astype(np.float32), nan=0.0, posinf=0.0, neginf=0.0)

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    source: ImageSource,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    title: Optional[str] = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a film or image as a Matplotlib figure.

    Args:
        source: A Film or a linear (H, W, 3) array.
        tone_map: Tone mapping method.
        gamma: Gamma encoding value.
        exposure: Exposure for "exposure" tone mapping.
        title: Custom title; defaults to the image size.
        figsize: Figure size in inches (width, height).
        block: Whether to block until the window is closed.
    """
    import matplotlib.pyplot as plt

    image = linear_image(source)
    display_image = process_image_for_display(
        image, tone_map=tone_map, gamma=gamma, exposure=exposure
    )

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        height, width = image.shape[:2]
        title = f"MMLT render - {width}x{height}"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
