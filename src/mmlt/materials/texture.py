"""Textures supply the spectral parameters of materials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from src.mmlt.core.interaction import Geometry
from src.mmlt.core.spectrum import Spectrum


class Texture(Protocol):
    """Spatially varying spectrum."""

    def evaluate(self, geometry: Geometry) -> Spectrum: ...


@dataclass
class ConstantTexture:
    """A texture with the same value everywhere.

    Attributes:
        value: The RGB spectrum returned for every point.
    """

    value: Spectrum

    def __post_init__(self) -> None:
        self.value = np.asarray(self.value, dtype=np.float64)
        if self.value.shape != (3,):
            raise ValueError(f"Texture value must be an RGB triple, got {self.value.shape}")

    def evaluate(self, geometry: Geometry) -> Spectrum:
        return self.value
