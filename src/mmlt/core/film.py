"""Image accumulator for Metropolis deposits.

Every Metropolis iteration may add radiance to arbitrary pixels, so the
image is an explicit accumulator handle rather than ambient state. Deposits
are buffered on the host and splatted into a Taichi vector field by a
parallel kernel using atomic adds, which keeps the accumulation correct
regardless of the order chains deposit in.

The splat kernel drops any deposit containing NaN or Inf, clamps negative
channels to zero and optionally clamps bright deposits.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.mmlt.core.film import Film
    >>> film = Film(640, 480)
    >>> film.contribute(np.array([1.0, 0.5, 0.25]), (10, 20))
    >>> film.scale(0.5)
    >>> image = film.to_numpy()  # (480, 640, 3), row 0 at the top
"""

from typing import Optional

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.mmlt.core.spectrum import Spectrum

DEFAULT_BATCH_SIZE = 4096


@ti.data_oriented
class Film:
    """Atomic additive RGB accumulator.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        clamp: Optional per-channel upper bound applied to every deposit.
        pixels: Taichi field of accumulated RGB values, indexed (x, y).
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        clamp: Optional[float] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """Allocate the accumulator.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            clamp: Optional per-channel upper bound for single deposits.
            batch_size: Number of deposits buffered before a splat.

        Raises:
            ValueError: If any dimension or setting is invalid.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Film dimensions must be positive, got {width}x{height}")
        if clamp is not None and clamp <= 0.0:
            raise ValueError(f"Film clamp must be positive, got {clamp}")
        if batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")

        self.width = width
        self.height = height
        self.clamp = clamp
        self.pixels = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

        self._colors = np.zeros((batch_size, 3), dtype=np.float32)
        self._coordinates = np.zeros((batch_size, 2), dtype=np.int32)
        self._pending = 0
        self._deposit_count = 0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def deposit_count(self) -> int:
        """Number of deposits received since creation or the last clear()."""
        return self._deposit_count

    # =========================================================================
    # Kernels
    # =========================================================================

    @ti.kernel
    def _splat(
        self,
        colors: ti.types.ndarray(),
        coordinates: ti.types.ndarray(),
        count: ti.i32,
        clamp: ti.f32,
    ):
        for n in range(count):
            color = tm.vec3(colors[n, 0], colors[n, 1], colors[n, 2])
            valid = 1
            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    valid = 0
            if valid == 1:
                color = ti.max(color, 0.0)
                if clamp > 0.0:
                    color = ti.min(color, clamp)
                self.pixels[coordinates[n, 0], coordinates[n, 1]] += color

    @ti.kernel
    def _scale(self, factor: ti.f32):
        for i, j in self.pixels:
            self.pixels[i, j] *= factor

    # =========================================================================
    # Image sink
    # =========================================================================

    def contribute(self, spectrum: Spectrum, pixel: tuple[int, int]) -> None:
        """Add a value to a pixel.

        Args:
            spectrum: RGB value to add.
            pixel: Integer (x, y) coordinate, x to the right, y downward.

        Raises:
            ValueError: If the pixel lies outside the image.
        """
        x, y = pixel
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Pixel {pixel} outside {self.width}x{self.height} film")

        self._colors[self._pending] = spectrum
        self._coordinates[self._pending] = (x, y)
        self._pending += 1
        self._deposit_count += 1
        if self._pending == len(self._colors):
            self.flush()

    def flush(self) -> None:
        """Splat all buffered deposits into the field."""
        if self._pending == 0:
            return
        clamp = -1.0 if self.clamp is None else self.clamp
        self._splat(self._colors, self._coordinates, self._pending, clamp)
        self._pending = 0

    def scale(self, factor: float) -> None:
        """Multiply every accumulated value by factor."""
        self.flush()
        self._scale(factor)

    def clear(self) -> None:
        """Discard buffered deposits and zero the image."""
        self._pending = 0
        self._deposit_count = 0
        self.pixels.fill(0.0)

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Return the image as an array of shape (height, width, 3).

        Row 0 is the top of the image.
        """
        self.flush()
        return np.ascontiguousarray(self.pixels.to_numpy().transpose(1, 0, 2))
