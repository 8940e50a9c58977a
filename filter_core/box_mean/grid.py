from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from filter_core.box_mean.errors import AllocationFailure, InvalidInput, InvalidRadius

SAMPLE_MAX = 255


def _check_index(index: int, limit: int, axis: str) -> int:
    if not 0 <= index < limit:
        raise IndexError(f"{axis} index {index} out of range [0, {limit})")
    return index


def allocate_zeros(shape: Tuple[int, ...], dtype=np.uint8) -> np.ndarray:
    """Allocate a zeroed buffer, reporting exhaustion as AllocationFailure."""
    try:
        return np.zeros(shape, dtype=dtype)
    except MemoryError as exc:
        raise AllocationFailure(f"cannot allocate {dtype} buffer of shape {shape}") from exc


@dataclass(frozen=True, eq=False)
class PixelGrid:
    """
    Single-channel 8-bit image, row-major.

    The backing array is read-only; callers get copies through ``to_array``.
    """

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def channels(self) -> int:
        return 1

    @property
    def data(self) -> np.ndarray:
        """Flat row-major view of the samples, ``len(data) == width * height``."""
        return self.pixels.reshape(-1)

    @classmethod
    def from_array(cls, array) -> "PixelGrid":
        """Copy a 2-D array of 8-bit samples into a new grid."""
        if array is None:
            raise InvalidInput("source buffer is None")
        gray = np.asarray(array)
        if gray.ndim != 2:
            raise InvalidInput(f"expected a 2D single-channel array, got {gray.ndim}D")
        height, width = gray.shape
        if width <= 0 or height <= 0:
            raise InvalidInput(f"grid dimensions must be positive, got {width}x{height}")
        if gray.dtype != np.uint8:
            if gray.dtype == np.bool_ or not np.issubdtype(gray.dtype, np.integer):
                raise InvalidInput(f"expected 8-bit unsigned samples, got dtype {gray.dtype}")
            if int(gray.min()) < 0 or int(gray.max()) > SAMPLE_MAX:
                raise InvalidInput("samples must lie in 0..255")
        pixels = allocate_zeros((height, width))
        pixels[...] = gray
        return cls.adopt(pixels)

    @classmethod
    def from_flat(cls, data, width: int, height: int) -> "PixelGrid":
        """Build a grid from a flat row-major buffer with explicit dimensions."""
        if data is None:
            raise InvalidInput("source buffer is None")
        flat = np.asarray(data)
        if width <= 0 or height <= 0:
            raise InvalidInput(f"grid dimensions must be positive, got {width}x{height}")
        if flat.ndim != 1 or flat.size != width * height:
            raise InvalidInput(f"buffer of {flat.size} samples does not match {width}x{height}")
        return cls.from_array(flat.reshape(height, width))

    @classmethod
    def zeros(cls, width: int, height: int) -> "PixelGrid":
        if width <= 0 or height <= 0:
            raise InvalidInput(f"grid dimensions must be positive, got {width}x{height}")
        return cls.adopt(allocate_zeros((height, width)))

    @classmethod
    def adopt(cls, pixels: np.ndarray) -> "PixelGrid":
        # takes ownership, no copy
        pixels.setflags(write=False)
        return cls(pixels)

    def at(self, row: int, col: int) -> int:
        _check_index(row, self.height, "row")
        _check_index(col, self.width, "column")
        return int(self.pixels[row, col])

    def row(self, index: int) -> np.ndarray:
        _check_index(index, self.height, "row")
        return self.pixels[index]

    def row_values(self, index: int) -> list:
        """Row samples as Python ints, for the pure-Python rolling loops."""
        return self.row(index).tolist()

    def to_array(self) -> np.ndarray:
        return self.pixels.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.pixels, other.pixels))


@dataclass(frozen=True)
class WindowRadius:
    """Half extent of the box window; the window side is ``d = 2 * value``."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, np.integer)):
            raise InvalidRadius(self.value, reason=f"window radius must be an int, got {type(self.value).__name__}")
        if self.value <= 0:
            raise InvalidRadius(self.value, reason=f"window radius must be positive, got {self.value}")
        object.__setattr__(self, "value", int(self.value))

    @property
    def diameter(self) -> int:
        return 2 * self.value

    @property
    def area(self) -> int:
        return self.diameter * self.diameter

    @classmethod
    def for_grid(cls, radius, grid: PixelGrid) -> "WindowRadius":
        """Validate ``radius`` against the grid it will be applied to."""
        window = radius if isinstance(radius, WindowRadius) else cls(radius)
        window.check_fits(grid.width, grid.height)
        return window

    def check_fits(self, width: int, height: int) -> None:
        if self.diameter > width or self.diameter > height:
            raise InvalidRadius(self.value, width, height)

    def interior_shape(self, width: int, height: int) -> Tuple[int, int]:
        """(rows, columns) of output pixels that have a full window."""
        return height - self.diameter, width - self.diameter


@dataclass(frozen=True, eq=False)
class SumGrid:
    """Full 2-D window sums, cell (i, j) covers rows [i, i + d) and columns [j, j + d)."""

    values: np.ndarray

    @property
    def rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def columns(self) -> int:
        return int(self.values.shape[1])

    def at(self, row: int, col: int) -> int:
        _check_index(row, self.rows, "row")
        _check_index(col, self.columns, "column")
        return int(self.values[row, col])

    def to_means(self, area: int) -> np.ndarray:
        return (self.values // area).astype(np.uint8)


def coerce_grid(source) -> PixelGrid:
    """Accept a PixelGrid as is, otherwise copy an array-like into one."""
    if isinstance(source, PixelGrid):
        return source
    return PixelGrid.from_array(source)


def build_output(source: PixelGrid, window: WindowRadius, interior_means: np.ndarray) -> PixelGrid:
    """Zero canvas of the source shape with ``interior_means`` written inside the border band."""
    out = allocate_zeros(source.shape)
    r = window.value
    rows, cols = interior_means.shape
    out[r : r + rows, r : r + cols] = interior_means
    return PixelGrid.adopt(out)
