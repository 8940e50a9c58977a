from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from filter_core.box_mean.errors import UnknownFilterMode
from filter_core.box_mean.grid import PixelGrid, SumGrid, build_output
from filter_core.box_mean.processing.mean_filter import mean_filter, prepare

FILTER_MODES = ("rolling", "integral", "brute")


def integral_window_sums(source, radius) -> SumGrid:
    """Window sums from a zero-padded summed area table."""
    grid, window = prepare(source, radius)
    d = window.diameter
    rows, cols = window.interior_shape(grid.width, grid.height)
    integral = grid.pixels.cumsum(axis=0, dtype=np.int64).cumsum(axis=1, dtype=np.int64)
    integral = np.pad(integral, ((1, 0), (1, 0)), mode="constant")
    # windows start at every row/col in [0, rows) x [0, cols)
    top_left = integral[:rows, :cols]
    top_right = integral[:rows, d : d + cols]
    bottom_left = integral[d : d + rows, :cols]
    bottom_right = integral[d : d + rows, d : d + cols]
    return SumGrid(bottom_right - bottom_left - top_right + top_left)


def box_mean_integral(source, radius) -> PixelGrid:
    """Integral-image mean, bit-identical to the rolling filter."""
    grid, window = prepare(source, radius)
    sums = integral_window_sums(grid, window)
    return build_output(grid, window, sums.to_means(window.area))


def brute_window_sums(source, radius) -> SumGrid:
    """Sum every ``d x d`` window directly, O(W * H * d^2)."""
    grid, window = prepare(source, radius)
    d = window.diameter
    rows, cols = window.interior_shape(grid.width, grid.height)
    values = np.zeros((rows, cols), dtype=np.int64)
    for i in range(rows):
        for j in range(cols):
            total = 0
            for y in range(i, i + d):
                for x in range(j, j + d):
                    total += grid.at(y, x)
            values[i, j] = total
    return SumGrid(values)


def box_mean_brute(source, radius) -> PixelGrid:
    grid, window = prepare(source, radius)
    sums = brute_window_sums(grid, window)
    return build_output(grid, window, sums.to_means(window.area))


_FILTERS: Dict[str, Callable[..., PixelGrid]] = {
    "rolling": mean_filter,
    "integral": box_mean_integral,
    "brute": box_mean_brute,
}


def apply_filter(source, radius, filter_mode: str = "rolling") -> PixelGrid:
    try:
        fn = _FILTERS[filter_mode]
    except KeyError:
        raise UnknownFilterMode(f"unknown filter_mode {filter_mode!r}, expected one of {FILTER_MODES}") from None
    return fn(source, radius)
