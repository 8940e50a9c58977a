from __future__ import annotations

from time import perf_counter
from typing import Iterator, List, Tuple

import numpy as np
from loguru import logger

from filter_core.box_mean.grid import (
    PixelGrid,
    SumGrid,
    WindowRadius,
    allocate_zeros,
    coerce_grid,
)
from filter_core.box_mean.processing.column_accumulator import ColumnAccumulator
from filter_core.box_mean.processing.row_sums import RowBand


def prepare(source, radius) -> Tuple[PixelGrid, WindowRadius]:
    """Validate the input grid and radius before anything is allocated."""
    grid = coerce_grid(source)
    window = WindowRadius.for_grid(radius, grid)
    return grid, window


def iter_window_sum_rows(
    grid: PixelGrid,
    window: WindowRadius,
    first: int = 0,
    stop: int | None = None,
) -> Iterator[List[int]]:
    """
    Yield the 2-D window sums of interior rows ``first .. stop - 1``.

    Interior row ``i`` covers source rows ``[i, i + d)``. The chain is seeded
    from source rows ``first .. first + d - 1`` and then rolled one row at a
    time, so each call owns its band and nothing outlives the iteration.
    """
    d = window.diameter
    rows, columns = window.interior_shape(grid.width, grid.height)
    stop = rows if stop is None else min(stop, rows)
    if first >= stop:
        return
    band = RowBand.seed(grid, d, first_row=first)
    sums = ColumnAccumulator.first_row(band, columns)
    yield sums
    for i in range(first + 1, stop):
        evicted = band.advance(grid.row_values(i + d - 1))
        sums = ColumnAccumulator.next_row(sums, band.newest, evicted, columns)
        yield sums


def window_sum_grid(source, radius) -> SumGrid:
    """Collect the rolling window sums of every interior pixel."""
    grid, window = prepare(source, radius)
    values = allocate_zeros(window.interior_shape(grid.width, grid.height), dtype=np.int64)
    for i, sums in enumerate(iter_window_sum_rows(grid, window)):
        values[i, :] = sums
    return SumGrid(values)


def fill_rows(out: np.ndarray, grid: PixelGrid, window: WindowRadius, first: int, stop: int) -> None:
    """Write interior rows ``first .. stop - 1`` of the mean into ``out``."""
    r = window.value
    d2 = window.area
    columns = window.interior_shape(grid.width, grid.height)[1]
    for i, sums in enumerate(iter_window_sum_rows(grid, window, first, stop), start=first):
        out[i + r, r : r + columns] = [s // d2 for s in sums]


def mean_filter(source, radius) -> PixelGrid:
    """
    Box mean of ``source`` over a ``2r x 2r`` window, in O(width * height).

    Returns a new grid of the same shape. The border band of width ``r`` is
    zero; interior pixel ``(row, col)`` is the truncated mean of source rows
    ``[row - r, row + r)`` and columns ``[col - r, col + r)``.

    Raises InvalidInput, InvalidRadius or AllocationFailure.
    """
    grid, window = prepare(source, radius)
    start = perf_counter()
    out = allocate_zeros(grid.shape)
    rows = window.interior_shape(grid.width, grid.height)[0]
    fill_rows(out, grid, window, 0, rows)
    logger.debug(
        "mean filter {}x{} r={} done in {:.4f}s",
        grid.width,
        grid.height,
        window.value,
        perf_counter() - start,
    )
    return PixelGrid.adopt(out)


class MeanFilter:
    """Callable mean filter bound to one radius."""

    def __init__(self, radius) -> None:
        self.radius = radius if isinstance(radius, WindowRadius) else WindowRadius(radius)

    def __call__(self, source) -> PixelGrid:
        return mean_filter(source, self.radius)

    def filter(self, source) -> PixelGrid:
        return mean_filter(source, self.radius)

    def __repr__(self) -> str:
        return f"MeanFilter(radius={self.radius.value})"
