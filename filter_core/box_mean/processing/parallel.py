from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

from loguru import logger

from filter_core.box_mean.grid import PixelGrid, allocate_zeros
from filter_core.box_mean.processing.mean_filter import fill_rows, prepare


def split_bands(rows: int, bands: int) -> List[Tuple[int, int]]:
    """Split ``rows`` interior rows into at most ``bands`` contiguous [start, stop) ranges."""
    if rows <= 0:
        return []
    bands = max(1, min(bands, rows))
    size = math.ceil(rows / bands)
    return [(start, min(start + size, rows)) for start in range(0, rows, size)]


def mean_filter_banded(source, radius, workers: int = 1, band_rows: int | None = None) -> PixelGrid:
    """
    Mean filter computed as independent row bands.

    Each band seeds its own rolling chain from its first ``d`` source rows and
    writes a disjoint slice of the output, so bands may run concurrently.
    """
    grid, window = prepare(source, radius)
    rows = window.interior_shape(grid.width, grid.height)[0]
    if band_rows is not None and band_rows > 0:
        n_bands = math.ceil(rows / band_rows) if rows else 0
    else:
        n_bands = max(1, workers)
    ranges = split_bands(rows, n_bands)
    out = allocate_zeros(grid.shape)
    logger.debug("banded mean filter: {} bands, {} workers", len(ranges), workers)
    if workers <= 1 or len(ranges) <= 1:
        for start, stop in ranges:
            fill_rows(out, grid, window, start, stop)
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(fill_rows, out, grid, window, start, stop) for start, stop in ranges]
            for future in futures:
                future.result()
    return PixelGrid.adopt(out)
