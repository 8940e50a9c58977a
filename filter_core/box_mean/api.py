from __future__ import annotations

from pathlib import Path
from time import perf_counter
from typing import Iterable, List

from filter_core.box_mean.common.filesystem import iter_image_files
from filter_core.box_mean.grid import WindowRadius, coerce_grid
from filter_core.box_mean.pipeline import interior_mean, process_single_image, run_filter
from filter_core.box_mean.result import FilterResult


def filter_image_file(
    image_path: str | Path,
    radius: int,
    *,
    save_output: bool = False,
    output_dir: str | Path | None = None,
    profile: bool = False,
    filter_mode: str = "rolling",
    keep_output: bool = True,
) -> FilterResult:
    """Load a grayscale image, filter it and optionally write the result as PNG."""
    path = Path(image_path)
    out_dir = Path(output_dir) if output_dir is not None else None
    return process_single_image(
        path,
        output_dir=out_dir,
        radius=radius,
        save_output=save_output,
        collect_timings=profile,
        filter_mode=filter_mode,
        keep_output=keep_output,
    )


def filter_array(
    gray_array,
    radius: int,
    *,
    filter_mode: str = "rolling",
    workers: int = 1,
    profile: bool = False,
    name: str = "<array>",
) -> FilterResult:
    """Filter an in-memory 2D uint8 array or PixelGrid."""
    start_time = perf_counter()
    grid = coerce_grid(gray_array)
    window = WindowRadius.for_grid(radius, grid)
    output = run_filter(grid, window, filter_mode, workers=workers)
    elapsed = perf_counter() - start_time
    return FilterResult(
        image_name=name,
        width=grid.width,
        height=grid.height,
        radius=window.value,
        filter_mode=filter_mode,
        processing_time=elapsed,
        timings={"filter": elapsed} if profile else None,
        output=output,
        mean_input=float(grid.pixels.mean()),
        mean_output=interior_mean(output, window.value),
    )


def filter_directory(
    input_dir: str | Path,
    radius: int,
    *,
    save_output: bool = False,
    output_dir: str | Path | None = None,
    profile: bool = False,
    filter_mode: str = "rolling",
) -> List[FilterResult]:
    """Filter every image in a directory, one result per file."""
    input_path = Path(input_dir)
    files: Iterable[Path] = iter_image_files(input_path)
    results: List[FilterResult] = []
    for image_path in files:
        results.append(
            filter_image_file(
                image_path,
                radius,
                save_output=save_output,
                output_dir=output_dir,
                profile=profile,
                filter_mode=filter_mode,
                keep_output=False,
            )
        )
    return results
