from __future__ import annotations

import argparse
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from pathlib import Path
from time import perf_counter
from typing import Dict, List

import numpy as np
from loguru import logger
from pydantic import ValidationError
from PIL import Image

from config.constant import Constants, Path as PathConstants
from config.env import get_settings
from filter_core.box_mean.common.filesystem import ensure_directory, filtered_name, iter_image_files, write_report
from filter_core.box_mean.errors import InvalidInput, MeanFilterError
from filter_core.box_mean.grid import PixelGrid, WindowRadius
from filter_core.box_mean.processing.filters import FILTER_MODES, apply_filter
from filter_core.box_mean.processing.parallel import mean_filter_banded
from filter_core.box_mean.result import FilterResult
from utils.log_util import setup_logging, shutdown_logging

POOL_MODES = ("thread", "process")
REPORT_FILENAME = PathConstants.REPORT_FILENAME


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Box mean filter batch pipeline")
    parser.add_argument("--input", type=Path, default=Path("data"), help="Input image directory")
    parser.add_argument("--output", type=Path, default=Path("output"), help="Output directory")
    parser.add_argument("--radius", type=int, default=Constants.DEFAULT_RADIUS, help="Window radius r (window side 2r)")
    parser.add_argument(
        "--filter-mode",
        choices=FILTER_MODES,
        default=Constants.DEFAULT_FILTER_MODE,
        help="Filter backend: rolling sums, integral image or brute force.",
    )
    parser.add_argument("--profile", action="store_true", help="Print per-stage timing information")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of parallel workers (per-image). Use >1 to enable concurrency.",
    )
    parser.add_argument(
        "--pool",
        choices=POOL_MODES,
        default="thread",
        help="Executor kind when workers>1.",
    )
    parser.add_argument("--log-dir", type=Path, default=None, help="Directory for log files")
    parser.add_argument("--env", type=str, default="", help="运行环境")
    return parser.parse_args(argv)


def load_grayscale(image_path: Path) -> Image.Image:
    # covers missing, unreadable, undecodable and truncated files
    try:
        with Image.open(image_path) as image:
            return image.convert("L")
    except OSError as exc:
        raise InvalidInput(f"could not load image {image_path}: {exc}") from exc


def load_pixel_grid(image_path: Path) -> PixelGrid:
    """Decode an image file into a single-channel grid."""
    grayscale_image = load_grayscale(image_path)
    try:
        return PixelGrid.from_array(np.array(grayscale_image, dtype=np.uint8))
    finally:
        grayscale_image.close()


def save_pixel_grid(grid: PixelGrid, path: Path) -> None:
    ensure_directory(path.parent)
    Image.fromarray(grid.to_array()).save(path)


def interior_mean(grid: PixelGrid, radius: int) -> float:
    """Mean of the pixels inside the border band, 0.0 when there are none."""
    interior = grid.pixels[radius : grid.height - radius, radius : grid.width - radius]
    if interior.size == 0:
        return 0.0
    return float(interior.mean())


def run_filter(grid: PixelGrid, radius, filter_mode: str = "rolling", workers: int = 1) -> PixelGrid:
    if filter_mode == "rolling" and workers > 1:
        return mean_filter_banded(grid, radius, workers=workers)
    return apply_filter(grid, radius, filter_mode)


def process_single_image(
    image_path: Path,
    output_dir: Path | None,
    radius: int,
    save_output: bool = True,
    collect_timings: bool = False,
    filter_mode: str = "rolling",
    keep_output: bool = False,
) -> FilterResult:
    start_time = perf_counter()
    timings: Dict[str, float] = {}

    t0 = perf_counter()
    grid = load_pixel_grid(image_path)
    timings["load"] = perf_counter() - t0

    t0 = perf_counter()
    window = WindowRadius.for_grid(radius, grid)
    filtered = run_filter(grid, window, filter_mode)
    timings["filter"] = perf_counter() - t0

    output_path = None
    if save_output:
        if output_dir is None:
            raise ValueError("save_output=True requires output_dir to be provided.")
        t0 = perf_counter()
        output_path = output_dir / filtered_name(image_path, window.value)
        save_pixel_grid(filtered, output_path)
        timings["save"] = perf_counter() - t0

    elapsed = perf_counter() - start_time
    return FilterResult(
        image_name=image_path.name,
        width=grid.width,
        height=grid.height,
        radius=window.value,
        filter_mode=filter_mode,
        processing_time=elapsed,
        timings=timings if collect_timings else None,
        output_path=output_path,
        output=filtered if keep_output else None,
        mean_input=float(grid.pixels.mean()),
        mean_output=interior_mean(filtered, window.value),
    )


def format_report_entry(result: FilterResult) -> str:
    lines = [
        f"Image: {result.image_name}",
        f"Size: {result.width}x{result.height}",
        f"Radius: {result.radius} (window {2 * result.radius}x{2 * result.radius})",
        f"Filter mode: {result.filter_mode}",
    ]
    if result.mean_input is not None:
        lines.append(f"Input mean: {result.mean_input:.2f}")
    if result.mean_output is not None:
        lines.append(f"Interior output mean: {result.mean_output:.2f}")
    if result.output_path is not None:
        lines.append(f"Output: {result.output_path}")
    lines.append(f"Processing time: {result.processing_time:.2f} s")
    if result.timings:
        for key, value in result.timings.items():
            lines.append(f"{key} time: {value:.2f} s")

    lines.append("-" * 40)
    return "\n".join(lines)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings(args.env or None)
    except ValidationError as exc:
        print(f"Err, invalid configuration: {exc}")
        return 1
    setup_logging(str(args.log_dir or settings.log_dir))
    try:
        return run_batch(args)
    finally:
        shutdown_logging()


def run_batch(args: argparse.Namespace) -> int:
    image_files = list(iter_image_files(args.input))
    ensure_directory(args.output)
    logger.info("filtering {} images from {} with r={} ({})", len(image_files), args.input, args.radius, args.filter_mode)

    def log_success(path: Path, result: FilterResult) -> None:
        print(
            f"[OK] {path.name}: {result.width}x{result.height}, r={result.radius}, "
            f"time {result.processing_time:.2f}s"
        )
        if args.profile and result.timings:
            detail = ", ".join(f"{key} {value:.2f}s" for key, value in result.timings.items())
            print(f"       stage timings: {detail}")

    def log_failure(path: Path, exc: Exception) -> None:
        print(f"[ERROR] {path.name}: {exc}")
        logger.error("{} failed: {}", path.name, exc)

    results_map: Dict[Path, FilterResult] = {}

    if args.workers <= 1:
        for image_path in image_files:
            try:
                result = process_single_image(
                    image_path,
                    args.output,
                    args.radius,
                    save_output=True,
                    collect_timings=args.profile,
                    filter_mode=args.filter_mode,
                )
                results_map[image_path] = result
                log_success(image_path, result)
            except (MeanFilterError, OSError) as exc:
                log_failure(image_path, exc)
    else:
        workers = min(max(1, args.workers), Constants.MAX_WORKERS)
        executor_cls = ThreadPoolExecutor if args.pool == "thread" else ProcessPoolExecutor
        with executor_cls(max_workers=workers) as executor:
            future_map = {
                executor.submit(
                    process_single_image,
                    image_path,
                    args.output,
                    args.radius,
                    save_output=True,
                    collect_timings=args.profile,
                    filter_mode=args.filter_mode,
                ): image_path
                for image_path in image_files
            }
            for future in as_completed(future_map):
                image_path = future_map[future]
                try:
                    result = future.result()
                except (MeanFilterError, OSError) as exc:
                    log_failure(image_path, exc)
                else:
                    results_map[image_path] = result
                    log_success(image_path, result)

    ordered_results = [results_map[path] for path in image_files if path in results_map]
    if ordered_results:
        report_entries = [format_report_entry(result) for result in ordered_results]
        report_path = args.output / REPORT_FILENAME
        write_report(report_path, report_entries)
        print(f"Report written to: {report_path}")
    return 0 if len(ordered_results) == len(image_files) else 1


if __name__ == "__main__":
    raise SystemExit(main())
