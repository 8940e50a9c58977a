from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

import cv2
from loguru import logger
from pydantic import ValidationError

from config.env import get_settings
from filter_core.box_mean.errors import MeanFilterError
from filter_core.box_mean.pipeline import load_pixel_grid, run_filter
from filter_core.box_mean.processing.filters import FILTER_MODES
from filter_core.display import DisplaySink, compose_side_by_side
from utils.log_util import setup_logging, shutdown_logging


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show an image next to its box mean")
    parser.add_argument("--image", type=Path, default=None, help="Grayscale source image")
    parser.add_argument("--radius", type=int, default=None, help="Window radius r")
    parser.add_argument("--filter-mode", choices=FILTER_MODES, default=None)
    parser.add_argument("--save", type=Path, default=None, help="Also write the composed canvas here")
    parser.add_argument("--no-window", action="store_true", help="Do not open a window")
    parser.add_argument("--env", type=str, default="", help="运行环境")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings(args.env or None)
    except ValidationError as exc:
        print(f"Err, invalid configuration: {exc}")
        return 1
    setup_logging(settings.log_dir)
    try:
        return show_filtered(args, settings)
    finally:
        shutdown_logging()


def show_filtered(args: argparse.Namespace, settings) -> int:
    image_path = args.image or Path(settings.image_path)
    radius = args.radius if args.radius is not None else settings.window_radius
    filter_mode = args.filter_mode or settings.filter_mode

    try:
        image = load_pixel_grid(image_path)
        filtered = run_filter(image, radius, filter_mode, workers=settings.workers)
    except MeanFilterError as exc:
        logger.error("Err, could not filter {}: {}", image_path, exc)
        print(f"Err, could not filter {image_path}: {exc}")
        return 1

    canvas = compose_side_by_side(image, filtered, settings.screen_width, settings.screen_height)
    if args.save is not None:
        args.save.parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(str(args.save), canvas)
        logger.info("canvas written to {}", args.save)
    if not args.no_window:
        DisplaySink(settings.window_title).show(canvas)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
