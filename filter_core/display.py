from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np
from loguru import logger

from config.constant import Display
from filter_core.box_mean.grid import PixelGrid


def to_display_rgb(grid: PixelGrid) -> np.ndarray:
    """Replicate each gray sample across three colour channels."""
    return cv2.cvtColor(grid.to_array(), cv2.COLOR_GRAY2BGR)


def side_by_side_origins(
    original: PixelGrid,
    filtered: PixelGrid,
    screen_width: int = Display.SCREEN_WIDTH,
    screen_height: int = Display.SCREEN_HEIGHT,
) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """
    Top-left corners of the two images on the canvas.

    The original ends at the horizontal centre and the filtered image starts
    there, both centred vertically.
    """
    orig = (screen_width // 2 - original.width, screen_height // 2 - original.height // 2)
    mean = (screen_width // 2, screen_height // 2 - filtered.height // 2)
    return orig, mean


def blit(canvas: np.ndarray, image: np.ndarray, x: int, y: int) -> None:
    """Copy ``image`` onto ``canvas`` at (x, y), clipped to the canvas."""
    canvas_h, canvas_w = canvas.shape[:2]
    img_h, img_w = image.shape[:2]
    left, top = max(x, 0), max(y, 0)
    right, bottom = min(x + img_w, canvas_w), min(y + img_h, canvas_h)
    if right <= left or bottom <= top:
        return
    canvas[top:bottom, left:right] = image[top - y : bottom - y, left - x : right - x]


def compose_side_by_side(
    original: PixelGrid,
    filtered: PixelGrid,
    screen_width: int = Display.SCREEN_WIDTH,
    screen_height: int = Display.SCREEN_HEIGHT,
) -> np.ndarray:
    canvas = np.zeros((screen_height, screen_width, 3), dtype=np.uint8)
    (ox, oy), (mx, my) = side_by_side_origins(original, filtered, screen_width, screen_height)
    blit(canvas, to_display_rgb(original), ox, oy)
    blit(canvas, to_display_rgb(filtered), mx, my)
    return canvas


class DisplaySink:
    """OpenCV window presenting one canvas until it is closed."""

    def __init__(self, title: str = Display.WINDOW_TITLE, poll_ms: int = Display.POLL_INTERVAL_MS):
        self.title = title
        self.poll_ms = poll_ms

    def _window_closed(self) -> bool:
        try:
            return cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1
        except cv2.error:
            return True

    def show(self, canvas: np.ndarray) -> None:
        cv2.namedWindow(self.title, cv2.WINDOW_AUTOSIZE)
        h, w = canvas.shape[:2]
        logger.info("the screen is {}x{}", w, h)
        try:
            while True:
                cv2.imshow(self.title, canvas)
                key = cv2.waitKey(self.poll_ms) & 0xFF
                if key in Display.QUIT_KEYS or self._window_closed():
                    break
        finally:
            cv2.destroyWindow(self.title)
