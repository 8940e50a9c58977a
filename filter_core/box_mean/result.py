from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from filter_core.box_mean.grid import PixelGrid


@dataclass
class FilterResult:
    image_name: str
    width: int
    height: int
    radius: int
    filter_mode: str = "rolling"
    processing_time: float = 0.0
    timings: Dict[str, float] | None = None
    output_path: Path | None = None
    output: PixelGrid | None = None
    mean_input: float | None = None
    mean_output: float | None = None
