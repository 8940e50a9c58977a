from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence

SUPPORTED_EXTENSIONS: Sequence[str] = (".png", ".jpg", ".jpeg", ".bmp", ".tiff")


def is_image_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS


def iter_image_files(input_dir: Path, recursive: bool = False) -> List[Path]:
    """Sorted image files under ``input_dir``; raises when there are none."""
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory does not exist: {input_dir}")
    candidates = input_dir.rglob("*") if recursive else input_dir.iterdir()
    files = sorted(path for path in candidates if is_image_file(path))
    if not files:
        raise FileNotFoundError(f"No image files found inside: {input_dir}")
    return files


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def filtered_name(image_path: Path, radius: int) -> str:
    """``frame.jpg`` filtered with r=4 becomes ``frame_mean_r4.png``."""
    return f"{image_path.stem}_mean_r{radius}.png"


def write_report(report_path: Path, sections: Iterable[str]) -> None:
    ensure_directory(report_path.parent)
    report_path.write_text("\n".join(sections), encoding="utf-8")
