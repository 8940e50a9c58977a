from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from filter_core.box_mean.api import filter_array, filter_directory, filter_image_file
from filter_core.box_mean.errors import InvalidInput, InvalidRadius
from filter_core.box_mean.pipeline import (
    REPORT_FILENAME,
    format_report_entry,
    load_pixel_grid,
    main,
    process_single_image,
)
from filter_core.box_mean.processing.mean_filter import mean_filter


def random_gray(height, width, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width), dtype=np.uint8)


@pytest.fixture
def image_dir(tmp_path):
    directory = tmp_path / "images"
    directory.mkdir()
    for idx, shape in enumerate([(20, 24), (16, 16)]):
        Image.fromarray(random_gray(*shape, seed=idx)).save(directory / f"frame_{idx}.png")
    (directory / "notes.txt").write_text("not an image", encoding="utf-8")
    return directory


def test_load_pixel_grid_converts_colour_to_gray(tmp_path):
    rgb = np.zeros((5, 7, 3), dtype=np.uint8)
    rgb[..., 0] = 255
    path = tmp_path / "red.png"
    Image.fromarray(rgb).save(path)
    grid = load_pixel_grid(path)
    assert (grid.width, grid.height) == (7, 5)
    assert grid.pixels.dtype == np.uint8


def test_missing_image_is_invalid_input(tmp_path):
    with pytest.raises(InvalidInput):
        load_pixel_grid(tmp_path / "missing.png")


def test_filter_array_result():
    source = random_gray(12, 10, seed=3)
    result = filter_array(source, 2, profile=True, name="frame")
    assert result.image_name == "frame"
    assert (result.width, result.height, result.radius) == (10, 12, 2)
    assert result.output == mean_filter(source, 2)
    assert result.timings is not None and "filter" in result.timings
    assert result.mean_input == pytest.approx(float(source.mean()))


def test_filter_array_with_workers_matches_serial():
    source = random_gray(30, 21, seed=4)
    assert filter_array(source, 3, workers=3).output == filter_array(source, 3).output


def test_filter_array_rejects_oversized_radius():
    with pytest.raises(InvalidRadius):
        filter_array(random_gray(6, 6), 4)


def test_filter_image_file_saves_png(image_dir, tmp_path):
    out_dir = tmp_path / "out"
    result = filter_image_file(image_dir / "frame_0.png", 3, save_output=True, output_dir=out_dir, profile=True)
    assert result.output_path == out_dir / "frame_0_mean_r3.png"
    saved = np.array(Image.open(result.output_path))
    expected = mean_filter(random_gray(20, 24, seed=0), 3)
    np.testing.assert_array_equal(saved, expected.pixels)
    assert result.output == expected
    assert set(result.timings) == {"load", "filter", "save"}


def test_save_requires_output_dir(image_dir):
    with pytest.raises(ValueError):
        process_single_image(image_dir / "frame_0.png", None, 2, save_output=True)


def test_filter_directory_skips_non_images(image_dir):
    results = filter_directory(image_dir, 2, filter_mode="integral")
    assert [result.image_name for result in results] == ["frame_0.png", "frame_1.png"]
    assert all(result.output is None for result in results)


def test_filter_directory_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        filter_directory(tmp_path / "nope", 1)


def test_report_entry_lists_radius_and_timings():
    result = filter_array(random_gray(8, 8), 1, profile=True, name="a.png")
    entry = format_report_entry(result)
    assert "Image: a.png" in entry
    assert "Radius: 1 (window 2x2)" in entry
    assert "filter time:" in entry


@pytest.mark.parametrize("workers", ["1", "2"])
def test_batch_main_writes_outputs_and_report(image_dir, tmp_path, workers):
    out_dir = tmp_path / "out"
    code = main(
        [
            "--input", str(image_dir),
            "--output", str(out_dir),
            "--radius", "2",
            "--workers", workers,
            "--log-dir", str(tmp_path / "logs"),
        ]
    )
    assert code == 0
    assert (out_dir / "frame_0_mean_r2.png").exists()
    assert (out_dir / "frame_1_mean_r2.png").exists()
    report = (out_dir / REPORT_FILENAME).read_text(encoding="utf-8")
    assert report.index("frame_0.png") < report.index("frame_1.png")


def test_batch_main_reports_failures(image_dir, tmp_path, capsys):
    out_dir = tmp_path / "out"
    code = main(
        [
            "--input", str(image_dir),
            "--output", str(out_dir),
            "--radius", "9",
            "--log-dir", str(tmp_path / "logs"),
        ]
    )
    # 16x16 cannot hold an 18x18 window, 20x24 can
    assert code == 1
    captured = capsys.readouterr().out
    assert "[ERROR] frame_1.png" in captured
    assert "[OK] frame_0.png" in captured
    assert Path(out_dir / REPORT_FILENAME).exists()


def test_iter_image_files_recursive(image_dir):
    from filter_core.box_mean.common.filesystem import iter_image_files

    nested = image_dir / "nested"
    nested.mkdir()
    Image.fromarray(random_gray(8, 8)).save(nested / "deep.bmp")
    assert [path.name for path in iter_image_files(image_dir)] == ["frame_0.png", "frame_1.png"]
    assert len(iter_image_files(image_dir, recursive=True)) == 3


def test_directory_is_invalid_input(tmp_path):
    with pytest.raises(InvalidInput):
        load_pixel_grid(tmp_path)


def test_truncated_image_is_invalid_input(tmp_path):
    whole = tmp_path / "whole.png"
    Image.fromarray(random_gray(64, 64, seed=12)).save(whole)
    data = whole.read_bytes()
    truncated = tmp_path / "truncated.png"
    truncated.write_bytes(data[: len(data) // 2])
    with pytest.raises(InvalidInput):
        load_pixel_grid(truncated)


def test_batch_main_process_pool_reports_failures(image_dir, tmp_path, capsys):
    out_dir = tmp_path / "out"
    code = main(
        [
            "--input", str(image_dir),
            "--output", str(out_dir),
            "--radius", "9",
            "--workers", "2",
            "--pool", "process",
            "--log-dir", str(tmp_path / "logs"),
        ]
    )
    assert code == 1
    captured = capsys.readouterr().out
    # the radius error is rebuilt in the parent with its message intact
    assert "[ERROR] frame_1.png: window radius 9 does not fit a 16x16 grid" in captured
    assert "[OK] frame_0.png" in captured
    assert (out_dir / "frame_0_mean_r9.png").exists()
