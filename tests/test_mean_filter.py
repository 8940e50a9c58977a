import numpy as np
import pytest

from filter_core.box_mean.grid import PixelGrid, WindowRadius
from filter_core.box_mean.processing.filters import box_mean_brute, brute_window_sums
from filter_core.box_mean.processing.mean_filter import MeanFilter, mean_filter, window_sum_grid

SHAPES = [(6, 6), (7, 9), (12, 5), (16, 16), (5, 13)]


def random_gray(height, width, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width), dtype=np.uint8)


def radii_for(height, width):
    return range(1, min(height, width) // 2 + 1)


def test_concrete_six_by_six_scenario():
    source = np.arange(36, dtype=np.uint8).reshape(6, 6)
    out = mean_filter(source, 1).pixels
    assert out[1, 1] == (0 + 1 + 6 + 7) // 4 == 3
    assert not out[0, :].any()
    assert not out[5, :].any()
    assert not out[:, 0].any()
    assert not out[:, 5].any()
    # window of (row, col) starts at (row - 1, col - 1), so each mean is top-left + 3
    expected = np.array([[6 * (row - 1) + (col - 1) + 3 for col in range(1, 5)] for row in range(1, 5)])
    np.testing.assert_array_equal(out[1:5, 1:5], expected)


@pytest.mark.parametrize("height,width", SHAPES)
def test_border_band_is_zero(height, width):
    source = random_gray(height, width, seed=height * width)
    for r in radii_for(height, width):
        out = mean_filter(source, r).pixels
        assert not out[:r, :].any()
        assert not out[height - r :, :].any()
        assert not out[:, :r].any()
        assert not out[:, width - r :].any()


@pytest.mark.parametrize("value", [0, 1, 97, 255])
def test_constant_image_keeps_value(value):
    source = np.full((11, 14), value, dtype=np.uint8)
    for r in (1, 2, 3, 5):
        out = mean_filter(source, r).pixels
        interior = out[r : 11 - r, r : 14 - r]
        assert (interior == value).all()


@pytest.mark.parametrize("height,width", SHAPES)
def test_rolling_matches_brute_force(height, width):
    for seed in range(3):
        source = random_gray(height, width, seed=seed)
        for r in radii_for(height, width):
            assert mean_filter(source, r) == box_mean_brute(source, r)


def test_rolling_sums_match_direct_window_sums():
    source = random_gray(10, 12, seed=9)
    for r in (1, 2, 3):
        rolling = window_sum_grid(source, r)
        brute = brute_window_sums(source, r)
        np.testing.assert_array_equal(rolling.values, brute.values)
        assert rolling.at(0, 0) == int(source[: 2 * r, : 2 * r].astype(np.int64).sum())


def test_window_sum_grid_is_bounds_checked():
    sums = window_sum_grid(random_gray(6, 6), 1)
    assert (sums.rows, sums.columns) == (4, 4)
    with pytest.raises(IndexError):
        sums.at(4, 0)


def test_shape_preserved_and_input_not_aliased():
    source = random_gray(9, 13, seed=4)
    before = source.copy()
    grid = PixelGrid.from_array(source)
    out = mean_filter(grid, 2)
    assert (out.width, out.height) == (13, 9)
    assert out.channels == 1
    assert len(out.data) == out.width * out.height
    assert not np.shares_memory(out.pixels, grid.pixels)
    assert not np.shares_memory(out.pixels, source)
    np.testing.assert_array_equal(source, before)
    np.testing.assert_array_equal(grid.pixels, before)


def test_output_is_read_only():
    out = mean_filter(random_gray(6, 6), 1)
    with pytest.raises(ValueError):
        out.pixels[0, 0] = 1


def test_repeated_calls_are_bit_identical():
    source = random_gray(15, 11, seed=5)
    first = mean_filter(source, 3)
    second = mean_filter(source, 3)
    assert first == second
    assert first.pixels.tobytes() == second.pixels.tobytes()


def test_window_filling_whole_grid_leaves_only_border():
    source = random_gray(8, 6, seed=6)
    out = mean_filter(source, 3)
    assert not out.pixels.any()


def test_window_radius_instance_accepted():
    source = random_gray(8, 8, seed=7)
    assert mean_filter(source, WindowRadius(2)) == mean_filter(source, 2)


def test_mean_filter_callable():
    source = random_gray(10, 10, seed=8)
    box = MeanFilter(2)
    assert box(source) == mean_filter(source, 2)
    assert box.filter(source) == mean_filter(source, 2)
    assert repr(box) == "MeanFilter(radius=2)"


def test_large_radius_on_realistic_grid():
    source = random_gray(64, 48, seed=10)
    out = mean_filter(source, 12)
    d = 24
    expected = int(source[5 : 5 + d, 7 : 7 + d].astype(np.int64).sum()) // (d * d)
    assert out.at(5 + 12, 7 + 12) == expected
