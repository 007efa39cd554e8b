import pytest

from habstation.bitmap import (
    BG_COLOR,
    CENTER_LINE_COLOR,
    clear_bitmap,
    histogram_to_bitmap,
    horizontal_line,
    simple_downsample,
    vector_to_bitmap,
    vertical_line,
)


def _rgb(bitmap, width, x, y):
    offset = 3 * (y * width + x)
    return tuple(bitmap[offset : offset + 3])


def test_clear_bitmap_fills_background():
    bitmap = clear_bitmap(4, 3, 3)
    assert len(bitmap) == 4 * 3 * 3
    assert set(bitmap) == {45}


def test_downsample_by_two():
    assert simple_downsample([1.0, 3.0, 5.0, 7.0], 2) == [2.0, 6.0]


def test_downsample_by_three_averages_blocks():
    assert simple_downsample([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0], 3) == [2.0, 5.0]


def test_downsample_small_factor_and_empty():
    values = [1.0, 2.0]
    assert simple_downsample(values, 1) == values
    assert simple_downsample([], 4) == []


def test_downsample_preserves_mean_of_full_blocks():
    values = [float(v) for v in range(12)]
    reduced = simple_downsample(values, 4)
    assert len(reduced) == 3
    assert sum(reduced) / len(reduced) == sum(values) / len(values)


def test_histogram_grayscale_extremes_and_center_line():
    width, height = 8, 4
    bitmap = clear_bitmap(width, height)
    histogram_to_bitmap(bitmap, width, height, [0.0, 1.0], 0.0, 0.0, 0.0, 1.0, False)
    # lowest value: only the bottom pixel is drawn, and it is dark
    assert bitmap[(height - 1) * width] == 0
    assert all(bitmap[y * width] == BG_COLOR for y in range(height - 1))
    # highest value reaches the top with full brightness
    assert bitmap[width - 1] == 255
    assert all(bitmap[y * width + width // 2] == CENTER_LINE_COLOR for y in range(height))


def test_histogram_rgb_colours_by_side():
    width, height = 6, 5
    bitmap = clear_bitmap(width, height, 3)
    histogram_to_bitmap(bitmap, width, height, [1.0] * 6, 0.0, 1.0, 0.0, 1.0, True)
    left = _rgb(bitmap, width, 0, 0)
    right = _rgb(bitmap, width, width - 1, 0)
    assert left[0] == 0 and left[2] > 0
    assert right[0] > 0 and right[1] == 0 and right[2] == 0
    assert _rgb(bitmap, width, width // 2, 2) == (110, 110, 110)


def test_vector_to_bitmap_marks_one_dot_per_column():
    width, height = 2, 10
    bitmap = clear_bitmap(width, height, 3)
    vector_to_bitmap(bitmap, [1.0, -1.0], width, height)
    red_rows = [y for y in range(height) if _rgb(bitmap, width, 0, y) == (255, 0, 0)]
    blue_rows = [y for y in range(height) if _rgb(bitmap, width, 1, y) == (0, 150, 255)]
    assert len(red_rows) == 1
    assert len(blue_rows) == 1
    assert red_rows[0] < height // 2 < blue_rows[0]


def test_vector_to_bitmap_zero_signal_draws_bottom_row():
    width, height = 3, 4
    bitmap = clear_bitmap(width, height, 3)
    vector_to_bitmap(bitmap, [0.0, 0.0, 0.0], width, height)
    assert all(_rgb(bitmap, width, x, height - 1) == (0, 150, 255) for x in range(width))


def test_horizontal_line_default_colour():
    width, height = 4, 3
    bitmap = clear_bitmap(width, height, 3)
    horizontal_line(bitmap, width, 1, True)
    assert all(_rgb(bitmap, width, x, 1) == (0, 200, 250) for x in range(width))
    assert all(_rgb(bitmap, width, x, 0) == (45, 45, 45) for x in range(width))


def test_vertical_line_grayscale_uses_mean():
    width, height = 4, 3
    bitmap = clear_bitmap(width, height)
    vertical_line(bitmap, width, height, 2, False, 90, 90, 90)
    assert all(bitmap[y * width + 2] == 90 for y in range(height))
    assert all(bitmap[y * width + 1] == BG_COLOR for y in range(height))


def test_lines_outside_bitmap_are_rejected():
    bitmap = clear_bitmap(4, 3, 3)
    with pytest.raises(ValueError):
        horizontal_line(bitmap, 4, 3, True)
    with pytest.raises(ValueError):
        vertical_line(bitmap, 4, 3, 4, True)