"""Drawing of spectrum and demodulation plots into raw pixel buffers."""

from __future__ import annotations

import math
from collections.abc import Sequence

BG_COLOR = 45
CENTER_LINE_COLOR = 110


def simple_downsample(values: Sequence[float], factor: int) -> list[float]:
    """Average consecutive blocks of ``factor`` values.

    Trailing values that do not fill a block are dropped. A factor below 2
    returns a copy.
    """
    factor = int(factor)
    if not values or factor < 2:
        return list(values)
    blocks = len(values) // factor
    return [sum(values[i * factor : (i + 1) * factor]) / factor for i in range(blocks)]


def clear_bitmap(width: int, height: int, channels: int = 1) -> bytearray:
    """Return a bitmap of ``width`` x ``height`` pixels filled with the background."""
    return bytearray([BG_COLOR]) * (width * height * channels)


def _put(bitmap: bytearray, offset: int, *channels: float) -> None:
    for index, value in enumerate(channels):
        bitmap[offset + index] = int(value) & 0xFF


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def histogram_to_bitmap(
    bitmap: bytearray,
    width: int,
    height: int,
    values: Sequence[float],
    min_value: float,
    max_value: float,
    offset: float = 0.0,
    scale: float = 1.0,
    is_rgb: bool = True,
) -> None:
    """Draw ``values`` as vertical bars, brightest near the bottom.

    When ``min_value`` equals ``max_value`` the range is taken from
    ``values``. A grey line marks the centre column.
    """
    if not values:
        return
    if min_value == max_value:
        min_value, max_value = min(values), max(values)
    total_scale = abs(max_value - min_value)

    for pix_x in range(width):
        position = pix_x / (width - 1) if width > 1 else 0.0
        i = _round_half_up(position * (len(values) - 1))
        level = (values[i] - min_value) / total_scale if total_scale else 0.0
        level = min(max(offset + scale * level, 0.0), 1.0)

        y_tip = height - 1 - int(level * (height - 1))
        for y in range(y_tip, height):
            brightness = min(max(10.0 * (1.0 - y / height) * level, 0.0), 1.0)
            pixel = y * width + pix_x
            if is_rgb:
                if pix_x > 0.5 * width:
                    _put(bitmap, pixel * 3, brightness * 255, 0, 0)
                else:
                    _put(bitmap, pixel * 3, 0, brightness * 155, brightness * 255)
            else:
                _put(bitmap, pixel, brightness * 255)

    center = width // 2
    for y in range(height):
        pixel = y * width + center
        if is_rgb:
            _put(bitmap, pixel * 3, CENTER_LINE_COLOR, CENTER_LINE_COLOR, CENTER_LINE_COLOR)
        else:
            _put(bitmap, pixel, CENTER_LINE_COLOR)


def vector_to_bitmap(bitmap: bytearray, samples: Sequence[float], width: int, height: int) -> None:
    """Plot ``samples`` as one RGB dot per column, scaled to three times their mean magnitude.

    Positive samples are drawn red, the others blue.
    """
    if not samples:
        return
    average = sum(abs(s) for s in samples) / len(samples)

    for x in range(width):
        sample = samples[int(x / width * len(samples))]
        relative = sample / (3 * average) if average else -1.0
        relative = 0.5 + 0.5 * min(max(relative, -1.0), 1.0)
        y = min(int((1.0 - relative) * height), height - 1)
        offset = 3 * (y * width + x)
        if sample > 0:
            _put(bitmap, offset, 255, 0, 0)
        else:
            _put(bitmap, offset, 0, 150, 255)


def horizontal_line(
    bitmap: bytearray, width: int, y: int, is_rgb: bool, r: int = 0, g: int = 200, b: int = 250
) -> None:
    """Draw row ``y`` in the given colour; greyscale bitmaps get the mean of it."""
    channels = 3 if is_rgb else 1
    if y < 0 or (y + 1) * width * channels > len(bitmap):
        raise ValueError(f"row {y} is outside the bitmap")
    for x in range(width):
        pixel = y * width + x
        if is_rgb:
            _put(bitmap, pixel * 3, r, g, b)
        else:
            _put(bitmap, pixel, (r + g + b) // 3)


def vertical_line(
    bitmap: bytearray,
    width: int,
    height: int,
    x: int,
    is_rgb: bool,
    r: int = 0,
    g: int = 200,
    b: int = 250,
) -> None:
    """Draw column ``x`` in the given colour; greyscale bitmaps get the mean of it."""
    if not 0 <= x < width:
        raise ValueError(f"column {x} is outside the bitmap")
    for y in range(height):
        pixel = y * width + x
        if is_rgb:
            _put(bitmap, pixel * 3, r, g, b)
        else:
            _put(bitmap, pixel, (r + g + b) // 3)