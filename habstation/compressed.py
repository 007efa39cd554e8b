"""Vectors of samples reduced to 8, 16 or 32 bit values for transport."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum


class ValueType(Enum):
    """Element type of a compressed vector: struct code and integer limit."""

    UINT8 = ("B", 255)
    UINT16 = ("H", 65535)
    FLOAT32 = ("f", 0)

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def limit(self) -> int:
        """Largest integer value; 0 for the floating-point type."""
        return self.value[1]

    @property
    def size(self) -> int:
        return struct.calcsize("<" + self.code)

    @property
    def is_integer(self) -> bool:
        return self is not ValueType.FLOAT32


def _convert(
    values: Sequence[float], source: ValueType, target: ValueType, low: float, high: float
) -> list:
    if source is target:
        return list(values)
    if source is ValueType.FLOAT32:
        span = high - low
        if span == 0:
            return [0] * len(values)
        result = []
        for value in values:
            normalized = min(max((value - low) / span, 0.0), 1.0)
            result.append(int(normalized * target.limit))
        return result
    if target is ValueType.FLOAT32:
        return [value / source.limit for value in values]
    raise TypeError(f"cannot convert {source.name} values to {target.name}")


@dataclass
class CompressedVector:
    """Values of one type together with the range of the original data.

    Integer types hold values normalised to the full integer range between
    ``minimum`` and ``maximum``.
    """

    values: list = field(default_factory=list)
    dtype: ValueType = ValueType.FLOAT32
    minimum: float = 0.0
    maximum: float = 0.0

    @classmethod
    def from_values(cls, values: Iterable[float], dtype: ValueType) -> CompressedVector:
        """Compress floating-point ``values`` to ``dtype``.

        Raises ValueError for an empty sequence.
        """
        samples = list(values)
        if not samples:
            raise ValueError("cannot compress an empty vector")
        low, high = min(samples), max(samples)
        return cls(_convert(samples, ValueType.FLOAT32, dtype, low, high), dtype, low, high)

    def convert(self, dtype: ValueType) -> CompressedVector:
        """Return a copy holding values of ``dtype``, keeping the range.

        Integer values become floats in 0..1; conversion between two
        different integer types raises TypeError.
        """
        values = _convert(self.values, self.dtype, dtype, self.minimum, self.maximum)
        return CompressedVector(values, dtype, self.minimum, self.maximum)

    def calc_min(self) -> float:
        """Store and return the smallest held value; 0 when empty."""
        if not self.values:
            return 0
        self.minimum = min(self.values)
        return self.minimum

    def calc_max(self) -> float:
        """Store and return the largest held value; 0 when empty."""
        if not self.values:
            return 0
        self.maximum = max(self.values)
        return self.maximum

    def pack(self) -> bytes:
        """Little-endian bytes of the held values."""
        return struct.pack(f"<{len(self.values)}{self.dtype.code}", *self.values)