"""Binary serialisation of spectrum and demodulation data for clients."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from .compressed import CompressedVector, ValueType

SPECTRUM_HEADER = struct.Struct("<i4f4i2f2i")
DEMOD_HEADER = struct.Struct("<i2f2i")


class TransportType(Enum):
    """Sample width sent to clients, valued by its size in bytes."""

    CHAR = 1
    SHORT = 2
    FLOAT = 4

    @property
    def value_type(self) -> ValueType:
        return {
            TransportType.CHAR: ValueType.UINT8,
            TransportType.SHORT: ValueType.UINT16,
            TransportType.FLOAT: ValueType.FLOAT32,
        }[self]


@dataclass
class SpectrumInfo:
    """Power spectrum bins with the detected noise floor and peaks."""

    values: list[float] = field(default_factory=list)
    noise_floor: float = 0.0
    noise_variance: float = 0.0
    sampling_rate: float = 0.0
    shift: float = 0.0
    peak_left: int = 0
    peak_right: int = 0
    peak_left_valid: bool = False
    peak_right_valid: bool = False

    def __len__(self) -> int:
        return len(self.values)


def serialize_spectrum(spectrum: SpectrumInfo, transport: TransportType) -> bytes:
    """Return the spectrum header followed by its bins in ``transport`` width.

    Raises ValueError for a spectrum without bins.
    """
    compressed = CompressedVector.from_values(spectrum.values, transport.value_type)
    header = SPECTRUM_HEADER.pack(
        SPECTRUM_HEADER.size,
        spectrum.noise_floor,
        spectrum.noise_variance,
        spectrum.sampling_rate,
        spectrum.shift,
        spectrum.peak_left,
        spectrum.peak_right,
        int(spectrum.peak_left_valid),
        int(spectrum.peak_right_valid),
        compressed.minimum,
        compressed.maximum,
        transport.value,
        len(spectrum),
    )
    return header + compressed.pack()


def serialize_demodulation(values: Sequence[float], transport: TransportType) -> bytes:
    """Return the demodulation header followed by the samples.

    Raises ValueError for an empty sequence.
    """
    compressed = CompressedVector.from_values(values, transport.value_type)
    header = DEMOD_HEADER.pack(
        DEMOD_HEADER.size,
        compressed.minimum,
        compressed.maximum,
        transport.value,
        len(compressed.values),
    )
    return header + compressed.pack()