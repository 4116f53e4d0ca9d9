"""
Spectrum mapping module.

Converts transform output into (frequency Hz, magnitude dB) pairs for the
non-redundant half of a real-input spectrum.
"""

from dataclasses import dataclass
from typing import Iterator, NamedTuple

import numpy as np


class SpectrumBin(NamedTuple):
    """One transform bin expressed as frequency and magnitude."""

    frequency_hz: float
    magnitude_db: float


@dataclass
class MappedSpectrum:
    """Frequencies and magnitudes for bins ``0 .. frame_size // 2 - 1``."""

    frequencies_hz: np.ndarray
    magnitudes_db: np.ndarray  # -inf where power is 0, NaN passes through

    def __len__(self) -> int:
        return len(self.frequencies_hz)

    def __iter__(self) -> Iterator[SpectrumBin]:
        for hz, db in zip(self.frequencies_hz, self.magnitudes_db):
            yield SpectrumBin(float(hz), float(db))

    @classmethod
    def from_bins(cls, bins) -> "MappedSpectrum":
        """Build from an iterable of (frequency_hz, magnitude_db) pairs."""
        pairs = np.asarray(list(bins), dtype=np.float64).reshape(-1, 2)
        return cls(frequencies_hz=pairs[:, 0], magnitudes_db=pairs[:, 1])


def map_spectrum(
    spectrum: np.ndarray,
    sample_rate: int,
    frame_size: int,
) -> MappedSpectrum:
    """
    Map transformed bins to frequency and magnitude.

    Args:
        spectrum: Complex transform output (at least ``frame_size // 2`` bins).
        sample_rate: Sampling rate in Hz.
        frame_size: Transform size the spectrum was computed with.

    Returns:
        MappedSpectrum where bin ``i`` has frequency ``i * sr / frame_size``
        and magnitude ``20 * log10(|X[i]|^2)``.
    """
    half = frame_size // 2
    bins = spectrum[:half]

    frequencies = np.arange(half, dtype=np.float64) * sample_rate / frame_size
    power = bins.real.astype(np.float64) ** 2 + bins.imag.astype(np.float64) ** 2
    with np.errstate(divide="ignore", invalid="ignore"):
        magnitudes = 20.0 * np.log10(power)

    return MappedSpectrum(frequencies_hz=frequencies, magnitudes_db=magnitudes)
