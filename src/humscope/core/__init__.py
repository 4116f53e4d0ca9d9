"""Core spectral analysis modules."""

from humscope.core.accumulator import FrameAccumulator
from humscope.core.mapper import MappedSpectrum, SpectrumBin, map_spectrum
from humscope.core.selector import Candidate, PeakSelector, Selection
from humscope.core.stream import Peak, PeakReport, RealtimeAnalyzer, Stage
from humscope.core.transform import SpectralTransform
from humscope.core.window import apply_hanning_window, hanning_coefficients

__all__ = [
    "FrameAccumulator",
    "MappedSpectrum",
    "SpectrumBin",
    "map_spectrum",
    "Candidate",
    "PeakSelector",
    "Selection",
    "Peak",
    "PeakReport",
    "RealtimeAnalyzer",
    "Stage",
    "SpectralTransform",
    "apply_hanning_window",
    "hanning_coefficients",
]
