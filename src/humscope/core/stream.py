"""
Real-time hum detection over a stream of audio chunks.

Architecture Overview
---------------------
::

    Audio Device
        │
        ▼  (chunks of any size, e.g. 512 samples @ 44 100 Hz)
    RealtimeAnalyzer.process_chunk(chunk)
        │
        ├─► FrameAccumulator   (fixed frames of frame_size, tail carried over)
        │
        ├─► Hanning window     (real part tapered, imaginary part zeroed)
        │
        ├─► SpectralTransform  (FFT of exactly frame_size)
        │
        ├─► map_spectrum       (Hz / dB for the lower half of the bins)
        │
        ├─► PeakSelector       (band + threshold, whole-Hz buckets, top-K)
        │
        └─► PeakReport         (returned to the caller; None when suppressed)

One frame runs through every stage before the next frame starts. The
analyzer holds no locks: it is meant to be owned by a single worker thread
(see :mod:`humscope.runtime`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, NamedTuple, Optional

import numpy as np

from humscope.config import AnalysisConfig, validate_sample_rate
from humscope.core.accumulator import FrameAccumulator
from humscope.core.mapper import map_spectrum
from humscope.core.selector import PeakSelector, Selection
from humscope.core.transform import SpectralTransform
from humscope.core.window import apply_hanning_window, hanning_coefficients, to_complex_frame
from humscope.errors import FrameSizeMismatchError

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Per-frame processing stage of the analyzer."""

    AWAITING_DATA = "awaiting_data"
    FRAME_READY = "frame_ready"
    WINDOWED = "windowed"
    TRANSFORMED = "transformed"
    MAPPED = "mapped"
    SELECTED = "selected"
    REPORTED = "reported"
    SUPPRESSED = "suppressed"


class Peak(NamedTuple):
    """Reported peak, whole Hz and whole dB."""

    hz: int
    db: int


@dataclass(frozen=True)
class PeakReport:
    """Dominant peak and ranked candidates for one analysis frame."""

    dominant: Peak
    candidates: tuple[Peak, ...]

    # Position of the frame in the stream
    frame_index: int = 0
    time_sec: float = 0.0

    @classmethod
    def from_selection(
        cls,
        selection: Selection,
        frame_index: int = 0,
        time_sec: float = 0.0,
    ) -> "PeakReport":
        candidates = tuple(Peak(c.hz, int(c.db)) for c in selection.peaks)
        return cls(
            dominant=candidates[0],
            candidates=candidates,
            frame_index=frame_index,
            time_sec=time_sec,
        )

    def as_dict(self) -> dict:
        return {
            "frame_index": self.frame_index,
            "time": round(self.time_sec, 4),
            "dominant": {"hz": self.dominant.hz, "db": self.dominant.db},
            "candidates": [{"hz": p.hz, "db": p.db} for p in self.candidates],
        }


class RealtimeAnalyzer:
    """
    Streaming spectral analysis pipeline for hum detection.

    Parameters
    ----------
    sample_rate:
        Audio sample rate in Hz, fixed for the lifetime of the analyzer.
    config:
        Frame size, band, threshold and selection settings. Validated here.
    transform:
        Optional transform to use instead of building one from
        ``config.frame_size``. Its size must equal the frame size.
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        config: Optional[AnalysisConfig] = None,
        transform: Optional[SpectralTransform] = None,
    ):
        self.config = (config or AnalysisConfig()).validate()
        self.sample_rate = validate_sample_rate(sample_rate)
        self.frame_size = self.config.frame_size

        self.transform = transform or SpectralTransform(self.frame_size)
        if self.transform.size != self.frame_size:
            raise FrameSizeMismatchError(self.transform.size, self.frame_size)

        self.accumulator = FrameAccumulator(self.frame_size)
        self.selector = PeakSelector(
            band_low=self.config.band_low,
            band_high=self.config.band_high,
            db_threshold=self.config.db_threshold,
            top_k=self.config.top_k,
            collision=self.config.collision,
        )
        self._window = hanning_coefficients(self.frame_size)
        self._batch_samples = self.frame_size * self.config.accumulator_multiple

        self.stage = Stage.AWAITING_DATA
        self.frames_processed = 0
        self.reports_emitted = 0

    @property
    def pending_samples(self) -> int:
        """Samples buffered but not yet analyzed."""
        return self.accumulator.pending

    def process_chunk(self, chunk: np.ndarray) -> list[PeakReport]:
        """
        Buffer one chunk and analyze every frame that became available.

        Frames are only drained once ``accumulator_multiple`` frames' worth
        of samples are buffered.

        Returns
        -------
        list[PeakReport]
            Reports in frame order; empty while data is being accumulated or
            when no frame had a qualifying peak.
        """
        if not self.push(chunk):
            return []
        return self.flush()

    def push(self, chunk: np.ndarray) -> bool:
        """Buffer one chunk; True once a full batch is waiting to be analyzed."""
        self.accumulator.push(chunk)
        return self.accumulator.pending >= self._batch_samples

    def flush(self) -> list[PeakReport]:
        """Analyze every complete frame currently buffered."""
        return list(self.iter_reports())

    def iter_reports(self) -> Iterator[PeakReport]:
        """
        Analyze buffered frames one at a time, yielding each report.

        A frame is removed from the buffer before it is analyzed, so after an
        exception a fresh call resumes with the following frame.
        """
        try:
            for frame in self.accumulator.frames():
                report = self.analyze_frame(frame)
                if report is not None:
                    yield report
        finally:
            self.stage = Stage.AWAITING_DATA

    def analyze_frame(self, samples: np.ndarray) -> Optional[PeakReport]:
        """
        Run one frame through window, transform, mapping and selection.

        Returns
        -------
        PeakReport | None
            None when nothing in the band passed the threshold.
        """
        frame_index = self.frames_processed
        self.frames_processed += 1

        self.stage = Stage.FRAME_READY
        frame = to_complex_frame(samples)

        apply_hanning_window(frame, self._window)
        self.stage = Stage.WINDOWED

        spectrum = self.transform(frame)
        self.stage = Stage.TRANSFORMED

        mapped = map_spectrum(spectrum, self.sample_rate, self.frame_size)
        self.stage = Stage.MAPPED

        selection = self.selector.select(mapped)
        self.stage = Stage.SELECTED

        if not selection:
            self.stage = Stage.SUPPRESSED
            return None

        report = PeakReport.from_selection(
            selection,
            frame_index=frame_index,
            time_sec=frame_index * self.frame_size / self.sample_rate,
        )
        self.reports_emitted += 1
        self.stage = Stage.REPORTED
        logger.debug("frame %d dominant %d Hz (%d dB)", frame_index, *report.dominant)
        return report
