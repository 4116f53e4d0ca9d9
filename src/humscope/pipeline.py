"""
Offline driver: run an audio file through the streaming analyzer.

The file is fed in fixed-size chunks exactly as a live capture would feed
it, so results match what ``humscope listen`` prints for the same audio.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Callable, Optional, Union

import librosa
import numpy as np

from humscope.config import AnalysisConfig
from humscope.core.stream import PeakReport, RealtimeAnalyzer
from humscope.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 512


class HumPipeline:
    """Loads audio and drives a :class:`RealtimeAnalyzer` over it."""

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.config = (config or AnalysisConfig()).validate()
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")
        self.chunk_size = chunk_size

    def load_audio(self, audio_path: Union[str, Path], sr: Optional[int] = None) -> tuple[np.ndarray, int]:
        """Load a file as mono float32 at its native rate (or ``sr``)."""
        y, sr_out = librosa.load(audio_path, sr=sr, mono=True)
        return y.astype(np.float32, copy=False), int(sr_out)

    def run(
        self,
        y: np.ndarray,
        sr: int,
        reporter: Optional[Callable[[PeakReport], None]] = None,
    ) -> dict:
        """
        Analyze an in-memory signal.

        Returns:
            Summary dict with ``reports`` (list of PeakReport), ``frames``,
            ``sample_rate``, ``duration`` and ``dominant_hz`` (most frequent
            dominant frequency, or None).
        """
        analyzer = RealtimeAnalyzer(sample_rate=sr, config=self.config)
        reports: list[PeakReport] = []

        def collect(batch: list[PeakReport]) -> None:
            for report in batch:
                reports.append(report)
                if reporter is not None:
                    reporter(report)

        for start in range(0, len(y), self.chunk_size):
            collect(analyzer.process_chunk(y[start:start + self.chunk_size]))
        collect(analyzer.flush())

        counts = Counter(r.dominant.hz for r in reports)
        dominant_hz = counts.most_common(1)[0][0] if counts else None
        logger.debug(
            "Analyzed %d frames, %d reports, %d samples left over",
            analyzer.frames_processed,
            len(reports),
            analyzer.pending_samples,
        )

        return {
            "sample_rate": sr,
            "duration": len(y) / sr,
            "frames": analyzer.frames_processed,
            "reports": reports,
            "dominant_hz": dominant_hz,
        }

    def process(
        self,
        audio_path: Union[str, Path],
        reporter: Optional[Callable[[PeakReport], None]] = None,
    ) -> dict:
        """Load and analyze an audio file in one step."""
        y, sr = self.load_audio(audio_path)
        logger.info("Loaded %s (%d Hz, %.2fs)", audio_path, sr, len(y) / sr)
        return self.run(y, sr, reporter=reporter)
