"""
Band-limited peak selection.

Scans a mapped spectrum for bins inside a frequency band and above a
magnitude threshold, buckets them by whole Hz, and keeps the strongest.

Bucketing truncates each bin frequency to an integer, so sub-Hz resolution
is lost and two bins can land in the same bucket. How such a collision is
resolved is a policy choice:

* ``"last"``  - the later (higher-frequency) bin overwrites the earlier one
* ``"first"`` - the earlier bin is kept
* ``"max"``   - the louder bin is kept
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import numpy as np

from humscope.config import (
    BAND_HIGH_HZ,
    BAND_LOW_HZ,
    COLLISION_POLICIES,
    DB_THRESHOLD,
    DEFAULT_COLLISION,
    TOP_K,
)
from humscope.core.mapper import MappedSpectrum
from humscope.errors import ConfigurationError


class Candidate(NamedTuple):
    """A whole-Hz bucket that passed the band and threshold filters."""

    hz: int
    db: float


@dataclass
class Selection:
    """Result of peak selection for one frame."""

    peaks: list[Candidate] = field(default_factory=list)  # descending by dB

    @property
    def dominant(self) -> Optional[Candidate]:
        return self.peaks[0] if self.peaks else None

    def __bool__(self) -> bool:
        return bool(self.peaks)


class PeakSelector:
    """Filters, buckets and ranks spectrum bins."""

    def __init__(
        self,
        band_low: float = BAND_LOW_HZ,
        band_high: float = BAND_HIGH_HZ,
        db_threshold: float = DB_THRESHOLD,
        top_k: int = TOP_K,
        collision: str = DEFAULT_COLLISION,
    ):
        """
        Initialize the selector.

        Args:
            band_low: Lower band edge in Hz (exclusive).
            band_high: Upper band edge in Hz (exclusive).
            db_threshold: Bins must be strictly louder than this.
            top_k: Maximum number of peaks kept per frame.
            collision: Bucket collision policy, see module docstring.
        """
        if collision not in COLLISION_POLICIES:
            raise ConfigurationError(
                f"collision must be one of {COLLISION_POLICIES}, got {collision!r}"
            )
        if top_k < 1:
            raise ConfigurationError(f"top_k must be at least 1, got {top_k}")
        self.band_low = band_low
        self.band_high = band_high
        self.db_threshold = db_threshold
        self.top_k = top_k
        self.collision = collision

    def candidates(self, mapped: MappedSpectrum) -> dict[int, float]:
        """
        Build the whole-Hz candidate map for one frame.

        Non-finite magnitudes (NaN, -inf, +inf) are dropped.
        """
        freqs = mapped.frequencies_hz
        mags = mapped.magnitudes_db
        with np.errstate(invalid="ignore"):
            keep = (freqs > self.band_low) & (freqs < self.band_high) & (mags > self.db_threshold)
            keep &= np.isfinite(mags)

        buckets: dict[int, float] = {}
        for hz, db in zip(freqs[keep], mags[keep]):
            key = int(hz)
            db = float(db)
            if key in buckets:
                if self.collision == "first":
                    continue
                if self.collision == "max" and buckets[key] >= db:
                    continue
            buckets[key] = db
        return buckets

    def select(self, mapped: MappedSpectrum) -> Selection:
        """Return the top-K candidates, strongest first."""
        buckets = self.candidates(mapped)
        ranked = sorted(buckets.items(), key=lambda item: item[1], reverse=True)
        return Selection(peaks=[Candidate(hz, db) for hz, db in ranked[: self.top_k]])
