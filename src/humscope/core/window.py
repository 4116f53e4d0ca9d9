"""Hanning (raised-cosine) window applied to complex analysis frames."""

from functools import lru_cache
from typing import Optional

import numpy as np

from humscope.errors import ConfigurationError


@lru_cache(maxsize=8)
def hanning_coefficients(size: int) -> np.ndarray:
    """
    Window coefficients ``0.5 * (1 - cos(2*pi*i / (size - 1)))``.

    The returned array is shared between callers and marked read-only.
    """
    if size < 2:
        raise ConfigurationError(f"window size must be at least 2, got {size}")
    coefficients = np.hanning(size).astype(np.float32)
    coefficients.flags.writeable = False
    return coefficients


def apply_hanning_window(
    frame: np.ndarray,
    coefficients: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Taper a complex frame in place.

    Only the real part is windowed; the imaginary part is set to exactly 0.

    Args:
        frame: Complex 1-D array.
        coefficients: Precomputed window of the same length (optional).

    Returns:
        The same ``frame`` array.
    """
    if coefficients is None:
        coefficients = hanning_coefficients(len(frame))
    frame.real *= coefficients
    frame.imag = 0.0
    return frame


def to_complex_frame(samples: np.ndarray) -> np.ndarray:
    """Lift real samples into a new complex64 array with zero imaginary part."""
    return np.asarray(samples, dtype=np.float32).astype(np.complex64)
