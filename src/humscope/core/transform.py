"""Forward FFT of a fixed, configured size."""

import numpy as np
from scipy import fft as scipy_fft

from humscope.errors import ConfigurationError, FrameSizeMismatchError


class SpectralTransform:
    """
    Discrete Fourier transform bound to one frame size.

    Output bins are in natural order ``0 .. size - 1``. Frames of any other
    length are rejected instead of being silently padded or cropped.
    """

    def __init__(self, size: int):
        if size < 2:
            raise ConfigurationError(f"transform size must be at least 2, got {size}")
        self.size = size

    def __call__(self, frame: np.ndarray) -> np.ndarray:
        if frame.ndim != 1 or frame.shape[0] != self.size:
            raise FrameSizeMismatchError(self.size, frame.size)
        return scipy_fft.fft(frame, overwrite_x=True)
