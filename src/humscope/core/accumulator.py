"""
Frame accumulation for streamed audio.

Chunks of arbitrary length go in, fixed-size analysis frames come out.
Samples that do not yet fill a frame are carried over to the next one.
"""

from collections import deque
from typing import Iterator, Optional

import numpy as np

from humscope.errors import ConfigurationError


class FrameAccumulator:
    """
    Buffers incoming sample chunks into frames of exactly ``frame_size``.

    The backlog is unbounded: if frames are taken more slowly than chunks
    are pushed, memory grows without limit. ``pending`` exposes the backlog
    size so callers can observe it.
    """

    def __init__(self, frame_size: int):
        """
        Initialize the accumulator.

        Args:
            frame_size: Samples per emitted frame. Must match the size the
                spectral transform is configured for.
        """
        if frame_size < 1:
            raise ConfigurationError(f"frame_size must be positive, got {frame_size}")
        self.frame_size = frame_size
        self._chunks: deque[np.ndarray] = deque()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Number of buffered samples not yet emitted as a frame."""
        return self._pending

    def push(self, chunk) -> None:
        """Append a chunk of samples (copied, flattened to float32)."""
        samples = np.array(chunk, dtype=np.float32).ravel()
        if samples.size == 0:
            return
        self._chunks.append(samples)
        self._pending += samples.size

    def try_take_frame(self) -> Optional[np.ndarray]:
        """
        Remove and return the oldest ``frame_size`` samples.

        Returns:
            A float32 array of length ``frame_size``, or None while fewer
            samples are buffered.
        """
        if self._pending < self.frame_size:
            return None

        frame = np.empty(self.frame_size, dtype=np.float32)
        filled = 0
        while filled < self.frame_size:
            head = self._chunks[0]
            take = min(head.size, self.frame_size - filled)
            frame[filled:filled + take] = head[:take]
            filled += take
            if take == head.size:
                self._chunks.popleft()
            else:
                self._chunks[0] = head[take:]

        self._pending -= self.frame_size
        return frame

    def frames(self) -> Iterator[np.ndarray]:
        """Yield every complete frame currently buffered, oldest first."""
        while True:
            frame = self.try_take_frame()
            if frame is None:
                return
            yield frame

    def clear(self) -> None:
        """Discard all buffered samples."""
        self._chunks.clear()
        self._pending = 0
