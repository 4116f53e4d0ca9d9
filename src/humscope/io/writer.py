"""Raw stream persistence on a dedicated writer thread."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Optional, Union

import numpy as np
import soundfile as sf

from humscope.config import validate_sample_rate

logger = logging.getLogger(__name__)


class WavWriter:
    """
    Writes mono float32 samples to a WAV file.

    The file handle is owned by a single writer thread; producers only ever
    touch the queue through :meth:`submit`, so the audio callback never
    contends for the file.
    """

    def __init__(
        self,
        path: Union[str, Path],
        sample_rate: int,
        subtype: str = "FLOAT",
        queue_size: int = 0,
    ):
        """
        Initialize the writer.

        Args:
            path: Output file path; parent directories are created.
            sample_rate: Sample rate stored in the WAV header.
            subtype: soundfile subtype (default 32-bit float).
            queue_size: Max queued chunks, 0 for unbounded.
        """
        self.path = Path(path)
        self.sample_rate = validate_sample_rate(sample_rate)
        self.subtype = subtype
        self._queue: "queue.Queue[Optional[np.ndarray]]" = queue.Queue(maxsize=queue_size)
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None
        self.samples_written = 0
        self.dropped_chunks = 0

    def __enter__(self) -> "WavWriter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def start(self) -> None:
        if self._thread is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Open here so a bad path fails on the caller's thread.
        handle = sf.SoundFile(
            str(self.path),
            mode="w",
            samplerate=self.sample_rate,
            channels=1,
            subtype=self.subtype,
            format="WAV",
        )
        self._thread = threading.Thread(
            target=self._writer_loop,
            args=(handle,),
            name="WavWriter",
            daemon=True,
        )
        self._thread.start()
        logger.info("Recording to %s (%d Hz, %s)", self.path, self.sample_rate, self.subtype)

    def submit(self, chunk: np.ndarray) -> None:
        """
        Queue one chunk for writing. Safe to call from the audio callback.

        Once the writer thread has failed nothing drains the queue, so
        chunks are dropped and counted instead; :meth:`close` raises.
        """
        if self._error is not None:
            self.dropped_chunks += 1
            if self.dropped_chunks % 100 == 1:
                logger.warning(
                    "Recording stopped (%s), dropped %d chunks so far",
                    self._error,
                    self.dropped_chunks,
                )
            return
        self._queue.put(chunk)

    def close(self) -> Path:
        """Flush queued chunks, finalize the file and return its path."""
        thread = self._thread
        if thread is not None:
            if thread.is_alive():
                self._queue.put(None)
            thread.join()
        self._thread = None
        if self._error is not None:
            raise RuntimeError(f"writing {self.path} failed: {self._error}") from self._error
        return self.path

    def _writer_loop(self, handle: sf.SoundFile) -> None:
        try:
            while True:
                chunk = self._queue.get()
                if chunk is None:
                    break
                data = np.asarray(chunk, dtype=np.float32).ravel()
                handle.write(data)
                handle.flush()
                self.samples_written += data.size
        except Exception as exc:
            self._error = exc
            logger.error("Failed to write audio chunk: %s", exc)
            self._discard_queued()
        finally:
            handle.close()
        logger.debug("Writer finished (%d samples)", self.samples_written)

    def _discard_queued(self) -> None:
        while True:
            try:
                chunk = self._queue.get_nowait()
            except queue.Empty:
                return
            if chunk is not None:
                self.dropped_chunks += 1
