"""Threaded hand-off between the audio callback and the analysis worker."""

import logging
import queue
import threading
from typing import Callable, NamedTuple, Optional

import numpy as np

from humscope.config import OVERFLOW_POLICIES
from humscope.core.stream import PeakReport, RealtimeAnalyzer
from humscope.errors import ConfigurationError

logger = logging.getLogger(__name__)

Reporter = Callable[[PeakReport], None]


class Backlog(NamedTuple):
    """Work waiting for the analysis worker."""

    queued_chunks: int
    pending_samples: int


class RuntimeSummary(NamedTuple):
    """Counters exposed once the stream is closed (or at any time)."""

    received_chunks: int
    dropped_chunks: int
    processed_frames: int
    reports: int


class AnalysisWorker:
    """Worker thread body: drain the chunk queue through the analyzer."""

    def __init__(
        self,
        *,
        analyzer: RealtimeAnalyzer,
        chunk_queue: "queue.Queue[Optional[np.ndarray]]",
        on_report: Reporter,
    ):
        self.analyzer = analyzer
        self.chunk_queue = chunk_queue
        self.on_report = on_report

    def _emit(self, report: PeakReport) -> None:
        try:
            self.on_report(report)
        except Exception:
            logger.exception("Reporter failed on frame %d", report.frame_index)

    def _drain(self) -> None:
        """Report buffered frames one by one; a failing frame is skipped."""
        while True:
            try:
                for report in self.analyzer.iter_reports():
                    self._emit(report)
                return
            except Exception:
                logger.exception("Error analyzing frame %d", self.analyzer.frames_processed - 1)

    def run(self) -> None:
        while True:
            chunk = self.chunk_queue.get()
            if chunk is None:
                break
            try:
                ready = self.analyzer.push(chunk)
            except Exception:
                logger.exception("Error buffering chunk")
                continue
            if ready:
                self._drain()

        # Channel closed: finish whatever complete frames remain.
        self._drain()
        logger.debug(
            "Analysis worker exiting (%d frames, %d samples left over)",
            self.analyzer.frames_processed,
            self.analyzer.pending_samples,
        )


class StreamRuntime:
    """
    Owns the chunk queue, the analysis thread and the stream counters.

    ``ingest`` is safe to call from a real-time audio callback: with the
    default unbounded queue it never blocks. A bounded queue is opt-in via
    ``queue_size``; on overflow the runtime either blocks the producer
    (``"block"``) or discards the oldest queued chunk (``"drop_oldest"``),
    counting every drop.
    """

    def __init__(
        self,
        analyzer: RealtimeAnalyzer,
        reporter: Reporter,
        *,
        queue_size: int = 0,
        overflow: str = "block",
    ):
        if overflow not in OVERFLOW_POLICIES:
            raise ConfigurationError(
                f"overflow must be one of {OVERFLOW_POLICIES}, got {overflow!r}"
            )
        self.analyzer = analyzer
        self.reporter = reporter
        self.overflow = overflow
        self.chunk_queue: "queue.Queue[Optional[np.ndarray]]" = queue.Queue(maxsize=queue_size)

        self._worker: Optional[AnalysisWorker] = None
        self._thread: Optional[threading.Thread] = None

        self._lock = threading.Lock()
        self._received_chunks = 0
        self._dropped_chunks = 0
        self._reports = 0

    @classmethod
    def from_config(cls, analyzer: RealtimeAnalyzer, reporter: Reporter) -> "StreamRuntime":
        return cls(
            analyzer,
            reporter,
            queue_size=analyzer.config.queue_size,
            overflow=analyzer.config.overflow,
        )

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        """Start the analysis thread."""
        if self.running:
            return
        self._worker = AnalysisWorker(
            analyzer=self.analyzer,
            chunk_queue=self.chunk_queue,
            on_report=self._on_report,
        )
        self._thread = threading.Thread(
            target=self._worker.run,
            name="HumAnalysis",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Analysis worker started")

    def ingest(self, chunk: np.ndarray) -> None:
        """
        Producer API: hand one chunk to the analysis worker.

        Chunks ingested after :meth:`close` has enqueued the shutdown marker
        are not analyzed.
        """
        with self._lock:
            self._received_chunks += 1
        if self.overflow == "drop_oldest":
            self._put_drop_oldest(chunk)
        else:
            self.chunk_queue.put(chunk)

    def close(self) -> RuntimeSummary:
        """
        Close the channel and wait for the worker to drain it.

        Queued chunks are never discarded here: the shutdown marker is
        enqueued behind them.
        """
        thread = self._thread
        if thread is not None and thread.is_alive():
            self.chunk_queue.put(None)
            thread.join()
        self._thread = None
        self._worker = None
        return self.summary()

    def backlog(self) -> Backlog:
        """Current queue depth and accumulator backlog (approximate while running)."""
        return Backlog(
            queued_chunks=self.chunk_queue.qsize(),
            pending_samples=self.analyzer.pending_samples,
        )

    def summary(self) -> RuntimeSummary:
        with self._lock:
            return RuntimeSummary(
                received_chunks=self._received_chunks,
                dropped_chunks=self._dropped_chunks,
                processed_frames=self.analyzer.frames_processed,
                reports=self._reports,
            )

    def _on_report(self, report: PeakReport) -> None:
        with self._lock:
            self._reports += 1
        self.reporter(report)

    def _put_drop_oldest(self, chunk: np.ndarray) -> None:
        while True:
            try:
                self.chunk_queue.put_nowait(chunk)
                return
            except queue.Full:
                try:
                    evicted = self.chunk_queue.get_nowait()
                except queue.Empty:
                    continue
                self._count_drop()
                if evicted is None:
                    # Closing: the shutdown marker stays queued and the new chunk is dropped.
                    self.chunk_queue.put_nowait(None)
                    return

    def _count_drop(self) -> None:
        with self._lock:
            self._dropped_chunks += 1
            dropped = self._dropped_chunks
        if dropped % 25 == 1:
            logger.warning("Analysis queue full, dropped %d chunks so far", dropped)
