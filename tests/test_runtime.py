"""Tests for the threaded hand-off between producer and analysis worker."""

import threading

import numpy as np
import pytest

from humscope.core.stream import RealtimeAnalyzer
from humscope.core.transform import SpectralTransform
from humscope.errors import ConfigurationError
from humscope.config import AnalysisConfig
from humscope.io.tone import sine_tone
from humscope.runtime import Backlog, StreamRuntime

SR = 44100
N = 4096


@pytest.fixture
def analyzer():
    return RealtimeAnalyzer(sample_rate=SR)


class FlakyTransform(SpectralTransform):
    """FFT that raises on chosen call numbers."""

    def __init__(self, size, fail_on):
        super().__init__(size)
        self.fail_on = set(fail_on)
        self.calls = 0

    def __call__(self, frame):
        call = self.calls
        self.calls += 1
        if call in self.fail_on:
            raise RuntimeError("transform failed")
        return super().__call__(frame)


class TestStreaming:
    def test_producer_thread_to_worker(self, analyzer, pure_sine, chunks):
        y, _ = pure_sine
        reports = []
        runtime = StreamRuntime(analyzer, reports.append)
        runtime.start()

        def produce():
            for chunk in chunks(y):
                runtime.ingest(chunk)

        producer = threading.Thread(target=produce)
        producer.start()
        producer.join()
        summary = runtime.close()

        assert not runtime.running
        assert summary.received_chunks == len(chunks(y))
        assert summary.processed_frames == len(y) // N
        assert summary.reports == len(reports)
        assert summary.dropped_chunks == 0
        assert [r.frame_index for r in reports] == sorted(r.frame_index for r in reports)
        assert all(abs(r.dominant.hz - 120) <= SR / N for r in reports)

    def test_close_drains_queued_chunks(self, analyzer, chunks):
        reports = []
        runtime = StreamRuntime(analyzer, reports.append)
        for chunk in chunks(sine_tone(120.0, 1.0, SR)):
            runtime.ingest(chunk)
        assert runtime.backlog().queued_chunks > 0

        runtime.start()
        summary = runtime.close()

        assert summary.processed_frames == SR // N
        assert len(reports) == SR // N
        assert runtime.backlog() == Backlog(queued_chunks=0, pending_samples=SR - (SR // N) * N)

    def test_close_flushes_final_frames(self):
        analyzer = RealtimeAnalyzer(sample_rate=SR, config=AnalysisConfig(accumulator_multiple=8))
        reports = []
        runtime = StreamRuntime(analyzer, reports.append)
        runtime.start()
        runtime.ingest(sine_tone(120.0, 1.0, SR)[: 3 * N])
        summary = runtime.close()

        assert summary.processed_frames == 3
        assert len(reports) == 3

    def test_idle_start_and_close(self, analyzer):
        runtime = StreamRuntime(analyzer, lambda report: None)
        runtime.start()
        assert runtime.running
        summary = runtime.close()
        assert summary.received_chunks == 0
        assert summary.processed_frames == 0

    def test_reporter_failure_does_not_stop_worker(self, analyzer):
        delivered = []

        def flaky(report):
            if report.frame_index == 0:
                raise RuntimeError("sink unavailable")
            delivered.append(report)

        runtime = StreamRuntime(analyzer, flaky)
        runtime.start()
        runtime.ingest(sine_tone(120.0, 1.0, SR))
        runtime.close()

        assert [r.frame_index for r in delivered] == list(range(1, SR // N))


class TestBackpressure:
    def test_unbounded_queue_keeps_everything(self, analyzer):
        """No worker running: the backlog grows and nothing is dropped."""
        runtime = StreamRuntime(analyzer, lambda report: None)
        for _ in range(500):
            runtime.ingest(np.zeros(512, dtype=np.float32))
        assert runtime.backlog().queued_chunks == 500
        assert runtime.summary().dropped_chunks == 0

    def test_drop_oldest_counts_drops(self, analyzer):
        runtime = StreamRuntime(analyzer, lambda report: None, queue_size=2, overflow="drop_oldest")
        for i in range(5):
            runtime.ingest(np.full(4, i, dtype=np.float32))

        assert runtime.summary().dropped_chunks == 3
        assert runtime.summary().received_chunks == 5
        kept = [runtime.chunk_queue.get_nowait()[0] for _ in range(2)]
        assert kept == [3.0, 4.0]

    def test_from_config(self):
        config = AnalysisConfig(queue_size=16, overflow="drop_oldest")
        runtime = StreamRuntime.from_config(RealtimeAnalyzer(sample_rate=SR, config=config), print)
        assert runtime.chunk_queue.maxsize == 16
        assert runtime.overflow == "drop_oldest"

    def test_unknown_overflow_policy(self, analyzer):
        with pytest.raises(ConfigurationError):
            StreamRuntime(analyzer, print, overflow="discard")

    def test_drop_oldest_keeps_shutdown_marker(self, analyzer):
        runtime = StreamRuntime(analyzer, lambda report: None, queue_size=1, overflow="drop_oldest")
        runtime.chunk_queue.put(None)
        runtime.ingest(np.zeros(4, dtype=np.float32))

        assert runtime.chunk_queue.get_nowait() is None
        assert runtime.summary().dropped_chunks == 1


class TestFrameFailures:
    def test_failing_frame_does_not_lose_its_batch(self):
        config = AnalysisConfig(accumulator_multiple=4)
        analyzer = RealtimeAnalyzer(
            sample_rate=SR,
            config=config,
            transform=FlakyTransform(N, fail_on={1}),
        )
        reports = []
        runtime = StreamRuntime(analyzer, reports.append)
        runtime.start()
        runtime.ingest(sine_tone(120.0, 1.0, SR)[: 4 * N])
        summary = runtime.close()

        assert [r.frame_index for r in reports] == [0, 2, 3]
        assert summary.processed_frames == 4
        assert analyzer.pending_samples == 0

    def test_report_times_skip_failed_frame(self):
        analyzer = RealtimeAnalyzer(sample_rate=SR, transform=FlakyTransform(N, fail_on={0}))
        reports = []
        runtime = StreamRuntime(analyzer, reports.append)
        runtime.start()
        runtime.ingest(sine_tone(120.0, 1.0, SR)[: 2 * N])
        runtime.close()

        assert [r.frame_index for r in reports] == [1]
        assert reports[0].time_sec == pytest.approx(N / SR)
