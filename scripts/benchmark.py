"""
Humscope analysis throughput benchmark.

Usage:
    python scripts/benchmark.py [--quick] [--sample-rate 44100]

Modes:
    default  : frame sizes 1024..32768, 3 warm-up + 20 timed runs each
    --quick  : frame sizes 1024..8192, 2 warm-up + 5 timed runs (CI-friendly)

Output: per-frame processing time and real-time headroom, i.e. how many
times faster than the audio arrives a frame is analyzed. Headroom below
1.0x means the analysis queue will grow without bound on this machine.
"""

import argparse
import os
import sys
import time
from typing import List

import numpy as np

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from humscope.config import AnalysisConfig
from humscope.core.stream import RealtimeAnalyzer
from humscope.io.tone import sine_tone

_SEP = "─" * 72


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _timeit(fn, *args, warmup: int = 2, runs: int = 5, **kwargs) -> List[float]:
    """Run fn(*args, **kwargs), discard warmup iterations, return timed samples."""
    for _ in range(warmup):
        fn(*args, **kwargs)
    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn(*args, **kwargs)
        times.append(time.perf_counter() - t0)
    return times


def _stats(times: List[float]) -> str:
    arr = np.array(times)
    return f"mean={arr.mean()*1000:.2f} ms  min={arr.min()*1000:.2f} ms  max={arr.max()*1000:.2f} ms"


def _frame_signal(frame_size: int, sample_rate: int) -> np.ndarray:
    """120 Hz hum plus a weak 240 Hz harmonic and a little noise."""
    rng = np.random.RandomState(0)
    duration = frame_size / sample_rate
    y = sine_tone(120.0, duration, sample_rate, amplitude=0.5)
    y = y + sine_tone(240.0, duration, sample_rate, amplitude=0.1)
    y = y + 0.01 * rng.randn(len(y)).astype(np.float32)
    return y[:frame_size]


def main() -> None:
    parser = argparse.ArgumentParser(description="Humscope analysis benchmark")
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Fewer frame sizes and runs for fast CI runs",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        default=44100,
        help="Sample rate used to compute real-time headroom (default: 44100)",
    )
    args = parser.parse_args()

    if args.quick:
        sizes = [1024, 2048, 4096, 8192]
        WARMUP, RUNS = 2, 5
        label = "quick mode"
    else:
        sizes = [1024, 2048, 4096, 8192, 16384, 32768]
        WARMUP, RUNS = 3, 20
        label = "full mode"

    print(f"\nHumscope Analysis Benchmark | {label}")
    print(f"Sample rate: {args.sample_rate} Hz")
    print(f"Warm-up runs: {WARMUP}  |  Timed runs: {RUNS}")

    rows = []
    for n in sizes:
        _hdr(f"analyze_frame  (frame_size={n})")
        analyzer = RealtimeAnalyzer(
            sample_rate=args.sample_rate,
            config=AnalysisConfig(frame_size=n),
        )
        frame = _frame_signal(n, args.sample_rate)
        t = _timeit(analyzer.analyze_frame, frame, warmup=WARMUP, runs=RUNS)
        print(f"  {_stats(t)}")

        frame_sec = n / args.sample_rate
        headroom = frame_sec / float(np.mean(t))
        rows.append((n, frame_sec * 1000, float(np.mean(t)) * 1000, headroom))

    _hdr("SUMMARY")
    print(f"  {'frame_size':>10}  {'frame (ms)':>10}  {'analyze (ms)':>12}  {'headroom':>9}")
    print(f"  {'-'*10}  {'-'*10}  {'-'*12}  {'-'*9}")
    for n, frame_ms, analyze_ms, headroom in rows:
        flag = "" if headroom >= 1.0 else "  !! slower than real time"
        print(f"  {n:>10}  {frame_ms:>10.1f}  {analyze_ms:>12.2f}  {headroom:>8.1f}x{flag}")
    print(f"\n{_SEP}\n")


if __name__ == "__main__":
    main()
