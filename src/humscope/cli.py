"""
Command line interface.

Subcommands::

    humscope listen   [-o output.wav] [--duration 100]   live capture + analysis
    humscope analyze  FILE                               offline analysis of a file
    humscope tone     [--frequency 200] [-o tone.wav]    play or write a test tone
    humscope devices                                     list input devices
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from humscope.config import (
    ACCUMULATOR_MULTIPLE,
    BAND_HIGH_HZ,
    BAND_LOW_HZ,
    COLLISION_POLICIES,
    DB_THRESHOLD,
    DEFAULT_COLLISION,
    DEFAULT_DURATION_SEC,
    DEFAULT_OUTPUT,
    DEFAULT_OVERFLOW,
    FRAME_SIZE,
    OVERFLOW_POLICIES,
    QUEUE_SIZE,
    TOP_K,
    AnalysisConfig,
)
from humscope.errors import ConfigurationError

logger = logging.getLogger("humscope")


def configure_logging(verbosity: int) -> None:
    """Route log records to stderr through rich."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    return AnalysisConfig(
        frame_size=args.frame_size,
        accumulator_multiple=args.accumulator_multiple,
        band_low=args.band_low,
        band_high=args.band_high,
        db_threshold=args.db_threshold,
        top_k=args.top_k,
        collision=args.collision,
        queue_size=getattr(args, "queue_size", QUEUE_SIZE),
        overflow=getattr(args, "overflow", DEFAULT_OVERFLOW),
    ).validate()


def make_reporter(args: argparse.Namespace):
    from humscope.io.reporter import ConsoleReporter, JsonLinesReporter

    if args.json:
        return JsonLinesReporter()
    return ConsoleReporter()


# ----------------------------------------------------------------------
# Subcommands
# ----------------------------------------------------------------------

def cmd_listen(args: argparse.Namespace) -> int:
    from humscope.core.stream import RealtimeAnalyzer
    from humscope.io.capture import AudioCapture
    from humscope.io.writer import WavWriter
    from humscope.runtime import StreamRuntime

    config = config_from_args(args)
    capture = AudioCapture(
        device=args.device,
        sample_rate=args.sample_rate,
        blocksize=args.blocksize,
    )
    sample_rate = capture.resolve_sample_rate()

    analyzer = RealtimeAnalyzer(sample_rate=sample_rate, config=config)
    runtime = StreamRuntime.from_config(analyzer, make_reporter(args))
    writer = None if args.no_record else WavWriter(args.output, sample_rate)

    if writer is not None:
        writer.start()
        capture.add_sink(writer.submit)
    capture.add_sink(runtime.ingest)
    runtime.start()

    status = 0
    try:
        with capture:
            if args.duration > 0:
                time.sleep(args.duration)
            else:
                while True:
                    time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        summary = runtime.close()
        if writer is not None:
            try:
                path = writer.close()
            except RuntimeError as exc:
                logger.error("%s (%d chunks not recorded)", exc, writer.dropped_chunks)
                status = 1
            else:
                logger.info("Saved recording: %s", path)

    logger.info(
        "%d chunks, %d frames, %d reports, %d dropped",
        summary.received_chunks,
        summary.processed_frames,
        summary.reports,
        summary.dropped_chunks,
    )
    return status


def cmd_analyze(args: argparse.Namespace) -> int:
    from humscope.pipeline import HumPipeline

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        return 1

    pipeline = HumPipeline(config_from_args(args), chunk_size=args.chunk_size)
    result = pipeline.process(args.audio, reporter=make_reporter(args))

    if not args.json:
        dominant = result["dominant_hz"]
        print(
            f"{result['frames']} frames, {len(result['reports'])} reports, "
            f"duration {result['duration']:.2f}s, "
            f"dominant {dominant if dominant is not None else '-'} Hz",
            file=sys.stderr,
        )
    return 0


def cmd_tone(args: argparse.Namespace) -> int:
    from humscope.io.tone import play_tone, sine_tone, write_tone

    tone = sine_tone(args.frequency, args.duration, args.sample_rate, args.amplitude)
    if args.output is not None:
        path = write_tone(args.output, tone, args.sample_rate)
        logger.info("Wrote %.1f Hz tone to %s", args.frequency, path)
    else:
        play_tone(tone, args.sample_rate, device=args.device)
    return 0


def cmd_devices(args: argparse.Namespace) -> int:
    from humscope.io.capture import list_input_devices

    for device in list_input_devices():
        marker = "*" if device.is_default else " "
        print(
            f"{marker} {device.index:3d}  {device.name}  "
            f"({device.channels} ch, {device.default_sample_rate} Hz)"
        )
    return 0


# ----------------------------------------------------------------------
# Argument parsing
# ----------------------------------------------------------------------

def _add_analysis_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("analysis")
    group.add_argument(
        "-n", "--frame-size",
        type=int,
        default=FRAME_SIZE,
        help=f"FFT / frame size in samples (default: {FRAME_SIZE})",
    )
    group.add_argument(
        "--accumulator-multiple",
        type=int,
        default=ACCUMULATOR_MULTIPLE,
        help="Frames' worth of samples buffered before each processing pass "
             f"(default: {ACCUMULATOR_MULTIPLE})",
    )
    group.add_argument(
        "--band-low",
        type=float,
        default=BAND_LOW_HZ,
        help=f"Lower band edge in Hz, exclusive (default: {BAND_LOW_HZ:g})",
    )
    group.add_argument(
        "--band-high",
        type=float,
        default=BAND_HIGH_HZ,
        help=f"Upper band edge in Hz, exclusive (default: {BAND_HIGH_HZ:g})",
    )
    group.add_argument(
        "--db-threshold",
        type=float,
        default=DB_THRESHOLD,
        help=f"Minimum magnitude in dB, exclusive (default: {DB_THRESHOLD:g})",
    )
    group.add_argument(
        "-k", "--top-k",
        type=int,
        default=TOP_K,
        help=f"Candidates kept per frame (default: {TOP_K})",
    )
    group.add_argument(
        "--collision",
        choices=COLLISION_POLICIES,
        default=DEFAULT_COLLISION,
        help="Whole-Hz bucket collision policy (default: last)",
    )
    group.add_argument(
        "--json",
        action="store_true",
        help="Print one JSON object per report instead of coloured lines",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="humscope",
        description="Detect low-frequency hum in live or recorded audio",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    listen = subparsers.add_parser("listen", help="Analyze and record live input")
    listen.add_argument(
        "-o", "--output",
        type=Path,
        default=Path(DEFAULT_OUTPUT),
        help=f"WAV file for the raw stream (default: {DEFAULT_OUTPUT})",
    )
    listen.add_argument(
        "--no-record",
        action="store_true",
        help="Analyze only, do not write the raw stream",
    )
    listen.add_argument(
        "-d", "--duration",
        type=float,
        default=DEFAULT_DURATION_SEC,
        help=f"Seconds to run, 0 for until interrupted (default: {DEFAULT_DURATION_SEC:g})",
    )
    listen.add_argument("--device", type=int, default=None, help="Input device index")
    listen.add_argument(
        "-r", "--sample-rate",
        type=int,
        default=None,
        help="Sample rate in Hz (default: device default)",
    )
    listen.add_argument(
        "--blocksize",
        type=int,
        default=0,
        help="Callback block size in samples, 0 lets the driver choose (default: 0)",
    )
    listen.add_argument(
        "--queue-size",
        type=int,
        default=QUEUE_SIZE,
        help="Max chunks queued for analysis, 0 for unbounded (default: 0)",
    )
    listen.add_argument(
        "--overflow",
        choices=OVERFLOW_POLICIES,
        default=DEFAULT_OVERFLOW,
        help="What a full bounded queue does to the producer (default: block)",
    )
    _add_analysis_args(listen)
    listen.set_defaults(func=cmd_listen)

    analyze = subparsers.add_parser("analyze", help="Analyze an audio file")
    analyze.add_argument("audio", type=Path, help="Input audio file (wav, flac, mp3)")
    analyze.add_argument(
        "--chunk-size",
        type=int,
        default=512,
        help="Samples fed to the analyzer per step (default: 512)",
    )
    _add_analysis_args(analyze)
    analyze.set_defaults(func=cmd_analyze)

    tone = subparsers.add_parser("tone", help="Play or write a sine test tone")
    tone.add_argument("-f", "--frequency", type=float, default=200.0, help="Hz (default: 200)")
    tone.add_argument("-d", "--duration", type=float, default=5.0, help="Seconds (default: 5)")
    tone.add_argument("-r", "--sample-rate", type=int, default=44100, help="Hz (default: 44100)")
    tone.add_argument("-a", "--amplitude", type=float, default=0.5, help="0..1 (default: 0.5)")
    tone.add_argument("-o", "--output", type=Path, default=None, help="Write to WAV instead of playing")
    tone.add_argument("--device", type=int, default=None, help="Output device index")
    tone.set_defaults(func=cmd_tone)

    devices = subparsers.add_parser("devices", help="List audio input devices")
    devices.set_defaults(func=cmd_devices)

    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return args.func(args)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
