"""
Report sinks.

A reporter is any callable accepting a :class:`PeakReport`. The console
reporter renders one line per frame::

    [118] | 118:108 | 129:96 | 107:95

with the dominant frequency highlighted.
"""

import json
import logging
import sys
from typing import IO, Optional

from rich.console import Console
from rich.text import Text

from humscope.core.stream import PeakReport

logger = logging.getLogger(__name__)


class ConsoleReporter:
    """Coloured single-line output through a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def format(self, report: PeakReport) -> Text:
        line = Text()
        line.append("[")
        line.append(str(report.dominant.hz), style="red on blue")
        line.append("] ")
        for peak in report.candidates:
            line.append("| ")
            if peak == report.dominant:
                line.append(str(peak.hz), style="red")
            else:
                line.append(str(peak.hz))
            line.append(f":{peak.db} ")
        return line

    def __call__(self, report: PeakReport) -> None:
        self.console.print(self.format(report), soft_wrap=True)


class JsonLinesReporter:
    """Writes one JSON object per report."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream or sys.stdout

    def __call__(self, report: PeakReport) -> None:
        self.stream.write(json.dumps(report.as_dict()) + "\n")
        self.stream.flush()


class LogReporter:
    """Sends reports to a logger at INFO."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def __call__(self, report: PeakReport) -> None:
        self.log.info(
            "dominant %d Hz (%d dB), %d candidate(s)",
            report.dominant.hz,
            report.dominant.db,
            len(report.candidates),
        )
