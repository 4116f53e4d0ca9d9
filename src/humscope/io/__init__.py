"""Collaborators around the analysis core: capture, persistence, reporting."""

from humscope.io.reporter import ConsoleReporter, JsonLinesReporter, LogReporter
from humscope.io.writer import WavWriter

__all__ = ["ConsoleReporter", "JsonLinesReporter", "LogReporter", "WavWriter"]
