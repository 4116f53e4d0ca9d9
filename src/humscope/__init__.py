"""Real-time low-frequency hum and tone detection for live audio."""

from humscope.config import AnalysisConfig
from humscope.core.stream import Peak, PeakReport, RealtimeAnalyzer
from humscope.errors import ConfigurationError, FrameSizeMismatchError, HumscopeError
from humscope.pipeline import HumPipeline
from humscope.runtime import StreamRuntime

__version__ = "0.1.0"
__all__ = [
    "AnalysisConfig",
    "Peak",
    "PeakReport",
    "RealtimeAnalyzer",
    "ConfigurationError",
    "FrameSizeMismatchError",
    "HumscopeError",
    "HumPipeline",
    "StreamRuntime",
]
