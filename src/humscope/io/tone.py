"""Test-tone generation for checking a capture setup end to end."""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import soundfile as sf

from humscope.config import validate_sample_rate
from humscope.errors import ConfigurationError

DEFAULT_TONE_HZ = 200.0
DEFAULT_TONE_SEC = 5.0


def sine_tone(
    frequency: float = DEFAULT_TONE_HZ,
    duration: float = DEFAULT_TONE_SEC,
    sample_rate: int = 44100,
    amplitude: float = 0.5,
) -> np.ndarray:
    """
    Generate a pure sine tone.

    Args:
        frequency: Tone frequency in Hz.
        duration: Length in seconds.
        sample_rate: Samples per second.
        amplitude: Peak amplitude, 0..1.

    Returns:
        1-D float32 array of ``int(duration * sample_rate)`` samples.
    """
    sample_rate = validate_sample_rate(sample_rate)
    if duration < 0:
        raise ConfigurationError(f"duration must be >= 0, got {duration}")
    t = np.arange(int(duration * sample_rate), dtype=np.float64) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


def write_tone(path: Union[str, Path], tone: np.ndarray, sample_rate: int) -> Path:
    """Write a tone to a 32-bit float WAV file."""
    path = Path(path)
    sf.write(str(path), tone, validate_sample_rate(sample_rate), subtype="FLOAT")
    return path


def play_tone(tone: np.ndarray, sample_rate: int, device: Optional[int] = None) -> None:
    """Play a tone on the output device and block until it finishes."""
    import sounddevice as sd

    sd.play(tone, samplerate=validate_sample_rate(sample_rate), device=device)
    sd.wait()
