"""Shared fixtures: synthetic tones at the default live-capture settings."""

import numpy as np
import pytest

from humscope.io.tone import sine_tone

TEST_SR = 44100


@pytest.fixture
def pure_sine():
    """A 5 second, 120 Hz hum."""
    return sine_tone(120.0, 5.0, TEST_SR, amplitude=0.5), TEST_SR


@pytest.fixture
def mixed_signal():
    """300 Hz (in band) and 600 Hz (out of band) at equal amplitude, 2 seconds."""
    y = sine_tone(300.0, 2.0, TEST_SR, amplitude=0.4) + sine_tone(600.0, 2.0, TEST_SR, amplitude=0.4)
    return y.astype(np.float32), TEST_SR


@pytest.fixture
def chunks():
    """Split a signal into producer-sized chunks."""

    def _split(y: np.ndarray, size: int = 512) -> list:
        return [y[i:i + size] for i in range(0, len(y), size)]

    return _split
