"""Tests for AudioCapture fan-out (no audio hardware needed)."""

import numpy as np
import pytest

try:
    import sounddevice  # noqa: F401
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    # OSError: PortAudio library missing
    SOUNDDEVICE_AVAILABLE = False

pytestmark = pytest.mark.skipif(not SOUNDDEVICE_AVAILABLE, reason="sounddevice/PortAudio not available")


@pytest.fixture
def capture():
    from humscope.io.capture import AudioCapture

    return AudioCapture(sample_rate=44100)


class TestDispatch:
    def test_first_channel_fanned_out_to_sinks(self, capture):
        first, second = [], []
        capture.add_sink(first.append)
        capture.add_sink(second.append)

        block = np.stack([np.arange(8, dtype=np.float32), -np.ones(8, dtype=np.float32)], axis=1)
        capture.dispatch(block)

        assert len(first) == 1 and len(second) == 1
        assert first[0] is second[0]
        np.testing.assert_array_equal(first[0], np.arange(8))
        assert capture.chunks_captured == 1

    def test_chunk_is_a_read_only_copy(self, capture):
        received = []
        capture.add_sink(received.append)
        block = np.ones((4, 1), dtype=np.float32)
        capture.dispatch(block)
        block[:] = 0

        np.testing.assert_array_equal(received[0], np.ones(4))
        assert not received[0].flags.writeable

    def test_callback_forwards_block(self, capture):
        received = []
        capture.add_sink(received.append)
        capture._callback(np.zeros((16, 1), dtype=np.float32), 16, None, None)
        assert received[0].shape == (16,)


class TestSampleRate:
    def test_requested_rate_used(self, capture):
        assert capture.resolve_sample_rate() == 44100

    def test_invalid_requested_rate(self):
        from humscope.errors import ConfigurationError
        from humscope.io.capture import AudioCapture

        with pytest.raises(ConfigurationError):
            AudioCapture(sample_rate=0).resolve_sample_rate()
