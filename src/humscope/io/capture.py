"""Live audio input built on sounddevice."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import numpy as np
import sounddevice as sd

from humscope.config import validate_sample_rate

logger = logging.getLogger(__name__)

Sink = Callable[[np.ndarray], None]
DeviceSpec = Optional[Union[int, str]]


@dataclass(frozen=True)
class InputDevice:
    """Summary of one input-capable device."""

    index: int
    name: str
    channels: int
    default_sample_rate: int
    is_default: bool = False


def list_input_devices() -> List[InputDevice]:
    """Enumerate devices with at least one input channel."""
    try:
        default_index = sd.default.device[0]
    except (TypeError, IndexError):
        default_index = None
    devices = []
    for index, info in enumerate(sd.query_devices()):
        if info["max_input_channels"] < 1:
            continue
        devices.append(
            InputDevice(
                index=index,
                name=info["name"],
                channels=int(info["max_input_channels"]),
                default_sample_rate=int(info["default_samplerate"]),
                is_default=index == default_index,
            )
        )
    return devices


class AudioCapture:
    """
    Owns the input stream and fans mono chunks out to registered sinks.

    Each callback block is reduced to the device's first channel, copied
    (sounddevice reuses its buffer) and handed to every sink in order.
    Sinks run on the audio thread and must return quickly.
    """

    def __init__(
        self,
        device: DeviceSpec = None,
        sample_rate: Optional[int] = None,
        blocksize: int = 0,
    ):
        self.device = device
        self.blocksize = blocksize
        self._requested_rate = sample_rate
        self._sinks: List[Sink] = []
        self._last_status: Optional[str] = None
        self.stream: Optional[sd.InputStream] = None
        self.chunks_captured = 0

    def add_sink(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def device_info(self) -> dict:
        return sd.query_devices(self.device, "input")

    def resolve_sample_rate(self) -> int:
        """Requested rate, or the device's default input rate."""
        if self._requested_rate is not None:
            return validate_sample_rate(self._requested_rate)
        return validate_sample_rate(self.device_info()["default_samplerate"])

    def __enter__(self) -> "AudioCapture":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def start(self) -> None:
        if self.stream is not None:
            return
        info = self.device_info()
        sample_rate = self.resolve_sample_rate()
        logger.info("Input device: %s", info["name"])
        logger.info(
            "Input format: %d Hz, %d channel(s) available, capturing channel 0",
            sample_rate,
            info["max_input_channels"],
        )
        stream = sd.InputStream(
            device=self.device,
            channels=1,
            samplerate=sample_rate,
            dtype="float32",
            blocksize=self.blocksize,
            callback=self._callback,
        )
        try:
            stream.start()
        except Exception as exc:
            logger.error("Failed to start input stream: %s", exc)
            stream.close()
            raise
        self.stream = stream

    def stop(self) -> None:
        stream = self.stream
        if stream is None:
            return
        self.stream = None
        stream.stop()
        stream.close()
        logger.info("Input stream stopped after %d chunks", self.chunks_captured)

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            status_str = str(status)
            if status_str != self._last_status:
                logger.warning("Audio callback status: %s", status_str)
                self._last_status = status_str
        self.dispatch(indata)

    def dispatch(self, indata: np.ndarray) -> None:
        """Down-mix a callback block to its first channel and feed the sinks."""
        mono = indata[:, 0] if indata.ndim > 1 else indata
        chunk = np.array(mono, dtype=np.float32)
        chunk.flags.writeable = False
        self.chunks_captured += 1
        for sink in self._sinks:
            sink(chunk)
