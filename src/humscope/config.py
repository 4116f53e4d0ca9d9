"""Analysis configuration and defaults."""

from dataclasses import asdict, dataclass

from humscope.errors import ConfigurationError

# Transform / frame size (samples). Controls frequency resolution and latency.
FRAME_SIZE = 4096
# Frames' worth of samples accumulated before a processing pass.
ACCUMULATOR_MULTIPLE = 1

# Candidate band, exclusive on both ends (Hz)
BAND_LOW_HZ = 0.0
BAND_HIGH_HZ = 500.0
DB_THRESHOLD = 10.0
TOP_K = 10

# Integer-Hz bucket collision policies
COLLISION_POLICIES = ("last", "first", "max")
DEFAULT_COLLISION = "last"

# Hand-off channel between the audio callback and the analysis worker.
# 0 means unbounded.
QUEUE_SIZE = 0
OVERFLOW_POLICIES = ("block", "drop_oldest")
DEFAULT_OVERFLOW = "block"

# Live capture defaults
DEFAULT_DURATION_SEC = 100.0
DEFAULT_OUTPUT = "output.wav"


@dataclass(frozen=True)
class AnalysisConfig:
    """Startup parameters of the spectral analysis pipeline."""

    frame_size: int = FRAME_SIZE
    accumulator_multiple: int = ACCUMULATOR_MULTIPLE
    band_low: float = BAND_LOW_HZ
    band_high: float = BAND_HIGH_HZ
    db_threshold: float = DB_THRESHOLD
    top_k: int = TOP_K
    collision: str = DEFAULT_COLLISION
    queue_size: int = QUEUE_SIZE
    overflow: str = DEFAULT_OVERFLOW

    def validate(self) -> "AnalysisConfig":
        """
        Check every field, raising ConfigurationError on the first problem.

        Returns:
            self, so calls can be chained.
        """
        if self.frame_size < 2:
            raise ConfigurationError(
                f"frame_size must be at least 2, got {self.frame_size}"
            )
        if self.accumulator_multiple < 1:
            raise ConfigurationError(
                f"accumulator_multiple must be at least 1, got {self.accumulator_multiple}"
            )
        if self.band_low < 0 or self.band_high <= self.band_low:
            raise ConfigurationError(
                f"invalid band ({self.band_low}, {self.band_high}) Hz"
            )
        if self.top_k < 1:
            raise ConfigurationError(f"top_k must be at least 1, got {self.top_k}")
        if self.collision not in COLLISION_POLICIES:
            raise ConfigurationError(
                f"collision must be one of {COLLISION_POLICIES}, got {self.collision!r}"
            )
        if self.queue_size < 0:
            raise ConfigurationError(f"queue_size must be >= 0, got {self.queue_size}")
        if self.overflow not in OVERFLOW_POLICIES:
            raise ConfigurationError(
                f"overflow must be one of {OVERFLOW_POLICIES}, got {self.overflow!r}"
            )
        return self

    def to_dict(self) -> dict:
        return asdict(self)


def validate_sample_rate(sample_rate) -> int:
    """Return the sample rate as an int, raising if it is not positive."""
    try:
        rate = int(sample_rate)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid sample rate: {sample_rate!r}") from exc
    if rate <= 0:
        raise ConfigurationError(f"sample rate must be positive, got {sample_rate}")
    return rate
