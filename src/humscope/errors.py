"""Exception types raised while setting up the analysis pipeline."""


class HumscopeError(Exception):
    """Base class for humscope errors."""


class ConfigurationError(HumscopeError, ValueError):
    """Invalid startup parameter; the stream must not be started."""


class FrameSizeMismatchError(ConfigurationError):
    """A frame does not match the size the transform was configured for."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Transform configured for {expected} samples, got a frame of {actual}"
        )
        self.expected = expected
        self.actual = actual
