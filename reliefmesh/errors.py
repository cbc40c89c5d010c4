"""Exception types raised by the relief pipeline."""


class ReliefMeshError(Exception):
    """Base class for every pipeline failure."""


class DecodeError(ReliefMeshError):
    """The source raster could not be decoded or sampled."""


class ConfigError(ReliefMeshError, ValueError):
    """A setting lies outside its valid domain."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid setting '{field}': {reason}")


class ProcessingError(ReliefMeshError):
    """Unexpected numeric failure inside a pipeline stage."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"Stage '{stage}' failed: {message}. "
                         f"Try reducing the resolution.")
