"""Exception types raised by openapi-synth."""


class SynthError(Exception):
    """Base class for all openapi-synth errors."""


class ManifestError(SynthError):
    """A descriptor manifest could not be loaded."""


class EndpointBuildError(SynthError):
    """Building the operation for a single endpoint failed."""

    def __init__(self, endpoint: str, reason: str):
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason
