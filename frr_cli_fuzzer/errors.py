"""
errors.py - Exception hierarchy for the fuzzer.

Anything derived from SetupError aborts the run before fuzzing starts.
Daemon crashes are expected outcomes and never raised.
"""


class FuzzerError(Exception):
    """Base class for all fuzzer errors."""


class ConfigError(FuzzerError):
    """The configuration file is missing, malformed or has bad values."""


class SetupError(FuzzerError):
    """The fuzzing environment could not be prepared."""


class UnsafeRunstatedirError(SetupError):
    def __init__(self, path, marker):
        super().__init__(
            f"The runstatedir configuration parameter must contain "
            f"\"{marker}\" somewhere in the path (got {path})."
        )
        self.path = path
        self.marker = marker


class IsolationError(SetupError):
    """The isolated namespace could not be created."""


class ConfigWriteError(SetupError):
    """A daemon configuration file could not be written."""
