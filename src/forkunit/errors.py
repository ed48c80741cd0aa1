"""Exception taxonomy for the harness.

Runner errors are raised and caught per test; they reach callers only
through the log and the ``TestOutcome`` records returned by a run.
"""

from __future__ import annotations


class ForkunitError(Exception):
    """Base class for all harness errors."""


class ChannelCreationError(ForkunitError):
    """The result pipe for a test could not be created."""


class IsolationSpawnError(ForkunitError):
    """The child process for a test could not be forked."""


class AbnormalTerminationError(ForkunitError):
    """The child process was killed by a signal or exited non-zero."""

    def __init__(self, message: str, signal: int | None = None, exit_code: int | None = None):
        super().__init__(message)
        self.signal = signal
        self.exit_code = exit_code


class IncompleteTransferError(ForkunitError):
    """The result stream ended before its end marker."""


class HookNotSupportedError(ForkunitError, NotImplementedError):
    """Hooks are declared but no hook type is supported yet."""


class ConfigError(ForkunitError, ValueError):
    """The configured test module or entrypoint cannot be loaded."""
