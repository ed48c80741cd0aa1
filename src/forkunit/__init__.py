"""Unit-testing harness that runs every test in its own forked process."""

from forkunit.errors import (
    AbnormalTerminationError,
    ChannelCreationError,
    ConfigError,
    ForkunitError,
    HookNotSupportedError,
    IncompleteTransferError,
    IsolationSpawnError,
)
from forkunit.reporting.text import (
    render_basic,
    render_standard,
    report_basic,
    report_standard,
)
from forkunit.runner import IsolatedRunner, OutcomeStatus, TestOutcome, run_tests
from forkunit.suite import (
    Check,
    HookType,
    Options,
    Suite,
    Test,
    add_hook,
    all_passed,
    create,
    destroy,
    record_check,
    register_test,
)

__all__ = [
    "AbnormalTerminationError",
    "ChannelCreationError",
    "Check",
    "ConfigError",
    "ForkunitError",
    "HookNotSupportedError",
    "HookType",
    "IncompleteTransferError",
    "IsolatedRunner",
    "IsolationSpawnError",
    "Options",
    "OutcomeStatus",
    "Suite",
    "Test",
    "TestOutcome",
    "add_hook",
    "all_passed",
    "create",
    "destroy",
    "record_check",
    "register_test",
    "render_basic",
    "render_standard",
    "report_basic",
    "report_standard",
    "run_tests",
]
