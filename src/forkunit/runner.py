from __future__ import annotations

import logging
import os
import signal
import sys
from dataclasses import dataclass
from enum import Enum
from typing import NoReturn

from forkunit.channel import DecodedCheck, read_results, write_results
from forkunit.errors import (
    AbnormalTerminationError,
    ChannelCreationError,
    ForkunitError,
    IncompleteTransferError,
    IsolationSpawnError,
)
from forkunit.suite import Suite, Test

logger = logging.getLogger(__name__)

# Exit statuses of the child process.
EXIT_OK = 0
EXIT_BODY_RAISED = 1
EXIT_WRITE_FAILED = 2


class OutcomeStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    CRASHED = "crashed"
    INCOMPLETE = "incomplete"


@dataclass
class TestOutcome:
    test: Test
    status: OutcomeStatus
    error: ForkunitError | None = None

    __test__ = False


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


def _flush_stdio() -> None:
    for stream in (sys.stdout, sys.stderr):
        if stream is None:
            continue
        try:
            stream.flush()
        except (OSError, ValueError):
            # The stream may already be closed by the test body.
            continue


class IsolatedRunner:
    """Runs every registered test of a suite in its own forked process.

    Tests run one at a time in registration order. The child process works
    on its copy of the suite and sends the checks it recorded back over a
    pipe; the parent merges them into its own suite with ``Suite.check`` so
    counters and sequence numbers come out exactly as in the child.
    """

    def __init__(self, suite: Suite):
        self.suite = suite

    def run(self) -> list[TestOutcome]:
        """Run all registered tests. Failures of one test never stop the others."""
        suite = self.suite
        tests = suite.registered_tests
        logger.debug(f"Running {len(tests)} test(s) for suite '{suite.display_name}'")

        outcomes: list[TestOutcome] = []
        try:
            for test in tests:
                outcome = self._run_test(test)
                outcomes.append(outcome)
                logger.debug(
                    f"{test.display_name}: {outcome.status.value} "
                    f"({test.success_count}/{test.check_count} checks)"
                )
        finally:
            # Checks made from here on are dangling again.
            suite.active_test = suite.dangling_test

        return outcomes

    def _run_test(self, test: Test) -> TestOutcome:
        try:
            self._execute(test)
        except (ChannelCreationError, IsolationSpawnError) as e:
            logger.error(f"{test.display_name}: {e}, not running test")
            return TestOutcome(test, OutcomeStatus.SKIPPED, e)
        except AbnormalTerminationError as e:
            logger.error(f"{test.display_name}: test failed to run: {e}")
            return TestOutcome(test, OutcomeStatus.CRASHED, e)
        except IncompleteTransferError as e:
            logger.error(f"{test.display_name}: test failed to run: {e}")
            return TestOutcome(test, OutcomeStatus.INCOMPLETE, e)

        status = OutcomeStatus.PASSED if test.passed else OutcomeStatus.FAILED
        return TestOutcome(test, status)

    def _execute(self, test: Test) -> None:
        try:
            r_fd, w_fd = os.pipe()
        except OSError as e:
            raise ChannelCreationError(f"cannot create pipe: {e}") from e

        self.suite.active_test = test
        try:
            pid = os.fork()
        except OSError as e:
            os.close(r_fd)
            os.close(w_fd)
            raise IsolationSpawnError(f"cannot create process: {e}") from e

        if pid == 0:
            os.close(r_fd)
            self._run_child(test, w_fd)

        # Only the child may hold the write end, otherwise EOF never arrives.
        os.close(w_fd)
        logger.debug(f"{test.display_name}: started in process {pid}")

        decoded: list[DecodedCheck] = []
        transfer_error: IncompleteTransferError | None = None
        with os.fdopen(r_fd, "rb") as reader:
            try:
                decoded = read_results(reader)
            except IncompleteTransferError as e:
                transfer_error = e

        self._wait(pid)

        if transfer_error is not None:
            raise transfer_error

        for result, comment in decoded:
            self.suite.check(result, comment)

    def _wait(self, pid: int) -> None:
        try:
            _, wstatus = os.waitpid(pid, 0)
        except ChildProcessError as e:
            raise AbnormalTerminationError(f"cannot wait for process {pid}: {e}") from e

        if os.WIFSIGNALED(wstatus):
            signum = os.WTERMSIG(wstatus)
            raise AbnormalTerminationError(
                f"process {pid} killed by {_signal_name(signum)}", signal=signum
            )

        exit_code = os.WEXITSTATUS(wstatus)
        if exit_code != EXIT_OK:
            raise AbnormalTerminationError(
                f"process {pid} exited with status {exit_code}", exit_code=exit_code
            )

    def _run_child(self, test: Test, w_fd: int) -> NoReturn:
        """Body of the forked process. Never returns to the caller's code."""
        exit_code = EXIT_OK
        try:
            already_sent = len(test.checks)
            if test.body is not None:
                try:
                    test.body(self.suite)
                except BaseException:
                    logger.exception(f"{test.display_name}: test body raised")
                    exit_code = EXIT_BODY_RAISED

            if exit_code == EXIT_OK:
                try:
                    with os.fdopen(w_fd, "wb") as writer:
                        write_results(test.checks[already_sent:], writer)
                except Exception:
                    logger.exception(f"{test.display_name}: cannot send results")
                    exit_code = EXIT_WRITE_FAILED
        finally:
            _flush_stdio()
            os._exit(exit_code)


def run_tests(suite: Suite | None) -> list[TestOutcome]:
    """Run every registered test of suite in isolation."""
    if suite is None:
        return []
    return IsolatedRunner(suite).run()
