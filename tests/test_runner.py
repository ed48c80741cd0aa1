"""Tests for the isolated test runner. These fork real child processes."""

import logging
import os
import signal

import pytest

import forkunit
from forkunit import (
    AbnormalTerminationError,
    ChannelCreationError,
    IncompleteTransferError,
    IsolationSpawnError,
    OutcomeStatus,
    Suite,
)
from forkunit.runner import EXIT_BODY_RAISED, EXIT_WRITE_FAILED

pytestmark = pytest.mark.skipif(not hasattr(os, "fork"), reason="requires os.fork")

_process_state = {"calls": 0}


def _fails_twice(suite):
    suite.check(False, "bad")
    suite.check(False, "bad")


def _passes_three(suite):
    for i in range(3):
        suite.check(True, f"pass {i}")


def _one_failure_of_three(suite):
    suite.check(True, "fine")
    suite.check(False, "broken")
    suite.check(True)


def _no_checks(suite):
    pass


def _killed(suite):
    suite.check(True, "never delivered")
    os.kill(os.getpid(), signal.SIGKILL)


def _raises(suite):
    suite.check(True, "never delivered")
    raise RuntimeError("test body blew up")


def _exits_early(suite):
    suite.check(True, "never delivered")
    os._exit(0)


def _bumps_process_state(suite):
    _process_state["calls"] += 1
    suite.check(_process_state["calls"] == 1, "sees untouched process state")


def test_dangling_and_test_checks_are_merged(suite: Suite):
    forkunit.record_check(suite, True, "ok")
    forkunit.register_test(suite, _fails_twice, "T")

    forkunit.run_tests(suite)

    assert suite.check_count == 3
    assert suite.success_count == 1
    dangling = suite.dangling_test
    assert (dangling.success_count, dangling.check_count) == (1, 1)
    (test,) = suite.registered_tests
    assert (test.success_count, test.check_count) == (0, 2)
    assert [(c.result, c.comment, c.sequence_number) for c in test.checks] == [
        (False, "bad", 1),
        (False, "bad", 2),
    ]


def test_failing_test_fails_suite_and_report_lists_one_failure(suite: Suite):
    suite.add_test(_passes_three, "Passing")
    suite.add_test(_one_failure_of_three, "Failing")

    outcomes = suite.run_tests()

    assert [o.status for o in outcomes] == [OutcomeStatus.PASSED, OutcomeStatus.FAILED]
    assert suite.all_passed() is False
    report = forkunit.render_standard(suite)
    failure_lines = [line for line in report.splitlines() if "Check failed" in line]
    assert failure_lines == ["        Check failed: broken"]
    assert report.index("Failing") < report.index("Check failed: broken")


def test_test_without_checks_counts_as_passed(suite: Suite):
    suite.add_test(_no_checks, "Empty")
    suite.add_test(None, "No body")

    outcomes = suite.run_tests()

    for test in suite.registered_tests:
        assert (test.success_count, test.check_count) == (0, 0)
    assert [o.status for o in outcomes] == [OutcomeStatus.PASSED, OutcomeStatus.PASSED]
    assert suite.all_passed() is True


def test_checks_keep_recording_order(suite: Suite):
    def body(s):
        for i in range(50):
            s.check(i % 3 != 0, f"check {i}")

    suite.add_test(body)
    suite.run_tests()

    (test,) = suite.registered_tests
    assert [c.comment for c in test.checks] == [f"check {i}" for i in range(50)]
    assert [c.sequence_number for c in test.checks] == list(range(1, 51))
    assert [c.result for c in test.checks] == [i % 3 != 0 for i in range(50)]


def test_crashing_test_yields_zero_and_spares_others(suite: Suite, caplog):
    suite.add_test(_passes_three, "Before")
    suite.add_test(_killed, "Crashes")
    suite.add_test(_fails_twice, "After")

    with caplog.at_level(logging.ERROR, logger="forkunit.runner"):
        outcomes = suite.run_tests()

    before, crashed, after = suite.registered_tests
    assert (before.success_count, before.check_count) == (3, 3)
    assert (crashed.success_count, crashed.check_count) == (0, 0)
    assert crashed.checks == []
    assert (after.success_count, after.check_count) == (0, 2)
    assert suite.check_count == 5
    assert suite.success_count == 3

    outcome = outcomes[1]
    assert outcome.status == OutcomeStatus.CRASHED
    assert isinstance(outcome.error, AbnormalTerminationError)
    assert outcome.error.signal == signal.SIGKILL
    assert "Crashes: test failed to run" in caplog.text


def test_raising_body_is_abnormal_termination(suite: Suite):
    suite.add_test(_raises, "Raises")

    (outcome,) = suite.run_tests()

    assert outcome.status == OutcomeStatus.CRASHED
    assert isinstance(outcome.error, AbnormalTerminationError)
    assert outcome.error.exit_code == EXIT_BODY_RAISED
    (test,) = suite.registered_tests
    assert (test.success_count, test.check_count) == (0, 0)


def test_incomplete_stream_discards_results(suite: Suite):
    suite.add_test(_exits_early, "Exits early")
    suite.add_test(_passes_three, "Still runs")

    outcomes = suite.run_tests()

    early, later = suite.registered_tests
    assert outcomes[0].status == OutcomeStatus.INCOMPLETE
    assert isinstance(outcomes[0].error, IncompleteTransferError)
    assert (early.success_count, early.check_count) == (0, 0)
    assert early.checks == []
    assert (later.success_count, later.check_count) == (3, 3)
    assert suite.check_count == 3


def test_tests_do_not_see_each_others_process_state(suite: Suite):
    suite.add_test(_bumps_process_state, "First")
    suite.add_test(_bumps_process_state, "Second")

    suite.run_tests()

    assert suite.all_passed() is True
    assert suite.check_count == 2
    assert _process_state["calls"] == 0


def test_child_mutations_do_not_reach_parent(suite: Suite):
    def meddles(s):
        s.name = "changed in child"
        s.add_test(None, "registered in child")
        s.dangling_test.check_count = 99
        s.check(True)

    suite.add_test(meddles, "Meddles")
    suite.run_tests()

    assert suite.name is None
    assert len(suite.registered_tests) == 1
    assert suite.dangling_test.check_count == 0
    assert suite.check_count == 1


def test_body_sees_its_own_test_as_active(suite: Suite):
    def body(s):
        s.check(s.active_test.name == "Self aware", "active test is the running test")

    suite.add_test(body, "Self aware")
    suite.run_tests()

    assert suite.all_passed() is True
    assert suite.check_count == 1


def test_active_test_reset_after_run(suite: Suite):
    suite.add_test(_passes_three, "T")
    suite.run_tests()

    assert suite.active_test is suite.dangling_test
    suite.check(False, "after the run")
    assert suite.dangling_test.check_count == 1
    assert suite.registered_tests[0].check_count == 3


def test_large_result_stream_does_not_deadlock(suite: Suite):
    comment = "x" * 1000

    def chatty(s):
        for _ in range(500):
            s.check(True, comment)

    suite.add_test(chatty, "Chatty")
    suite.run_tests()

    (test,) = suite.registered_tests
    assert test.check_count == 500
    assert test.checks[-1].comment == comment


def test_rerun_appends_with_continuing_sequence_numbers(suite: Suite):
    suite.add_test(_fails_twice, "T")
    suite.run_tests()
    suite.run_tests()

    (test,) = suite.registered_tests
    assert test.check_count == 4
    assert [c.sequence_number for c in test.checks] == [1, 2, 3, 4]
    assert suite.check_count == 4


def test_pipe_failure_skips_tests(suite: Suite, mocker, caplog):
    suite.add_test(_passes_three, "A")
    suite.add_test(_passes_three, "B")
    mocker.patch("forkunit.runner.os.pipe", side_effect=OSError("too many open files"))

    with caplog.at_level(logging.ERROR, logger="forkunit.runner"):
        outcomes = suite.run_tests()

    assert [o.status for o in outcomes] == [OutcomeStatus.SKIPPED] * 2
    assert all(isinstance(o.error, ChannelCreationError) for o in outcomes)
    assert suite.check_count == 0
    assert suite.active_test is suite.dangling_test
    assert "cannot create pipe" in caplog.text


def test_fork_failure_skips_test_and_closes_pipe(suite: Suite, mocker):
    suite.add_test(_passes_three, "A")
    mocker.patch("forkunit.runner.os.fork", side_effect=OSError("no more processes"))
    close = mocker.spy(os, "close")

    (outcome,) = suite.run_tests()

    assert outcome.status == OutcomeStatus.SKIPPED
    assert isinstance(outcome.error, IsolationSpawnError)
    assert close.call_count == 2
    assert suite.registered_tests[0].check_count == 0


def test_failed_result_write_is_abnormal_termination(suite: Suite, mocker):
    suite.add_test(_passes_three, "Cannot report")
    # The patch is inherited by the forked child.
    mocker.patch(
        "forkunit.runner.write_results", side_effect=BrokenPipeError("reader went away")
    )

    (outcome,) = suite.run_tests()

    assert outcome.status == OutcomeStatus.CRASHED
    assert isinstance(outcome.error, AbnormalTerminationError)
    assert outcome.error.exit_code == EXIT_WRITE_FAILED
    assert suite.check_count == 0
    assert suite.registered_tests[0].checks == []


def test_unencodable_comment_is_abnormal_termination(suite: Suite):
    def bad_comment(s):
        s.check(True, 42)

    suite.add_test(bad_comment, "Bad comment")
    suite.add_test(_passes_three, "After")

    first, second = suite.run_tests()

    assert first.status == OutcomeStatus.CRASHED
    assert first.error.exit_code == EXIT_WRITE_FAILED
    assert second.status == OutcomeStatus.PASSED
    assert suite.check_count == 3
