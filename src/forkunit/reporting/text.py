"""Plain-text reports.

Basic report::

    Suite name
    Some information about the suite.
    Total successful checks: 17/20.
        Successful checks: 2/3.

        Test #1
            Successful checks: 15/17.

The standard report adds one ``Check failed: ...`` line per failing check,
under the dangling checks and under each test.
"""

from __future__ import annotations

import sys
from typing import TextIO

from forkunit.suite import Suite, Test

INDENTATION = "    "


def _indent(level: int) -> str:
    return INDENTATION * level


def _checks_fraction(success: int, total: int, indent: int) -> str:
    return f"{_indent(indent)}Successful checks: {success}/{total}."


def _main_header(suite: Suite) -> list[str]:
    lines = [suite.display_name]
    if suite.comment is not None:
        lines.append(suite.comment)
    lines.append(f"Total successful checks: {suite.success_count}/{suite.check_count}.")
    dangling = suite.dangling_test
    lines.append(_checks_fraction(dangling.success_count, dangling.check_count, 1))
    return lines


def _test_common(test: Test, indent: int) -> list[str]:
    lines = ["", f"{_indent(indent)}{test.display_name}"]
    if test.comment is not None:
        lines.append(f"{_indent(indent)}{test.comment}")
    lines.append(_checks_fraction(test.success_count, test.check_count, indent + 1))
    return lines


def _test_failures(test: Test, indent: int) -> list[str]:
    lines = []
    for check in test.failures():
        if check.comment is not None:
            lines.append(f"{_indent(indent)}Check failed: {check.comment}")
        else:
            lines.append(f"{_indent(indent)}Check failed: Check #{check.sequence_number}.")
    return lines


def _join(lines: list[str]) -> str:
    return "\n".join(lines) + "\n"


def render_basic(suite: Suite | None) -> str:
    if suite is None:
        return ""

    lines = _main_header(suite)
    for test in suite.registered_tests:
        lines.extend(_test_common(test, 1))
    return _join(lines)


def render_standard(suite: Suite | None) -> str:
    if suite is None:
        return ""

    lines = _main_header(suite)
    lines.extend(_test_failures(suite.dangling_test, 1))
    for test in suite.registered_tests:
        lines.extend(_test_common(test, 1))
        lines.extend(_test_failures(test, 2))
    return _join(lines)


def report_basic(suite: Suite | None, file: TextIO | None = None) -> None:
    """Write the basic report to file (stdout by default). Writes nothing for None."""
    (file or sys.stdout).write(render_basic(suite))


def report_standard(suite: Suite | None, file: TextIO | None = None) -> None:
    """Write the standard report to file (stdout by default). Writes nothing for None."""
    (file or sys.stdout).write(render_standard(suite))
