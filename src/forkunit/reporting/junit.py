from __future__ import annotations

from pathlib import Path

from junitparser import Failure, JUnitXml, TestCase, TestSuite

from forkunit.suite import Check, Suite, Test


def _case_name(check: Check) -> str:
    if check.comment is not None:
        return check.comment
    return f"Check #{check.sequence_number}"


def _build_testsuite(test: Test, name: str, classname: str) -> TestSuite:
    junit_suite = TestSuite(name)
    junit_suite.add_property("ordinal", str(test.ordinal))
    junit_suite.add_property("success_count", str(test.success_count))
    junit_suite.add_property("check_count", str(test.check_count))
    if test.comment is not None:
        junit_suite.add_property("comment", test.comment)

    # Test cases: one per check, in recording order
    for check in test.checks:
        case = TestCase(_case_name(check))
        case.classname = classname
        if not check.result:
            case.result = Failure(f"Check #{check.sequence_number} failed")
        junit_suite.add_testcase(case)

    return junit_suite


def build_junit(suite: Suite) -> JUnitXml:
    """Map a finished suite to JUnit XML: one testsuite per test, one testcase per check."""
    xml = JUnitXml(suite.display_name)

    dangling = suite.dangling_test
    xml.append(_build_testsuite(dangling, suite.display_name, suite.display_name))

    for test in suite.registered_tests:
        name = f"{suite.display_name} / {test.display_name}"
        xml.append(_build_testsuite(test, name, test.display_name))

    return xml


def write_junit(suite: Suite, path: Path) -> Path:
    """Write junit XML for suite to path, return path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    build_junit(suite).write(str(path), pretty=True)
    return path
