"""Checks, tests and the suite that owns them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import TYPE_CHECKING, Callable

from forkunit.errors import HookNotSupportedError

if TYPE_CHECKING:
    from forkunit.runner import TestOutcome

logger = logging.getLogger(__name__)

DEFAULT_SUITE_NAME = "Main"


class Options(IntFlag):
    NONE = 0


class HookType(str, Enum):
    BEFORE_EACH_TEST = "before_each_test"


# No hook type is implemented yet; add_hook refuses everything not listed here.
SUPPORTED_HOOKS: frozenset[HookType] = frozenset()


@dataclass(frozen=True)
class Check:
    """One recorded call to ``Suite.check``.

    Attributes:
        result: Whether the checked condition held.
        comment: What was being checked, if the caller said.
        sequence_number: 1-based position of this check within its test.
    """

    result: bool
    comment: str | None
    sequence_number: int


TestBody = Callable[["Suite"], None]


@dataclass
class Test:
    name: str | None
    comment: str | None
    body: TestBody | None
    ordinal: int
    success_count: int = 0
    check_count: int = 0
    checks: list[Check] = field(default_factory=list)

    # Keep pytest from collecting this class when imported into test modules.
    __test__ = False

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else f"Test #{self.ordinal}"

    @property
    def passed(self) -> bool:
        return self.success_count == self.check_count

    def failures(self) -> list[Check]:
        return [c for c in self.checks if not c.result]


class Suite:
    """Registered tests plus the implicit test that absorbs dangling checks.

    The dangling test is created with the suite, is always ``tests[0]`` and
    is never executed by the runner. ``active_test`` is the test currently
    receiving checks: the dangling test at rest, the executing test during
    a run.
    """

    def __init__(
        self,
        options: Options = Options.NONE,
        name: str | None = None,
        comment: str | None = None,
    ) -> None:
        self.options = Options(options)
        self.name = name
        self.comment = comment
        self.success_count = 0
        self.check_count = 0
        self.test_count = 0
        self.tests: list[Test] = []

        dangling = self.add_test(None, None, None)
        if dangling is None:
            raise MemoryError("cannot create the dangling checks test")
        self.active_test: Test = dangling

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else DEFAULT_SUITE_NAME

    @property
    def dangling_test(self) -> Test:
        return self.tests[0]

    @property
    def registered_tests(self) -> list[Test]:
        return self.tests[1:]

    def check(self, condition: bool, comment: str | None = None) -> None:
        """Record a check against the active test.

        Counters are updated before the check object is built, so a failure
        to store it still leaves the check counted.
        """
        test = self.active_test
        condition = bool(condition)

        test.check_count += 1
        self.check_count += 1
        if condition:
            test.success_count += 1
            self.success_count += 1

        try:
            test.checks.append(Check(condition, comment, test.check_count))
        except MemoryError:
            logger.warning(
                "failure to store check: %s",
                comment if comment is not None else "no comment provided.",
            )

    def add_test(
        self,
        body: TestBody | None = None,
        name: str | None = None,
        comment: str | None = None,
    ) -> Test | None:
        """Queue a test to be run by ``run_tests``. Returns None if it could not be added."""
        try:
            test = Test(name=name, comment=comment, body=body, ordinal=self.test_count)
            self.tests.append(test)
        except MemoryError:
            logger.error(
                "failure to add test: %s",
                name if name is not None else "no name provided.",
            )
            return None

        self.test_count += 1
        logger.debug("Registered %s", test.display_name)
        return test

    def run_tests(self) -> list[TestOutcome]:
        from forkunit.runner import IsolatedRunner

        return IsolatedRunner(self).run()

    def all_passed(self) -> bool:
        return all(test.passed for test in self.tests)

    def add_hook(self, hook_type: HookType, hook: Callable[[], None]) -> None:
        hook_type = HookType(hook_type)
        if hook_type not in SUPPORTED_HOOKS:
            logger.warning("Hook %r is not supported, ignoring %r", hook_type.value, hook)
            raise HookNotSupportedError(f"hook type {hook_type.value!r} is not supported")

    def destroy(self) -> None:
        """Release every test and check. The suite must not be used afterwards."""
        for test in self.tests:
            test.checks.clear()
        self.tests.clear()
        self.success_count = 0
        self.check_count = 0
        self.test_count = 0


def create(
    options: Options = Options.NONE,
    name: str | None = None,
    comment: str | None = None,
) -> Suite | None:
    """Create a suite, or return None if it cannot be allocated."""
    try:
        return Suite(options, name, comment)
    except MemoryError:
        logger.error("failure to create suite: %s", name if name is not None else DEFAULT_SUITE_NAME)
        return None


def destroy(suite: Suite | None) -> None:
    if suite is None:
        return
    suite.destroy()


def record_check(suite: Suite | None, condition: bool, comment: str | None = None) -> None:
    if suite is None:
        return
    suite.check(condition, comment)


def register_test(
    suite: Suite | None,
    body: TestBody | None = None,
    name: str | None = None,
    comment: str | None = None,
) -> None:
    if suite is None:
        return
    suite.add_test(body, name, comment)


def all_passed(suite: Suite | None) -> bool:
    if suite is None:
        return False
    return suite.all_passed()


def add_hook(suite: Suite | None, hook_type: HookType, hook: Callable[[], None]) -> None:
    if suite is None:
        return
    suite.add_hook(hook_type, hook)
