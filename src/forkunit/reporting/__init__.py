"""Report rendering for finished suites."""

from forkunit.reporting.text import (
    render_basic,
    render_standard,
    report_basic,
    report_standard,
)

__all__ = ["render_basic", "render_standard", "report_basic", "report_standard"]
