from __future__ import annotations

from pathlib import Path

import typer

app = typer.Typer(name="forkunit", help="Run unit tests in isolated processes")


@app.command()
def run(
    config: str = typer.Argument(help="Path to harness YAML config"),
    report: str | None = typer.Option(
        None, "--report", help="Report style: basic or standard (overrides config)"
    ),
    junit: str | None = typer.Option(
        None, "--junit", help="Write JUnit XML to this path (overrides config)"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
):
    """Register the configured tests, run each in its own process and report."""
    from pydantic import ValidationError

    from forkunit.config import load_config, load_entrypoint
    from forkunit.errors import ConfigError
    from forkunit.reporting.junit import write_junit
    from forkunit.reporting.text import render_basic, render_standard
    from forkunit.suite import create
    from forkunit.verbose import setup_logger

    config_path = Path(config)
    if not config_path.exists():
        typer.echo(f"Error: config file not found: {config}", err=True)
        raise typer.Exit(1)

    try:
        harness_config = load_config(config_path)
    except ValidationError as e:
        typer.echo(f"Error: invalid config {config}:\n{e}", err=True)
        raise typer.Exit(1)

    report_style = report or harness_config.report
    if report_style not in ("basic", "standard"):
        typer.echo(
            f"Error: unknown report style '{report_style}'. Use basic or standard.",
            err=True,
        )
        raise typer.Exit(1)

    log_file = Path(harness_config.log_file) if harness_config.log_file else None
    logger = setup_logger(log_file, verbose=verbose)

    try:
        register = load_entrypoint(harness_config)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    suite = create(
        harness_config.suite.option_flags(),
        harness_config.suite.name,
        harness_config.suite.comment,
    )
    if suite is None:
        typer.echo("Error: cannot create test suite", err=True)
        raise typer.Exit(1)

    try:
        register(suite)
        logger.debug(f"Registered {len(suite.registered_tests)} test(s)")
        outcomes = suite.run_tests()

        render = render_basic if report_style == "basic" else render_standard
        typer.echo(render(suite), nl=False)

        problems = [o for o in outcomes if o.error is not None]
        if problems:
            typer.echo(f"{len(problems)} test(s) did not run to completion", err=True)

        junit_path = junit or harness_config.junit
        if junit_path:
            written = write_junit(suite, Path(junit_path))
            typer.echo(f"JUnit: {written}")

        passed = suite.all_passed()
    finally:
        suite.destroy()

    if not passed:
        raise typer.Exit(1)


EXAMPLE_CONFIG = """\
suite:
  name: Example suite
  comment: Checks made by test_example.py.
module: ./test_example.py
entrypoint: register
report: standard
"""

EXAMPLE_MODULE = '''\
"""Example forkunit test module."""

from forkunit import Suite


def arithmetic(suite: Suite) -> None:
    suite.check(1 + 1 == 2, "one plus one")
    suite.check(2 * 3 == 6, "two times three")


def strings(suite: Suite) -> None:
    suite.check("fork".upper() == "FORK", "upper")
    suite.check("unit".startswith("u"))


def register(suite: Suite) -> None:
    suite.add_test(arithmetic, "Arithmetic")
    suite.add_test(strings, "Strings", "String helpers.")
'''


@app.command()
def init(
    dir: str = typer.Option(
        "forkunit", "--dir", help="Directory to initialize the test project in"
    ),
):
    """Initialize a new test project with an example config and test module."""
    project_dir = Path(dir)

    if not project_dir.exists():
        project_dir.mkdir(parents=True, exist_ok=True)

    example = project_dir / "forkunit.yaml"
    if example.exists():
        typer.echo(f"forkunit.yaml already exists in {dir}, skipping.")
        return

    example.write_text(EXAMPLE_CONFIG)
    (project_dir / "test_example.py").write_text(EXAMPLE_MODULE)

    typer.echo(f"Initialized test project in {dir}:")
    typer.echo("  forkunit.yaml     - example harness config")
    typer.echo("  test_example.py   - example test module")


@app.command()
def schema(
    out: str = typer.Option(
        "forkunit.schema.json", "--out", help="Output path for JSON Schema"
    ),
):
    """Generate JSON Schema for the harness YAML config."""
    from forkunit.schema import write_json_schema

    out_path = Path(out)
    write_json_schema(out_path)
    typer.echo(f"Wrote schema: {out_path}")
