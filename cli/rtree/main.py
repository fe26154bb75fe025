from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

import typer

from rangetree import RangeQueryTree, available_operations
from rangetree import config as rt_config
from rangetree.errors import RangeTreeError
from rangetree.logging import set_log_level

from .support.benchmark_utils import run_benchmark


_HELP = """Range-query tree command line interface.

Subcommands build a tree from literal values, run range queries and point
updates, and time the engines on random data."""

app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help=_HELP,
)


@app.callback()
def rtree_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override RANGETREE_LOG_LEVEL for this run."
    ),
) -> None:
    """Root callback applying shared options."""

    if log_level is None:
        return
    try:
        set_log_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _parse_number(raw: str) -> int | float:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"'{raw}' is not a number.") from exc


def _parse_assignment(raw: str) -> Tuple[int, int | float]:
    pos, sep, value = raw.partition("=")
    if not sep:
        raise typer.BadParameter(f"Expected POS=VALUE, got '{raw}'.")
    try:
        index = int(pos)
    except ValueError as exc:
        raise typer.BadParameter(f"Position '{pos}' is not an integer.") from exc
    return index, _parse_number(value)


def _scalar(value: Any) -> Any:
    item = getattr(value, "item", None)
    return item() if callable(item) else value


def _fail(exc: Exception) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=2)


@app.command("query")
def query_command(
    values: List[str] = typer.Argument(..., help="Array values, e.g. 1 3 5 7."),
    left: int = typer.Option(..., "--left", "-l", help="Inclusive left bound."),
    right: int = typer.Option(..., "--right", "-r", help="Inclusive right bound."),
    op: Optional[str] = typer.Option(None, "--op", help="Combine operation."),
    engine: Optional[str] = typer.Option(None, "--engine", help="python or numba."),
) -> None:
    """Print the aggregate of VALUES[left..right]."""

    numbers = [_parse_number(raw) for raw in values]
    try:
        tree = RangeQueryTree(numbers, op, engine=engine)
        result = tree.query(left, right)
    except RangeTreeError as exc:
        _fail(exc)
    typer.echo(_scalar(result))


@app.command("update")
def update_command(
    values: List[str] = typer.Argument(..., help="Array values, e.g. 1 3 5 7."),
    assignments: List[str] = typer.Option([], "--set", "-s", help="POS=VALUE, repeatable."),
    left: int = typer.Option(..., "--left", "-l", help="Inclusive left bound."),
    right: int = typer.Option(..., "--right", "-r", help="Inclusive right bound."),
    op: Optional[str] = typer.Option(None, "--op", help="Combine operation."),
    engine: Optional[str] = typer.Option(None, "--engine", help="python or numba."),
) -> None:
    """Apply point updates in order, then print the aggregate of [left, right]."""

    numbers = [_parse_number(raw) for raw in values]
    updates = [_parse_assignment(raw) for raw in assignments]
    try:
        tree = RangeQueryTree(numbers, op, engine=engine)
        tree.update_many([pos for pos, _ in updates], [value for _, value in updates])
        result = tree.query(left, right)
    except RangeTreeError as exc:
        _fail(exc)
    typer.echo(_scalar(result))


@app.command("operations")
def operations_command() -> None:
    """List the registered combine operations."""

    default = rt_config.runtime_config().default_operation
    for name in available_operations():
        marker = " (default)" if name == default else ""
        typer.echo(f"{name}{marker}")


@app.command("benchmark")
def benchmark_command(
    size: int = typer.Option(100_000, "--size", min=1, help="Number of elements."),
    queries: int = typer.Option(10_000, "--queries", min=0, help="Range queries to time."),
    updates: int = typer.Option(10_000, "--updates", min=0, help="Point updates to time."),
    seed: int = typer.Option(0, "--seed", help="Random seed."),
    op: str = typer.Option("sum", "--op", help="Combine operation."),
    engine: Optional[str] = typer.Option(None, "--engine", help="python or numba."),
    output_format: str = typer.Option("text", "--format", help="text or json."),
) -> None:
    """Time build, query and update on random integer data."""

    if output_format not in {"text", "json"}:
        raise typer.BadParameter("--format must be 'text' or 'json'.")
    try:
        result = run_benchmark(
            size=size,
            queries=queries,
            updates=updates,
            seed=seed,
            operation=op,
            engine=engine,
        )
    except RangeTreeError as exc:
        _fail(exc)
    if output_format == "json":
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return
    typer.echo(
        f"size={result.size} operation={result.operation} engine={result.engine}\n"
        f"build   {result.build_seconds * 1e3:.2f} ms\n"
        f"query   {result.query_latency_us:.2f} us/op ({result.queries} ops)\n"
        f"update  {result.update_latency_us:.2f} us/op ({result.updates} ops)"
    )


def main() -> None:
    app()


__all__ = ["app", "main"]
