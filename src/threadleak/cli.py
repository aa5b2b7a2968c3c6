# src/threadleak/cli.py
"""
threadleak Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Features
--------
- **Inspect**: Parse a saved stack dump (Python capture or Go goroutine dump)
  and print the deduplicated report, or the structured traces as JSON.
- **Run**: Execute a Python script in-process, then fail with exit code 1 if
  it left threads running.

Usage
-----
    # Summarize a dump file (or '-' for stdin)
    $ threadleak inspect goroutines.txt
    $ threadleak inspect goroutines.txt --json

    # Run a script and check it for leaked threads
    $ threadleak run scripts/smoke.py --max-wait 2 -- --workers 4
"""

from __future__ import annotations

import json
import runpy
import sys
import traceback
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from threadleak.core.contracts.trace import Ignore, Traces
from threadleak.core.errors import ParseError
from threadleak.core.formatter import format_traces, group_traces
from threadleak.core.ignore import ignore_current, ignore_funcs
from threadleak.core.parser import parse
from threadleak.testing import check_main

# Pick up THREADLEAK_* settings from a local .env before any check runs
load_dotenv()

app = typer.Typer(
    help="threadleak: find threads that outlive the code that started them.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _read_dump(source: str) -> str:
    """Helper: Read dump text from a file path, or stdin when `source` is '-'."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _render_report(traces: Traces) -> None:
    """Helper: Print a one-line summary followed by the grouped report."""
    groups = group_traces(traces)
    console.print(
        Panel.fit(
            f"[bold]{len(traces)}[/bold] thread(s), "
            f"[bold]{len(groups)}[/bold] distinct stack(s)",
            border_style="cyan",
        )
    )
    # Dump text is full of [brackets]; keep rich from reading them as markup.
    console.print(Text(format_traces(traces).rstrip("\n")))


def _run_script(script: Path, script_args: list[str], verbose: bool) -> int:
    """Helper: Run `script` as `__main__` and translate its outcome to an exit code."""
    saved_argv = sys.argv
    sys.argv = [str(script), *script_args]
    try:
        runpy.run_path(str(script), run_name="__main__")
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    except Exception as e:
        console.print(f"\n[bold red]❌ Script Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        return 1
    finally:
        sys.argv = saved_argv
    return 0


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def inspect(
    source: Annotated[
        str,
        typer.Argument(help="Path to a stack dump file, or '-' to read stdin."),
    ],
    as_json: Annotated[
        bool,
        typer.Option("--json", "-j", help="Print the parsed traces as JSON."),
    ] = False,
) -> None:
    """
    Parse a stack dump and print the deduplicated report.

    Threads sharing the same wait reason and frames are merged and prefixed
    with their count, e.g. `[3] goroutine 17 [chan receive]:`.
    """
    try:
        traces = parse(_read_dump(source))
    except (OSError, ParseError) as e:
        console.print(f"[bold red]❌ Inspect Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if as_json:
        typer.echo(json.dumps([t.model_dump(mode="json") for t in traces], indent=2))
        return

    _render_report(traces)


@app.command()  # type: ignore[misc]
def run(
    script: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Python script to execute.",
        ),
    ],
    script_args: Annotated[
        list[str] | None,
        typer.Argument(help="Arguments passed to the script (after '--')."),
    ] = None,
    max_wait: Annotated[
        float,
        typer.Option(
            "--max-wait",
            "-w",
            help="Seconds to wait for threads to exit (<= 0 uses the configured default).",
        ),
    ] = 0.0,
    ignore_func: Annotated[
        list[str] | None,
        typer.Option(
            "--ignore-func",
            "-i",
            help="Ignore threads whose innermost frame is this function (repeatable).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """
    Run a Python script, then check that it left no threads behind.

    Threads that were already alive before the script started are ignored.
    Exits with the script's own code if it failed, or 1 if threads leaked.
    """
    ignores: list[Ignore] = [ignore_current()]
    if ignore_func:
        ignores.append(ignore_funcs(*ignore_func))

    state = {"run_code": 0}

    def _run() -> int:
        state["run_code"] = _run_script(script, script_args or [], verbose)
        return state["run_code"]

    def _exit(code: int) -> None:
        if state["run_code"] == 0:
            console.print("[bold red]❌ Leaking threads detected[/bold red] (see log above)")
        raise typer.Exit(code=code)

    console.print(f"[dim]Running {script.name}...[/dim]")
    check_main(_run, max_wait, *ignores, exit_hook=_exit)
    console.print("[bold green]✅ No leaked threads[/bold green]")


if __name__ == "__main__":
    app()
