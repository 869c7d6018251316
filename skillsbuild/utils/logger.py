"""Rich-based terminal output for skillsbuild."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

__all__ = [
    "console",
    "print_success",
    "print_warning",
    "print_error",
    "print_info",
    "print_finding",
    "create_table",
    "configure_logging",
]

_THEME = Theme(
    {
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "info": "bold cyan",
        "muted": "dim",
        "accent": "bold magenta",
    }
)

console = Console(theme=_THEME)


def print_success(message: str) -> None:
    console.print(f"[success]✔[/success] {message}")


def print_warning(message: str) -> None:
    console.print(f"[warning]⚠[/warning] {message}")


def print_error(message: str) -> None:
    console.print(f"[error]✖[/error] {message}")


def print_info(message: str) -> None:
    console.print(f"[info]ℹ[/info] {message}")


def print_finding(kind: str, message: str, indent: int = 4) -> None:
    """Print one itemized ``ERROR``/``WARNING`` line for a rule file."""
    style = "error" if kind == "ERROR" else "warning"
    console.print(f"{' ' * indent}[{style}]{kind}:[/{style}] {escape(message)}", highlight=False)


def create_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
) -> Table:
    """Create a Rich table with the given columns and rows."""
    table = Table(title=title, show_lines=False, expand=False)
    for header, style in columns:
        table.add_column(header, style=style)
    for row in rows:
        table.add_row(*row)
    return table


def configure_logging(verbose: bool = False) -> None:
    """Route core module loggers to stderr; debug records only with *verbose*."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
