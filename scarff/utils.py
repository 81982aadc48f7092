"""Shared utility functions for Scarff.

Provides the deterministic name transformations used to derive template
variables from a project name, Rich-based console helpers for the CLI layer,
and logging setup.  Nothing in the core prints; only ``scarff.cli`` uses the
console helpers.
"""

from __future__ import annotations

import logging
import re

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """Convert an arbitrary name to a URL/filename-safe slug.

    * Lowercases the input.
    * Replaces runs of non-alphanumeric characters with a single hyphen.
    * Strips leading/trailing hyphens.

    Examples::

        slugify("User Authentication") -> "user-authentication"
        slugify("  2FA (TOTP)  ") -> "2fa-totp"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    return slug.strip("-")


def snake_case(value: str) -> str:
    """Convert ``SomeThing``, ``some-thing`` or ``some thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[^a-z0-9]+", "_", s2.lower()).strip("_")


def kebab_case(value: str) -> str:
    """Convert ``SomeThing`` or ``some_thing`` to ``some-thing``."""
    return snake_case(value).replace("_", "-")


def pascal_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``.

    Inner capitals are preserved, so ``myApp`` becomes ``MyApp``.
    """
    parts = re.split(r"[^A-Za-z0-9]+", value)
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


def camel_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = pascal_case(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def package_identifier(name: str, style: str) -> str:
    """Derive a package/module identifier from a project name.

    The name is lower-cased and every run of disallowed characters is replaced
    with ``_`` (``snake`` style) or ``-`` (``kebab`` style).  Snake identifiers
    that would start with a digit get a leading underscore.

    Returns an empty string when the name has no alphanumeric characters.
    """
    ident = snake_case(name)
    if not ident:
        return ""
    if style == "kebab":
        return ident.replace("_", "-")
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(level: str | int = "WARNING") -> None:
    """Route the ``scarff`` loggers through a Rich handler on stderr."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("scarff")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    err_console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    err_console.print(f"[bold yellow]{message}[/bold yellow]")
