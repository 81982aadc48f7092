"""Scarff command-line interface.

A thin boundary over the core: parses arguments into a
:class:`~scarff.models.ScaffoldRequest`, resolves ``--force``/``--yes`` into a
:class:`~scarff.models.ScaffoldMode`, formats the resulting
:class:`~scarff.models.ScaffoldReport`, and maps every
:class:`~scarff.errors.ScarffError` to its exit code.

Examples::

    scarff new my-tool --lang rust
    scarff new services/api -l python -f fastapi --dry-run
    scarff list --lang typescript --format json
    scarff config set default_project_type cli
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from rich.prompt import Confirm
from rich.table import Table

from scarff import __version__
from scarff.config import Config
from scarff.errors import ScarffError
from scarff.models import (
    Architecture,
    Framework,
    Language,
    ProjectType,
    ScaffoldMode,
    ScaffoldReport,
    ScaffoldRequest,
    Target,
)
from scarff.scaffolder.generator import ProjectGenerator
from scarff.scaffolder.transaction import is_occupied
from scarff.utils import (
    console,
    err_console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    setup_logging,
)

logger = logging.getLogger(__name__)

EXIT_ABORTED = 1
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _axis(enum_cls: type[Enum]) -> Callable[[str], Enum]:
    """argparse ``type=`` converter accepting values and aliases of *enum_cls*."""

    def convert(value: str) -> Enum:
        try:
            return enum_cls(value)
        except ValueError:
            choices = ", ".join(member.value for member in enum_cls)
            raise argparse.ArgumentTypeError(
                f"invalid choice: {value!r} (choose from {choices})"
            ) from None

    convert.__name__ = enum_cls.__name__.lower()
    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scarff",
        description="Scarff -- scaffold a new project from a language/type/architecture target",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  scarff new my-tool --lang rust\n"
            "  scarff new api -l python -t web-backend -f fastapi --dry-run\n"
            "  scarff list --lang go\n"
            "  scarff config set default_language rust\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON configuration file (environment variables override it)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    new = subparsers.add_parser("new", help="Create a new project")
    new.add_argument("name", help="Project name or path; the last component is the project name")
    new.add_argument("--lang", "-l", type=_axis(Language), default=None, help="Target language")
    new.add_argument(
        "--type", "-t",
        dest="project_type",
        type=_axis(ProjectType),
        default=None,
        help="Project type (inferred from the framework or language when omitted)",
    )
    new.add_argument(
        "--arch", "-a",
        type=_axis(Architecture),
        default=None,
        help="Architecture style (matrix default when omitted)",
    )
    new.add_argument(
        "--framework", "-f",
        type=_axis(Framework),
        default=None,
        help="Framework, or 'none' (matrix default when omitted)",
    )
    new.add_argument("--force", action="store_true", help="Replace an existing non-empty destination")
    new.add_argument("--dry-run", action="store_true", help="Report what would be written, write nothing")
    new.add_argument("--yes", "-y", action="store_true", help="Do not ask before replacing with --force")

    lst = subparsers.add_parser("list", help="List the shipped templates")
    lst.add_argument("--lang", "-l", type=_axis(Language), default=None, help="Only this language")
    lst.add_argument(
        "--type", "-t",
        dest="project_type",
        type=_axis(ProjectType),
        default=None,
        help="Only this project type",
    )
    lst.add_argument("--format", choices=("table", "json"), default="table", help="Output format")

    cfg = subparsers.add_parser("config", help="Show or change configuration values")
    actions = cfg.add_subparsers(dest="action", required=True)
    actions.add_parser("path", help="Print the configuration file location")
    actions.add_parser("list", help="Print the effective configuration as JSON")
    get = actions.add_parser("get", help="Print one effective value")
    get.add_argument("key", help=f"One of: {', '.join(Config.keys())}")
    put = actions.add_parser("set", help="Store one value in the configuration file")
    put.add_argument("key", help=f"One of: {', '.join(Config.keys())}")
    put.add_argument("value", help="New value; an empty string unsets the key")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_new(args: argparse.Namespace, config: Config) -> int:
    destination = Path(args.name).expanduser()
    mode = ScaffoldMode.from_flags(force=args.force, dry_run=args.dry_run)

    if mode is ScaffoldMode.FORCE and not args.yes and is_occupied(destination):
        if sys.stdin.isatty():
            if not Confirm.ask(
                f"[yellow]{destination}[/yellow] is not empty. Replace it?",
                console=err_console,
                default=False,
            ):
                print_warning("Aborted; nothing was written.")
                return EXIT_ABORTED
        else:
            logger.debug("Non-interactive stdin; replacing %s without a prompt", destination)

    request = ScaffoldRequest(
        target=Target(
            language=args.lang,
            project_type=args.project_type,
            architecture=args.arch,
            framework=args.framework,
        ),
        project_name=destination.name,
        destination=destination,
        mode=mode,
        default_language=config.default_language,
        default_project_type=config.default_project_type,
        default_architecture=config.default_architecture,
    )
    report = ProjectGenerator.default(config).generate(request)
    _print_report(report)
    return 0


def _cmd_list(args: argparse.Namespace, config: Config) -> int:
    templates = [
        template
        for template in ProjectGenerator.default(config).store.templates()
        if (args.lang is None or template.target.language == args.lang)
        and (args.project_type is None or template.target.project_type == args.project_type)
    ]

    if args.format == "json":
        rows = [
            {
                "id": template.id,
                "description": template.description,
                **dict(zip(("language", "project_type", "architecture", "framework"),
                           template.target.as_tuple())),
                "dependencies": list(template.dependencies),
            }
            for template in templates
        ]
        console.out(json.dumps(rows, indent=2), highlight=False)
        return 0

    if not templates:
        print_warning("No templates match the given filters.")
        return 0

    table = Table(title="Templates", show_header=True, header_style="bold cyan")
    for column in ("Id", "Language", "Type", "Architecture", "Framework", "Description"):
        table.add_column(column, no_wrap=column == "Id")
    for template in templates:
        table.add_row(template.id, *template.target.as_tuple(), template.description)
    console.print(table)
    return 0


def _cmd_config(args: argparse.Namespace, config: Config) -> int:
    path = args.config if args.config is not None else Config.default_path()

    if args.action == "path":
        console.out(str(path), highlight=False)
    elif args.action == "list":
        console.out(json.dumps(config.model_dump(mode="json"), indent=2), highlight=False)
    elif args.action == "get":
        value = config.get_value(args.key)
        console.out(value if isinstance(value, str) else json.dumps(value), highlight=False)
    else:
        # only the file is rewritten; environment overrides are not persisted
        stored = Config.load(path) if path.is_file() else Config()
        stored.with_value(args.key, args.value).save(path)
        logger.info("Wrote %s", path)
        print_success(f"Set {args.key} in {path}")
    return 0


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _print_report(report: ScaffoldReport) -> None:
    sources = {item.field: item.source.value for item in report.inferred}
    summary: dict[str, str] = {"Project": report.project_name, "Template": report.template_id}
    for axis, value in zip(
        ("language", "project_type", "architecture", "framework"), report.target.as_tuple()
    ):
        label = axis.replace("_", " ").capitalize()
        summary[label] = f"{value} [dim](inferred: {sources[axis]})[/dim]" if axis in sources else value
    summary["Destination"] = str(report.destination)
    summary["Files"] = str(len(report.files))
    if report.dependencies:
        summary["Dependencies"] = ", ".join(report.dependencies)

    title = "Dry run" if report.simulated else "Scaffolded"
    print_summary_table(summary, title=title)

    if report.simulated:
        console.print("[bold]Would create:[/bold]")
        for path in report.files:
            console.print(f"  [dim]+[/dim] {path}", highlight=False)
        console.print()
        if report.replaced_existing:
            print_warning(f"Would replace the existing contents of {report.destination}.")
        print_success("Dry run complete; nothing was written.")
    else:
        verb = "Replaced" if report.replaced_existing else "Created"
        print_success(f"{verb} {report.project_name} ({len(report.files)} files)")

    if report.next_steps:
        console.print("\n[bold]Next steps:[/bold]")
        for step in report.next_steps:
            console.print(f"  {step}", highlight=False, markup=False)


def _report_error(exc: ScarffError) -> None:
    print_error(exc.detail or str(exc))
    if exc.hint:
        err_console.print(f"[dim]hint:[/dim] {exc.hint}", highlight=False)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for ``scarff``. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.resolve(args.config, missing_ok=args.command == "config")
        setup_logging("DEBUG" if args.verbose else config.log_level)
        if config.no_color:
            console.no_color = True
            err_console.no_color = True

        if args.command == "new":
            return _cmd_new(args, config)
        if args.command == "config":
            return _cmd_config(args, config)
        return _cmd_list(args, config)
    except ScarffError as exc:
        logger.debug("Failed: %s", exc.to_dict())
        _report_error(exc)
        return exc.exit_code
    except KeyboardInterrupt:
        print_warning("Interrupted; nothing was written.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
