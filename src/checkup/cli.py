from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

from checkup.core.config import write_config
from checkup.core.errors import CheckupError, ErrorKind
from checkup.core.plugin_manager import PluginManager, default_search_paths
from checkup.core.reporters import OutputFormat, report
from checkup.core.run import CheckupRun
from checkup.core.types import RunFlags
from checkup.core.utils import BOLD, RESET, make_file_logger


RUN_LOG = Path(".checkup") / "run.log"


def cmd_run(args: argparse.Namespace) -> int:
    cwd = Path(args.cwd).resolve()
    flags = RunFlags(
        cwd=cwd,
        config=args.config,
        task=tuple(args.task) if args.task else None,
        exclude_paths=tuple(args.exclude_paths) if args.exclude_paths else None,
        list_tasks=bool(args.list_tasks),
        format=args.format,
        output_file=args.output_file or "",
    )
    run = CheckupRun(flags, cli_arguments=args.paths, logger=make_file_logger(cwd / RUN_LOG))
    run.load_config()
    run.register()

    if flags.list_tasks:
        print()
        print(f"{BOLD}AVAILABLE TASKS{RESET}")
        print()
        for name in run.list_tasks():
            print(f"  {name}")
        print()
        return 0

    reporters = run.registries.reporters
    if flags.format not in reporters:
        raise CheckupError(
            ErrorKind.UNKNOWN_OUTPUT_FORMAT, format=flags.format, available=list(reporters)
        )

    if sys.stderr.isatty():
        print("Checking up on your project...", file=sys.stderr)
    asyncio.run(run.run_tasks())
    run.run_actions()
    report(run.build_report(), flags, reporters)

    missing = run.missing_tasks_error()
    if missing is not None:
        raise missing
    return 0


def cmd_config_init(args: argparse.Namespace) -> int:
    path = write_config(Path(args.cwd))
    print(f"   create {path}")
    return 0


def cmd_list_plugins(args: argparse.Namespace) -> int:
    manager = PluginManager(default_search_paths(Path(args.cwd)))
    for spec in manager.discover():
        print(f"{spec.plugin_id}: {spec.name} ({spec.version})")
    for err in manager.discovery_errors:
        print(f"{err.plugin_id}: discovery error: {err.message}", file=sys.stderr)
    return 1 if manager.discovery_errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="checkup", description="A health checkup for your project")
    sub = parser.add_subparsers(dest="command", required=True)

    run_parser = sub.add_parser("run", help="Run the configured tasks")
    run_parser.add_argument(
        "paths",
        nargs="*",
        help="Paths to analyze; defaults to the whole directory at --cwd.",
    )
    run_parser.add_argument("-c", "--config", help="Config path or URL, overriding .checkuprc.")
    run_parser.add_argument("-d", "--cwd", default=".", help="Root directory to run in.")
    run_parser.add_argument(
        "-t",
        "--task",
        action="append",
        help="Fully qualified task name (pluginName/taskName). Repeatable.",
    )
    run_parser.add_argument(
        "-e",
        "--excludePaths",
        dest="exclude_paths",
        action="append",
        help="Glob to exclude. Repeatable; overrides the config's excludePaths.",
    )
    run_parser.add_argument(
        "-l", "--listTasks", dest="list_tasks", action="store_true", help="List available tasks."
    )
    run_parser.add_argument(
        "-f",
        "--format",
        default=OutputFormat.STDOUT.value,
        help=f"Output format, one of {', '.join(f.value for f in OutputFormat)}.",
    )
    run_parser.add_argument(
        "-o",
        "--outputFile",
        dest="output_file",
        default="",
        help="File to write JSON output to; requires --format json.",
    )

    config_parser = sub.add_parser("config", help="Manage the checkup config")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    init_parser = config_sub.add_parser("init", help="Write a default .checkuprc")
    init_parser.add_argument("-d", "--cwd", default=".")

    plugins_parser = sub.add_parser("list-plugins", help="List discoverable plugins")
    plugins_parser.add_argument("-d", "--cwd", default=".")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "run":
            return cmd_run(args)
        if args.command == "config":
            return cmd_config_init(args)
        if args.command == "list-plugins":
            return cmd_list_plugins(args)
    except CheckupError as exc:
        cwd = Path(getattr(args, "cwd", ".")).resolve()
        print(exc.render(cwd), file=sys.stderr)
        return exc.error_code
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
