from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from depgroups.build import strip_manifest_file
from depgroups.config import LOG_LEVELS, OutputFormat, Settings
from depgroups.errors import DependencyGroupsError
from depgroups.linter import has_errors, lint_table
from depgroups.loader import DependencyGroupsLoader, read_manifest
from depgroups.models import TABLE_NAME
from depgroups.resolver import resolve
from depgroups.schema import check_group_name

LOGGER = logging.getLogger(__name__)


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--pyproject",
        type=Path,
        default=settings.pyproject,
        help="Path to the project manifest (default: %(default)s).",
    )
    common.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=settings.log_level,
        help="Logging level",
    )

    parser = argparse.ArgumentParser(
        prog="depgroups",
        description="Validate and expand the [dependency-groups] table of a pyproject.toml.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "list",
        parents=[common],
        help="List the dependency groups defined in the manifest.",
    ).set_defaults(func=_cmd_list)

    resolve_cmd = subparsers.add_parser(
        "resolve",
        parents=[common],
        help="Expand one or more groups into requirements and path dependencies.",
    )
    resolve_cmd.add_argument("groups", nargs="+", metavar="GROUP", help="Group name.")
    resolve_cmd.add_argument(
        "--format",
        dest="output_format",
        choices=[member.value for member in OutputFormat],
        default=settings.output_format.value,
        help="Output format (default: %(default)s).",
    )
    resolve_cmd.set_defaults(func=_cmd_resolve)

    subparsers.add_parser(
        "lint",
        parents=[common],
        help="Report every problem in the dependency-groups table.",
    ).set_defaults(func=_cmd_lint)

    strip = subparsers.add_parser(
        "strip",
        parents=[common],
        help="Write a copy of the manifest without the dependency-groups table.",
    )
    strip.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Destination path for the stripped manifest.",
    )
    strip.set_defaults(func=_cmd_strip)

    return parser


def _cmd_list(args: argparse.Namespace) -> int:
    loader = DependencyGroupsLoader()
    loader.load_file(args.pyproject)
    entries = [
        {
            "name": group.name,
            "entries": len(group.entries),
            "includes": list(group.includes),
        }
        for group in loader.list()
    ]
    print(json.dumps({"groups": entries}))
    return 0


def _cmd_resolve(args: argparse.Namespace) -> int:
    for name in args.groups:
        check_group_name(name)
    loader = DependencyGroupsLoader(check_includes=False)
    table = loader.load_file(args.pyproject)
    resolved = resolve(table, *args.groups)

    output_format = OutputFormat.from_str(args.output_format)
    if output_format is OutputFormat.REQUIREMENTS:
        for line in resolved.as_requirements_lines():
            print(line)
    elif output_format is OutputFormat.YAML:
        sys.stdout.write(yaml.safe_dump(resolved.to_payload(), sort_keys=False))
    else:
        print(json.dumps(resolved.to_payload()))
    return 0


def _cmd_lint(args: argparse.Namespace) -> int:
    manifest = read_manifest(args.pyproject)
    issues = lint_table(manifest.get(TABLE_NAME, {}))
    summary: dict[str, Any] = {
        "issues": [issue.to_payload() for issue in issues],
        "errors": sum(1 for issue in issues if issue.level == "error"),
        "warnings": sum(1 for issue in issues if issue.level == "warning"),
    }
    print(json.dumps(summary))
    return 1 if has_errors(issues) else 0


def _cmd_strip(args: argparse.Namespace) -> int:
    destination = strip_manifest_file(args.pyproject, args.out)
    print(json.dumps({"source": str(args.pyproject), "out": str(destination)}))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"depgroups: error: {exc}", file=sys.stderr)
        return 2

    parser = _build_parser(settings)
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    try:
        return args.func(args)
    except DependencyGroupsError as exc:
        LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"depgroups: error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
