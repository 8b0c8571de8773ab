"""The ``report`` command group: quota reports and filesystem details."""

from __future__ import annotations

import argparse
from collections.abc import Mapping
from typing import Any

from .manager import QuotaManager
from .quota_commands import format_quotas_json, format_quotas_table
from .types import QuotaReport

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_JSON_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_report(report: QuotaReport) -> str:
    """Render a report summary followed by a table of its quotas."""
    lines = [
        f"Quota Report for {report.filesystem}",
        f"Generated at: {report.generated_at.strftime(_TIME_FORMAT)}",
        "",
        "Summary:",
        f"  Total Quotas: {report.total_quotas}",
        f"  Over Quota: {report.over_quotas}",
        f"  Warning: {report.warning_quotas}",
    ]
    text = "\n".join(lines) + "\n"
    if report.quotas:
        text += "\nDetailed Quota Information:\n" + format_quotas_table(report.quotas)
    return text


def format_report_json(report: QuotaReport) -> str:
    """Render a report as a JSON object."""
    lines = [
        "{",
        f'  "filesystem": "{report.filesystem}",',
        f'  "total_quotas": {report.total_quotas},',
        f'  "over_quotas": {report.over_quotas},',
        f'  "warning_quotas": {report.warning_quotas},',
        f'  "generated_at": "{report.generated_at.strftime(_JSON_TIME_FORMAT)}",',
    ]
    return "\n".join(lines) + '\n  "quotas": ' + format_quotas_json(report.quotas) + "}\n"


def format_filesystem_info(path: str, info: Mapping[str, Any], is_xfs: bool) -> str:
    """Describe the filesystem holding ``path``."""
    lines = [
        "Filesystem Information:",
        f"  Path: {path}",
        f"  Type: {info['type']}",
        f"  XFS: {'true' if is_xfs else 'false'}",
        f"  Block Size: {info['block_size']}",
        f"  Total Size: {info['total_size']}",
        f"  Used Size: {info['used_size']}",
        f"  Free Size: {info['free_size']}",
        f"  Total Inodes: {info['total_inodes']}",
        f"  Free Inodes: {info['free_inodes']}",
    ]
    return "\n".join(lines) + "\n"


def _run_generate(args: argparse.Namespace) -> None:
    manager = QuotaManager()
    try:
        report = manager.generate_report(args.path)
    except OSError as exc:
        raise RuntimeError(f"failed to generate report: {exc}") from exc
    if args.format == "json":
        print(format_report_json(report), end="")
    else:
        print(format_report(report), end="")


def _run_filesystem(args: argparse.Namespace) -> None:
    manager = QuotaManager()
    try:
        info = manager.get_filesystem_info(args.path)
    except OSError as exc:
        raise RuntimeError(f"failed to get filesystem info: {exc}") from exc
    try:
        is_xfs = manager.is_xfs_filesystem(args.path)
    except OSError:
        is_xfs = False
    print(format_filesystem_info(args.path, info, is_xfs), end="")


def register(subparsers) -> argparse.ArgumentParser:
    """Add the ``report`` command and its subcommands; each sets ``handler``."""
    report = subparsers.add_parser(
        "report",
        help="Generate quota reports",
        description="Generate comprehensive quota usage reports.",
    )
    commands = report.add_subparsers(dest="report_command", metavar="COMMAND")
    commands.required = True

    generate = commands.add_parser(
        "generate",
        help="Generate quota usage report",
        description="Generate a comprehensive quota usage report for the specified filesystem.",
    )
    generate.add_argument("path")
    generate.add_argument("-f", "--format", default="table", help="output format (table, json)")
    generate.add_argument("-o", "--output", default="", help="output file path")
    generate.set_defaults(handler=_run_generate)

    filesystem = commands.add_parser(
        "filesystem",
        help="Show filesystem information",
        description="Show detailed filesystem information and quota status.",
    )
    filesystem.add_argument("path")
    filesystem.set_defaults(handler=_run_filesystem)

    return report