"""The ``quota`` command group: get, set, remove and list quotas."""

from __future__ import annotations

import argparse
import math
from collections.abc import Sequence

from .manager import QuotaManager
from .sizes import format_size
from .types import QuotaError, QuotaInfo, QuotaLimits, QuotaType

_QUOTA_TYPES = {
    "user": QuotaType.USER,
    "u": QuotaType.USER,
    "group": QuotaType.GROUP,
    "g": QuotaType.GROUP,
    "project": QuotaType.PROJECT,
    "p": QuotaType.PROJECT,
}

_KB_SUFFIXES = (
    ("KB", 1),
    ("MB", 1024),
    ("GB", 1024**2),
    ("TB", 1024**3),
)

_WARNING_PERCENT = 80
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_UINT32 = 2**32 - 1
_MAX_UINT64 = 2**64 - 1


def parse_quota_type(text: str) -> QuotaType:
    """Map a quota type name or its initial to a QuotaType."""
    try:
        return _QUOTA_TYPES[text.lower()]
    except KeyError:
        raise ValueError(f"invalid quota type: {text}") from None


def parse_size_kb(text: str) -> int:
    """Parse a size such as ``"500MB"`` into KB; a bare number is already KB."""
    normalized = text.strip().upper()
    multiplier = 1
    number_text = normalized
    for suffix, factor in _KB_SUFFIXES:
        if normalized.endswith(suffix):
            multiplier = factor
            number_text = normalized[: -len(suffix)]
            break

    if "_" in number_text:
        raise ValueError(f"invalid size: {text!r}")
    try:
        number = float(number_text)
    except ValueError:
        raise ValueError(f"invalid size: {text!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"invalid size: {text!r}")
    if number < 0:
        raise ValueError(f"size cannot be negative: {text!r}")
    return int(number * float(multiplier))


def quota_status(quota: QuotaInfo) -> str:
    """Classify a quota as ``OVER``, ``WARNING`` or ``OK``."""
    if quota.is_block_exceeded() or quota.is_inode_exceeded():
        return "OVER"
    if (
        quota.block_usage_percent() > _WARNING_PERCENT
        or quota.inode_usage_percent() > _WARNING_PERCENT
    ):
        return "WARNING"
    return "OK"


def format_quota_info(quota: QuotaInfo) -> str:
    """Describe one quota in detail."""
    lines = [
        "Quota Information:",
        f"  ID: {quota.id}",
        f"  Type: {quota.type}",
        f"  Path: {quota.path}",
        f"  Device: {quota.device}",
        "",
        "Block Usage:",
        f"  Used: {format_size(quota.block_used * 1024)}",
        f"  Soft Limit: {format_size(quota.block_soft * 1024)}",
        f"  Hard Limit: {format_size(quota.block_hard * 1024)}",
    ]
    if quota.block_hard > 0:
        lines.append(f"  Usage: {quota.block_usage_percent():.1f}%")
    lines += [
        "",
        "Inode Usage:",
        f"  Used: {quota.inode_used}",
        f"  Soft Limit: {quota.inode_soft}",
        f"  Hard Limit: {quota.inode_hard}",
    ]
    if quota.inode_hard > 0:
        lines.append(f"  Usage: {quota.inode_usage_percent():.1f}%")
    lines += ["", f"Last Updated: {quota.last_updated.strftime(_TIME_FORMAT)}"]
    return "\n".join(lines) + "\n"


def format_quotas_table(quotas: Sequence[QuotaInfo]) -> str:
    """Render quotas as a fixed-width table."""
    if not quotas:
        return "No quotas found.\n"

    lines = [
        f"{'ID':<8} {'Block Used':<12} {'Block Soft':<12} {'Block Hard':<12} "
        f"{'Inode Used':<10} {'Inode Soft':<10} {'Inode Hard':<10} {'Status':<8}",
        "-" * 90,
    ]
    for quota in quotas:
        lines.append(
            f"{quota.id:<8} "
            f"{format_size(quota.block_used * 1024):<12} "
            f"{format_size(quota.block_soft * 1024):<12} "
            f"{format_size(quota.block_hard * 1024):<12} "
            f"{quota.inode_used:<10} "
            f"{quota.inode_soft:<10} "
            f"{quota.inode_hard:<10} "
            f"{quota_status(quota):<8}"
        )
    return "\n".join(lines) + "\n"


def format_quotas_json(quotas: Sequence[QuotaInfo]) -> str:
    """Render quotas as an indented JSON array."""
    lines = ["["]
    last = len(quotas) - 1
    for index, quota in enumerate(quotas):
        lines += [
            "  {",
            f'    "id": {quota.id},',
            f'    "type": "{quota.type}",',
            f'    "block_used": {quota.block_used},',
            f'    "block_soft": {quota.block_soft},',
            f'    "block_hard": {quota.block_hard},',
            f'    "inode_used": {quota.inode_used},',
            f'    "inode_soft": {quota.inode_soft},',
            f'    "inode_hard": {quota.inode_hard}',
            "  }," if index < last else "  }",
        ]
    lines.append("]")
    return "\n".join(lines) + "\n"


def _bounded_int(limit: int, kind: str):
    def convert(text: str) -> int:
        try:
            value = int(text, 10)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid {kind} value: {text!r}") from None
        if not 0 <= value <= limit:
            raise argparse.ArgumentTypeError(f"{kind} value out of range: {text!r}")
        return value

    convert.__name__ = kind
    return convert


_uint32 = _bounded_int(_MAX_UINT32, "uint32")
_uint64 = _bounded_int(_MAX_UINT64, "uint64")


def _add_type_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t", "--type", default="user", help="quota type (user, group, project)"
    )


def _add_id_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i", "--id", type=_uint32, required=True, help="user/group/project ID"
    )


def _run_get(args: argparse.Namespace) -> None:
    quota_type = parse_quota_type(args.type)
    manager = QuotaManager()
    try:
        quota = manager.get_quota(quota_type, args.id, args.path)
    except QuotaError as exc:
        raise RuntimeError(f"failed to get quota: {exc}") from exc
    print(format_quota_info(quota), end="")


def _parse_block_limit(text: str, label: str) -> int:
    if not text:
        return 0
    try:
        return parse_size_kb(text)
    except ValueError as exc:
        raise ValueError(f"invalid block {label} limit: {exc}") from exc


def _run_set(args: argparse.Namespace) -> None:
    quota_type = parse_quota_type(args.type)
    manager = QuotaManager()
    limits = QuotaLimits(
        block_soft=_parse_block_limit(args.block_soft, "soft"),
        block_hard=_parse_block_limit(args.block_hard, "hard"),
        inode_soft=args.inode_soft,
        inode_hard=args.inode_hard,
    )
    try:
        manager.set_quota(quota_type, args.id, args.path, limits)
    except QuotaError as exc:
        raise RuntimeError(f"failed to set quota: {exc}") from exc
    print(f"Quota set successfully for {quota_type} ID {args.id}")


def _run_remove(args: argparse.Namespace) -> None:
    quota_type = parse_quota_type(args.type)
    manager = QuotaManager()
    try:
        manager.remove_quota(quota_type, args.id, args.path)
    except QuotaError as exc:
        raise RuntimeError(f"failed to remove quota: {exc}") from exc
    print(f"Quota removed successfully for {quota_type} ID {args.id}")


def _run_list(args: argparse.Namespace) -> None:
    quota_type = parse_quota_type(args.type)
    manager = QuotaManager()
    quotas = manager.get_all_quotas(quota_type, args.path)
    if args.format == "json":
        print(format_quotas_json(quotas), end="")
    else:
        print(format_quotas_table(quotas), end="")


def register(subparsers) -> argparse.ArgumentParser:
    """Add the ``quota`` command and its subcommands; each sets ``handler``."""
    quota = subparsers.add_parser(
        "quota",
        help="Manage XFS quotas",
        description="Manage user, group, and project quotas on XFS filesystems.",
    )
    commands = quota.add_subparsers(dest="quota_command", metavar="COMMAND")
    commands.required = True

    get = commands.add_parser(
        "get",
        help="Get quota information",
        description="Get quota information for a user, group, or project.",
    )
    get.add_argument("path")
    _add_type_option(get)
    _add_id_option(get)
    get.set_defaults(handler=_run_get)

    set_ = commands.add_parser(
        "set",
        help="Set quota limits",
        description="Set quota limits for a user, group, or project.",
    )
    set_.add_argument("path")
    _add_type_option(set_)
    _add_id_option(set_)
    set_.add_argument("--block-soft", default="", help="block soft limit (e.g., 1GB, 500MB)")
    set_.add_argument("--block-hard", default="", help="block hard limit (e.g., 2GB, 1000MB)")
    set_.add_argument("--inode-soft", type=_uint64, default=0, help="inode soft limit")
    set_.add_argument("--inode-hard", type=_uint64, default=0, help="inode hard limit")
    set_.set_defaults(handler=_run_set)

    remove = commands.add_parser(
        "remove",
        help="Remove quota limits",
        description="Remove quota limits for a user, group, or project.",
    )
    remove.add_argument("path")
    _add_type_option(remove)
    _add_id_option(remove)
    remove.set_defaults(handler=_run_remove)

    list_ = commands.add_parser(
        "list",
        help="List all quotas",
        description="List all quotas for a specific type on a filesystem.",
    )
    list_.add_argument("path")
    _add_type_option(list_)
    list_.add_argument("-f", "--format", default="table", help="output format (table, json)")
    list_.set_defaults(handler=_run_list)

    return quota