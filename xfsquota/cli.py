"""Command-line entry point of the quota toolkit."""

from __future__ import annotations

import argparse
import re
import sys
import time
from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta

from . import project_commands, quota_commands, report_commands
from .config import ConfigError, load
from .manager import QuotaManager
from .types import QuotaError

PROG = "xfs-quota-kit"
VERSION = "dev"
COMMIT = "unknown"
BUILD_DATE = "unknown"

SHELLS = ("bash", "zsh", "fish", "powershell")

_DESCRIPTION = """\
XFS Quota Kit is a comprehensive command-line tool for managing XFS filesystem quotas.
It provides advanced features for user, group, and project quota management,
monitoring, reporting, and automation.

Features:
  - User, Group, and Project quota management
  - Batch operations and automation
  - Real-time monitoring and alerting
  - Comprehensive reporting
  - REST API server
  - Configuration file support"""

_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_NUMBER = re.compile(r"([0-9]*)(?:\.([0-9]*))?")
_UNIT = re.compile(r"[^0-9.]*")
_MAX_NANOSECONDS = 2**63 - 1


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"5m"``, ``"1h30m"`` or ``"1.5s"``."""
    invalid = ValueError(f'time: invalid duration "{text}"')
    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise invalid

    limit = _MAX_NANOSECONDS + 1 if negative else _MAX_NANOSECONDS
    total = 0
    while rest:
        number = _NUMBER.match(rest)
        whole, fraction = number.group(1), number.group(2)
        if not whole and not fraction:
            raise invalid
        rest = rest[number.end():]

        unit = _UNIT.match(rest).group(0)
        if not unit:
            raise ValueError(f'time: missing unit in duration "{text}"')
        rest = rest[len(unit):]
        scale = _DURATION_UNITS.get(unit)
        if scale is None:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{text}"')

        value = int(whole or "0") * scale
        if fraction:
            value += int(fraction) * scale // 10 ** len(fraction)
        total += value
        if total > limit:
            raise invalid

    microseconds = total // 1000
    return timedelta(microseconds=-microseconds if negative else microseconds)


def _threshold_alerts(manager: QuotaManager, path: str, threshold: int) -> Iterator[str]:
    try:
        report = manager.generate_report(path)
    except (OSError, QuotaError) as exc:
        yield f"  error: {exc}"
        return
    for quota in report.quotas:
        usage = max(quota.block_usage_percent(), quota.inode_usage_percent())
        if usage > 0 and usage >= threshold:
            yield f"  ALERT: {quota.type} ID {quota.id} at {usage:.1f}% (threshold {threshold}%)"


def _run_monitor_start(args: argparse.Namespace) -> None:
    try:
        interval = parse_duration(args.interval)
    except ValueError as exc:
        raise ValueError(f"invalid interval: {exc}") from exc
    if interval <= timedelta(0):
        raise ValueError("invalid interval: non-positive interval")

    print(f"Starting quota monitoring for {args.path}")
    print(f"Interval: {args.interval}")
    print(f"Threshold: {args.threshold}%", flush=True)

    manager = QuotaManager()
    seconds = interval.total_seconds()
    while True:
        time.sleep(seconds)
        print(f"[{datetime.now():%H:%M:%S}] Checking quotas...")
        for line in _threshold_alerts(manager, args.path, args.threshold):
            print(line)
        sys.stdout.flush()


def _run_monitor_status(args: argparse.Namespace) -> None:
    print("Monitoring Status: no active monitor")


def _run_server(args: argparse.Namespace) -> None:
    print(f"Starting XFS Quota Kit server on {args.host}:{args.port}")
    print("REST API server is not available in this build")


def _run_version(args: argparse.Namespace) -> None:
    print(f"XFS Quota Kit {VERSION}")
    print(f"Commit: {COMMIT}")
    print(f"Built: {BUILD_DATE}")


def _subcommands(parser: argparse.ArgumentParser) -> dict[str, argparse.ArgumentParser]:
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return dict(action.choices)
    return {}


def _command_tree(parser: argparse.ArgumentParser) -> dict[str, list[str]]:
    tree = {name: list(_subcommands(sub)) for name, sub in _subcommands(parser).items()}
    tree["completion"] = list(SHELLS)
    return tree


def _bash_script(tree: dict[str, list[str]]) -> str:
    function = "_" + PROG.replace("-", "_")
    lines = [
        f"# bash completion for {PROG}",
        f"{function}() {{",
        '    local cur="${COMP_WORDS[COMP_CWORD]}"',
        '    local words=""',
        '    if [ "$COMP_CWORD" -eq 1 ]; then',
        f'        words="{" ".join(tree)}"',
        '    elif [ "$COMP_CWORD" -eq 2 ]; then',
        '        case "${COMP_WORDS[1]}" in',
    ]
    lines += [f'        {name}) words="{" ".join(subs)}" ;;' for name, subs in tree.items() if subs]
    lines += [
        "        esac",
        "    fi",
        '    COMPREPLY=($(compgen -W "$words" -- "$cur"))',
        "}",
        f"complete -o default -F {function} {PROG}",
    ]
    return "\n".join(lines) + "\n"


def _zsh_script(tree: dict[str, list[str]]) -> str:
    return "autoload -U +X bashcompinit && bashcompinit\n" + _bash_script(tree)


def _fish_script(tree: dict[str, list[str]]) -> str:
    lines = [
        f"# fish completion for {PROG}",
        f'complete -c {PROG} -f -n "__fish_use_subcommand" -a "{" ".join(tree)}"',
    ]
    lines += [
        f'complete -c {PROG} -f -n "__fish_seen_subcommand_from {name}" -a "{" ".join(subs)}"'
        for name, subs in tree.items()
        if subs
    ]
    return "\n".join(lines) + "\n"


def _powershell_script(tree: dict[str, list[str]]) -> str:
    def quoted(words: Sequence[str]) -> str:
        return ", ".join(f"'{word}'" for word in words)

    lines = [
        f"# powershell completion for {PROG}",
        f"Register-ArgumentCompleter -Native -CommandName '{PROG}' -ScriptBlock {{",
        "    param($wordToComplete, $commandAst, $cursorPosition)",
        "    $elements = $commandAst.CommandElements",
        "    if ($elements.Count -le 2 -and $wordToComplete) {",
        f"        $candidates = @({quoted(list(tree))})",
        "    } elseif ($elements.Count -le 1) {",
        f"        $candidates = @({quoted(list(tree))})",
        "    } else {",
        "        $candidates = switch ($elements[1].Value) {",
    ]
    lines += [f"            '{name}' {{ @({quoted(subs)}) }}" for name, subs in tree.items() if subs]
    lines += [
        "            default { @() }",
        "        }",
        "    }",
        '    $candidates | Where-Object { $_ -like "$wordToComplete*" } | ForEach-Object {',
        "        [System.Management.Automation.CompletionResult]::new($_, $_, 'ParameterValue', $_)",
        "    }",
        "}",
    ]
    return "\n".join(lines) + "\n"


_COMPLETION_WRITERS = {
    "bash": _bash_script,
    "zsh": _zsh_script,
    "fish": _fish_script,
    "powershell": _powershell_script,
}


def _register_monitor(subparsers) -> None:
    monitor = subparsers.add_parser(
        "monitor",
        help="Monitor quota usage",
        description="Monitor quota usage and generate alerts.",
    )
    commands = monitor.add_subparsers(dest="monitor_command", metavar="COMMAND")
    commands.required = True

    start = commands.add_parser(
        "start",
        help="Start monitoring",
        description="Start monitoring quota usage for the specified filesystem.",
    )
    start.add_argument("path")
    start.add_argument("-i", "--interval", default="5m", help="monitoring interval")
    start.add_argument("-t", "--threshold", type=int, default=80, help="alert threshold percentage")
    start.set_defaults(handler=_run_monitor_start)

    status = commands.add_parser(
        "status",
        help="Show monitoring status",
        description="Show current monitoring status and recent alerts.",
    )
    status.set_defaults(handler=_run_monitor_status)


def _register_server(subparsers) -> None:
    server = subparsers.add_parser(
        "server",
        help="Start REST API server",
        description="Start the REST API server for remote quota management.",
    )
    server.add_argument("-p", "--port", type=int, default=8080, help="server port")
    server.add_argument("--host", default="0.0.0.0", help="server host")
    server.set_defaults(handler=_run_server)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every command and subcommand."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", default="", help="config file path")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    quota_commands.register(subparsers)
    project_commands.register(subparsers)
    report_commands.register(subparsers)
    _register_monitor(subparsers)
    _register_server(subparsers)

    completion = subparsers.add_parser(
        "completion",
        help="Generate completion script",
        description=(
            f"To load completions:\n\n"
            f"Bash:\n  $ source <({PROG} completion bash)\n\n"
            f"Zsh:\n  $ source <({PROG} completion zsh)\n\n"
            f"Fish:\n  $ {PROG} completion fish | source\n\n"
            f"PowerShell:\n  PS> {PROG} completion powershell | Out-String | Invoke-Expression\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    completion.add_argument("shell", choices=SHELLS)

    def run_completion(args: argparse.Namespace) -> None:
        print(_COMPLETION_WRITERS[args.shell](_command_tree(parser)), end="")

    completion.set_defaults(handler=run_completion)

    version = subparsers.add_parser("version", help="Show version information")
    version.set_defaults(handler=_run_version)

    return parser


def _load_settings(config_file: str):
    try:
        settings = load(config_file or None)
    except ConfigError as exc:
        raise ConfigError(f"failed to load config: {exc}") from exc
    try:
        settings.validate()
    except ConfigError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc
    return settings


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        args.settings = _load_settings(args.config)
        handler(args)
    except KeyboardInterrupt:
        return 130
    except (ConfigError, QuotaError, RuntimeError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())