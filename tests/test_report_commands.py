import argparse
import json
from datetime import datetime

import pytest

from xfsquota.quota_commands import format_quotas_table
from xfsquota.report_commands import (
    format_filesystem_info,
    format_report,
    format_report_json,
    register,
)
from xfsquota.types import QuotaInfo, QuotaReport, QuotaType


def _report(quotas=None):
    quotas = quotas or []
    return QuotaReport(
        filesystem="/mnt/xfs",
        generated_at=datetime(2024, 1, 2, 3, 4, 5),
        total_quotas=len(quotas),
        over_quotas=1 if quotas else 0,
        warning_quotas=0,
        quotas=quotas,
    )


def _quota():
    return QuotaInfo(
        id=1001,
        type=QuotaType.USER,
        path="/mnt/xfs",
        block_used=1000,
        block_hard=1000,
        inode_used=5,
        inode_hard=10,
        last_updated=datetime(2024, 1, 2, 3, 4, 5),
    )


def _parser():
    parser = argparse.ArgumentParser()
    register(parser.add_subparsers(dest="command"))
    return parser


def test_format_report_summary():
    text = format_report(_report())
    lines = text.splitlines()
    assert lines[0] == "Quota Report for /mnt/xfs"
    assert lines[1] == "Generated at: 2024-01-02 03:04:05"
    assert "  Total Quotas: 0" in lines
    assert "Detailed Quota Information:" not in text


def test_format_report_includes_table():
    quotas = [_quota()]
    text = format_report(_report(quotas))
    assert "\nDetailed Quota Information:\n" in text
    assert text.endswith(format_quotas_table(quotas))
    assert "  Over Quota: 1" in text


def test_format_report_json_round_trip():
    quotas = [_quota()]
    data = json.loads(format_report_json(_report(quotas)))
    assert data["filesystem"] == "/mnt/xfs"
    assert data["total_quotas"] == 1
    assert data["over_quotas"] == 1
    assert data["warning_quotas"] == 0
    assert data["generated_at"] == "2024-01-02T03:04:05Z"
    assert data["quotas"][0]["id"] == 1001
    assert data["quotas"][0]["type"] == "user"


def test_format_report_json_empty_quotas():
    data = json.loads(format_report_json(_report()))
    assert data["quotas"] == []


@pytest.mark.parametrize("is_xfs, word", [(True, "true"), (False, "false")])
def test_format_filesystem_info(is_xfs, word):
    info = {
        "type": "0x58465342",
        "block_size": 4096,
        "total_size": "100 GB",
        "free_size": "50 GB",
        "used_size": "50 GB",
        "total_inodes": 1000000,
        "free_inodes": 500000,
    }
    lines = format_filesystem_info("/mnt/xfs", info, is_xfs).splitlines()
    assert lines[0] == "Filesystem Information:"
    assert "  Path: /mnt/xfs" in lines
    assert "  Type: 0x58465342" in lines
    assert f"  XFS: {word}" in lines
    assert "  Block Size: 4096" in lines
    assert "  Free Inodes: 500000" in lines


def test_generate_command_table(tmp_path, capsys):
    args = _parser().parse_args(["report", "generate", str(tmp_path)])
    args.handler(args)
    out = capsys.readouterr().out
    assert out.startswith(f"Quota Report for {tmp_path}\n")


def test_generate_command_json(tmp_path, capsys):
    args = _parser().parse_args(["report", "generate", "-f", "json", str(tmp_path)])
    args.handler(args)
    data = json.loads(capsys.readouterr().out)
    assert data["filesystem"] == str(tmp_path)
    assert data["total_quotas"] == len(data["quotas"])


def test_filesystem_command_missing_path(tmp_path):
    args = _parser().parse_args(["report", "filesystem", str(tmp_path / "missing")])
    with pytest.raises(RuntimeError, match="failed to get filesystem info"):
        args.handler(args)


def test_report_requires_subcommand():
    with pytest.raises(SystemExit):
        _parser().parse_args(["report"])