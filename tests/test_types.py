from datetime import datetime

import pytest

from xfsquota.types import (
    ProjectInfo,
    QuotaError,
    QuotaInfo,
    QuotaLimits,
    QuotaReport,
    QuotaType,
)


@pytest.mark.parametrize(
    ("quota_type", "expected"),
    [
        (QuotaType.USER, "user"),
        (QuotaType.GROUP, "group"),
        (QuotaType.PROJECT, "project"),
    ],
)
def test_quota_type_str(quota_type, expected):
    assert str(quota_type) == expected
    assert f"{quota_type}" == expected


def test_quota_type_unknown_value_rejected():
    with pytest.raises(ValueError):
        QuotaType(99)


@pytest.mark.parametrize(
    ("used", "hard", "expected"),
    [(500, 1000, False), (1000, 1000, True), (1500, 1000, True), (1500, 0, False)],
)
def test_is_block_exceeded(used, hard, expected):
    assert QuotaInfo(block_used=used, block_hard=hard).is_block_exceeded() is expected


@pytest.mark.parametrize(
    ("used", "hard", "expected"),
    [(500, 1000, False), (1000, 1000, True), (1500, 1000, True), (1500, 0, False)],
)
def test_is_inode_exceeded(used, hard, expected):
    assert QuotaInfo(inode_used=used, inode_hard=hard).is_inode_exceeded() is expected


@pytest.mark.parametrize(
    ("used", "hard", "expected"),
    [(500, 1000, 50.0), (1000, 1000, 100.0), (1000, 0, 0.0)],
)
def test_block_usage_percent(used, hard, expected):
    assert QuotaInfo(block_used=used, block_hard=hard).block_usage_percent() == expected


@pytest.mark.parametrize(
    ("used", "hard", "expected"),
    [(250, 1000, 25.0), (1000, 1000, 100.0), (1000, 0, 0.0)],
)
def test_inode_usage_percent(used, hard, expected):
    assert QuotaInfo(inode_used=used, inode_hard=hard).inode_usage_percent() == expected


def test_quota_info_defaults():
    info = QuotaInfo(id=1001, type=QuotaType.GROUP, path="/mnt/xfs")
    assert (info.block_used, info.block_hard, info.inode_hard) == (0, 0, 0)
    assert info.device == ""
    assert isinstance(info.last_updated, datetime)


def test_quota_limits_defaults_and_equality():
    assert QuotaLimits() == QuotaLimits(0, 0, 0, 0)
    assert QuotaLimits(block_soft=1024).block_soft == 1024


def test_project_info_fields():
    project = ProjectInfo(id=1000, name="example-project", path="/mnt/xfs/p")
    assert (project.id, project.name, project.path) == (1000, "example-project", "/mnt/xfs/p")


def test_quota_report_defaults():
    report = QuotaReport(filesystem="/mnt/xfs")
    assert report.total_quotas == 0
    assert report.over_quotas == 0
    assert report.warning_quotas == 0
    assert report.quotas == []


class _AnError(Exception):
    pass


def test_quota_error_message():
    err = QuotaError("get", "/mnt/xfs", _AnError("assert.AnError general error for testing"))
    assert str(err) == "quota get /mnt/xfs: assert.AnError general error for testing"


def test_quota_error_cause():
    original = _AnError("boom")
    err = QuotaError("set", "/mnt/xfs", original)
    assert err.err is original
    assert err.__cause__ is original
    assert (err.op, err.path) == ("set", "/mnt/xfs")


def test_quota_error_is_raisable():
    original = _AnError("boom")
    error = QuotaError("set", "/x", original)
    with pytest.raises(QuotaError) as excinfo:
        raise error
    assert str(excinfo.value) == "quota set /x: boom"
    assert excinfo.value.path == "/x"
    assert excinfo.value.err is original