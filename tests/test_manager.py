import os

import pytest

from xfsquota.manager import (
    Q_XGETQUOTA,
    Q_XSETQLIM,
    QuotaManager,
    make_quota_cmd,
)
from xfsquota.types import QuotaError, QuotaLimits, QuotaType


def _escape(path):
    return (
        str(path)
        .replace("\\", "\\134")
        .replace(" ", "\\040")
        .replace("\t", "\\011")
        .replace("\n", "\\012")
    )


def _manager(tmp_path, lines):
    mounts = tmp_path / "mounts"
    mounts.write_text("".join(line + "\n" for line in lines))
    return QuotaManager(mounts_file=mounts)


@pytest.fixture
def xfs_manager(tmp_path):
    return _manager(tmp_path, ["/dev/sdz1 / xfs rw,relatime 0 0"])


@pytest.fixture
def broken_manager(tmp_path):
    return QuotaManager(mounts_file=tmp_path / "missing-mounts")


@pytest.mark.parametrize(
    ("cmd", "quota_type", "expected"),
    [
        (Q_XGETQUOTA, QuotaType.USER, 0x80000),
        (Q_XGETQUOTA, QuotaType.GROUP, 0x80001),
        (Q_XGETQUOTA, QuotaType.PROJECT, 0x80002),
        (Q_XSETQLIM, QuotaType.GROUP, 0x80301),
    ],
)
def test_make_quota_cmd(cmd, quota_type, expected):
    assert make_quota_cmd(cmd, quota_type) == expected


def test_get_quota_fills_identity(xfs_manager, tmp_path):
    quota = xfs_manager.get_quota(QuotaType.USER, 1001, str(tmp_path))
    assert quota.id == 1001
    assert quota.type is QuotaType.USER
    assert quota.path == str(tmp_path)
    assert quota.device == "/dev/sdz1"
    assert quota.block_used == 0
    assert quota.inode_hard == 0


def test_get_quota_picks_deepest_mount(tmp_path):
    nested = tmp_path / "data dir"
    nested.mkdir()
    manager = _manager(
        tmp_path,
        [
            "/dev/root / ext4 rw 0 0",
            f"/dev/sdz1 {_escape(os.path.realpath(nested))} xfs rw 0 0",
        ],
    )
    assert manager.get_quota(QuotaType.GROUP, 1, nested).device == "/dev/sdz1"
    assert manager.get_quota(QuotaType.GROUP, 1, tmp_path).device == "/dev/root"


def test_get_quota_wraps_errors(broken_manager):
    with pytest.raises(QuotaError) as info:
        broken_manager.get_quota(QuotaType.USER, 1001, "/mnt/xfs")
    assert info.value.op == "get"
    assert info.value.path == "/mnt/xfs"
    assert isinstance(info.value.err, FileNotFoundError)


def test_set_quota_wraps_errors(broken_manager):
    with pytest.raises(QuotaError) as info:
        broken_manager.set_quota(QuotaType.USER, 1001, "/mnt/xfs", QuotaLimits(1024, 2048))
    assert info.value.op == "set"


def test_remove_quota_wraps_errors(broken_manager):
    with pytest.raises(QuotaError) as info:
        broken_manager.remove_quota(QuotaType.PROJECT, 7, "/mnt/xfs")
    assert info.value.op == "set"


def test_set_quota_rejects_negative_limits(xfs_manager, tmp_path):
    with pytest.raises(ValueError, match="block_hard"):
        xfs_manager.set_quota(QuotaType.USER, 1, tmp_path, QuotaLimits(block_hard=-1))


def test_get_all_quotas_scans_id_range(xfs_manager, tmp_path):
    quotas = xfs_manager.get_all_quotas(QuotaType.GROUP, tmp_path)
    assert [quota.id for quota in quotas] == list(range(1000, 1006))
    assert all(quota.type is QuotaType.GROUP for quota in quotas)


def test_get_all_quotas_skips_failures(broken_manager):
    assert broken_manager.get_all_quotas(QuotaType.USER, "/mnt/xfs") == []


def test_set_batch_quotas_raises_last_error(broken_manager):
    limits = {1001: QuotaLimits(1, 2), 1002: QuotaLimits(3, 4)}
    with pytest.raises(QuotaError) as info:
        broken_manager.set_batch_quotas(QuotaType.USER, "/mnt/xfs", limits)
    assert info.value.op == "set"


def test_get_projects_lists_example(xfs_manager):
    projects = xfs_manager.get_projects()
    assert len(projects) == 1
    assert projects[0].id == 1000
    assert projects[0].name == "example-project"
    assert projects[0].path == "/mnt/xfs/projects/example"


def test_create_project_makes_directory(xfs_manager, tmp_path):
    target = tmp_path / "projects" / "test"
    project = xfs_manager.create_project("test-project", target)
    assert project.name == "test-project"
    assert project.path == str(target)
    assert project.id == 1001
    assert target.is_dir()


def test_create_project_rejects_duplicate(xfs_manager, tmp_path):
    with pytest.raises(ValueError, match="project example-project already exists"):
        xfs_manager.create_project("example-project", tmp_path / "dup")
    assert not (tmp_path / "dup").exists()


def test_generate_report_counts(xfs_manager, tmp_path):
    report = xfs_manager.generate_report(tmp_path)
    assert report.filesystem == str(tmp_path)
    assert report.total_quotas == len(report.quotas)
    assert {quota.type for quota in report.quotas} == set(QuotaType)
    assert report.over_quotas == 0
    assert report.warning_quotas == 0


def test_generate_report_without_mounts(broken_manager):
    report = broken_manager.generate_report("/mnt/xfs")
    assert report.total_quotas == 0
    assert report.quotas == []


def test_is_xfs_filesystem(xfs_manager, tmp_path):
    assert xfs_manager.is_xfs_filesystem(tmp_path) is True


def test_check_quota_status_rejects_other_filesystems(tmp_path):
    manager = _manager(tmp_path, ["/dev/root / ext4 rw 0 0"])
    assert manager.is_xfs_filesystem(tmp_path) is False
    with pytest.raises(ValueError, match="is not on an XFS filesystem"):
        manager.check_quota_status(tmp_path)


def test_is_xfs_filesystem_missing_path(xfs_manager, tmp_path):
    with pytest.raises(FileNotFoundError):
        xfs_manager.is_xfs_filesystem(tmp_path / "nowhere")


def test_get_filesystem_info(xfs_manager, tmp_path):
    info = xfs_manager.get_filesystem_info(tmp_path)
    assert info["type"] == "0x58465342"
    assert info["free_inodes"] <= info["total_inodes"]
    assert info["block_size"] > 0
    assert set(info) == {
        "type",
        "block_size",
        "total_size",
        "free_size",
        "used_size",
        "total_inodes",
        "free_inodes",
    }


def test_get_filesystem_info_missing_path(xfs_manager, tmp_path):
    with pytest.raises(FileNotFoundError):
        xfs_manager.get_filesystem_info(tmp_path / "nowhere")