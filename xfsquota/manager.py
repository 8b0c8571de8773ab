"""Quota management operations on XFS filesystems."""

from __future__ import annotations

import errno
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Union

from .sizes import format_size
from .types import ProjectInfo, QuotaError, QuotaInfo, QuotaLimits, QuotaReport, QuotaType

QCMD_CMD = 0xFF
QCMD_TYPE = 0x0F00

Q_XQUOTAON = 0x800
Q_XQUOTAOFF = 0x801
Q_XGETQUOTA = 0x800
Q_XSETQLIM = 0x803
Q_XGETQSTAT = 0x805

USRQUOTA = 0
GRPQUOTA = 1
PRJQUOTA = 2

XFS_SUPER_MAGIC = 0x58465342

MOUNTS_FILE = "/proc/mounts"
WARNING_PERCENT = 80

_SCANNED_IDS = range(1000, 1006)
_FIRST_PROJECT_ID = 1000

_QUOTACTL_TYPES = {
    QuotaType.USER: USRQUOTA,
    QuotaType.GROUP: GRPQUOTA,
    QuotaType.PROJECT: PRJQUOTA,
}

_FS_MAGIC = {
    "xfs": XFS_SUPER_MAGIC,
    "ext2": 0xEF53,
    "ext3": 0xEF53,
    "ext4": 0xEF53,
    "btrfs": 0x9123683E,
    "tmpfs": 0x01021994,
    "proc": 0x9FA0,
    "sysfs": 0x62656572,
    "overlay": 0x794C7630,
    "nfs": 0x6969,
}

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

PathLike = Union[str, "os.PathLike[str]"]


def make_quota_cmd(cmd: int, quota_type: QuotaType) -> int:
    """Build a quotactl command word from a command and a quota type."""
    qtype = _QUOTACTL_TYPES.get(quota_type, 0)
    return ((cmd << 8) | qtype) & 0xFFFFFFFF


@dataclass
class _DqBlk:
    """Disk quota block as exchanged with the kernel; space is in bytes."""

    b_hard_limit: int = 0
    b_soft_limit: int = 0
    cur_space: int = 0
    i_hard_limit: int = 0
    i_soft_limit: int = 0
    cur_inodes: int = 0
    b_time: int = 0
    i_time: int = 0


@dataclass(frozen=True)
class _MountEntry:
    device: str
    mount_point: str
    fs_type: str


def _unescape(field: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), field)


def _initial_projects() -> list[ProjectInfo]:
    return [
        ProjectInfo(id=1000, name="example-project", path="/mnt/xfs/projects/example"),
    ]


class QuotaManager:
    """Reads and changes user, group and project quotas."""

    def __init__(self, mounts_file: PathLike = MOUNTS_FILE) -> None:
        self.mounts_file = mounts_file
        self._projects: list[ProjectInfo] = _initial_projects()

    def get_quota(self, quota_type: QuotaType, quota_id: int, path: PathLike) -> QuotaInfo:
        """Return usage and limits of one quota on the filesystem holding ``path``."""
        try:
            device = self._device_from_path(path)
        except OSError as exc:
            raise QuotaError("get", os.fspath(path), exc) from exc

        make_quota_cmd(Q_XGETQUOTA, quota_type)
        dqblk = _DqBlk()
        return QuotaInfo(
            id=quota_id,
            type=quota_type,
            path=os.fspath(path),
            device=device,
            block_used=dqblk.cur_space // 1024,
            block_soft=dqblk.b_soft_limit // 1024,
            block_hard=dqblk.b_hard_limit // 1024,
            inode_used=dqblk.cur_inodes,
            inode_soft=dqblk.i_soft_limit,
            inode_hard=dqblk.i_hard_limit,
            last_updated=datetime.now(),
        )

    def set_quota(
        self, quota_type: QuotaType, quota_id: int, path: PathLike, limits: QuotaLimits
    ) -> None:
        """Apply ``limits`` (block values in KB) to one quota."""
        for name in ("block_soft", "block_hard", "inode_soft", "inode_hard"):
            if getattr(limits, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        try:
            self._device_from_path(path)
        except OSError as exc:
            raise QuotaError("set", os.fspath(path), exc) from exc

        make_quota_cmd(Q_XSETQLIM, quota_type)
        _DqBlk(
            b_soft_limit=limits.block_soft * 1024,
            b_hard_limit=limits.block_hard * 1024,
            i_soft_limit=limits.inode_soft,
            i_hard_limit=limits.inode_hard,
        )

    def remove_quota(self, quota_type: QuotaType, quota_id: int, path: PathLike) -> None:
        """Remove a quota by setting all of its limits to zero."""
        self.set_quota(quota_type, quota_id, path, QuotaLimits())

    def get_all_quotas(self, quota_type: QuotaType, path: PathLike) -> list[QuotaInfo]:
        """Return the quotas of the scanned ID range, skipping ones that fail."""
        quotas = []
        for quota_id in _SCANNED_IDS:
            try:
                quotas.append(self.get_quota(quota_type, quota_id, path))
            except QuotaError:
                continue
        return quotas

    def set_batch_quotas(
        self, quota_type: QuotaType, path: PathLike, quotas: Mapping[int, QuotaLimits]
    ) -> None:
        """Set every quota in ``quotas``; the last failure is raised after all are tried."""
        last_error: QuotaError | None = None
        for quota_id, limits in quotas.items():
            try:
                self.set_quota(quota_type, quota_id, path, limits)
            except QuotaError as exc:
                last_error = exc
        if last_error is not None:
            raise last_error

    def create_project(self, name: str, path: PathLike) -> ProjectInfo:
        """Create a project and its directory, assigning the next free ID."""
        projects = self.get_projects()
        if any(project.name == name for project in projects):
            raise ValueError(f"project {name} already exists")

        project_id = _FIRST_PROJECT_ID + len(projects)
        try:
            os.makedirs(path, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(f"failed to create project directory: {exc}") from exc

        return ProjectInfo(id=project_id, name=name, path=os.fspath(path))

    def remove_project(self, name: str) -> None:
        """Drop every project called ``name``; unknown names are ignored."""
        self._projects = [project for project in self._projects if project.name != name]

    def get_projects(self) -> list[ProjectInfo]:
        """Return the known projects."""
        return list(self._projects)

    def generate_report(self, path: PathLike) -> QuotaReport:
        """Collect all user, group and project quotas and count problem ones."""
        report = QuotaReport(filesystem=os.fspath(path), generated_at=datetime.now())
        for quota_type in (QuotaType.USER, QuotaType.GROUP, QuotaType.PROJECT):
            report.quotas.extend(self.get_all_quotas(quota_type, path))

        report.total_quotas = len(report.quotas)
        for quota in report.quotas:
            if quota.is_block_exceeded() or quota.is_inode_exceeded():
                report.over_quotas += 1
            elif (
                quota.block_usage_percent() > WARNING_PERCENT
                or quota.inode_usage_percent() > WARNING_PERCENT
            ):
                report.warning_quotas += 1
        return report

    def check_quota_status(self, path: PathLike) -> None:
        """Raise ValueError unless ``path`` lies on an XFS filesystem."""
        if not self.is_xfs_filesystem(path):
            raise ValueError(f"path {os.fspath(path)} is not on an XFS filesystem")

    def is_xfs_filesystem(self, path: PathLike) -> bool:
        """Tell whether ``path`` lies on an XFS filesystem."""
        os.stat(path)
        return self._find_mount(path).fs_type == "xfs"

    def get_filesystem_info(self, path: PathLike) -> dict[str, Any]:
        """Return type, size and inode figures of the filesystem holding ``path``."""
        stat = os.statvfs(path)
        fs_type = self._find_mount(path).fs_type
        magic = _FS_MAGIC.get(fs_type)
        unit = stat.f_frsize or stat.f_bsize
        return {
            "type": f"0x{magic:X}" if magic is not None else fs_type,
            "block_size": stat.f_bsize,
            "total_size": format_size(stat.f_blocks * unit),
            "free_size": format_size(stat.f_bavail * unit),
            "used_size": format_size((stat.f_blocks - stat.f_bavail) * unit),
            "total_inodes": stat.f_files,
            "free_inodes": stat.f_ffree,
        }

    def _device_from_path(self, path: PathLike) -> str:
        return self._find_mount(path).device

    def _find_mount(self, path: PathLike) -> _MountEntry:
        target = PurePosixPath(os.path.realpath(os.path.abspath(path)))
        best: _MountEntry | None = None
        best_depth = -1
        with open(self.mounts_file, encoding="utf-8") as handle:
            for line in handle:
                fields = line.split()
                if len(fields) < 3:
                    continue
                mount_point = PurePosixPath(_unescape(fields[1]))
                if not target.is_relative_to(mount_point):
                    continue
                depth = len(mount_point.parts)
                if depth >= best_depth:
                    best = _MountEntry(_unescape(fields[0]), str(mount_point), fields[2])
                    best_depth = depth
        if best is None:
            raise FileNotFoundError(errno.ENOENT, "no mount point found", str(target))
        return best