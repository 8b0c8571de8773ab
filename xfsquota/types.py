"""Core quota data types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class QuotaType(enum.Enum):
    """Kind of quota: per user, per group or per project."""

    USER = 1
    GROUP = 2
    PROJECT = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass
class QuotaInfo:
    """Usage and limits of one quota. Block values are in KB."""

    id: int = 0
    type: QuotaType = QuotaType.USER
    path: str = ""
    device: str = ""
    block_used: int = 0
    block_soft: int = 0
    block_hard: int = 0
    inode_used: int = 0
    inode_soft: int = 0
    inode_hard: int = 0
    last_updated: datetime = field(default_factory=datetime.now)

    def is_block_exceeded(self) -> bool:
        """True when a block hard limit is set and usage has reached it."""
        return self.block_hard > 0 and self.block_used >= self.block_hard

    def is_inode_exceeded(self) -> bool:
        """True when an inode hard limit is set and usage has reached it."""
        return self.inode_hard > 0 and self.inode_used >= self.inode_hard

    def block_usage_percent(self) -> float:
        """Block usage as a percentage of the hard limit, 0 when unlimited."""
        if self.block_hard == 0:
            return 0.0
        return float(self.block_used) / float(self.block_hard) * 100.0

    def inode_usage_percent(self) -> float:
        """Inode usage as a percentage of the hard limit, 0 when unlimited."""
        if self.inode_hard == 0:
            return 0.0
        return float(self.inode_used) / float(self.inode_hard) * 100.0


@dataclass(frozen=True)
class QuotaLimits:
    """Limits to apply to a quota. Block values are in KB."""

    block_soft: int = 0
    block_hard: int = 0
    inode_soft: int = 0
    inode_hard: int = 0


@dataclass
class ProjectInfo:
    """A named project quota bound to a directory."""

    id: int
    name: str
    path: str


@dataclass
class QuotaReport:
    """Summary of all quotas on a filesystem."""

    filesystem: str
    generated_at: datetime = field(default_factory=datetime.now)
    total_quotas: int = 0
    over_quotas: int = 0
    warning_quotas: int = 0
    quotas: list[QuotaInfo] = field(default_factory=list)


class QuotaError(Exception):
    """A quota operation on a path failed."""

    def __init__(self, op: str, path: str, err: BaseException) -> None:
        super().__init__(op, path, err)
        self.op = op
        self.path = path
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        return f"quota {self.op} {self.path}: {self.err}"