"""Toolkit for XFS user, group and project quotas: sizes, configuration, quota management and the xfs-quota-kit command line."""

__version__ = "0.1.0"