"""The ``project`` command group: create, remove and list project quotas."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from .manager import QuotaManager
from .types import ProjectInfo


def format_project_list(projects: Sequence[ProjectInfo]) -> str:
    """Render projects as a table of ID, name and path."""
    if not projects:
        return "No projects found.\n"
    lines = [f"{'ID':<8} {'Name':<20} Path", "-" * 40]
    lines += [f"{project.id:<8} {project.name:<20} {project.path}" for project in projects]
    return "\n".join(lines) + "\n"


def _run_create(args: argparse.Namespace) -> None:
    manager = QuotaManager()
    try:
        project = manager.create_project(args.name, args.path)
    except (ValueError, OSError) as exc:
        raise RuntimeError(f"failed to create project: {exc}") from exc
    print("Project created successfully:")
    print(f"  Name: {project.name}")
    print(f"  ID: {project.id}")
    print(f"  Path: {project.path}")


def _run_remove(args: argparse.Namespace) -> None:
    manager = QuotaManager()
    try:
        manager.remove_project(args.name)
    except (ValueError, OSError) as exc:
        raise RuntimeError(f"failed to remove project: {exc}") from exc
    print(f"Project '{args.name}' removed successfully")


def _run_list(args: argparse.Namespace) -> None:
    manager = QuotaManager()
    try:
        projects = manager.get_projects()
    except OSError as exc:
        raise RuntimeError(f"failed to list projects: {exc}") from exc
    print(format_project_list(projects), end="")


def register(subparsers) -> argparse.ArgumentParser:
    """Add the ``project`` command and its subcommands; each sets ``handler``."""
    project = subparsers.add_parser(
        "project",
        help="Manage XFS project quotas",
        description="Manage XFS project quotas and project directories.",
    )
    commands = project.add_subparsers(dest="project_command", metavar="COMMAND")
    commands.required = True

    create = commands.add_parser(
        "create",
        help="Create a new project",
        description="Create a new XFS project quota for the specified directory.",
    )
    create.add_argument("name")
    create.add_argument("path")
    create.set_defaults(handler=_run_create)

    remove = commands.add_parser(
        "remove",
        help="Remove a project",
        description="Remove an XFS project quota.",
    )
    remove.add_argument("name")
    remove.set_defaults(handler=_run_remove)

    list_ = commands.add_parser(
        "list",
        help="List all projects",
        description="List all XFS project quotas.",
    )
    list_.set_defaults(handler=_run_list)

    return project