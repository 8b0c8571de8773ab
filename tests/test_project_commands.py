import argparse

import pytest

from xfsquota.project_commands import format_project_list, register
from xfsquota.types import ProjectInfo


def _parser():
    parser = argparse.ArgumentParser()
    register(parser.add_subparsers(dest="command"))
    return parser


def test_format_empty_list():
    assert format_project_list([]) == "No projects found.\n"


def test_format_project_rows():
    projects = [
        ProjectInfo(id=1000, name="example-project", path="/mnt/xfs/projects/example"),
        ProjectInfo(id=1001, name="test-project", path="/mnt/xfs/projects/test"),
    ]
    lines = format_project_list(projects).splitlines()
    assert lines[0].split() == ["ID", "Name", "Path"]
    assert lines[1] == "-" * 40
    assert len(lines) == 2 + len(projects)
    for line, project in zip(lines[2:], projects):
        assert line.split() == [str(project.id), project.name, project.path]
    # columns line up: path always starts at the same offset
    offsets = {line.index(project.path) for line, project in zip(lines[2:], projects)}
    assert len(offsets) == 1


def test_create_command(tmp_path, capsys):
    target = tmp_path / "projects" / "demo"
    args = _parser().parse_args(["project", "create", "demo", str(target)])
    args.handler(args)
    out = capsys.readouterr().out.splitlines()
    assert target.is_dir()
    assert out[0] == "Project created successfully:"
    assert "  Name: demo" in out
    assert f"  Path: {target}" in out


def test_create_existing_project_fails(tmp_path):
    args = _parser().parse_args(["project", "create", "example-project", str(tmp_path)])
    with pytest.raises(RuntimeError, match="already exists"):
        args.handler(args)


def test_remove_command(capsys):
    args = _parser().parse_args(["project", "remove", "demo"])
    args.handler(args)
    assert capsys.readouterr().out == "Project 'demo' removed successfully\n"


def test_list_command(capsys):
    args = _parser().parse_args(["project", "list"])
    args.handler(args)
    out = capsys.readouterr().out
    assert "example-project" in out
    assert out.splitlines()[0].split() == ["ID", "Name", "Path"]


def test_create_requires_two_arguments():
    with pytest.raises(SystemExit):
        _parser().parse_args(["project", "create", "only-name"])