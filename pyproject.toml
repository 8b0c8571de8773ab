[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xfsquota"
version = "0.1.0"
description = "Command-line toolkit for managing XFS user, group and project quotas"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["xfs", "quota", "filesystem", "disk", "administration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
xfs-quota-kit = "xfsquota.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["xfsquota"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
