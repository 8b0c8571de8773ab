# xfsquota

A command-line toolkit for XFS quotas. It has commands for user, group and
project quotas, quota reports, filesystem details, periodic monitoring and
shell completion. It also handles configuration loading and the parsing and
formatting of byte sizes.

## Installation

```
pip install .
```

This installs the `xfs-quota-kit` command. It needs Linux, because it reads
`/proc/mounts`.

## Configuration

Settings come from a YAML file. Pass one with `--config` / `-c`. A file given
this way may also be `.yml` or `.json`. Without `--config`, the tool looks for
`config.yaml` or `config.yml` in these places, in this order:

1. `./configs`
2. `/etc/xfs-quota-kit`
3. `$HOME/.xfs-quota-kit`
4. the current directory

When no file is found, the built-in defaults apply:

- server on `0.0.0.0:8080` in `release` mode
- `info` logging as JSON to stdout
- XFS root `/mnt/xfs`
- monitoring every `5m` with an 80% alert threshold

Any setting can be overridden from the environment. Use the `XFS_QUOTA_`
prefix, upper case, and underscores in place of dots. For example,
`XFS_QUOTA_SERVER_PORT=9000` overrides `server.port`.

Every command loads and validates the configuration before it runs. An
invalid setting fails the command with exit status 1. Examples of invalid
settings:

- a port outside 1–65535
- an unknown server mode, logging level, format or output
- TLS enabled without a certificate and key
- file logging without a file

## Usage

### Quotas

```
xfs-quota-kit quota get /mnt/xfs --type user --id 1001
xfs-quota-kit quota set /mnt/xfs -t group -i 100 --block-soft 1GB --block-hard 2GB --inode-soft 1000 --inode-hard 2000
xfs-quota-kit quota remove /mnt/xfs -t project -i 1000
xfs-quota-kit quota list /mnt/xfs -t user --format json
```

- Quota types are `user`, `group` and `project`, or `u`, `g` and `p`.
- Block limits accept `KB`, `MB`, `GB` and `TB` suffixes, such as `500MB` or
  `1.5TB`. A bare number is taken as kilobytes.
- `quota list` prints a table by default, or JSON with `--format json`.
- `quota list` covers IDs 1000 to 1005.
- Each row of the table gets a status:
  - `OVER` when a hard limit is reached.
  - `WARNING` when block or inode usage is above 80% of its hard limit.
  - `OK` otherwise.

### Projects

```
xfs-quota-kit project create web /mnt/xfs/projects/web
xfs-quota-kit project list
xfs-quota-kit project remove web
```

`project create` creates the directory and reports the new project's ID.

### Reports

```
xfs-quota-kit report generate /mnt/xfs --format table
xfs-quota-kit report filesystem /mnt/xfs
```

- `report generate` gathers the user, group and project quotas. It counts how
  many are over quota and how many are in the warning range.
- `report filesystem` shows the following for the filesystem holding the
  path:
  - its type
  - whether it is XFS
  - block size
  - total, used and free space
  - total and free inode counts

### Monitoring

```
xfs-quota-kit monitor start /mnt/xfs --interval 5m --threshold 80
xfs-quota-kit monitor status
```

`monitor start` runs until interrupted, and each check time is printed. The
interval is written like `5m`, `1h30m` or `1.5s`. At every interval it prints
an alert for each quota whose block or inode usage is at or above the
threshold.

### Other commands

```
xfs-quota-kit completion bash
xfs-quota-kit server --host 0.0.0.0 --port 8080
xfs-quota-kit version
```

`completion` prints a completion script for `bash`, `zsh`, `fish` or
`powershell`.

## Library use

The building blocks are importable:

```python
from xfsquota.sizes import parse_size, format_size
from xfsquota.types import QuotaType, QuotaLimits
from xfsquota.manager import QuotaManager
from xfsquota.config import load

parse_size("1.5GB")        # 1610612736
format_size(1536)          # "1.5 KB"

config = load()            # defaults, file and environment merged
config.address             # "0.0.0.0:8080" with the defaults

manager = QuotaManager()
manager.set_quota(QuotaType.USER, 1001, "/mnt/xfs",
                  QuotaLimits(block_soft=1024, block_hard=2048))
```

Library errors:

- `load` raises `ConfigError` on an unreadable, malformed or invalid
  configuration.
- Quota operations raise `QuotaError` when the path cannot be mapped to a
  mounted filesystem.

## What it does not do

- Quota values are not read from the kernel. `quota get`, `quota list` and
  `report generate` find the device from `/proc/mounts`, but they report
  every usage and limit as zero.
- Limits are not applied to the filesystem. `quota set` and `quota remove`
  check the limits and the path, and stop there.
- Projects are not written to `/etc/projects` or `/etc/projid`. The project
  list starts with a single `example-project` (ID 1000). Creations and
  removals are not kept from one command to the next.
- `report generate --output` is accepted, but the report is always printed to
  standard output.
- There is no REST API server. `server` only prints the address it was given.
- There is no background monitor. `monitor status` reports that no monitor is
  active.

## Tests

```
pip install ".[test]"
pytest
```