"""Application configuration: defaults, file and environment loading, validation."""

import json
import math
import os
from dataclasses import Field, dataclass, field, fields, is_dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union, get_args, get_origin

import yaml

ENV_PREFIX = "XFS_QUOTA"
CONFIG_NAME = "config"
SEARCH_PATHS = ("./configs", "/etc/xfs-quota-kit", "$HOME/.xfs-quota-kit", ".")

_SEARCH_EXTENSIONS = ("yaml", "yml")
_SUPPORTED_TYPES = ("yaml", "yml", "json")
_UNSIGNED = {"unsigned": True}
_MAX_UINT64 = 2**64 - 1

_VALID_MODES = ("debug", "release", "test")
_VALID_LEVELS = ("debug", "info", "warn", "error")
_VALID_FORMATS = ("json", "text")
_VALID_OUTPUTS = ("stdout", "file")

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}

_PathArg = Optional[Union[str, "os.PathLike[str]"]]


class ConfigError(Exception):
    """The configuration could not be read or is invalid."""


@dataclass
class TLSConfig:
    enabled: bool = False
    cert_file: str = ""
    key_file: str = ""


@dataclass
class ServerConfig:
    host: str = ""
    port: int = 0
    mode: str = ""
    tls: TLSConfig = field(default_factory=TLSConfig)


@dataclass
class DatabaseConfig:
    type: str = ""
    host: str = ""
    port: int = 0
    database: str = ""
    username: str = ""
    password: str = ""
    ssl_mode: str = ""


@dataclass
class LoggingConfig:
    level: str = ""
    format: str = ""
    output: str = ""
    file: str = ""
    max_size: int = 0
    max_backups: int = 0
    max_age: int = 0
    compress: bool = False


@dataclass
class DefaultLimits:
    user_block_soft: str = ""
    user_block_hard: str = ""
    user_inode_soft: int = field(default=0, metadata=_UNSIGNED)
    user_inode_hard: int = field(default=0, metadata=_UNSIGNED)
    group_block_soft: str = ""
    group_block_hard: str = ""
    group_inode_soft: int = field(default=0, metadata=_UNSIGNED)
    group_inode_hard: int = field(default=0, metadata=_UNSIGNED)


@dataclass
class FilesystemInfo:
    name: str = ""
    mount_point: str = ""
    device: str = ""
    options: str = ""
    enabled: bool = False


@dataclass
class XFSConfig:
    default_path: str = ""
    projects_file: str = ""
    projid_file: str = ""
    default_limits: DefaultLimits = field(default_factory=DefaultLimits)
    auto_create: bool = False
    backup_enabled: bool = False
    backup_path: str = ""
    filesystems: list[FilesystemInfo] = field(default_factory=list)


@dataclass
class MonitorConfig:
    enabled: bool = False
    interval: str = ""
    alert_threshold: int = 0
    report_path: str = ""
    report_interval: str = ""
    email_notification: bool = False
    webhook_url: str = ""


@dataclass
class Config:
    """Complete application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    xfs: XFSConfig = field(default_factory=XFSConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)

    def validate(self) -> None:
        """Raise ConfigError if any setting is out of range."""
        server = self.server
        if server.port <= 0 or server.port > 65535:
            raise ConfigError(f"invalid server port: {server.port}")
        if server.mode not in _VALID_MODES:
            raise ConfigError(f"invalid server mode: {server.mode}")
        if server.tls.enabled and (not server.tls.cert_file or not server.tls.key_file):
            raise ConfigError("TLS enabled but cert_file or key_file not specified")

        logging = self.logging
        if logging.level not in _VALID_LEVELS:
            raise ConfigError(f"invalid logging level: {logging.level}")
        if logging.format not in _VALID_FORMATS:
            raise ConfigError(f"invalid logging format: {logging.format}")
        if logging.output not in _VALID_OUTPUTS:
            raise ConfigError(f"invalid logging output: {logging.output}")
        if logging.output == "file" and not logging.file:
            raise ConfigError("logging output set to file but no file specified")

    @property
    def address(self) -> str:
        """The server listen address as ``host:port``."""
        return f"{self.server.host}:{self.server.port}"

    def is_debug_mode(self) -> bool:
        return self.server.mode == "debug"


DEFAULTS: dict[str, Any] = {
    "server.host": "0.0.0.0",
    "server.port": 8080,
    "server.mode": "release",
    "server.tls.enabled": False,
    "database.type": "sqlite",
    "database.database": "xfs_quota.db",
    "logging.level": "info",
    "logging.format": "json",
    "logging.output": "stdout",
    "logging.max_size": 100,
    "logging.max_backups": 3,
    "logging.max_age": 28,
    "logging.compress": True,
    "xfs.default_path": "/mnt/xfs",
    "xfs.projects_file": "/etc/projects",
    "xfs.projid_file": "/etc/projid",
    "xfs.auto_create": True,
    "xfs.backup_enabled": True,
    "xfs.backup_path": "/var/backups/xfs-quota-kit",
    "xfs.default_limits.user_block_soft": "1GB",
    "xfs.default_limits.user_block_hard": "2GB",
    "xfs.default_limits.user_inode_soft": 100000,
    "xfs.default_limits.user_inode_hard": 200000,
    "xfs.default_limits.group_block_soft": "10GB",
    "xfs.default_limits.group_block_hard": "20GB",
    "xfs.default_limits.group_inode_soft": 1000000,
    "xfs.default_limits.group_inode_hard": 2000000,
    "monitor.enabled": True,
    "monitor.interval": "5m",
    "monitor.alert_threshold": 80,
    "monitor.report_path": "/var/log/xfs-quota-kit/reports",
    "monitor.report_interval": "1h",
    "monitor.email_notification": False,
}


def load(config_file: _PathArg = None) -> Config:
    """Load configuration from defaults, a YAML file and ``XFS_QUOTA_*`` variables.

    Without ``config_file`` the file ``config.yaml`` is searched for in the
    standard locations; a missing file leaves the defaults in place.
    """
    settings = dict(DEFAULTS)
    settings.update(_flatten(_read_config(config_file)))
    _apply_env(settings)

    try:
        config = _decode(Config, settings, "")
    except ValueError as exc:
        raise ConfigError(f"failed to unmarshal config: {exc}") from exc

    try:
        config.validate()
    except ConfigError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc
    return config


def _find_config() -> Optional[Path]:
    for directory in SEARCH_PATHS:
        base = Path(os.path.expandvars(directory))
        for extension in _SEARCH_EXTENSIONS:
            candidate = base / f"{CONFIG_NAME}.{extension}"
            if candidate.is_file():
                return candidate
    return None


def _read_config(config_file: _PathArg) -> dict[str, Any]:
    if config_file:
        path = Path(config_file)
        file_type = path.suffix.lstrip(".").lower()
        if file_type not in _SUPPORTED_TYPES:
            raise ConfigError(f"failed to read config file: unsupported config type {file_type!r}")
    else:
        found = _find_config()
        if found is None:
            return {}
        path, file_type = found, "yaml"

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc

    try:
        data = json.loads(text) if file_type == "json" else yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("failed to read config file: top level must be a mapping")
    return data


def _flatten(data: dict[Any, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{str(key).lower()}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{full_key}."))
        elif value is not None:
            flat[full_key] = value
    return flat


def _apply_env(settings: dict[str, Any]) -> None:
    for key in list(settings):
        env_name = f"{ENV_PREFIX}_{key.replace('.', '_').upper()}"
        value = os.environ.get(env_name)
        if value:
            settings[key] = value


def _decode(cls: type, settings: dict[str, Any], prefix: str) -> Any:
    values: dict[str, Any] = {}
    for spec in fields(cls):
        key = f"{prefix}{spec.name}"
        hint = spec.type
        if isinstance(hint, type) and is_dataclass(hint):
            values[spec.name] = _decode(hint, settings, f"{key}.")
        elif key in settings:
            values[spec.name] = _convert(hint, spec, settings[key], key)
    return cls(**values)


def _convert(hint: Any, spec: Field, value: Any, key: str) -> Any:
    if get_origin(hint) is list:
        (item_type,) = get_args(hint)
        if not isinstance(value, list):
            raise ValueError(f"'{key}': expected a list, got {value!r}")
        items = []
        for item in value:
            if not isinstance(item, dict):
                raise ValueError(f"'{key}': expected a mapping, got {item!r}")
            items.append(_decode(item_type, _flatten(item), ""))
        return items
    if hint is bool:
        return _to_bool(value, key)
    if hint is int:
        return _to_int(value, key, unsigned=bool(spec.metadata.get("unsigned")))
    if hint is str:
        return _to_str(value, key)
    raise ValueError(f"'{key}': unsupported field type {hint!r}")


def _to_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value == "":
            return False
        if value in _TRUE_WORDS:
            return True
        if value in _FALSE_WORDS:
            return False
    raise ValueError(f"cannot parse '{key}' as bool: {value!r}")


def _to_int(value: Any, key: str, *, unsigned: bool) -> int:
    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"cannot parse '{key}' as int: {value!r}")
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0
        try:
            number = int(text, 0)
        except ValueError:
            raise ValueError(f"cannot parse '{key}' as int: {value!r}") from None
    else:
        raise ValueError(f"cannot parse '{key}' as int: {value!r}")

    if unsigned and not 0 <= number <= _MAX_UINT64:
        raise ValueError(f"cannot parse '{key}', {number} overflows uint")
    return number


def _to_str(value: Any, key: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return format(Decimal(repr(value)), "f")
    raise ValueError(f"'{key}' expected a string, got {value!r}")