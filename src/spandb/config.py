"""Connection configuration: DSN parsing, environment lookup, named profiles.

Configuration is an explicit value handed to connect(); nothing here is
process-wide state.
"""

from __future__ import annotations

import dataclasses
import os
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path

from spandb.errors import InterfaceError

DEFAULT_PROFILES_FILE = Path.home() / ".spandb" / "connections.toml"
DEFAULT_DDL_TIMEOUT = 600.0

_DSN_RE = re.compile(
    r"^projects/(?P<project>[^/]+)/instances/(?P<instance>[^/]+)/databases/(?P<database>[^/]+)$"
)

# Profile keys that are not plain strings.
_FLOAT_KEYS = {"ddl_timeout"}
_BOOL_KEYS = {"autocommit"}


@dataclass(frozen=True)
class ConnectionConfig:
    project: str
    instance: str
    database: str
    credentials_file: str | None = None
    ddl_timeout: float = DEFAULT_DDL_TIMEOUT
    autocommit: bool = True
    log_dir: Path | None = None

    @property
    def database_path(self) -> str:
        return f"projects/{self.project}/instances/{self.instance}/databases/{self.database}"

    @classmethod
    def from_dsn(cls, dsn: str, **options) -> ConnectionConfig:
        """Parse projects/<project>/instances/<instance>/databases/<database>."""
        match = _DSN_RE.match(dsn.strip())
        if match is None:
            raise InterfaceError(
                f"invalid data source name {dsn!r}: expected "
                "projects/<project>/instances/<instance>/databases/<database>"
            )
        return cls(**match.groupdict(), **options)

    @classmethod
    def from_env(cls, prefix: str = "SPANNER", **options) -> ConnectionConfig:
        """Read <prefix>_PROJECT, <prefix>_INSTANCE and <prefix>_DATABASE.

        Missing variables fall back to test-project / test-instance / gotest.
        """
        return cls(
            project=os.environ.get(f"{prefix}_PROJECT", "test-project"),
            instance=os.environ.get(f"{prefix}_INSTANCE", "test-instance"),
            database=os.environ.get(f"{prefix}_DATABASE", "gotest"),
            **options,
        )

    def replace(self, **changes) -> ConnectionConfig:
        return dataclasses.replace(self, **changes)


def _coerce(key: str, value: object) -> object:
    if key in _FLOAT_KEYS:
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise InterfaceError(f"{key} must be a number, got {value!r}") from e
    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return value
        return str(value).lower() in {"1", "true", "yes", "on"}
    if key == "log_dir":
        return Path(str(value)).expanduser()
    return str(value)


def list_profiles(path: Path = DEFAULT_PROFILES_FILE) -> dict[str, dict]:
    """Return all named profiles as {name: {key: value}}."""
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise InterfaceError(f"cannot parse {path}: {e}") from e


def load_profile(name: str, path: Path = DEFAULT_PROFILES_FILE) -> ConnectionConfig | None:
    """Look up a named profile. Returns None if not found.

    A profile holds either a `dsn` key or project/instance/database keys,
    plus any optional ConnectionConfig field.
    """
    data = list_profiles(path)
    if name not in data:
        return None

    if not isinstance(data[name], dict):
        raise InterfaceError(f"profile {name!r} must be a table")
    entry = dict(data[name])
    known = {f.name for f in dataclasses.fields(ConnectionConfig)}
    unknown = set(entry) - known - {"dsn"}
    if unknown:
        raise InterfaceError(
            f"profile {name!r} has unknown keys: {', '.join(sorted(unknown))}"
        )

    dsn = entry.pop("dsn", None)
    options = {k: _coerce(k, v) for k, v in entry.items()}
    if dsn is not None:
        overlap = {"project", "instance", "database"} & set(options)
        if overlap:
            raise InterfaceError(
                f"profile {name!r} sets both dsn and {', '.join(sorted(overlap))}"
            )
        return ConnectionConfig.from_dsn(str(dsn), **options)

    missing = [k for k in ("project", "instance", "database") if k not in options]
    if missing:
        raise InterfaceError(f"profile {name!r} is missing: {', '.join(missing)}")
    return ConnectionConfig(**options)


def resolve(value: str, path: Path = DEFAULT_PROFILES_FILE) -> ConnectionConfig:
    """Resolve a profile name or a DSN into a ConnectionConfig."""
    config = load_profile(value, path)
    if config is not None:
        return config
    return ConnectionConfig.from_dsn(value)
