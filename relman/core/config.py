"""Typed configuration loading and access.

The configuration is a TOML file with a fixed set of keys:

    default_target = "prod"
    base_dir = "/srv/deploy"

    [dirs]
    releases = "releases"
    current = "current"

    [targets.prod.repos.api]
    origin = "git@example.com:org/api.git"
    build_script = "build.sh"
    copy_dirs = ["vendor"]

Everything is validated when the file is loaded. Unknown keys are rejected
instead of being ignored, so a typo never silently falls back to a default.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from relman.platform.files import atomic_write_text
from relman.platform.paths import user_config_dir

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, as_str_list, get_table, unknown_keys

__all__ = [
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigError",
    "DirsConfig",
    "RepoConfig",
    "TargetConfig",
    "default_config_path",
    "example_config_path",
    "install_example_config",
    "load_config",
    "resolve_config_path",
]

CONFIG_ENV_VAR = "RELMAN_CONFIG"
CONFIG_FILE_NAME = "config.toml"

DEFAULT_TARGET = "prod"
DEFAULT_BASE_DIR = "/srv/deploy"
DEFAULT_BUILD_SCRIPT = "build.sh"

_ROOT_KEYS = frozenset({"default_target", "base_dir", "dirs", "targets"})
_DIRS_KEYS = frozenset({"releases", "current", "repos", "info", "hooks"})
_TARGET_KEYS = frozenset({"repos"})
_REPO_KEYS = frozenset({"origin", "build_script", "copy_dirs"})


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class RepoConfig:
    """One managed repository within a target."""

    name: str
    origin: str
    build_script: str = DEFAULT_BUILD_SCRIPT
    copy_dirs: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """A deployment environment and its repositories, in file order."""

    name: str
    repos: tuple[RepoConfig, ...] = ()

    @property
    def repo_names(self) -> list[str]:
        return [r.name for r in self.repos]


@dataclass(frozen=True, slots=True)
class DirsConfig:
    """Directory names below the base directory."""

    releases: str = "releases"
    current: str = "current"
    repos: str = "repos"
    info: str = "info"
    hooks: str = "hooks"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    base_dir: Path = Path(DEFAULT_BASE_DIR)
    default_target: str = DEFAULT_TARGET
    dirs: DirsConfig = field(default_factory=DirsConfig)
    targets: Mapping[str, TargetConfig] = field(default_factory=dict)

    def target(self, name: str | None) -> TargetConfig | None:
        """Look up a target, falling back to the default target."""
        return self.targets.get(name or self.default_target)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a parsed TOML mapping.

        Raises:
            ValueError: If a key is unknown or a value has the wrong shape.
        """
        _reject_unknown(data, _ROOT_KEYS, "config")

        default_target = _optional_str(data, "default_target", "config") or DEFAULT_TARGET
        base_dir = _optional_str(data, "base_dir", "config") or DEFAULT_BASE_DIR

        dirs_table = _table(data, "dirs", "config")
        _reject_unknown(dirs_table, _DIRS_KEYS, "[dirs]")
        dirs = DirsConfig(
            **{
                key: _dir_name(dirs_table, key)
                for key in sorted(_DIRS_KEYS)
                if key in dirs_table
            }
        )

        targets_table = _table(data, "targets", "config")
        targets: dict[str, TargetConfig] = {}
        for target_name, raw_target in targets_table.items():
            targets[target_name] = _parse_target(target_name, raw_target)

        return cls(
            base_dir=Path(base_dir).expanduser(),
            default_target=default_target,
            dirs=dirs,
            targets=targets,
        )


def _reject_unknown(table: Mapping[str, object], allowed: frozenset[str], where: str) -> None:
    extra = unknown_keys(table, allowed)
    if extra:
        raise ValueError(f"unknown key(s) in {where}: {', '.join(extra)}")


def _table(data: Mapping[str, object], key: str, where: str) -> StrDict:
    if key not in data:
        return {}
    table = get_table(data, key)
    if table is None:
        raise ValueError(f"'{key}' in {where} must be a table")
    return table


def _optional_str(data: Mapping[str, object], key: str, where: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{key}' in {where} must be a non-empty string")
    return value.strip()


def _relative_path(value: str, what: str) -> str:
    cleaned = value.strip().strip("/")
    if not cleaned or ".." in PurePosixPath(cleaned).parts:
        raise ValueError(f"{what} must be a relative path inside the repository: {value!r}")
    return cleaned


def _dir_name(dirs_table: Mapping[str, object], key: str) -> str:
    value = _optional_str(dirs_table, key, "[dirs]")
    if value is None or "/" in value or value in {".", ".."}:
        raise ValueError(f"[dirs] {key} must be a single directory name: {value!r}")
    return value


def _parse_target(name: str, raw: object) -> TargetConfig:
    where = f"[targets.{name}]"
    table = as_str_dict(raw)
    if table is None:
        raise ValueError(f"{where} must be a table")
    _reject_unknown(table, _TARGET_KEYS, where)

    repos_table = _table(table, "repos", where)
    repos = tuple(
        _parse_repo(name, repo_name, raw_repo) for repo_name, raw_repo in repos_table.items()
    )
    return TargetConfig(name=name, repos=repos)


def _parse_repo(target: str, name: str, raw: object) -> RepoConfig:
    where = f"[targets.{target}.repos.{name}]"
    if not name or "/" in name or name.startswith("."):
        raise ValueError(f"invalid repository name {name!r} in [targets.{target}.repos]")

    table = as_str_dict(raw)
    if table is None:
        raise ValueError(f"{where} must be a table")
    _reject_unknown(table, _REPO_KEYS, where)

    origin = _optional_str(table, "origin", where)
    if origin is None:
        raise ValueError(f"{where} is missing 'origin'")

    build_script = _optional_str(table, "build_script", where) or DEFAULT_BUILD_SCRIPT
    build_script = _relative_path(build_script, f"{where} build_script")

    copy_dirs: tuple[str, ...] = ()
    if "copy_dirs" in table:
        raw_dirs = as_str_list(table["copy_dirs"])
        if raw_dirs is None:
            raise ValueError(f"{where} copy_dirs must be a list of strings")
        copy_dirs = tuple(_relative_path(d, f"{where} copy_dirs entry") for d in raw_dirs)

    return RepoConfig(name=name, origin=origin, build_script=build_script, copy_dirs=copy_dirs)


def default_config_path() -> Path:
    """Path of the user-level config file."""
    return user_config_dir() / CONFIG_FILE_NAME


def resolve_config_path(explicit: Path | None = None) -> Path:
    """Pick the config file: explicit path, then $RELMAN_CONFIG, then user config."""
    if explicit is not None:
        return explicit.expanduser()
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return default_config_path()


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(
            ConfigError(
                f"No config file found ({path})",
                path=path,
                hint="run `relman --configure` to copy the example configuration",
            )
        )
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def example_config_path() -> Path:
    """The example configuration shipped with the package."""
    return Path(__file__).parent.parent / "data" / "config.example.toml"


def install_example_config(dest: Path) -> Result[Path, ConfigError]:
    """Copy the example configuration to ``dest``. Never overwrites."""
    if dest.exists():
        return Err(
            ConfigError(
                f"Config file already exists: {dest}",
                path=dest,
                hint="edit it directly, or remove it to start over",
            )
        )
    try:
        content = example_config_path().read_text(encoding="utf-8")
        atomic_write_text(dest, content)
    except OSError as e:
        return Err(ConfigError(f"Could not write config file {dest}: {e}", path=dest))
    return Ok(dest)
