"""Typed configuration loading.

The config file is optional. It provides defaults for the release options
and, optionally, the GitHub token. It is only ever read: credentials are
never written back.

Example ``~/.config/taorelease/config.toml``::

    token = "ghp_..."

    [branches]
    base = "develop"
    release = "master"
    prefix = "release"

    [remote]
    origin = "origin"

    [tao]
    root = "/var/www/tao"
    www_user = "www-data"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "ConfigError",
    "ReleaseDefaults",
    "config_path",
    "load_config",
    "load_config_or_default",
    "DEFAULT_BASE_BRANCH",
    "DEFAULT_RELEASE_BRANCH",
    "DEFAULT_BRANCH_PREFIX",
    "DEFAULT_ORIGIN",
    "DEFAULT_WWW_USER",
]

CONFIG_ENV_VAR = "TAO_RELEASE_CONFIG"

DEFAULT_BASE_BRANCH = "develop"
DEFAULT_RELEASE_BRANCH = "master"
DEFAULT_BRANCH_PREFIX = "release"
DEFAULT_ORIGIN = "origin"
DEFAULT_WWW_USER = "www-data"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseDefaults:
    """Defaults applied when a CLI flag is not given."""

    base_branch: str = DEFAULT_BASE_BRANCH
    release_branch: str = DEFAULT_RELEASE_BRANCH
    branch_prefix: str = DEFAULT_BRANCH_PREFIX
    origin: str = DEFAULT_ORIGIN
    www_user: str = DEFAULT_WWW_USER
    tao_root: str | None = None
    token: str | None = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseDefaults:
        """Create defaults from a mapping (parsed TOML)."""
        branches: StrDict = get_table(data, "branches") or {}
        remote: StrDict = get_table(data, "remote") or {}
        tao: StrDict = get_table(data, "tao") or {}

        return cls(
            base_branch=get_str(branches, "base") or DEFAULT_BASE_BRANCH,
            release_branch=get_str(branches, "release") or DEFAULT_RELEASE_BRANCH,
            branch_prefix=get_str(branches, "prefix") or DEFAULT_BRANCH_PREFIX,
            origin=get_str(remote, "origin") or DEFAULT_ORIGIN,
            www_user=get_str(tao, "www_user") or DEFAULT_WWW_USER,
            tao_root=get_str(tao, "root"),
            token=get_str(data, "token"),
        )


def config_path(env: Mapping[str, str] | None = None) -> Path:
    """Location of the config file: ``$TAO_RELEASE_CONFIG`` or the XDG default."""
    environ = os.environ if env is None else env
    override = environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    xdg = environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "taorelease" / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseDefaults, ConfigError]:
    """Load release defaults from a TOML file.

    Args:
        path: Path to config.toml

    Returns:
        Ok(ReleaseDefaults) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return Ok(ReleaseDefaults.from_dict(result.value))


def load_config_or_default(path: Path) -> Result[ReleaseDefaults, ConfigError]:
    """Like load_config, but a missing file yields the built-in defaults.

    A file that exists but cannot be parsed is still an error.
    """
    if not path.exists():
        return Ok(ReleaseDefaults())
    return load_config(path)
