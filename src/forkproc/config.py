"""Configuration loading for forkproc."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from forkproc.models import Credential, LaunchConfig

log = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".forkproc"
CONFIG_FILE = CONFIG_DIR / "config.toml"

ENV_OVERRIDES = {
    "FORKPROC_UID": "uid",
    "FORKPROC_GID": "gid",
    "FORKPROC_WORKDIR": "working_directory",
}


class ConfigError(ValueError):
    """Raised when the configuration file or overrides are invalid."""


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        log.debug("no config file at %s", path)
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e


def _env_overrides() -> dict[str, str]:
    overrides = {}
    for env_name, field in ENV_OVERRIDES.items():
        value = os.environ.get(env_name, "").strip()
        if value:
            overrides[field] = value
    return overrides


def load_config(path: Path | None = None) -> LaunchConfig:
    """Load launch configuration from file, env overrides and caller defaults.

    Precedence, highest first: ``FORKPROC_*`` environment variables, the TOML
    file, then the calling process's own uid/gid.
    """
    config_path = path if path is not None else CONFIG_FILE
    caller = Credential.current()
    data: dict[str, Any] = {"uid": caller.uid, "gid": caller.gid}
    data.update(_read_file(config_path))
    data.update(_env_overrides())
    log.debug("config data from %s: %r", config_path, data)
    try:
        return LaunchConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
