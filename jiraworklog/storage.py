"""Locating, reading and writing the YAML config file."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigExistsError, ConfigNotFoundError, MalformedConfigError
from .models import Config

LOGGER = logging.getLogger(__name__)

APP_DIR_NAME = "jwl"
CONFIG_FILES = ("config.yml", "config.yaml")
CONFIG_ENV_VAR = "JWL_CONFIG"


def _get_base_directory() -> Path:
    """Return the directory holding the application's config."""
    if os.name == "nt":
        root = os.getenv("APPDATA") or Path.home() / "AppData" / "Roaming"
        return Path(root) / APP_DIR_NAME
    return Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config") / APP_DIR_NAME


def candidate_paths(path: Optional[Path] = None) -> list[Path]:
    """Paths searched for a config file, most specific first."""
    if path is not None:
        return [Path(path).expanduser()]
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return [Path(override).expanduser()]
    directory = _get_base_directory()
    return [directory / filename for filename in CONFIG_FILES]


def default_config_path(path: Optional[Path] = None) -> Path:
    """Where ``jwl config`` writes a new file."""
    return candidate_paths(path)[0]


def describe_yaml_error(exc: yaml.YAMLError) -> str:
    """One line summary of a PyYAML error, with its position when known."""
    problem = getattr(exc, "problem", None)
    mark = getattr(exc, "problem_mark", None)
    if problem and mark is not None:
        return f"{problem} (line {mark.line + 1}, column {mark.column + 1})"
    if problem:
        return problem
    lines = str(exc).splitlines()
    return lines[0] if lines else type(exc).__name__


def find_config(path: Optional[Path] = None) -> Path:
    candidates = candidate_paths(path)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(candidates)


def load_config(path: Optional[Path] = None) -> Config:
    """Read and validate the config file."""
    config_path = find_config(path)
    LOGGER.info("Loading config from %s", config_path)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise MalformedConfigError(f"{config_path} is not valid YAML: {describe_yaml_error(exc)}") from exc
    if data is None:
        raise MalformedConfigError(f"{config_path} is empty")
    try:
        return Config.deserialize(data)
    except MalformedConfigError as exc:
        raise MalformedConfigError(f"{config_path}: {exc}") from exc


def write_config(config: Config, path: Optional[Path] = None) -> Path:
    """Store ``config`` without ever replacing an existing file."""
    config_path = default_config_path(path)
    if config_path.exists():
        raise ConfigExistsError(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("x", encoding="utf-8") as handle:
        yaml.safe_dump(config.serialize(), handle, sort_keys=False)
    if os.name != "nt":
        config_path.chmod(0o600)
    LOGGER.info("Wrote config to %s", config_path)
    return config_path
