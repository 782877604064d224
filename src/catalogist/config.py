"""Configuration management for Catalogist."""

from __future__ import annotations

import configparser
import os
import re
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from catalogist.catalog.models import OrderingMode, SeriesPolicy
from catalogist.errors import ConfigError


class StoreConfig(BaseModel):
    """Catalog store configuration."""

    path: str | None = None  # Defaults to catalogist.store.json next to the config
    auto_save_threshold: int = 100


class ParserConfig(BaseModel):
    """Filename parser configuration."""

    min_confidence: float = 0.5

    @field_validator("min_confidence")
    @classmethod
    def _check_range(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("min_confidence must be between 0 and 1")
        return value


class ProvidersConfig(BaseModel):
    """Default provider policy, used to seed new series once."""

    precedence: list[str] = Field(default_factory=lambda: ["tvdb", "tmdb"])
    ordering: OrderingMode = OrderingMode.AIRED


class DisplayConfig(BaseModel):
    """Completeness report display options."""

    hide_missing: bool = False
    hide_future: bool = False
    hide_empty_seasons: bool = False
    include_specials: bool = False


class ScanConfig(BaseModel):
    """Library scan options."""

    workers: int = 4

    @field_validator("workers")
    @classmethod
    def _check_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("workers must be at least 1")
        return value


class AppConfig(BaseModel):
    """Application configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)


# Global config instance
_config: AppConfig | None = None
_config_path: Path | None = None  # Track where config was loaded from


def get_exe_directory() -> Path:
    """Get the directory containing the executable (or script).

    Handles both normal Python execution and frozen bundles.

    Returns:
        Path to the directory containing the exe, or the working directory.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path.cwd()


def get_config_paths() -> list[Path]:
    """Get list of config file paths to search, in priority order.

    Search order:
    1. Exe directory
    2. Current working directory
    3. User home directory (~/.catalogist/)
    4. YAML files in the current and home directories

    Returns:
        List of paths to check for config files.
    """
    paths = []

    exe_dir = get_exe_directory()
    home_dir = Path.home() / ".catalogist"

    paths.append(exe_dir / "catalogist.ini")

    cwd = Path.cwd()
    if cwd != exe_dir:
        paths.append(cwd / "catalogist.ini")

    paths.append(home_dir / "catalogist.ini")

    paths.append(cwd / "catalogist.yaml")
    paths.append(cwd / "catalogist.yml")
    paths.append(home_dir / "config.yaml")
    paths.append(home_dir / "config.yml")

    return paths


def find_config_file() -> Path | None:
    """Find the first existing config file.

    Returns:
        Path to config file if found, None otherwise.
    """
    for path in get_config_paths():
        if path.exists():
            return path
    return None


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and $VAR syntax. Unset variables expand to "".
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return pattern.sub(replace, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _parse_bool(value: str) -> bool:
    """Parse a boolean value from a string (true/false/yes/no/1/0)."""
    return value.lower() in ("true", "yes", "1", "on")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated list, dropping empty items."""
    if not value or not value.strip():
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_ini_config(path: Path) -> dict[str, Any]:
    """Load configuration from INI file.

    Args:
        path: Path to INI config file.

    Returns:
        Dictionary structure matching AppConfig schema. Values are left as
        strings where pydantic can coerce them; malformed numbers surface
        as a ConfigError from load_config.
    """
    parser = configparser.ConfigParser()
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e

    config: dict[str, Any] = {}

    if parser.has_section("store"):
        store: dict[str, Any] = {}
        value = parser.get("store", "path", fallback="").strip()
        if value:
            store["path"] = value
        if parser.has_option("store", "auto_save_threshold"):
            store["auto_save_threshold"] = parser.get("store", "auto_save_threshold")
        if store:
            config["store"] = store

    if parser.has_section("parser"):
        if parser.has_option("parser", "min_confidence"):
            config["parser"] = {"min_confidence": parser.get("parser", "min_confidence")}

    if parser.has_section("providers"):
        providers: dict[str, Any] = {}
        if parser.has_option("providers", "precedence"):
            precedence = _parse_list(parser.get("providers", "precedence"))
            if precedence:
                providers["precedence"] = precedence
        value = parser.get("providers", "ordering", fallback="").strip()
        if value:
            providers["ordering"] = value.lower()
        if providers:
            config["providers"] = providers

    if parser.has_section("display"):
        display: dict[str, Any] = {}
        for key in ["hide_missing", "hide_future", "hide_empty_seasons", "include_specials"]:
            if parser.has_option("display", key):
                display[key] = _parse_bool(parser.get("display", key))
        if display:
            config["display"] = display

    if parser.has_section("scan"):
        if parser.has_option("scan", "workers"):
            config["scan"] = {"workers": parser.get("scan", "workers")}

    return config


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file.

    Supports both INI (.ini/.cfg) and YAML (.yaml/.yml) formats.
    Environment variables are expanded in all values using ${VAR} syntax.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration with environment variables expanded.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    global _config, _config_path

    if path is None:
        path = find_config_file()

    if path is None or not path.exists():
        _config = AppConfig()
        _config_path = None
        return _config

    if path.suffix in (".ini", ".cfg"):
        raw_config = _load_ini_config(path)
    else:
        raw_config = _load_yaml_config(path)

    expanded_config = _expand_env_vars(raw_config)

    try:
        _config = AppConfig.model_validate(expanded_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e
    _config_path = path
    return _config


def get_config_path() -> Path | None:
    """Get the path to the currently loaded config file.

    Returns:
        Path to config file, or None if using defaults.
    """
    return _config_path


def get_config() -> AppConfig:
    """Get the current configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration.

    Useful for testing or when config file changes.
    """
    global _config, _config_path
    _config = None
    _config_path = None


def get_config_dir() -> Path:
    """Get the user config directory, creating it if needed."""
    config_dir = Path.home() / ".catalogist"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_store_file_path(config: AppConfig | None = None) -> Path:
    """Get the path to the catalog store file.

    An explicit ``[store] path`` wins. Otherwise the store lives next to
    the loaded config file, or in the exe directory without one.

    Returns:
        Path to the store file (catalogist.store.json by default).
    """
    config = config or get_config()
    if config.store.path:
        return Path(config.store.path).expanduser()

    config_path = get_config_path()
    if config_path is not None:
        return config_path.parent / "catalogist.store.json"
    return get_exe_directory() / "catalogist.store.json"


def seed_policy(series_id: str, config: AppConfig | None = None) -> SeriesPolicy:
    """Build the initial provider policy for a newly created series.

    The policy is seeded from configuration once; after that the stored
    per-series record is authoritative and config changes do not touch it.

    Args:
        series_id: Series the policy belongs to.
        config: Configuration to read defaults from.

    Returns:
        New SeriesPolicy.
    """
    config = config or get_config()
    return SeriesPolicy(
        series_id=series_id,
        provider_precedence=list(config.providers.precedence),
        ordering=config.providers.ordering,
    )


def save_default_config(path: Path | None = None) -> Path:
    """Save a default INI config file.

    Args:
        path: Where to save. Defaults to ./catalogist.ini.

    Returns:
        Path to saved config file.
    """
    if path is None:
        path = Path.cwd() / "catalogist.ini"

    default_config = """\
# Catalogist Configuration
# You can use environment variables with ${VAR} syntax

[store]
# Catalog store file (default: catalogist.store.json next to this file)
# path = ${CATALOGIST_STORE}
# Save to disk after this many changes (0 = only on exit)
auto_save_threshold = 100

[parser]
# Parses below this confidence are recorded as unmapped
min_confidence = 0.5

[providers]
# Provider precedence for new series (first with a non-empty list wins)
precedence = tvdb, tmdb
# Episode numbering for new series: aired, dvd or absolute
ordering = aired

[display]
hide_missing = false
hide_future = false
hide_empty_seasons = false
# Show Season 0 (specials) in completeness reports
include_specials = false

[scan]
# Worker threads for identification
workers = 4
"""

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)

    return path
