"""Configuration management for the quick open picker.

Flags are persisted as YAML with a single ``quickopen:`` section whose keys
are the camelCase flag names::

    quickopen:
      includeRecentFiles: true
      includeHomeDirFiles: false
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigurationUnreadableError, ConfigurationWriteError
from .models import MatchMode

SECTION = "quickopen"
MAX_RECENT_FILES = 200


class PickerConfig(BaseModel):
    """Which sources feed the picker and how candidates are matched."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    include_bookmark_dir_files: bool = False
    include_desktop_dir_files: bool = False
    include_open_document_dir_files: bool = False
    include_home_dir_files: bool = False
    include_recent_files: bool = True

    match_mode: MatchMode = MatchMode.SUBSTRING
    max_recent_files: int = MAX_RECENT_FILES
    recent_files_group: str = "geany"
    scan_depth: int = 0
    max_files_per_source: int = 10_000
    exclude_symlinks: bool = True
    skip_hidden: bool = False

    @field_validator('max_recent_files', 'max_files_per_source')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator('scan_depth')
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if v < 0:
            raise ValueError("scan_depth cannot be negative")
        return v

    @field_validator('recent_files_group')
    @classmethod
    def validate_group(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("recent_files_group cannot be empty")
        return v

    def to_section(self) -> Dict[str, Any]:
        """Persistable form keyed by flag name."""
        return self.model_dump(mode="json", by_alias=True)


def config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def default_config_path() -> Path:
    return config_home() / "quickopen" / "config.yaml"


def _read_section(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationUnreadableError(f"No config file at {config_path}") from e
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigurationUnreadableError(f"Cannot read {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationUnreadableError(f"{config_path} is not a mapping")

    section = data.get(SECTION, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationUnreadableError(f"Section '{SECTION}' is not a mapping")
    return section


def _validate_lenient(section: Dict[str, Any]) -> PickerConfig:
    """Validate `section`, dropping keys whose values are invalid."""
    try:
        return PickerConfig.model_validate(section)
    except ValidationError as e:
        bad_keys = {err['loc'][0] for err in e.errors() if err.get('loc')}
        logger.warning(f"Ignoring invalid config values: {sorted(map(str, bad_keys))}")
        cleaned = {
            k: v for k, v in section.items()
            if k not in bad_keys and to_camel(str(k)) not in bad_keys
        }

    try:
        return PickerConfig.model_validate(cleaned)
    except ValidationError as e:
        logger.warning(f"Config still invalid, using defaults: {e}")
        return PickerConfig()


def load_config(config_path: Optional[Path] = None) -> PickerConfig:
    """
    Load picker configuration.

    Missing or malformed files never fail: defaults are substituted.

    Args:
        config_path: YAML file, defaults to the per-user config location

    Returns:
        The loaded configuration
    """
    if config_path is None:
        config_path = default_config_path()

    try:
        section = _read_section(config_path)
    except ConfigurationUnreadableError as e:
        logger.debug(f"Using default configuration: {e}")
        return PickerConfig()

    logger.debug(f"Loaded config from: {config_path}")
    return _validate_lenient(section)


def save_config(config: PickerConfig, config_path: Optional[Path] = None) -> Path:
    """
    Persist configuration flags.

    Raises:
        ConfigurationWriteError: If the directory or file cannot be written
    """
    if config_path is None:
        config_path = default_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump({SECTION: config.to_section()}, f, default_flow_style=False)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationWriteError(f"Cannot write configuration to {config_path}: {e}") from e

    logger.info(f"Saved config to: {config_path}")
    return config_path


def update_config(config: PickerConfig, key: str, value: Any) -> PickerConfig:
    """Return a copy of `config` with one flag changed, by field or flag name."""
    fields = PickerConfig.model_fields
    name = key
    if name not in fields:
        by_alias = {to_camel(f): f for f in fields}
        name = by_alias.get(key)
    if name is None:
        raise KeyError(key)

    data = config.model_dump()
    data[name] = value
    return PickerConfig.model_validate(data)
