"""
Search configuration.

Settings come from, in increasing priority: built-in defaults, the
PVP_TRIPLETS_DATA_DIR environment variable, an optional YAML config file,
and finally explicit overrides (CLI flags).
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "PVP_TRIPLETS_DATA_DIR"
CONFIG_FILE_ENV = "PVP_TRIPLETS_CONFIG"


def get_data_dir() -> Path:
    """Get the data directory path."""
    # Check environment variable first
    if env_path := os.environ.get(DATA_DIR_ENV):
        return Path(env_path)

    # Default to ./data relative to project root
    return Path(__file__).parent.parent / "data"


class SearchConfig(BaseModel):
    """Settings for one triplet search run."""

    model_config = ConfigDict(extra="forbid")

    data_dir: Path = Field(default_factory=get_data_dir)
    gamemaster_file: str = "gamemaster.json"
    rankings_file: str = "rankings/{cup}/overall/rankings-{cp}.json"

    meta_count: int = Field(default=25, ge=0)
    limit: int | None = Field(default=None, ge=0)  # None evaluates every team
    workers: int = Field(default=1, ge=1)

    cp_cap: int = Field(default=1500, gt=0)
    cup: str = "all"

    @property
    def gamemaster_path(self) -> Path:
        return self._resolve(self.gamemaster_file)

    @property
    def rankings_path(self) -> Path:
        return self._resolve(self.rankings_file.format(cup=self.cup, cp=self.cp_cap))

    def _resolve(self, name: str) -> Path:
        path = Path(name)
        if path.is_absolute():
            return path
        return self.data_dir / path


def load_config(
    config_file: str | Path | None = None,
    **overrides: Any,
) -> SearchConfig:
    """
    Build the search configuration.

    Args:
        config_file: Optional YAML file. Falls back to PVP_TRIPLETS_CONFIG.
        **overrides: Explicit values; ``None`` means "not given".

    Returns:
        Validated SearchConfig.

    Raises:
        InvalidConfigurationError: If the file is unreadable or a value is invalid.
    """
    values: dict[str, Any] = {}

    if config_file is None and (env_file := os.environ.get(CONFIG_FILE_ENV)):
        config_file = env_file

    if config_file is not None:
        values.update(_read_config_file(Path(config_file)))

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = SearchConfig.model_validate(values)
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid search configuration:\n{e}") from e

    logger.debug(f"Search configuration: {config.model_dump()}")
    return config


def _read_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML config file into a flat dict."""
    if not path.exists():
        raise InvalidConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"YAML parse error in {path}:\n{e}") from e

    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Config file must contain a mapping: {path}")

    logger.info(f"Loaded config file {path}")
    return data
