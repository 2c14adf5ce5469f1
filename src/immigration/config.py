"""
Configuration for immigration.

Priority: explicit overrides (CLI flags) > environment variables > YAML
config file > defaults.

Example .immigration.yaml:

    directory: db/migrations
    extension: .py
    store: fs
    check: 20
    max_wait: 120
    store_options:
      path: .migrate.json
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ImmigrationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".immigration.yaml"

ENV_VARS = {
    "directory": "IMMIGRATION_DIRECTORY",
    "extension": "IMMIGRATION_EXTENSION",
    "store": "IMMIGRATION_STORE",
}
ENV_CONFIG = "IMMIGRATION_CONFIG"


@dataclass
class ImmigrationConfig:
    """Resolved settings for a Migrate instance."""
    directory: Path = Path("migrations")
    extension: str = ".py"
    store: str = "fs"
    cwd: Path = field(default_factory=Path.cwd)
    check: int = 50
    max_wait: float = 600.0  # seconds
    retry_wait: float = 0.5  # seconds
    store_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.cwd = Path(self.cwd)
        self.directory = Path(self.directory)
        if not self.directory.is_absolute():
            self.directory = self.cwd / self.directory
        if self.extension and not self.extension.startswith("."):
            self.extension = f".{self.extension}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "directory": str(self.directory),
            "extension": self.extension,
            "store": self.store,
            "cwd": str(self.cwd),
            "check": self.check,
            "max_wait": self.max_wait,
            "retry_wait": self.retry_wait,
            "store_options": dict(self.store_options),
        }


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    Read settings from a YAML file.

    Raises:
        ImmigrationError: If the file is unreadable, not a mapping, or has unknown keys
    """
    try:
        data = yaml.safe_load(Path(path).read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ImmigrationError(f"Unable to read config file: {e}", e, path) from e

    if not isinstance(data, dict):
        raise ImmigrationError("Config file must contain a mapping", path=path)

    known = {f.name for f in fields(ImmigrationConfig)} - {"cwd"}
    unknown = set(data) - known
    if unknown:
        raise ImmigrationError(f"Unknown config keys: {sorted(unknown)}", path=path)

    return data


def load_config(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    **overrides: Any,
) -> ImmigrationConfig:
    """
    Resolve configuration from all sources.

    Args:
        config_path: Explicit YAML file; falls back to $IMMIGRATION_CONFIG,
                     then .immigration.yaml in cwd if it exists
        cwd: Working directory (default: current directory)
        **overrides: Values that win over everything else; None is ignored
    """
    cwd = Path(cwd) if cwd else Path.cwd()
    settings: Dict[str, Any] = {}

    if config_path is None and os.getenv(ENV_CONFIG):
        config_path = Path(os.environ[ENV_CONFIG])
    if config_path is None and (cwd / DEFAULT_CONFIG_FILENAME).exists():
        config_path = cwd / DEFAULT_CONFIG_FILENAME

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_absolute():
            config_path = cwd / config_path
        settings.update(read_config_file(config_path))
        logger.debug(f"Loaded config from {config_path}")

    for key, env_var in ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            settings[key] = value

    settings.update({k: v for k, v in overrides.items() if v is not None})
    return ImmigrationConfig(cwd=cwd, **settings)
