"""Configuration loading."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from scaffold.errors import ConfigParsingError
from scaffold.models.config import ScaffoldConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("/etc/scaffold/config.yaml")
CONFIG_ENV = "SCAFFOLD_CONFIG"
STORAGE_ROOT_ENV = "SCAFFOLD_STORAGE_ROOT"


def _read_yaml(file_path: Path) -> Dict[str, Any]:
    """Read and parse a YAML file."""
    yaml = YAML()
    yaml.preserve_quotes = True
    try:
        data = yaml.load(file_path.read_text())
    except YAMLError as e:
        raise ConfigParsingError(f"Error parsing config file {file_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParsingError(f"Config file {file_path} must contain a mapping")
    return data


def load_config(
    config_file: Optional[Path] = None,
    storage_root: Optional[str] = None,
) -> ScaffoldConfig:
    """Load configuration.

    The file named by ``config_file`` (or ``$SCAFFOLD_CONFIG``) must exist;
    the system-wide default file is optional.  ``storage_root`` and
    ``$SCAFFOLD_STORAGE_ROOT`` override the configured store root, in that
    order.
    """
    explicit = config_file or os.environ.get(CONFIG_ENV)
    path = Path(explicit) if explicit else DEFAULT_CONFIG_FILE

    data: Dict[str, Any] = {}
    if path.exists():
        data = _read_yaml(path)
        logger.debug(f"Loaded config: {path}")
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        config = ScaffoldConfig(**data)
    except ValidationError as e:
        logger.error(f"Invalid config {path}: {e}")
        raise

    root = storage_root or os.environ.get(STORAGE_ROOT_ENV)
    if root:
        config.store.root = root

    return config
