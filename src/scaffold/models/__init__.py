"""Pydantic models for build state and configuration."""

from scaffold.models.builder import (
    Builder,
    BuilderOptions,
    ConfigUpdate,
    ImportOptions,
    CONTAINER_TYPE,
    DEFAULT_CREATED_BY,
    PACKAGE,
    STATE_FILE,
)
from scaffold.models.config import ScaffoldConfig, StoreConfig

__all__ = [
    "Builder",
    "BuilderOptions",
    "ConfigUpdate",
    "ImportOptions",
    "CONTAINER_TYPE",
    "DEFAULT_CREATED_BY",
    "PACKAGE",
    "STATE_FILE",
    "ScaffoldConfig",
    "StoreConfig",
]
