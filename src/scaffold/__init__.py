"""
Scaffold - persistent state for image build containers.

Creates working containers in a container store, records the image
configuration changes made to them, and finds them again by name, ID or the
path where their root filesystem is mounted.
"""

__version__ = "0.1.0"

# Re-export key components for easier access
from scaffold.models.builder import Builder, BuilderOptions, ConfigUpdate, ImportOptions
from scaffold.models.config import ScaffoldConfig
from scaffold.store import BaseStore, DirectoryStore

__all__ = [
    "Builder",
    "BuilderOptions",
    "ConfigUpdate",
    "ImportOptions",
    "ScaffoldConfig",
    "BaseStore",
    "DirectoryStore",
]
