"""Container stores."""

from scaffold.store.base import BaseStore, ContainerInfo, ImageInfo
from scaffold.store.directory import DirectoryStore

__all__ = [
    "BaseStore",
    "ContainerInfo",
    "ImageInfo",
    "DirectoryStore",
]
