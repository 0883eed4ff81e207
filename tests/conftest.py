"""Shared fixtures: an in-memory store and builder factory."""

import shutil
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from scaffold.builder.codec import save_builder
from scaffold.errors import (
    ContainerUnknownError,
    DuplicateNameError,
    ImageUnknownError,
    StoreOperationError,
)
from scaffold.models.builder import Builder, CONTAINER_TYPE
from scaffold.store.base import BaseStore, ContainerInfo, ImageInfo


class MemoryStore(BaseStore):
    """Store keeping its registry in memory and directories under a temp dir."""

    def __init__(self, root: Path):
        self.root = root
        self._containers: Dict[str, ContainerInfo] = {}
        self._images: Dict[str, Tuple[ImageInfo, bytes, bytes]] = {}
        self.remote: Dict[str, Tuple[bytes, bytes]] = {}
        self.mount_counts: Dict[str, int] = {}
        self.pulled: List[str] = []
        self.pull_requests: List[Tuple[str, str, str]] = []

    def add_image(self, name: str, config: bytes = b'{"os":"linux"}', manifest: bytes = b'{"schemaVersion":2}') -> ImageInfo:
        info = ImageInfo(id=uuid.uuid4().hex * 2, names=[name])
        self._images[info.id] = (info, config, manifest)
        return info

    def _image(self, name_or_id: str) -> Tuple[ImageInfo, bytes, bytes]:
        for entry in self._images.values():
            if entry[0].id == name_or_id or name_or_id in entry[0].names:
                return entry
        raise ImageUnknownError(f"image not known: {name_or_id}")

    async def create_container(self, name: str, image_id: Optional[str] = None) -> ContainerInfo:
        for container in self._containers.values():
            if name in container.names:
                raise DuplicateNameError(f"the container name {name!r} is already in use")
        info = ContainerInfo(id=uuid.uuid4().hex * 2, names=[name], image_id=image_id or "")
        (self.root / info.id).mkdir(parents=True)
        self._containers[info.id] = info
        return info

    async def delete_container(self, container_id: str) -> None:
        info = await self.get_container(container_id)
        del self._containers[info.id]
        shutil.rmtree(self.root / info.id, ignore_errors=True)

    async def container_directory(self, container_id: str) -> Path:
        info = await self.get_container(container_id)
        return self.root / info.id

    async def containers(self) -> List[ContainerInfo]:
        return list(self._containers.values())

    async def get_container(self, name_or_id: str) -> ContainerInfo:
        for container in self._containers.values():
            if container.id == name_or_id or name_or_id in container.names:
                return container
        raise ContainerUnknownError(f"container not known: {name_or_id}")

    async def lookup_image(self, name: str) -> ImageInfo:
        return self._image(name)[0]

    async def image_config(self, image_id: str) -> bytes:
        return self._image(image_id)[1]

    async def image_manifest(self, image_id: str) -> bytes:
        return self._image(image_id)[2]

    async def pull_image(self, name: str, registry: str = "", signature_policy_path: str = "") -> ImageInfo:
        self.pulled.append(name)
        self.pull_requests.append((name, registry, signature_policy_path))
        if name not in self.remote:
            raise StoreOperationError(f"error pulling {name}")
        config, manifest = self.remote[name]
        return self.add_image(name, config, manifest)

    async def mount(self, container_id: str) -> Path:
        info = await self.get_container(container_id)
        path = self.root / info.id / "rootfs"
        path.mkdir(exist_ok=True)
        self.mount_counts[info.id] = self.mount_counts.get(info.id, 0) + 1
        return path

    async def unmount(self, container_id: str) -> None:
        info = await self.get_container(container_id)
        if not self.mount_counts.get(info.id):
            raise StoreOperationError("container is not mounted")
        self.mount_counts[info.id] -= 1


@pytest.fixture
def store(tmp_path):
    """In-memory store rooted in a temporary directory."""
    root = tmp_path / "store"
    root.mkdir()
    return MemoryStore(root)


@pytest.fixture
def make_builder(store):
    """Factory creating a saved build container in the in-memory store."""
    async def _make(name: str, **fields) -> Builder:
        container = await store.create_container(name)
        builder = Builder(
            type=CONTAINER_TYPE,
            container=name,
            container_id=container.id,
            **fields,
        ).attach(store)
        await save_builder(builder)
        return builder
    return _make
