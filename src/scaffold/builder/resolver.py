"""Locating build containers by name, ID or filesystem path."""

import logging
import os
from typing import AsyncIterator, List, Optional

from scaffold.builder.codec import decode_builder, read_state
from scaffold.builder.construct import import_builder
from scaffold.errors import (
    DecodeError,
    NotBuildContainerError,
    NotFoundError,
    ScaffoldError,
    TypeMismatchError,
)
from scaffold.models.builder import Builder, ImportOptions
from scaffold.store.base import BaseStore


logger = logging.getLogger(__name__)


async def open_builder(store: BaseStore, container: str) -> Builder:
    """Load a build container given its name or ID."""
    container_id = await store.lookup_container(container)
    data = await read_state(store, container_id)
    return decode_builder(data).attach(store)


async def _scan(store: BaseStore) -> AsyncIterator[Builder]:
    """Yield every build container in store order, skipping foreign ones."""
    for container in await store.containers():
        try:
            data = await read_state(store, container.id)
            builder = decode_builder(data)
        except (NotBuildContainerError, DecodeError, TypeMismatchError) as e:
            logger.debug(f"Skipping container {container.name}: {e}")
            continue
        yield builder.attach(store)


def _matches_path(builder: Builder, path: str) -> bool:
    return builder.mount_point == path or path in builder.mounts or path in builder.links


async def open_builder_by_path(store: BaseStore, path: str) -> Builder:
    """Load a build container given the path of its mounted root filesystem
    or of a symbolic link which points to it.

    Every container in the store is examined; the first match wins.
    """
    abs_path = os.path.abspath(path)
    async for builder in _scan(store):
        if _matches_path(builder, abs_path):
            return builder
    raise NotFoundError(f"no build container is mounted at {abs_path}")


async def list_builders(store: BaseStore) -> List[Builder]:
    """All build containers in the store."""
    return [builder async for builder in _scan(store)]


async def resolve_builder(
    store: BaseStore,
    name: str = "",
    root: str = "",
    link: str = "",
) -> Builder:
    """Find the build container identified by a name, a root path, a link
    path, or any combination of them.

    A named container which exists but has no build state is imported.
    When more than one identifier is given they must agree.
    """
    if not name and not root and not link:
        raise ScaffoldError("either --name or --root or --link, or some combination, must be specified")

    builder: Optional[Builder] = None
    if name:
        try:
            builder = await open_builder(store, name)
        except NotBuildContainerError:
            builder = await import_builder(store, ImportOptions(container=name))

    for option, path in (("--root", root), ("--link", link)):
        if not path:
            continue
        candidate = await open_builder_by_path(store, path)
        if builder is None:
            builder = candidate
        elif candidate.container_id != builder.container_id:
            raise ScaffoldError(f"{option} {path} does not refer to container {builder.container}")

    return builder
