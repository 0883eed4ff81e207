"""Mounting, unmounting and removing build containers."""

import asyncio
import logging
import os
from pathlib import Path

from scaffold.builder.codec import save_builder
from scaffold.models.builder import Builder


logger = logging.getLogger(__name__)


def _replace_symlink(link: Path, target: str) -> None:
    if link.is_symlink():
        link.unlink()
    link.symlink_to(target)


async def mount_builder(builder: Builder, link: str = "") -> str:
    """Mount the container's root filesystem and record where.

    If ``link`` is given a symbolic link to the mount point is created there
    and recorded so the container can later be found through it.
    """
    mount_point = str(await builder.store.mount(builder.container_id))
    builder.mount_point = mount_point
    if mount_point not in builder.mounts:
        builder.mounts.append(mount_point)

    if link:
        link_path = os.path.abspath(link)
        await asyncio.to_thread(_replace_symlink, Path(link_path), mount_point)
        if link_path not in builder.links:
            builder.links.append(link_path)
        logger.debug(f"Linked {link_path} -> {mount_point}")

    await save_builder(builder)
    logger.info(f"Mounted container {builder.container} at {mount_point}")
    return mount_point


async def remove_links(builder: Builder) -> None:
    """Remove the symbolic links recorded for a builder."""
    for link in builder.links:
        path = Path(link)
        if await asyncio.to_thread(path.is_symlink):
            await asyncio.to_thread(path.unlink)
            logger.debug(f"Removed link {link}")
    builder.links = []


async def unmount_builder(builder: Builder) -> None:
    """Unmount the container's root filesystem and drop its links."""
    await builder.store.unmount(builder.container_id)
    await remove_links(builder)
    await save_builder(builder)
    logger.info(f"Unmounted container {builder.container}")


async def delete_builder(builder: Builder) -> None:
    """Remove the build container and its state."""
    await remove_links(builder)
    await builder.store.delete_container(builder.container_id)
    logger.info(f"Removed container {builder.container}")
