"""Command implementations for CLI."""

import json
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from scaffold.builder import (
    delete_builder,
    import_builder,
    list_builders,
    mount_builder,
    new_builder,
    open_builder,
    resolve_builder,
    save_builder,
    unmount_builder,
    update_config,
)
from scaffold.models.builder import Builder, BuilderOptions, ConfigUpdate, ImportOptions
from scaffold.models.config import ScaffoldConfig
from scaffold.store.base import BaseStore


console = Console()


def _emit(text: str) -> None:
    """Print a plain value for scripts to consume."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _summary(builder: Builder) -> dict:
    return {
        "id": builder.container_id,
        "name": builder.container,
        "image": builder.from_image,
        "mountpoint": builder.mount_point,
    }


async def configure_container(
    store: BaseStore,
    config: ScaffoldConfig,
    name: str,
    root: str,
    link: str,
    update: ConfigUpdate,
):
    """Update the image configuration recorded for a build container."""
    builder = await resolve_builder(store, name=name, root=root, link=link)
    update_config(builder, update)
    await save_builder(builder)


async def create_container(
    store: BaseStore,
    config: ScaffoldConfig,
    image: str,
    name: Optional[str],
    pull: bool,
    pull_always: bool,
    registry: Optional[str],
    mount: bool,
    link: Optional[str],
    signature_policy: Optional[str],
):
    """Create a build container from an image, or from scratch."""
    options = BuilderOptions(
        from_image=image,
        container=name or "",
        pull_if_missing=pull,
        pull_always=pull_always,
        registry=config.registry if registry is None else registry,
        mount=mount,
        link=link or "",
        signature_policy_path=signature_policy or config.signature_policy_path or "",
    )
    builder = await new_builder(store, options)
    _emit(builder.container)


async def import_container(store: BaseStore, config: ScaffoldConfig, name: str):
    """Start tracking build state for an existing container."""
    builder = await import_builder(store, ImportOptions(container=name))
    _emit(builder.container)


async def list_containers(store: BaseStore, config: ScaffoldConfig, as_json: bool = False):
    """List build containers."""
    builders = await list_builders(store)

    if as_json:
        _emit(json.dumps([_summary(b) for b in builders], indent=2))
        return

    table = Table(title="Build containers")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Image", style="magenta")
    table.add_column("Mount point")

    for builder in builders:
        table.add_row(
            builder.container_id[:12],
            builder.container,
            builder.from_image or "scratch",
            builder.mount_point,
        )

    console.print(table)


async def inspect_container(store: BaseStore, config: ScaffoldConfig, name: str):
    """Show the recorded state of a build container."""
    builder = await open_builder(store, name)
    data = builder.model_dump(mode="json", by_alias=True)
    data["created-by"] = builder.history_created_by
    _emit(json.dumps(data, indent=2))


async def mount_container(store: BaseStore, config: ScaffoldConfig, name: str, link: Optional[str]):
    """Mount a build container and print its mount point."""
    builder = await open_builder(store, name)
    mount_point = await mount_builder(builder, link=link or "")
    _emit(mount_point)


async def unmount_container(store: BaseStore, config: ScaffoldConfig, name: str):
    """Unmount a build container."""
    builder = await open_builder(store, name)
    await unmount_builder(builder)


async def remove_containers(store: BaseStore, config: ScaffoldConfig, names: List[str]):
    """Remove build containers."""
    for name in names:
        builder = await open_builder(store, name)
        await delete_builder(builder)
        _emit(builder.container_id)
