"""Main CLI implementation using Typer."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from scaffold.cli.commands import (
    configure_container,
    create_container,
    import_container,
    inspect_container,
    list_containers,
    mount_container,
    remove_containers,
    unmount_container,
)
from scaffold.errors import ScaffoldError
from scaffold.models.builder import ConfigUpdate, DEFAULT_CREATED_BY
from scaffold.store.directory import DirectoryStore
from scaffold.utils.config import load_config
from scaffold.utils.logging import setup_logging


# Create Typer app
app = typer.Typer(
    name="scaffold",
    help="Scaffold - create and configure image build containers",
    add_completion=False,
)

# Errors go to stderr; command output stays on stdout
console = Console(stderr=True)


@dataclass
class GlobalOptions:
    """Options shared by every command."""
    storage_root: Optional[str] = None
    config_file: Optional[Path] = None
    log_level: Optional[str] = None


def _run_cli_command(ctx: typer.Context, handler: Callable[..., Any], **kwargs: Any):
    """Helper to run a command against the configured store with error handling."""
    options: GlobalOptions = ctx.obj or GlobalOptions()
    try:
        config = load_config(options.config_file, options.storage_root)
        setup_logging(options.log_level or config.log_level)
        store = DirectoryStore.from_config(config)
        asyncio.run(handler(store, config, **kwargs))
    except (ScaffoldError, ValidationError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _provided(values: Optional[List[str]]) -> Optional[List[str]]:
    """Map an absent repeatable option to None."""
    return list(values) if values else None


@app.callback()
def main_callback(
    ctx: typer.Context,
    storage_root: Optional[str] = typer.Option(
        None, "--storage-root", help="Root directory of the container store"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help="Configuration file"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Scaffold - create and configure image build containers."""
    ctx.obj = GlobalOptions(
        storage_root=storage_root,
        config_file=config_file,
        log_level="DEBUG" if debug else log_level,
    )


@app.command("config")
def config_command(
    ctx: typer.Context,
    name: str = typer.Option("", "--name", help="Name of the working container"),
    root: str = typer.Option("", "--root", help="Root directory of the working container"),
    link: str = typer.Option("", "--link", help="Symlink to the root directory of the working container"),
    author: Optional[str] = typer.Option(None, "--author", help="Image author contact information"),
    created_by: Optional[str] = typer.Option(
        None, "--created-by",
        help=f"Description of how the image was created [default: {DEFAULT_CREATED_BY}]",
    ),
    arch: Optional[str] = typer.Option(None, "--arch", help="Image target architecture"),
    os: Optional[str] = typer.Option(None, "--os", help="Image target operating system"),
    user: Optional[str] = typer.Option(None, "--user", help="User to run containers based on image as"),
    port: Optional[List[str]] = typer.Option(
        None, "--port", help="Port to expose when running containers based on image"
    ),
    env: Optional[List[str]] = typer.Option(
        None, "--env", help="Environment variable to set when running containers based on image"
    ),
    entrypoint: Optional[str] = typer.Option(None, "--entrypoint", help="Entry point for containers based on image"),
    cmd: Optional[str] = typer.Option(None, "--cmd", help="Command for containers based on image"),
    volume: Optional[List[str]] = typer.Option(
        None, "--volume", help="Volume to create for containers based on image"
    ),
    workingdir: Optional[str] = typer.Option(
        None, "--workingdir", help="Initial working directory for containers based on image"
    ),
    label: Optional[List[str]] = typer.Option(
        None, "--label", help="Image configuration label e.g. label=value (bare label removes it)"
    ),
    annotation: Optional[List[str]] = typer.Option(
        None, "--annotation", help="Image annotation e.g. annotation=value (bare annotation removes it)"
    ),
):
    """Update image configuration settings of a working container."""
    update = ConfigUpdate(
        author=author,
        created_by=created_by,
        arch=arch,
        os=os,
        user=user,
        port=_provided(port),
        env=_provided(env),
        entrypoint=entrypoint,
        cmd=cmd,
        volume=_provided(volume),
        workingdir=workingdir,
        label=_provided(label),
        annotation=_provided(annotation),
    )
    _run_cli_command(ctx, configure_container, name=name, root=root, link=link, update=update)


@app.command("from")
def from_command(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Source image, or 'scratch' for an empty container"),
    name: Optional[str] = typer.Option(None, "--name", help="Name for the working container"),
    pull: bool = typer.Option(True, "--pull/--no-pull", help="Pull the image if it is not present"),
    pull_always: bool = typer.Option(False, "--pull-always", help="Pull the image even if it is present"),
    registry: Optional[str] = typer.Option(None, "--registry", help="Registry for unqualified image names"),
    mount: bool = typer.Option(False, "--mount", help="Mount the container right away"),
    link: Optional[str] = typer.Option(None, "--link", help="Symlink to create to the mount point"),
    signature_policy: Optional[str] = typer.Option(
        None, "--signature-policy", help="Signature policy file used when pulling"
    ),
):
    """Create a working container based on an image."""
    _run_cli_command(
        ctx,
        create_container,
        image=image,
        name=name,
        pull=pull,
        pull_always=pull_always,
        registry=registry,
        mount=mount,
        link=link,
        signature_policy=signature_policy,
    )


@app.command("import")
def import_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name or ID of an existing container"),
):
    """Track an existing container as a working container."""
    _run_cli_command(ctx, import_container, name=name)


@app.command("containers")
def containers_command(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
):
    """List working containers."""
    _run_cli_command(ctx, list_containers, as_json=as_json)


@app.command("inspect")
def inspect_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Working container name or ID"),
):
    """Show the recorded state of a working container."""
    _run_cli_command(ctx, inspect_container, name=name)


@app.command("mount")
def mount_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Working container name or ID"),
    link: Optional[str] = typer.Option(None, "--link", help="Symlink to create to the mount point"),
):
    """Mount a working container's root filesystem."""
    _run_cli_command(ctx, mount_container, name=name, link=link)


@app.command("umount")
def umount_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Working container name or ID"),
):
    """Unmount a working container's root filesystem."""
    _run_cli_command(ctx, unmount_container, name=name)


@app.command("rm")
def rm_command(
    ctx: typer.Context,
    names: List[str] = typer.Argument(..., help="Working container names or IDs"),
):
    """Remove working containers."""
    _run_cli_command(ctx, remove_containers, names=names)


def main():
    """Main entry point for CLI."""
    app()
