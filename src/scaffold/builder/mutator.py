"""Applying image configuration updates to a builder."""

import logging
import shlex
from typing import Dict, List, Optional

from scaffold.errors import TokenizeError
from scaffold.models.builder import Builder, ConfigUpdate


logger = logging.getLogger(__name__)


def split_words(spec: str) -> List[str]:
    """Split a shell-like string into words using POSIX rules."""
    try:
        return shlex.split(spec, posix=True)
    except ValueError as e:
        raise TokenizeError(f"error parsing {spec!r}: {e}") from e


def apply_key_values(target: Dict[str, str], specs: List[str]) -> None:
    """Set ``key=value`` entries; a bare ``key`` removes the entry."""
    for spec in specs:
        key, sep, value = spec.partition("=")
        if sep:
            target[key] = value
        else:
            target.pop(key, None)


def _parse_command(option: str, spec: str) -> Optional[List[str]]:
    try:
        return split_words(spec)
    except TokenizeError as e:
        logger.warning(f"Ignoring --{option}: {e}")
        return None


def update_config(builder: Builder, update: ConfigUpdate) -> Builder:
    """Apply the provided fields of ``update`` to ``builder`` in memory.

    Scalars are overwritten, env and volumes are appended to, ports are added
    to the exposed set, and labels and annotations follow ``key=value`` /
    bare ``key`` (delete) syntax.  An entrypoint or cmd that cannot be
    tokenized is reported and left unchanged.
    """
    if update.author is not None:
        builder.maintainer = update.author
    if update.created_by is not None:
        builder.created_by = update.created_by
    if update.arch is not None:
        builder.architecture = update.arch
    if update.os is not None:
        builder.os = update.os
    if update.user is not None:
        builder.user = update.user
    if update.port is not None:
        builder.expose.update(update.port)
    if update.env is not None:
        builder.env.extend(update.env)
    if update.entrypoint is not None:
        entrypoint = _parse_command("entrypoint", update.entrypoint)
        if entrypoint is not None:
            builder.entrypoint = entrypoint
    if update.cmd is not None:
        cmd = _parse_command("cmd", update.cmd)
        if cmd is not None:
            builder.cmd = cmd
    if update.volume is not None:
        builder.volumes.extend(update.volume)
    if update.label is not None:
        apply_key_values(builder.labels, update.label)
    if update.workingdir is not None:
        builder.workdir = update.workingdir
    if update.annotation is not None:
        apply_key_values(builder.annotations, update.annotation)
    return builder
