"""Encoding and persistence of build container state."""

import logging
from typing import Optional

from pydantic import ValidationError

from scaffold.errors import DecodeError, NotBuildContainerError, TypeMismatchError
from scaffold.models.builder import Builder, CONTAINER_TYPE, PACKAGE, STATE_FILE
from scaffold.store.base import BaseStore
from scaffold.utils.fileio import read_bytes, write_file_atomic_async


logger = logging.getLogger(__name__)


def encode_builder(builder: Builder) -> bytes:
    """Serialize a builder, leaving out empty fields."""
    return builder.model_dump_json(by_alias=True, exclude_defaults=True).encode()


def decode_builder(data: bytes) -> Builder:
    """Deserialize a builder.

    Raises DecodeError for malformed data and TypeMismatchError for
    well-formed state that was not written by this tool.
    """
    try:
        builder = Builder.model_validate_json(data)
    except ValidationError as e:
        raise DecodeError(f"error decoding build state: {e}") from e
    if builder.type != CONTAINER_TYPE:
        raise TypeMismatchError(f"container is not a {PACKAGE} container")
    return builder


async def read_state(store: BaseStore, container_id: str) -> bytes:
    """Read the raw build state of a container."""
    cdir = await store.container_directory(container_id)
    try:
        return await read_bytes(cdir / STATE_FILE)
    except FileNotFoundError as e:
        raise NotBuildContainerError(
            f"container {container_id[:12]} has no {PACKAGE} state"
        ) from e


async def save_builder(builder: Builder, store: Optional[BaseStore] = None) -> None:
    """Persist a builder's state in its container's metadata directory.

    The state file is replaced atomically, so a concurrent reader sees either
    the previous or the new state.
    """
    store = store or builder.store
    if store is None:
        raise ValueError("builder is not associated with a store")
    data = encode_builder(builder)
    cdir = await store.container_directory(builder.container_id)
    await write_file_atomic_async(cdir / STATE_FILE, data, 0o600)
    logger.debug(f"Saved state of container {builder.container or builder.container_id}")
