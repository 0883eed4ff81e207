"""Build container state: persistence, lookup, construction and updates."""

from scaffold.builder.codec import decode_builder, encode_builder, read_state, save_builder
from scaffold.builder.mount import delete_builder, mount_builder, unmount_builder
from scaffold.builder.construct import import_builder, new_builder
from scaffold.builder.resolver import (
    list_builders,
    open_builder,
    open_builder_by_path,
    resolve_builder,
)
from scaffold.builder.mutator import update_config

__all__ = [
    "decode_builder",
    "encode_builder",
    "read_state",
    "save_builder",
    "delete_builder",
    "mount_builder",
    "unmount_builder",
    "import_builder",
    "new_builder",
    "list_builders",
    "open_builder",
    "open_builder_by_path",
    "resolve_builder",
    "update_config",
]
