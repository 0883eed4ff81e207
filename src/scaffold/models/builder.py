"""Build container state models."""

import base64
from typing import Any, Dict, List, Optional, Set

from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    field_serializer,
    field_validator,
    model_serializer,
)


PACKAGE = "scaffold"
# Identifies state written by this tool; bump the version on incompatible changes.
CONTAINER_TYPE = f"{PACKAGE} 0.0.0"
STATE_FILE = f"{PACKAGE}.json"
DEFAULT_CREATED_BY = "manual edits"


class Builder(BaseModel):
    """A container which is being used to build an image.

    Besides identifying the container, a Builder carries the updates which
    will be applied to the image's configuration when the container's
    contents are committed.  Fields described as fixed are set when the
    builder is created and should not be modified afterwards.
    """
    # Fixed.  Identifies the record as one of ours.
    type: str = Field(default="", alias="type")
    # Fixed.  Name of the source image, if one was used.
    from_image: str = Field(default="", alias="image")
    # Fixed.  Verbatim copies of the source image's configuration and manifest.
    config: bytes = Field(default=b"", alias="config")
    manifest: bytes = Field(default=b"", alias="manifest")

    # Fixed.  Name and ID of the backing store container.
    container: str = Field(default="", alias="container-name")
    container_id: str = Field(default="", alias="container-id", frozen=True)
    # Last location where the container's root filesystem was mounted.
    mount_point: str = Field(default="", alias="mountpoint")
    # Every location where the root filesystem has been mounted.
    mounts: List[str] = Field(default_factory=list, alias="mounts")
    # Symbolic links to the mounted root filesystem, removed on unmount.
    links: List[str] = Field(default_factory=list, alias="links")

    annotations: Dict[str, str] = Field(default_factory=dict, alias="annotations")

    created_by: str = Field(default="", alias="created-by")
    os: str = Field(default="", alias="os")
    architecture: str = Field(default="", alias="arch")
    maintainer: str = Field(default="", alias="maintainer")
    user: str = Field(default="", alias="user")
    workdir: str = Field(default="", alias="workingdir")
    env: List[str] = Field(default_factory=list, alias="env")
    cmd: List[str] = Field(default_factory=list, alias="cmd")
    entrypoint: List[str] = Field(default_factory=list, alias="entrypoint")
    expose: Set[str] = Field(default_factory=set, alias="expose")
    labels: Dict[str, str] = Field(default_factory=dict, alias="labels")
    volumes: List[str] = Field(default_factory=list, alias="volumes")
    arg: Dict[str, str] = Field(default_factory=dict, alias="arg")

    _store: Any = PrivateAttr(default=None)

    class Config:
        """Pydantic config."""
        populate_by_name = True
        extra = "ignore"

    @field_validator("config", "manifest", mode="before")
    @classmethod
    def decode_blob(cls, v, info):
        """Blobs are stored base64-encoded."""
        if info.mode == "json" and isinstance(v, str):
            return base64.b64decode(v, validate=True)
        return v

    @field_serializer("config", "manifest", when_used="json")
    def encode_blob(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")

    @field_validator("expose", mode="before")
    @classmethod
    def decode_expose(cls, v):
        """Accept both the persisted {port: {}} shape and a plain list."""
        if isinstance(v, dict):
            return set(v.keys())
        return v

    @field_serializer("expose", when_used="json")
    def encode_expose(self, v: Set[str]) -> Dict[str, Dict]:
        return {port: {} for port in sorted(v)}

    @model_serializer(mode="wrap")
    def omit_empty(self, handler, info):
        """With exclude_defaults, also leave out blobs and ports that are empty."""
        data = handler(self)
        if info.exclude_defaults:
            data = {key: value for key, value in data.items() if value}
        return data

    def __eq__(self, other):
        # Only the data counts; the attached store does not.
        if isinstance(other, Builder):
            return self.model_dump() == other.model_dump()
        return NotImplemented

    @property
    def store(self):
        """Store this builder was created in or loaded from."""
        return self._store

    def attach(self, store) -> "Builder":
        """Associate the builder with a store and return it."""
        self._store = store
        return self

    @property
    def history_created_by(self) -> str:
        """Description of how the container was produced, for image history."""
        return self.created_by or DEFAULT_CREATED_BY


class BuilderOptions(BaseModel):
    """Options used to create a new build container."""
    # Empty or "scratch" means the container does not start from an image.
    from_image: str = Field(default="")
    # Desired container name; generated from the image name when empty.
    container: str = Field(default="")
    pull_if_missing: bool = Field(default=False)
    pull_always: bool = Field(default=False)
    # Prepended to the image name when pulling an unqualified reference.
    registry: str = Field(default="")
    mount: bool = Field(default=False)
    # Symlink to create pointing at the mount point, if mount is set.
    link: str = Field(default="")
    signature_policy_path: str = Field(default="")


class ImportOptions(BaseModel):
    """Options used to adopt an existing container."""
    container: str = Field(..., description="Name or ID of the existing container")
    signature_policy_path: str = Field(default="")


class ConfigUpdate(BaseModel):
    """Image configuration changes to apply to a builder.

    A field left as None was not provided and leaves the builder untouched;
    any other value, including an empty string or list, is applied.
    """
    author: Optional[str] = None
    created_by: Optional[str] = None
    arch: Optional[str] = None
    os: Optional[str] = None
    user: Optional[str] = None
    port: Optional[List[str]] = None
    env: Optional[List[str]] = None
    entrypoint: Optional[str] = None
    cmd: Optional[str] = None
    volume: Optional[List[str]] = None
    workingdir: Optional[str] = None
    label: Optional[List[str]] = None
    annotation: Optional[List[str]] = None

    class Config:
        """Pydantic config."""
        extra = "forbid"
