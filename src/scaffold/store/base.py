"""Base store interface."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class ContainerInfo(BaseModel):
    """A container registered in a store."""
    id: str = Field(..., description="Store-issued container ID")
    names: List[str] = Field(default_factory=list)
    image_id: str = Field(default="", description="ID of the source image, if any")

    @property
    def name(self) -> str:
        """Primary name, or the ID if the container is unnamed."""
        return self.names[0] if self.names else self.id


class ImageInfo(BaseModel):
    """An image registered in a store."""
    id: str = Field(..., description="Store-issued image ID")
    names: List[str] = Field(default_factory=list)


class BaseStore(ABC):
    """Container and image repository consumed by the builder.

    Implementations serialize their own structural operations; callers add
    no locking around them.
    """

    @abstractmethod
    async def create_container(self, name: str, image_id: Optional[str] = None) -> ContainerInfo:
        """Allocate a container, optionally based on an image.

        Raises DuplicateNameError if ``name`` is taken.
        """
        pass

    @abstractmethod
    async def delete_container(self, container_id: str) -> None:
        """Remove a container and its directories."""
        pass

    @abstractmethod
    async def container_directory(self, container_id: str) -> Path:
        """Directory for storing a container's private metadata."""
        pass

    @abstractmethod
    async def containers(self) -> List[ContainerInfo]:
        """All registered containers, in store order."""
        pass

    @abstractmethod
    async def get_container(self, name_or_id: str) -> ContainerInfo:
        """Resolve a container.  Raises ContainerUnknownError."""
        pass

    async def lookup_container(self, name_or_id: str) -> str:
        """Resolve a container name or ID to its ID."""
        container = await self.get_container(name_or_id)
        return container.id

    @abstractmethod
    async def lookup_image(self, name: str) -> ImageInfo:
        """Resolve an image name or ID.  Raises ImageUnknownError."""
        pass

    @abstractmethod
    async def image_config(self, image_id: str) -> bytes:
        """Raw configuration blob of an image."""
        pass

    @abstractmethod
    async def image_manifest(self, image_id: str) -> bytes:
        """Raw manifest of an image."""
        pass

    @abstractmethod
    async def pull_image(
        self,
        name: str,
        registry: str = "",
        signature_policy_path: str = "",
    ) -> ImageInfo:
        """Fetch an image into the store."""
        pass

    @abstractmethod
    async def mount(self, container_id: str) -> Path:
        """Make the container's root filesystem available and return its path."""
        pass

    @abstractmethod
    async def unmount(self, container_id: str) -> None:
        """Release a mount obtained with mount()."""
        pass
