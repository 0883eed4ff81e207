"""Tests for creating and importing build containers."""

import os
from unittest.mock import AsyncMock, patch

import pytest

from scaffold.builder.construct import default_container_name, import_builder, new_builder
from scaffold.builder.resolver import open_builder, open_builder_by_path
from scaffold.errors import (
    ContainerUnknownError,
    DuplicateNameError,
    ImageUnknownError,
    ScaffoldError,
    StoreOperationError,
)
from scaffold.models.builder import BuilderOptions, ImportOptions, CONTAINER_TYPE


class TestDefaultName:
    """Test generated container names."""

    @pytest.mark.parametrize("image,expected", [
        ("", "working-container"),
        ("alpine", "alpine-working-container"),
        ("docker.io/library/alpine:3.19", "alpine-working-container"),
        ("localhost:5000/team/app@sha256:abc", "app-working-container"),
    ])
    def test_names(self, image, expected):
        assert default_container_name(image) == expected


@pytest.mark.asyncio
class TestNewBuilder:
    """Test new_builder."""

    async def test_scratch(self, store):
        """Test creating a container without a base image."""
        builder = await new_builder(store, BuilderOptions(from_image="scratch"))

        assert builder.type == CONTAINER_TYPE
        assert builder.from_image == ""
        assert builder.config == b""
        assert builder.container == "working-container"
        reloaded = await open_builder(store, builder.container_id)
        assert reloaded.model_dump() == builder.model_dump()

    async def test_from_image_copies_blobs(self, store):
        """Test that image config and manifest are kept verbatim."""
        store.add_image("alpine", config=b'{"os": "linux"}', manifest=b'{"layers": []}')

        builder = await new_builder(store, BuilderOptions(from_image="alpine"))

        assert builder.from_image == "alpine"
        assert builder.config == b'{"os": "linux"}'
        assert builder.manifest == b'{"layers": []}'
        assert builder.container == "alpine-working-container"
        container = await store.get_container(builder.container_id)
        assert container.image_id == (await store.lookup_image("alpine")).id

    async def test_generated_name_collision(self, store):
        """Test that generated names get numeric suffixes."""
        names = []
        for _ in range(3):
            builder = await new_builder(store, BuilderOptions())
            names.append(builder.container)

        assert names == ["working-container", "working-container-1", "working-container-2"]

    async def test_explicit_name_collision(self, store):
        """Test that an explicit name must be free."""
        await new_builder(store, BuilderOptions(container="mine"))

        with pytest.raises(DuplicateNameError):
            await new_builder(store, BuilderOptions(container="mine"))

    async def test_missing_image_without_pull(self, store):
        """Test that a missing image is an error unless pulling is allowed."""
        with pytest.raises(ImageUnknownError):
            await new_builder(store, BuilderOptions(from_image="busybox"))

        assert store.pulled == []
        assert await store.containers() == []

    async def test_pull_if_missing(self, store):
        """Test that a missing image is pulled when allowed."""
        store.remote["busybox"] = (b"{}", b"{}")

        builder = await new_builder(store, BuilderOptions(from_image="busybox", pull_if_missing=True))

        assert store.pulled == ["busybox"]
        assert builder.from_image == "busybox"

    async def test_pull_if_missing_skips_present_image(self, store):
        """Test that a present image is not pulled again."""
        store.add_image("busybox")

        await new_builder(store, BuilderOptions(from_image="busybox", pull_if_missing=True))

        assert store.pulled == []

    async def test_pull_always(self, store):
        """Test that pull_always pulls even if the image is present."""
        store.add_image("busybox")
        store.remote["busybox"] = (b'{"new": true}', b"{}")

        builder = await new_builder(store, BuilderOptions(from_image="busybox", pull_always=True))

        assert store.pulled == ["busybox"]
        assert builder.config == b'{"new": true}'

    async def test_pull_failure(self, store):
        """Test that pull errors propagate and no container is left."""
        with pytest.raises(StoreOperationError):
            await new_builder(store, BuilderOptions(from_image="nope", pull_always=True))

        assert await store.containers() == []

    async def test_mount_and_link(self, store, tmp_path):
        """Test mounting immediately and linking to the mount point."""
        link = tmp_path / "root"

        builder = await new_builder(store, BuilderOptions(mount=True, link=str(link)))

        assert builder.mount_point == str(store.root / builder.container_id / "rootfs")
        assert builder.mounts == [builder.mount_point]
        assert builder.links == [str(link)]
        assert os.readlink(link) == builder.mount_point
        found = await open_builder_by_path(store, str(link))
        assert found.container_id == builder.container_id

    async def test_failure_removes_container(self, store):
        """Test that a failed setup leaves no container behind."""
        with patch(
            "scaffold.builder.construct.save_builder",
            new_callable=AsyncMock,
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(OSError):
                await new_builder(store, BuilderOptions(container="doomed"))

        assert await store.containers() == []


@pytest.mark.asyncio
class TestImportBuilder:
    """Test import_builder."""

    async def test_import_existing(self, store):
        """Test adopting a container created elsewhere."""
        container = await store.create_container("external")

        builder = await import_builder(store, ImportOptions(container="external"))

        assert builder.type == CONTAINER_TYPE
        assert builder.container_id == container.id
        assert builder.from_image == ""
        assert builder.config == b""
        assert builder.manifest == b""
        assert (await open_builder(store, "external")).container_id == container.id

    async def test_import_unknown(self, store):
        """Test importing a container that does not exist."""
        with pytest.raises(ContainerUnknownError):
            await import_builder(store, ImportOptions(container="missing"))

    async def test_import_requires_name(self, store):
        """Test that a container name is required."""
        with pytest.raises(ScaffoldError):
            await import_builder(store, ImportOptions(container=""))
