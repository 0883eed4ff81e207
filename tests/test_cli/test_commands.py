"""Tests for CLI command implementations."""

import json

import pytest
from unittest.mock import patch

from scaffold.builder import open_builder
from scaffold.cli.commands import (
    configure_container,
    create_container,
    import_container,
    inspect_container,
    list_containers,
    remove_containers,
)
from scaffold.errors import ContainerUnknownError
from scaffold.models.builder import ConfigUpdate
from scaffold.models.config import ScaffoldConfig


@pytest.fixture
def config():
    return ScaffoldConfig(registry="quay.io", signature_policy_path="/etc/policy.json")


@pytest.mark.asyncio
class TestCommands:
    """Test the async command handlers."""

    async def test_create_uses_configured_defaults(self, store, config):
        """Test that registry and policy fall back to the configuration."""
        store.remote["app"] = (b"{}", b"{}")

        with patch("scaffold.cli.commands._emit") as mock_emit:
            await create_container(
                store, config, image="app", name=None, pull=True, pull_always=False,
                registry=None, mount=False, link=None, signature_policy=None,
            )

        mock_emit.assert_called_once_with("app-working-container")
        assert store.pull_requests == [("app", "quay.io", "/etc/policy.json")]

    async def test_import(self, store, config):
        """Test importing prints the container name."""
        await store.create_container("external")

        with patch("scaffold.cli.commands._emit") as mock_emit:
            await import_container(store, config, name="external")

        mock_emit.assert_called_once_with("external")

    async def test_configure(self, store, config, make_builder):
        """Test that configuration changes are saved."""
        await make_builder("work")

        await configure_container(
            store, config, name="work", root="", link="",
            update=ConfigUpdate(user="nobody", env=["A=1"]),
        )

        builder = await open_builder(store, "work")
        assert builder.user == "nobody"
        assert builder.env == ["A=1"]

    async def test_list_json(self, store, config, make_builder):
        """Test the JSON listing."""
        builder = await make_builder("work")

        with patch("scaffold.cli.commands._emit") as mock_emit:
            await list_containers(store, config, as_json=True)

        listed = json.loads(mock_emit.call_args[0][0])
        assert listed == [{
            "id": builder.container_id,
            "name": "work",
            "image": "",
            "mountpoint": "",
        }]

    async def test_list_table(self, store, config, make_builder):
        """Test the table listing."""
        await make_builder("work")

        with patch("scaffold.cli.commands.console") as mock_console:
            await list_containers(store, config)

        table = mock_console.print.call_args[0][0]
        assert table.row_count == 1

    async def test_inspect(self, store, config, make_builder):
        """Test that inspect shows persisted key names."""
        await make_builder("work")

        with patch("scaffold.cli.commands._emit") as mock_emit:
            await inspect_container(store, config, name="work")

        data = json.loads(mock_emit.call_args[0][0])
        assert data["container-name"] == "work"
        assert data["created-by"] == "manual edits"

    async def test_remove(self, store, config, make_builder):
        """Test removing containers."""
        builder = await make_builder("work")

        with patch("scaffold.cli.commands._emit") as mock_emit:
            await remove_containers(store, config, names=["work"])

        mock_emit.assert_called_once_with(builder.container_id)
        with pytest.raises(ContainerUnknownError):
            await open_builder(store, "work")
