"""
Tests for DatabaseManager connection handling and collection resolution.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from referral_chains.database import PrefixCollectionResolver, validate_chain_name
from referral_chains.database.manager import DatabaseManager
from referral_chains.services.errors import ConfigurationError


@pytest.fixture
def mock_client():
    with patch("referral_chains.database.manager.AsyncIOMotorClient") as mock:
        client = MagicMock()
        client.admin.command = AsyncMock(return_value={"ok": 1})
        mock.return_value = client
        yield mock


def test_get_collection_requires_connection():
    with pytest.raises(ConnectionError):
        DatabaseManager().get_collection("chains")


@pytest.mark.asyncio
async def test_connect_and_disconnect(mock_client):
    manager = DatabaseManager()

    await manager.connect()

    assert manager.is_connected
    mock_client.return_value.admin.command.assert_awaited_with("ping")
    assert await manager.health_check() is True

    await manager.disconnect()

    mock_client.return_value.close.assert_called_once()
    assert manager.client is None
    assert await manager.health_check() is False


@pytest.mark.asyncio
async def test_scoped_database_reuses_shared_pool(mock_client):
    manager = DatabaseManager()
    await manager.connect()

    async with manager.scoped_database() as database:
        assert database is manager.database

    assert mock_client.call_count == 1
    mock_client.return_value.close.assert_not_called()


@pytest.mark.asyncio
async def test_scoped_database_closes_per_invocation_client_on_error(mock_client):
    manager = DatabaseManager()

    with pytest.raises(RuntimeError):
        async with manager.scoped_database():
            raise RuntimeError("query failed")

    mock_client.return_value.close.assert_called_once()
    assert manager.client is None


def test_sanitize_query_redacts_secrets():
    sanitized = DatabaseManager()._sanitize_query_for_logging([{"$match": {"password": "hunter2", "nodeId": 4}}])

    assert sanitized == [{"$match": {"password": "[REDACTED]", "nodeId": 4}}]


def test_prefix_resolver():
    assert PrefixCollectionResolver("treeNodes").resolve("Gold") == "treeNodesGold"
    assert PrefixCollectionResolver("nodes_").resolve("gold rush") == "nodes_gold rush"


def test_validate_chain_name():
    assert validate_chain_name("Gold") == "Gold"
    with pytest.raises(ConfigurationError):
        validate_chain_name("")
    with pytest.raises(ConfigurationError):
        validate_chain_name("$Gold")
