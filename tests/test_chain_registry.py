"""
Tests for the chain registry reader.
"""
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from referral_chains.services.chain_registry import ChainRegistryReader
from referral_chains.services.errors import ConfigurationError, RegistryUnavailable

from conftest import make_collection


@pytest.mark.asyncio
async def test_list_chains_pages_the_registry(database, collections):
    collections["chains"] = make_collection(
        aggregate_result=[{"_id": "c1", "name": "Gold", "seedAmount": 100, "rootNode": "g0"}],
        count=7,
    )

    chains, total = await ChainRegistryReader(database).list_chains(20, 10)

    collections["chains"].aggregate.assert_called_once_with([{"$skip": 20}, {"$limit": 10}])
    collections["chains"].count_documents.assert_awaited_once_with({})
    assert total == 7
    assert chains[0].name == "Gold"
    assert chains[0].seed_amount == 100
    assert chains[0].root_node == "g0"


@pytest.mark.asyncio
async def test_list_chain_names(database, collections):
    collections["chains"] = make_collection(distinct_result=["Gold", "Silver"])

    names = await ChainRegistryReader(database).list_chain_names()

    assert names == ["Gold", "Silver"]
    collections["chains"].distinct.assert_awaited_once_with("name")


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_name", ["", "   ", None, 12, "Gold$", "Go\x00ld"])
async def test_malformed_chain_name_is_a_configuration_error(database, collections, bad_name):
    collections["chains"] = make_collection(distinct_result=["Gold", bad_name])

    with pytest.raises(ConfigurationError):
        await ChainRegistryReader(database).list_chain_names()


@pytest.mark.asyncio
async def test_store_failure_is_registry_unavailable(database, collections):
    collections["chains"] = make_collection()
    collections["chains"].distinct = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    with pytest.raises(RegistryUnavailable):
        await ChainRegistryReader(database).list_chain_names()


@pytest.mark.asyncio
async def test_count_failure_is_registry_unavailable(database, collections):
    collections["chains"] = make_collection()
    collections["chains"].count_documents = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    with pytest.raises(RegistryUnavailable):
        await ChainRegistryReader(database).list_chains(0, 10)
