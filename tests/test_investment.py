"""
Tests for the investment aggregator.
"""
import pytest

from referral_chains.database import PrefixCollectionResolver
from referral_chains.models.chain_models import Chain
from referral_chains.services.errors import RootNodeIncomplete, RootNodeMissing
from referral_chains.services.investment import InvestmentAggregator

from conftest import make_collection


@pytest.mark.asyncio
async def test_single_chain_investment(database, collections):
    collections["treeNodesGold"] = make_collection(find_one_result={"_id": "g0", "totalMembers": 5})
    chains = [Chain(name="Gold", seedAmount=100, rootNode="g0")]

    result, total = await InvestmentAggregator(database, PrefixCollectionResolver("treeNodes")).aggregate(chains)

    assert result[0].investment == 500
    assert total == 500
    collections["treeNodesGold"].find_one.assert_awaited_once_with({"_id": "g0"})


@pytest.mark.asyncio
async def test_total_is_sum_of_chain_investments(database, collections):
    collections["treeNodesGold"] = make_collection(find_one_result={"_id": "g0", "totalMembers": 5})
    collections["treeNodesSilver"] = make_collection(find_one_result={"_id": "s0", "totalMembers": 12})
    collections["treeNodesBronze"] = make_collection(find_one_result={"_id": "b0", "totalMembers": 0})
    chains = [
        Chain(name="Gold", seedAmount=100, rootNode="g0"),
        Chain(name="Silver", seedAmount=2.5, rootNode="s0"),
        Chain(name="Bronze", seedAmount=10, rootNode="b0"),
    ]

    result, total = await InvestmentAggregator(database).aggregate(chains)

    assert [chain.investment for chain in result] == [500, 30.0, 0]
    assert total == sum(chain.investment for chain in result) == 530.0
    for name in ("treeNodesGold", "treeNodesSilver", "treeNodesBronze"):
        assert collections[name].find_one.await_count == 1


@pytest.mark.asyncio
async def test_empty_page_has_zero_total(database, collections):
    result, total = await InvestmentAggregator(database).aggregate([])

    assert result == []
    assert total == 0
    assert collections == {}


@pytest.mark.asyncio
async def test_missing_root_node_raises(database, collections):
    collections["treeNodesGold"] = make_collection(find_one_result=None)

    with pytest.raises(RootNodeMissing) as exc_info:
        await InvestmentAggregator(database).aggregate([Chain(name="Gold", seedAmount=100, rootNode="g0")])

    assert exc_info.value.chain_name == "Gold"
    assert "treeNodes" not in exc_info.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize("root_node", [{"_id": "g0"}, {"_id": "g0", "totalMembers": None}])
async def test_root_node_without_member_count_raises(database, collections, root_node):
    collections["treeNodesGold"] = make_collection(find_one_result=root_node)

    with pytest.raises(RootNodeIncomplete) as exc_info:
        await InvestmentAggregator(database).aggregate([Chain(name="Gold", seedAmount=100, rootNode="g0")])

    assert exc_info.value.chain_name == "Gold"
    assert exc_info.value.message == "Root node for chain 'Gold' has no totalMembers"
